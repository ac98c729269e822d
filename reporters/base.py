"""Base reporter interface for step runner results."""
from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping

from test_types import CaseResult, SuiteResult

SENSITIVE_KEYS = ("password", "secret", "token")


class ReportFormat(str, Enum):
    """Supported report formats."""
    JSON = "json"
    JUNIT = "junit"
    ALL = "all"
    NONE = "none"


def mask_test_data(test_data: Mapping[str, Any]) -> Dict[str, Any]:
    """Copy test data with credential values replaced by asterisks."""
    return {
        key: "***" if any(s in key.lower() for s in SENSITIVE_KEYS) else value
        for key, value in test_data.items()
    }


class BaseReporter(ABC):
    """Abstract base class for report generators."""

    @abstractmethod
    def generate(self, result: CaseResult, output_dir: Path) -> Path:
        """
        Generate a report for a single case result.

        Args:
            result: Case execution result
            output_dir: Directory to write report to

        Returns:
            Path to the generated report file
        """
        pass

    @abstractmethod
    def generate_suite(self, suite: SuiteResult, output_dir: Path) -> Path:
        """
        Generate a combined report for a whole run.

        Args:
            suite: Ordered case results plus run timing
            output_dir: Directory to write report to

        Returns:
            Path to the generated report file
        """
        pass

    @property
    @abstractmethod
    def format(self) -> ReportFormat:
        """Return the report format this reporter generates."""
        pass
