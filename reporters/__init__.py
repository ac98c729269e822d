"""Report generators for step runner results."""
from reporters.base import BaseReporter, ReportFormat, mask_test_data
from reporters.json_reporter import JSONReporter
from reporters.junit import JUnitReporter

__all__ = [
    "BaseReporter",
    "ReportFormat",
    "JSONReporter",
    "JUnitReporter",
    "mask_test_data",
]
