"""Custom exception hierarchy for the natural-language step runner."""
from __future__ import annotations

from typing import Any, Optional


class StepRunnerError(Exception):
    """Base exception for all step-runner errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# Step interpretation exceptions
class MappingError(StepRunnerError):
    """Raised when a step cannot be translated into browser actions."""

    def __init__(
        self,
        message: str,
        step: Optional[str] = None,
        test_case: Optional[str] = None,
        missing_key: Optional[str] = None,
    ):
        details = {}
        if test_case:
            details["test_case"] = test_case
        if missing_key:
            details["missing_key"] = missing_key
        super().__init__(message, details)
        self.step = step
        self.test_case = test_case
        self.missing_key = missing_key


# Browser / gateway exceptions
class GatewayError(StepRunnerError):
    """Base exception for browser automation failures."""

    def __init__(self, message: str, action: Optional[str] = None, details: Optional[dict[str, Any]] = None):
        details = dict(details or {})
        if action:
            details["action"] = action
        super().__init__(message, details)
        self.action = action


class NavigationError(GatewayError):
    """Raised when page navigation fails or times out."""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        details = {}
        if url:
            details["url"] = url
        if timeout:
            details["timeout"] = timeout
        super().__init__(message, action="navigate", details=details)
        self.url = url
        self.timeout = timeout


class ElementNotFoundError(GatewayError):
    """Raised when no selector candidate matches a usable element."""

    def __init__(
        self,
        message: str,
        target: Optional[str] = None,
        selectors: Optional[list[str]] = None,
        action: Optional[str] = None,
    ):
        details: dict[str, Any] = {}
        if target:
            details["target"] = target
        if selectors:
            details["selectors"] = selectors
        super().__init__(message, action=action, details=details)
        self.target = target
        self.selectors = selectors or []


class BrowserNotStartedError(GatewayError):
    """Raised when attempting to use the browser before starting it."""

    def __init__(self):
        super().__init__("Browser has not been started. Call start() first.")


class SessionStartError(GatewayError):
    """Raised when the browser session cannot be established at all."""

    def __init__(self, message: str, attempts: Optional[int] = None):
        details = {"attempts": attempts} if attempts else {}
        super().__init__(message, details=details)
        self.attempts = attempts


# Test definition exceptions
class TestDefinitionError(StepRunnerError):
    """Base exception for test definition/loading errors."""

    pass


class TaskLoadError(TestDefinitionError):
    """Raised when a test case file cannot be loaded or parsed."""

    def __init__(self, message: str, file_path: Optional[str] = None):
        details = {"file_path": file_path} if file_path else {}
        super().__init__(message, details)
        self.file_path = file_path


class TaskValidationError(TestDefinitionError):
    """Raised when a test case definition is invalid."""

    def __init__(self, message: str, task_id: Optional[str] = None, field: Optional[str] = None):
        details = {}
        if task_id:
            details["task_id"] = task_id
        if field:
            details["field"] = field
        super().__init__(message, details)
        self.task_id = task_id
        self.field = field


# Configuration exceptions
class ConfigurationError(StepRunnerError):
    """Raised when configuration is invalid."""

    pass


class ConfigFileNotFoundError(ConfigurationError):
    """Raised when a required config file is not found."""

    def __init__(self, file_path: str):
        super().__init__(f"Configuration file not found: {file_path}", {"file_path": file_path})
        self.file_path = file_path
