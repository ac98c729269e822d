"""Pytest fixtures for step runner tests."""
from __future__ import annotations

import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union
from unittest.mock import AsyncMock, MagicMock

import pytest

from config import ApplicationConfig, BrowserConfig, Credential, ExecutionConfig, ReportingConfig, RunnerConfig
from exceptions import GatewayError, SessionStartError
from gateway import AutomationGateway
from test_types import (
    AbstractAction,
    CaseResult,
    Click,
    PageSnapshot,
    StepResult,
    StepStatus,
    SuiteResult,
    TestCase,
)

VALID_USERNAME = "john"
VALID_PASSWORD = "demo"

LOGIN_PAGE = PageSnapshot(
    text_content="Customer Login Username Password Log In Forgot login info?",
    url="https://example.test/parabank/index.htm",
)
OVERVIEW_PAGE = PageSnapshot(
    text_content="Welcome John Smith Accounts Overview Account Balance Total Log Out",
    url="https://example.test/parabank/overview.htm",
)
LOGIN_ERROR_PAGE = PageSnapshot(
    text_content="Customer Login Username Password Log In Error! The username and password could not be verified.",
    url="https://example.test/parabank/index.htm",
)

Script = Callable[[AbstractAction, PageSnapshot], Union[PageSnapshot, Exception]]


class FakeGateway(AutomationGateway):
    """Scripted gateway: clicking log in leads to ``after_login``, everything else keeps the page."""

    def __init__(
        self,
        after_login: PageSnapshot = OVERVIEW_PAGE,
        initial: PageSnapshot = LOGIN_PAGE,
        script: Optional[Script] = None,
        fail_start: bool = False,
    ):
        self.after_login = after_login
        self.page = initial
        self.script = script
        self.fail_start = fail_start
        self.actions: List[AbstractAction] = []
        self.started = False
        self.start_calls = 0
        self.close_calls = 0

    async def start(self) -> None:
        self.start_calls += 1
        if self.fail_start:
            raise SessionStartError("browser binary missing", attempts=1)
        self.started = True

    async def close(self) -> None:
        self.close_calls += 1
        self.started = False

    async def execute(self, action: AbstractAction) -> PageSnapshot:
        self.actions.append(action)
        if self.script is not None:
            outcome = self.script(action, self.page)
            if isinstance(outcome, Exception):
                raise outcome
            self.page = outcome
        elif isinstance(action, Click) and action.target_kind == "login-button":
            self.page = self.after_login
        return self.page


def failing_on(action_name: str, message: str = "element not found") -> Script:
    """Script that raises GatewayError for one action type and keeps the page otherwise."""

    def script(action: AbstractAction, page: PageSnapshot) -> Union[PageSnapshot, Exception]:
        if action.name == action_name:
            return GatewayError(message, action=action_name)
        return page

    return script


def login_steps(extra: Optional[List[str]] = None) -> List[str]:
    steps = [
        "Navigate to the ParaBank login page at 'https://example.test/parabank/index.htm'",
        "Enter the valid username in the username field",
        "Enter the valid password in the password field",
        "Click the Log In button",
        "Verify that the welcome message is displayed (EXPECT: SUCCESS)",
    ]
    return steps + (extra or [])


@pytest.fixture
def valid_login_case() -> TestCase:
    """Login case carrying the configured valid credentials."""
    return TestCase(
        name="Login with valid credentials",
        steps=login_steps(),
        test_data={"username": VALID_USERNAME, "password": VALID_PASSWORD},
        priority="high",
        tags={"smoke", "auth"},
    )


@pytest.fixture
def invalid_login_case() -> TestCase:
    """Login case with a wrong password."""
    return TestCase(
        name="Login with invalid password",
        steps=login_steps([
            "Verify that access is denied and user remains on login page (EXPECT: FAILURE)",
        ]),
        test_data={"username": VALID_USERNAME, "password": "wrong"},
        priority="medium",
        tags={"auth", "negative"},
    )


@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def runner_config(temp_dir: Path) -> RunnerConfig:
    """Config with no pacing delays and reports written to a temp dir."""
    return RunnerConfig(
        environment="development",
        application=ApplicationConfig(
            base_url="https://example.test/parabank",
            valid_credentials=Credential(username=VALID_USERNAME, password=VALID_PASSWORD),
        ),
        browser=BrowserConfig(),
        execution=ExecutionConfig(step_delay_ms=0, login_settle_ms=0, case_delay_ms=0),
        reporting=ReportingConfig(reports_folder=temp_dir, output_format="none"),
    )


@pytest.fixture
def sample_case_result() -> CaseResult:
    """Failed case result with one cascaded step."""
    return CaseResult(
        name="Login with invalid password",
        steps=[
            StepResult("Click the Log In button", StepStatus.PASSED, duration_ms=120.0),
            StepResult(
                "Verify that the welcome message is displayed (EXPECT: SUCCESS)",
                StepStatus.FAILED,
                error_reason="authentication failed: cannot verify page elements because login was unsuccessful",
                duration_ms=15.0,
            ),
        ],
        errors=[
            "Step 2: authentication failed: cannot verify page elements because login was unsuccessful",
        ],
        duration_ms=1350.0,
        started_at=datetime(2024, 1, 1, 10, 0, 0),
        finished_at=datetime(2024, 1, 1, 10, 0, 1),
        priority="high",
        test_data={"username": "john", "password": "wrong"},
    )


@pytest.fixture
def sample_suite(sample_case_result: CaseResult) -> SuiteResult:
    passed = CaseResult(
        name="Navigate to home",
        steps=[StepResult("Navigate to https://example.test/", StepStatus.PASSED, duration_ms=80.0)],
        errors=[],
        duration_ms=80.0,
        started_at=datetime(2024, 1, 1, 10, 0, 2),
        finished_at=datetime(2024, 1, 1, 10, 0, 3),
    )
    return SuiteResult(
        results=[sample_case_result, passed],
        started_at=datetime(2024, 1, 1, 10, 0, 0),
        finished_at=datetime(2024, 1, 1, 10, 0, 4),
    )


@pytest.fixture
def temp_dir() -> Path:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_task_yaml() -> str:
    """Generated test case in the generator's camelCase layout."""
    return """
testName: Login with valid credentials
priority: high
tags:
  - smoke
  - auth
steps:
  - Navigate to the ParaBank login page at 'https://example.test/parabank/index.htm'
  - Enter the valid username 'john'
  - Enter the valid password 'demo'
  - Click the Log In button
  - Verify that login succeeds and user is redirected to account overview page (EXPECT: SUCCESS)
testData:
  username: john
  password: demo
"""


@pytest.fixture
def sample_task_json() -> Dict[str, Any]:
    """Suite file holding two cases under test_cases."""
    return {
        "test_cases": [
            {
                "testName": "Open savings account",
                "priority": "low",
                "steps": [
                    "Click the Open New Account link",
                    "Select SAVINGS as the account type",
                    "Select the source account",
                    "Click the Open New Account button",
                ],
                "testData": {"accountType": "savings", "sourceAccount": "13344"},
                "tags": ["accounts"],
            },
            {
                "testName": "Login with invalid password",
                "priority": "medium",
                "steps": ["Enter the valid username 'john'", "Enter the invalid password 'nope'"],
                "testData": {"username": "john", "password": "nope"},
                "tags": ["auth", "negative"],
            },
        ]
    }


@pytest.fixture
def mock_browser() -> MagicMock:
    """Create a mock SimpleBrowser for gateway tests."""
    browser = MagicMock()
    browser.start = AsyncMock()
    browser.close = AsyncMock()
    browser.goto = AsyncMock()
    browser.click = AsyncMock(return_value='input[value="Log In"]')
    browser.click_text = AsyncMock()
    browser.fill = AsyncMock(return_value='input[name="username"]')
    browser.select_option = AsyncMock(return_value=["SAVINGS"])
    browser.get_url = MagicMock(return_value="https://example.test/parabank/overview.htm")
    browser.get_body_text = AsyncMock(return_value="Welcome John Smith Accounts Overview")
    browser.wait_for_load_state = AsyncMock(return_value=True)
    return browser
