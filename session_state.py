"""Per-case authentication tracking and the failed-login cascade."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Tuple

from oracle import Expectation, parse_expectation
from test_types import PageSnapshot

# Page-content signatures; expect to tune these per target application.
FAILURE_TOKENS: Tuple[str, ...] = ("error", "invalid", "incorrect", "could not be verified", "try again")
LOGIN_FORM_TOKENS: Tuple[str, ...] = ("username", "password", "log in")
SUCCESS_TOKENS: Tuple[str, ...] = ("welcome", "accounts overview", "account overview")
SUCCESS_URL_TOKEN = "overview.htm"
LOGIN_URL_TOKEN = "index.htm"

CASCADE_VERBS: Tuple[str, ...] = ("verify", "check")
CASCADE_SUBJECTS: Tuple[str, ...] = (
    "account overview",
    "welcome message",
    "accounts overview",
    "navigation menu",
    "log out",
)
CASCADE_REASON = "authentication failed: cannot verify page elements because login was unsuccessful"


class AuthState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    ATTEMPTED = "auth-attempted-unknown"
    AUTHENTICATED = "authenticated"
    FAILED = "auth-failed"


@dataclass(frozen=True)
class Credentials:
    username: str
    password: str

    @classmethod
    def from_test_data(cls, test_data: Mapping[str, Any]) -> "Credentials":
        return cls(
            username=str(test_data.get("username") or ""),
            password=str(test_data.get("password") or ""),
        )

    def masked(self) -> str:
        return f"{self.username}/{'*' * len(self.password)}"


def has_login_form(text: str) -> bool:
    return all(token in text for token in LOGIN_FORM_TOKENS)


def has_failure_tokens(text: str) -> bool:
    return any(token in text for token in FAILURE_TOKENS)


def has_success_markers(text: str) -> bool:
    return any(token in text for token in SUCCESS_TOKENS) or ("overview" in text and "balance" in text)


def classify_login(
    snapshot: PageSnapshot,
    supplied: Optional[Credentials],
    valid: Optional[Credentials],
) -> Tuple[bool, str]:
    """Decide whether the snapshot after a login click shows a successful login.

    Returns ``(succeeded, explanation)``; the first matching rule wins.
    """
    text = (snapshot.text_content or "").lower()
    url = (snapshot.url or "").lower()
    login_form = has_login_form(text)
    success = has_success_markers(text)

    if has_failure_tokens(text) and login_form:
        return False, "error message shown on login page"
    if success and SUCCESS_URL_TOKEN in url:
        return True, "redirected to overview page"
    if LOGIN_URL_TOKEN in url and login_form and not success:
        return False, "still on login page"
    matches = supplied is not None and valid is not None and bool(valid.username) and supplied == valid
    return matches, f"inferred from credentials ({'valid' if matches else 'not the configured valid pair'})"


@dataclass
class SessionState:
    """Authentication state for exactly one test case execution."""

    auth_attempted: bool = False
    auth_succeeded: Optional[bool] = None
    last_credentials: Optional[Credentials] = None
    explanation: Optional[str] = field(default=None, compare=False)

    @property
    def state(self) -> AuthState:
        if not self.auth_attempted:
            return AuthState.UNAUTHENTICATED
        if self.auth_succeeded is None:
            return AuthState.ATTEMPTED
        return AuthState.AUTHENTICATED if self.auth_succeeded else AuthState.FAILED

    @property
    def awaiting_observation(self) -> bool:
        return self.state is AuthState.ATTEMPTED

    def reset(self) -> None:
        self.auth_attempted = False
        self.auth_succeeded = None
        self.last_credentials = None
        self.explanation = None

    def record_login_click(self, credentials: Optional[Credentials]) -> None:
        """A login click was executed; the outcome is unknown until the next read."""
        self.auth_attempted = True
        self.auth_succeeded = None
        self.last_credentials = credentials
        self.explanation = None

    def observe(self, snapshot: PageSnapshot, valid: Optional[Credentials]) -> AuthState:
        """Classify the first snapshot after a login click. No-op otherwise."""
        if not self.awaiting_observation:
            return self.state
        self.auth_succeeded, self.explanation = classify_login(snapshot, self.last_credentials, valid)
        return self.state

    def mark_unobservable(self, reason: str) -> None:
        """The page could not be read after the login click; assume failure."""
        if self.awaiting_observation:
            self.auth_succeeded = False
            self.explanation = reason

    def cascade_reason(self, step: str) -> Optional[str]:
        """Return the forced-failure reason if ``step`` depends on a login that failed."""
        if self.state is not AuthState.FAILED:
            return None
        if parse_expectation(step) is not Expectation.SUCCESS:
            return None
        lowered = step.lower()
        if not any(verb in lowered for verb in CASCADE_VERBS):
            return None
        if not any(subject in lowered for subject in CASCADE_SUBJECTS):
            return None
        return CASCADE_REASON
