"""Pass/fail decisions for observation steps, based on a page snapshot."""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence, Tuple

from test_types import PageSnapshot

EXPECT_PATTERN = re.compile(r"\(\s*expect\s*:\s*(success|failure)\s*\)", re.IGNORECASE)

OVERVIEW_URL_TOKEN = "overview.htm"
ACCOUNTS_OVERVIEW_SIGNATURES: Tuple[str, ...] = ("accounts overview",)
LOG_OUT_SIGNATURES: Tuple[str, ...] = ("log out", "logout")


class Expectation(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


def parse_expectation(step: str) -> Optional[Expectation]:
    """Return the first ``(EXPECT: ...)`` marker in the step, case-insensitive."""
    match = EXPECT_PATTERN.search(step or "")
    if not match:
        return None
    return Expectation(match.group(1).lower())


@dataclass(frozen=True)
class Verdict:
    passed: bool
    reason: Optional[str] = None
    check: str = "observation"


@dataclass(frozen=True)
class Check:
    """Row of the decision table."""

    name: str
    applies: Callable[[str, Optional[Expectation]], bool]
    holds: Callable[[str, str], bool]
    failure_reason: str


def _mentions_redirect_to_overview(step: str, expect: Optional[Expectation]) -> bool:
    return (
        expect is Expectation.SUCCESS
        and ("redirected" in step or "url contains" in step)
        and "overview" in step
    )


CHECKS: Sequence[Check] = (
    Check(
        "redirect-to-overview",
        _mentions_redirect_to_overview,
        lambda text, url: OVERVIEW_URL_TOKEN in url,
        "expected redirect to overview page",
    ),
    Check(
        "login-fails",
        lambda step, expect: expect is Expectation.FAILURE and "login fails" in step,
        lambda text, url: OVERVIEW_URL_TOKEN not in url and "error" in text,
        "expected error message on failed login",
    ),
    Check(
        "welcome",
        lambda step, expect: "welcome" in step,
        lambda text, url: "welcome" in text,
        "expected welcome message not found",
    ),
    Check(
        "accounts-overview",
        lambda step, expect: "accounts overview" in step,
        lambda text, url: any(sig in text for sig in ACCOUNTS_OVERVIEW_SIGNATURES),
        "expected accounts overview heading not found",
    ),
    Check(
        "log-out",
        lambda step, expect: "log out" in step,
        lambda text, url: any(sig in text for sig in LOG_OUT_SIGNATURES),
        "expected log out control not found",
    ),
)


def verify(step: str, snapshot: PageSnapshot) -> Verdict:
    """Grade an observation step against the page snapshot.

    Steps that match no row are unconstrained observations and pass.
    """
    lowered = step.lower()
    expect = parse_expectation(step)
    text = (snapshot.text_content or "").lower()
    url = (snapshot.url or "").lower()
    for check in CHECKS:
        if not check.applies(lowered, expect):
            continue
        if check.holds(text, url):
            return Verdict(True, check=check.name)
        return Verdict(False, check.failure_reason, check=check.name)
    return Verdict(True)
