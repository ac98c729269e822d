"""Rule-based translation of natural-language steps into abstract browser actions.

Each rule is a ``(predicate, builder)`` pair evaluated against the lower-cased
step text in priority order. The first rule whose predicate matches owns the
step and builds its actions; later rules are not consulted. New vocabulary is
added by inserting a rule into the table, not by touching control flow.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Optional, Sequence

from exceptions import MappingError
from test_types import AbstractAction, Click, FillField, Navigate, ReadPage, SelectOption

URL_PATTERN = re.compile(r"https?://[^\s'\"<>()\[\]{}`]+", re.IGNORECASE)
QUOTED_PATTERN = re.compile(r"(?<!\w)([\"'`])(.+?)\1(?!\w)")
BUTTON_PHRASE_PATTERN = re.compile(
    r"click\s+(?:on\s+)?(?:the\s+)?(.+?)\s+(?:button|link)\b",
    re.IGNORECASE,
)

# Known click phrases, checked in order
CLICK_TARGETS: Sequence[tuple[tuple[str, ...], str]] = (
    (("log in", "login"), "login-button"),
    (("open new account", "open account"), "open-account-button"),
    (("submit",), "submit-button"),
)

# Named pages a navigation step may point at, resolved from test data
PAGE_URL_KEYS: Sequence[tuple[str, str]] = (
    ("login page", "loginUrl"),
    ("overview", "overviewUrl"),
    ("open new account", "openAccountUrl"),
    ("open account", "openAccountUrl"),
)

Predicate = Callable[[str], bool]
Builder = Callable[[str, Mapping[str, Any], Optional[str]], List[AbstractAction]]


@dataclass(frozen=True)
class MappingRule:
    """One entry of the step vocabulary."""

    name: str
    predicate: Predicate
    build: Builder


def _missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _require(test_data: Mapping[str, Any], key: str, step: str, case_name: Optional[str]) -> str:
    value = test_data.get(key)
    if _missing(value):
        raise MappingError(
            f"Test step requires {key} but testData.{key} is not provided in test case: {case_name or '<unnamed>'}",
            step=step,
            test_case=case_name,
            missing_key=key,
        )
    return str(value)


def extract_url(step: str) -> Optional[str]:
    """Return the first absolute URL literal in ``step``, if any."""
    match = URL_PATTERN.search(step)
    if not match:
        return None
    return match.group(0).rstrip(".,;:!?")


def _page_url_keys(step: str) -> List[str]:
    lowered = step.lower()
    keys = [key for phrase, key in PAGE_URL_KEYS if phrase in lowered]
    return keys + ["baseUrl", "url"]


def _build_navigate(step: str, test_data: Mapping[str, Any], case_name: Optional[str]) -> List[AbstractAction]:
    url = extract_url(step)
    if url is None:
        for key in _page_url_keys(step):
            if not _missing(test_data.get(key)):
                url = str(test_data[key])
                break
    if url is None:
        raise MappingError(
            f'Could not determine target URL for navigation step: "{step}". '
            "Include a URL in the step or baseUrl/url in test data.",
            step=step,
            test_case=case_name,
            missing_key="baseUrl",
        )
    return [Navigate(url=url)]


def _build_fill(step: str, test_data: Mapping[str, Any], case_name: Optional[str]) -> List[AbstractAction]:
    lowered = step.lower()
    actions: List[AbstractAction] = []
    for key in ("username", "password"):
        if key in lowered:
            actions.append(FillField(field_kind=key, value=_require(test_data, key, step, case_name)))
    return actions


def resolve_click_target(step: str) -> Optional[str]:
    """Resolve the semantic click target named by ``step``."""
    lowered = step.lower()
    for phrases, target in CLICK_TARGETS:
        if any(phrase in lowered for phrase in phrases):
            return target
    quoted = QUOTED_PATTERN.search(step)
    if quoted and quoted.group(2).strip():
        return quoted.group(2).strip()
    phrase = BUTTON_PHRASE_PATTERN.search(step)
    if phrase and phrase.group(1).strip():
        return phrase.group(1).strip()
    return None


def _build_click(step: str, test_data: Mapping[str, Any], case_name: Optional[str]) -> List[AbstractAction]:
    target = resolve_click_target(step)
    if target is None:
        raise MappingError(
            f'Click step has no resolvable target: "{step}"',
            step=step,
            test_case=case_name,
        )
    return [Click(target_kind=target)]


def _build_account_type(step: str, test_data: Mapping[str, Any], case_name: Optional[str]) -> List[AbstractAction]:
    account_type = test_data.get("accountType")
    if _missing(account_type):
        lowered = step.lower()
        if "savings" in lowered:
            account_type = "SAVINGS"
        elif "checking" in lowered:
            account_type = "CHECKING"
        else:
            raise MappingError(
                "Test step requires account type but testData.accountType is not provided "
                f"and cannot be inferred from step: {step}",
                step=step,
                test_case=case_name,
                missing_key="accountType",
            )
    return [SelectOption(dropdown_kind="account-type", value=str(account_type).upper())]


def _build_source_account(step: str, test_data: Mapping[str, Any], case_name: Optional[str]) -> List[AbstractAction]:
    value = _require(test_data, "sourceAccount", step, case_name)
    return [SelectOption(dropdown_kind="source-account", value=value)]


def _build_read(step: str, test_data: Mapping[str, Any], case_name: Optional[str]) -> List[AbstractAction]:
    return [ReadPage()]


def _contains(*needles: str) -> Predicate:
    return lambda text: all(needle in text for needle in needles)


def _contains_any(*needles: str) -> Predicate:
    return lambda text: any(needle in text for needle in needles)


DEFAULT_RULES: Sequence[MappingRule] = (
    MappingRule("navigate", _contains("navigate to"), _build_navigate),
    MappingRule(
        "fill-credentials",
        lambda text: "enter" in text and ("username" in text or "password" in text),
        _build_fill,
    ),
    MappingRule("click", _contains("click"), _build_click),
    MappingRule(
        "select-account-type",
        lambda text: "select" in text and _contains_any("account type", "savings", "checking")(text),
        _build_account_type,
    ),
    MappingRule("select-source-account", _contains("select", "source account"), _build_source_account),
    MappingRule("verify", _contains_any("verify", "check"), _build_read),
)


class ActionMapper:
    """Map step text plus test data to an ordered list of abstract actions."""

    def __init__(self, rules: Optional[Sequence[MappingRule]] = None):
        self.rules = tuple(rules if rules is not None else DEFAULT_RULES)

    def match(self, step: str) -> Optional[MappingRule]:
        """Return the rule that owns ``step``, or None for the diagnostic fallback."""
        lowered = step.lower()
        for rule in self.rules:
            if rule.predicate(lowered):
                return rule
        return None

    def map(
        self,
        step: str,
        test_data: Optional[Mapping[str, Any]] = None,
        case_name: Optional[str] = None,
    ) -> List[AbstractAction]:
        """Translate ``step``; raises MappingError when required data is absent."""
        data = test_data or {}
        rule = self.match(step)
        if rule is None:
            return [ReadPage()]
        return rule.build(step, data, case_name)


_default_mapper = ActionMapper()


def map_step(
    step: str,
    test_data: Optional[Mapping[str, Any]] = None,
    case_name: Optional[str] = None,
) -> List[AbstractAction]:
    """Module-level shortcut using the default rule table."""
    return _default_mapper.map(step, test_data, case_name)
