"""Filesystem-backed loader for generated natural-language test cases."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set

import yaml

from exceptions import TaskLoadError, TaskValidationError
from test_types import PRIORITY_ORDER, TestCase


def _as_list(value: Any) -> List[str]:
    """Convert value to list of strings."""
    if value is None:
        return []
    if isinstance(value, list):
        return [str(item) for item in value]
    if isinstance(value, str):
        return [value]
    raise TaskLoadError(f"Expected string or list, got {type(value).__name__}")


def _as_set(value: Any) -> Set[str]:
    """Convert value to set of strings."""
    if value is None:
        return set()
    if isinstance(value, (list, set, tuple)):
        return {str(item) for item in value}
    if isinstance(value, str):
        return {value}
    raise TaskLoadError(f"Expected string, list, or set, got {type(value).__name__}")


def _parse_task(data: Dict[str, Any], fallback_name: str) -> TestCase:
    """Parse a dictionary into a TestCase.

    Both the generator's camelCase keys (``testName``, ``testData``) and
    snake_case keys are accepted.
    """
    if not isinstance(data, dict):
        raise TaskLoadError("Test case payload must be a mapping")

    name = str(data.get("testName") or data.get("name") or fallback_name).strip()
    if not name:
        raise TaskValidationError("Test case is missing a name", field="testName")

    steps = [s for s in _as_list(data.get("steps")) if s.strip()]
    if not steps:
        raise TaskValidationError(
            "Test case must define at least one step",
            task_id=name,
            field="steps",
        )

    test_data = data.get("testData", data.get("test_data")) or {}
    if not isinstance(test_data, dict):
        raise TaskValidationError(
            "testData must be a mapping",
            task_id=name,
            field="testData",
        )

    priority = str(data.get("priority", "medium")).lower()
    if priority not in PRIORITY_ORDER:
        raise TaskValidationError(
            f"priority must be one of: {', '.join(PRIORITY_ORDER)}",
            task_id=name,
            field="priority",
        )

    return TestCase(
        name=name,
        steps=tuple(steps),
        test_data=test_data,
        priority=priority,
        tags=_as_set(data.get("tags")),
        skip=bool(data.get("skip", False)),
        skip_reason=data.get("skip_reason"),
    )


def load_task_file(path: Path) -> List[TestCase]:
    """Load every test case in a YAML or JSON file.

    A file holds either a single case or a list of cases, bare or under a
    ``test_cases`` key.
    """
    try:
        raw = path.read_text(encoding="utf-8")
        if path.suffix.lower() in {".yml", ".yaml"}:
            data = yaml.safe_load(raw)
        else:
            data = json.loads(raw)
    except Exception as exc:
        raise TaskLoadError(f"Failed to load test case file: {exc}", file_path=str(path)) from exc

    if isinstance(data, dict) and "test_cases" in data:
        data = data["test_cases"]

    if isinstance(data, list):
        return [
            _parse_task(item, fallback_name=f"{path.stem}-{i}")
            for i, item in enumerate(data, 1)
        ]
    if data is None:
        raise TaskLoadError("Test case file is empty", file_path=str(path))
    return [_parse_task(data, fallback_name=path.stem)]


def discover_tasks(
    tasks_dir: Path,
    only_names: Optional[Iterable[str]] = None,
    include_tags: Optional[Set[str]] = None,
    exclude_tags: Optional[Set[str]] = None,
    include_skipped: bool = False,
    sort_by_priority: bool = False,
) -> List[TestCase]:
    """
    Discover and load test cases from a directory.

    Args:
        tasks_dir: Directory containing test case YAML/JSON files
        only_names: If provided, only load cases with these names
        include_tags: If provided, only include cases with at least one of these tags
        exclude_tags: If provided, exclude cases with any of these tags
        include_skipped: If True, include cases marked as skip=true
        sort_by_priority: If True, run high priority cases first (stable otherwise)

    Returns:
        List of TestCase objects in file order
    """
    tasks_dir = tasks_dir.expanduser().resolve()

    if not tasks_dir.exists():
        raise TaskLoadError(f"Test case directory does not exist: {tasks_dir}")

    name_filter = set(only_names or [])
    found: List[TestCase] = []

    yaml_files = sorted(tasks_dir.glob("*.yaml")) + sorted(tasks_dir.glob("*.yml"))
    json_files = sorted(tasks_dir.glob("*.json"))

    for path in yaml_files + json_files:
        for case in load_task_file(path):
            if name_filter and case.name not in name_filter:
                continue
            if case.skip and not include_skipped:
                continue
            if not case.matches_filter(include_tags, exclude_tags):
                continue
            found.append(case)

    if name_filter:
        missing = name_filter - {c.name for c in found}
        if missing:
            raise TaskLoadError(f"Test cases not found: {', '.join(sorted(missing))}")

    if sort_by_priority:
        found.sort(key=lambda c: PRIORITY_ORDER[c.priority])

    return found


def validate_task(data: Dict[str, Any]) -> List[str]:
    """
    Validate test case data without loading.

    Returns list of validation errors (empty if valid).
    """
    errors = []

    if not isinstance(data, dict):
        return ["Test case must be a dictionary/mapping"]

    if not data.get("testName") and not data.get("name"):
        errors.append("Missing required field: testName")

    steps = data.get("steps")
    if not steps:
        errors.append("Missing required field: steps")
    elif not isinstance(steps, (str, list)):
        errors.append("steps must be a string or list")

    test_data = data.get("testData", data.get("test_data"))
    if test_data is not None and not isinstance(test_data, dict):
        errors.append("testData must be a dictionary")

    priority = data.get("priority")
    if priority is not None and str(priority).lower() not in PRIORITY_ORDER:
        errors.append("priority must be high, medium or low")

    tags = data.get("tags")
    if tags is not None and not isinstance(tags, (str, list, set)):
        errors.append("tags must be a string or list")

    return errors
