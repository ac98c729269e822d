"""JSON report generator for step runner results."""
from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from reporters.base import BaseReporter, ReportFormat, mask_test_data
from test_types import CaseResult, StepResult, SuiteResult


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class JSONReporter(BaseReporter):
    """Generate machine-readable JSON reports."""

    @property
    def format(self) -> ReportFormat:
        return ReportFormat.JSON

    def _step_to_dict(self, index: int, step: StepResult) -> Dict[str, Any]:
        return {
            "index": index,
            "step": step.step_text,
            "status": step.status.value,
            "error": step.error_reason,
            "duration_ms": round(step.duration_ms, 2),
        }

    def _result_to_dict(self, result: CaseResult) -> Dict[str, Any]:
        """Convert CaseResult to JSON-serializable dict."""
        return {
            "test_case": {
                "name": result.name,
                "priority": result.priority,
                "test_data": mask_test_data(result.test_data),
            },
            "result": {
                "status": result.status.value,
                "success": result.success,
                "errors": list(result.errors),
                "started_at": _iso(result.started_at),
                "finished_at": _iso(result.finished_at),
                "duration_ms": round(result.duration_ms, 2),
                "total_steps": result.step_count,
            },
            "steps": [self._step_to_dict(i, s) for i, s in enumerate(result.steps, 1)],
        }

    def _write(self, results: List[CaseResult], summary: Dict[str, Any], target: Path) -> Path:
        report_data = {
            "generated_at": datetime.utcnow().isoformat(),
            "report_version": "1.0",
            "tests": [self._result_to_dict(r) for r in results],
            "summary": summary,
            "failed_tests": [
                {"name": r.name, "errors": list(r.errors)}
                for r in results if not r.success
            ],
        }
        target.write_text(json.dumps(report_data, indent=2), encoding="utf-8")
        return target

    def generate(self, result: CaseResult, output_dir: Path) -> Path:
        """Generate JSON report for a single case result."""
        output_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.utcnow().strftime("%Y%m%d-%H%M%S")
        slug = "".join(c if c.isalnum() else "-" for c in result.name.lower()).strip("-") or "case"
        target = output_dir / f"{slug}-{timestamp}.json"

        summary = {
            "total": 1,
            "passed": 1 if result.success else 0,
            "failed": 0 if result.success else 1,
            "pass_rate": 100.0 if result.success else 0.0,
        }
        return self._write([result], summary, target)

    def generate_suite(self, suite: SuiteResult, output_dir: Path) -> Path:
        """Generate combined JSON report for a whole run."""
        output_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.utcnow().strftime("%Y%m%d-%H%M%S")
        target = output_dir / f"suite-{timestamp}.json"

        durations = [r.duration_ms for r in suite.results]
        summary = suite.summary()
        summary.update({
            "duration_seconds": round(suite.duration_seconds, 2),
            "avg_case_ms": round(sum(durations) / len(durations), 2) if durations else 0,
            "max_case_ms": round(max(durations), 2) if durations else 0,
        })
        return self._write(suite.results, summary, target)
