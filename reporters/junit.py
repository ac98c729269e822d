"""JUnit XML report generator for CI integration."""
from __future__ import annotations

import html
from datetime import datetime
from pathlib import Path

from reporters.base import BaseReporter, ReportFormat
from test_types import CaseResult, SuiteResult


class JUnitReporter(BaseReporter):
    """Generate JUnit XML reports for CI/CD integration."""

    classname = "steprunner.e2e"

    @property
    def format(self) -> ReportFormat:
        return ReportFormat.JUNIT

    def _escape_xml(self, text: str) -> str:
        """Escape special XML characters."""
        return html.escape(str(text), quote=True)

    def _format_timestamp(self, dt: datetime) -> str:
        """Format datetime for JUnit XML."""
        return dt.strftime("%Y-%m-%dT%H:%M:%S")

    def _build_testcase_xml(self, result: CaseResult) -> str:
        """Build XML for a single test case."""
        name = self._escape_xml(result.name)
        time_sec = f"{result.duration_ms / 1000:.3f}"
        lines = [f'    <testcase classname="{self.classname}" name="{name}" time="{time_sec}">']

        if result.success:
            lines.append("      <system-out><![CDATA[")
            for i, step in enumerate(result.steps, 1):
                lines.append(f"  [{i}] {step.step_text}")
            lines.append("]]></system-out>")
        else:
            message = self._escape_xml(result.errors[0])
            lines.append(f'      <failure message="{message}" type="StepFailure"><![CDATA[')
            lines.append(f"Test Case: {result.name}")
            lines.append(f"Priority: {result.priority}")
            lines.append("")
            lines.append("Errors:")
            for error in result.errors:
                lines.append(f"  - {error}")
            lines.append("")
            lines.append("Steps:")
            for i, step in enumerate(result.steps, 1):
                lines.append(f"  [{i}] {step.status.value.upper()} {step.step_text}")
            lines.append("]]></failure>")

        lines.append("    </testcase>")
        return "\n".join(lines)

    def generate(self, result: CaseResult, output_dir: Path) -> Path:
        """Generate JUnit XML report for a single case result."""
        started = result.started_at or datetime.utcnow()
        finished = result.finished_at or started
        return self.generate_suite(SuiteResult([result], started, finished), output_dir)

    def generate_suite(self, suite: SuiteResult, output_dir: Path) -> Path:
        """Generate combined JUnit XML report for a whole run."""
        output_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.utcnow().strftime("%Y%m%d-%H%M%S")
        target = output_dir / f"junit-{timestamp}.xml"

        total_time = sum(r.duration_ms for r in suite.results) / 1000

        lines = ['<?xml version="1.0" encoding="UTF-8"?>']
        lines.append(
            f'<testsuite name="Natural-language E2E Tests" '
            f'tests="{suite.total}" '
            f'failures="{suite.failed}" '
            f'errors="0" '
            f'skipped="0" '
            f'time="{total_time:.3f}" '
            f'timestamp="{self._format_timestamp(suite.started_at)}">'
        )

        lines.append("  <properties>")
        lines.append('    <property name="reporter" value="steprunner-junit"/>')
        lines.append(f'    <property name="generated_at" value="{datetime.utcnow().isoformat()}"/>')
        lines.append("  </properties>")

        for result in suite.results:
            lines.append(self._build_testcase_xml(result))

        lines.append("</testsuite>")

        target.write_text("\n".join(lines), encoding="utf-8")
        return target
