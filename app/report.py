"""
Markdown export of an analysis.

Display defaults (0, N/A, unknown) are applied here only; the stored
result keeps whatever the agent actually returned. Values that did not
parse into report models are printed as-is.
"""

from typing import Dict, Iterable, List

from app.models import AnalysisResult, Bug, BugReport, CIVerdict, RecommendedAction, TestReport, TestSummary


def filter_bugs(bugs: Iterable[Bug], severities: Dict[str, bool]) -> List[Bug]:
    """Keep bugs whose severity is not switched off in `severities`."""
    return [bug for bug in bugs if severities.get(getattr(bug, "severity", "unknown"), True)]


def _value(value, default):
    return default if value is None else value


def _bug_section(br: BugReport) -> List[str]:
    lines = ["## Bug Report"]
    lines.append(
        f"Total Bugs: {_value(br.total_bugs, 0)} | Critical: {_value(br.critical_count, 0)} | "
        f"High: {_value(br.high_count, 0)} | Medium: {_value(br.medium_count, 0)} | "
        f"Low: {_value(br.low_count, 0)}"
    )
    lines.append("")
    if br.summary:
        lines.append(f"**Summary:** {br.summary}")
        lines.append("")
    bugs = br.bugs if isinstance(br.bugs, list) else []
    for i, bug in enumerate(bugs, 1):
        if not isinstance(bug, Bug):
            lines.extend([f"### {i}. {bug}", ""])
            continue
        lines.append(f"### {i}. [{bug.severity.upper()}] {bug.title or 'Untitled'}")
        if bug.description:
            lines.append(f"**Description:** {bug.description}")
        if bug.root_cause:
            lines.append(f"**Root Cause:** {bug.root_cause}")
        if bug.suggested_fix:
            lines.append(f"**Suggested Fix:** {bug.suggested_fix}")
        lines.append("")
    return lines


def _test_section(tr: TestReport) -> List[str]:
    lines = ["## Test Summary"]
    ts = tr.test_summary
    if isinstance(ts, TestSummary):
        lines.append(f"- Total Tests: {_value(ts.total_tests, 0)}")
        lines.append(f"- Passed: {_value(ts.passed, 0)}")
        lines.append(f"- Failed: {_value(ts.failed, 0)}")
        lines.append(f"- Pass Rate: {_value(ts.pass_rate, 'N/A')}")
        lines.append("")
    elif ts:
        lines.extend([f"- {ts}", ""])

    if tr.coverage_observations:
        lines.append(f"**Coverage Observations:** {tr.coverage_observations}")
        lines.append("")

    ci = tr.ci_verdict
    if isinstance(ci, CIVerdict):
        status = str(_value(ci.status, "unknown")).replace("_", " ").upper()
        lines.append("## CI Verdict")
        lines.append(f"**Status:** {status}")
        if ci.reasoning:
            lines.append(f"**Reasoning:** {ci.reasoning}")
        lines.append("")
    elif ci:
        lines.extend(["## CI Verdict", f"**Status:** {ci}", ""])

    actions = tr.recommended_actions if isinstance(tr.recommended_actions, list) else []
    if actions:
        lines.append("## Recommended Actions")
        for i, action in enumerate(actions, 1):
            if not isinstance(action, RecommendedAction):
                lines.append(f"{i}. {action}")
                continue
            lines.append(f"{i}. [{str(_value(action.priority, '')).upper()}] {_value(action.action, '')}")
            if action.reason:
                lines.append(f"   Reason: {action.reason}")
        lines.append("")
    return lines


def generate_report_markdown(result: AnalysisResult) -> str:
    """Render an analysis as a heading/section markdown document."""
    lines = ["# TestPilot AI Analysis Report", ""]

    br = result.bug_report
    if isinstance(br, BugReport):
        lines.extend(_bug_section(br))
    elif br:
        # Undecodable sub-report, shown verbatim
        lines.extend(["## Bug Report", str(br), ""])

    tr = result.test_report
    if isinstance(tr, TestReport):
        lines.extend(_test_section(tr))
    elif tr:
        lines.extend(["## Test Report", str(tr), ""])

    return "\n".join(lines)
