"""
Tests for the agent response normalizer.

Run with: pytest tests/
"""

import json
import pytest
from app.models import AnalysisResult, BugReport, TestReport
from app.normalizer import normalize


BUG_REPORT = {
    "bugs": [
        {"title": "Crash on login", "severity": "critical", "description": "TypeError"},
        {"title": "Slow query", "severity": "low"},
    ],
    "total_bugs": 2,
    "critical_count": 1,
    "high_count": 0,
    "medium_count": 0,
    "low_count": 1,
    "summary": "Two bugs",
}

TEST_REPORT = {
    "test_summary": {"total_tests": 19, "passed": 16, "failed": 3, "pass_rate": "84.2%"},
    "severity_breakdown": [{"severity": "critical", "count": 1, "details": "JWT crash"}],
    "coverage_observations": "Auth paths failing",
    "recommended_actions": [{"action": "Fix JWT", "priority": "critical", "reason": "Crash"}],
    "ci_verdict": {"status": "deploy_blocked", "reasoning": "Critical bug"},
}


def envelope(result):
    return {"success": True, "response": {"result": result}}


def test_structured_payload():
    """Both reports present and unmodified in content."""
    result = normalize(envelope({"bug_report": BUG_REPORT, "test_report": TEST_REPORT}))

    assert isinstance(result, AnalysisResult)
    assert result.bug_report.model_dump(exclude_unset=True) == BUG_REPORT
    assert result.test_report.model_dump(exclude_unset=True) == TEST_REPORT


def test_nested_result_is_unwrapped_once():
    """Coordinator payload one `result` level deeper."""
    result = normalize(envelope({"result": {"bug_report": BUG_REPORT, "test_report": TEST_REPORT}}))

    assert result is not None
    assert result.total_bugs == 2
    assert result.verdict == "deploy_blocked"


def test_json_string_payload_is_decoded():
    """Decoded payloads validate as if they were structured originally."""
    payload = json.dumps({"result": {"bug_report": BUG_REPORT, "test_report": TEST_REPORT}})
    result = normalize(envelope(payload))

    assert result is not None
    assert result.bug_report.model_dump(exclude_unset=True) == BUG_REPORT


def test_invalid_json_payload_rejected():
    assert normalize(envelope("{not json")) is None


def test_deeper_nesting_rejected():
    """Only one `result` unwrap is performed."""
    payload = {"result": {"result": {"bug_report": BUG_REPORT}}}
    assert normalize(envelope(payload)) is None


def test_missing_both_reports_rejected():
    assert normalize(envelope({"notification": {"email_sent": False}})) is None


def test_null_reports_rejected():
    assert normalize(envelope({"bug_report": None, "test_report": None})) is None


@pytest.mark.parametrize("raw", [
    None,
    "text",
    [],
    {},
    {"success": True},
    {"success": True, "response": "plain text"},
    {"success": True, "response": {}},
    {"success": True, "response": {"result": 42}},
    {"success": True, "response": {"result": "[1, 2]"}},
])
def test_malformed_envelopes_rejected(raw):
    """Never raises past the boundary."""
    assert normalize(raw) is None


def test_only_bug_report_accepted():
    result = normalize(envelope({"bug_report": BUG_REPORT}))
    assert result is not None
    assert result.test_report is None
    assert "test_report" not in result.model_dump(exclude_unset=True)


def test_string_sub_reports_are_decoded():
    result = normalize(envelope({
        "bug_report": json.dumps(BUG_REPORT),
        "test_report": json.dumps(TEST_REPORT),
    }))
    assert isinstance(result.bug_report, BugReport)
    assert isinstance(result.test_report, TestReport)


def test_undecodable_bug_report_kept_verbatim():
    """A malformed sub-report degrades only itself."""
    raw_text = "Found 2 bugs, see logs {truncated"
    result = normalize(envelope({"bug_report": raw_text, "test_report": TEST_REPORT}))

    assert result is not None
    assert result.bug_report == raw_text
    assert result.test_report.model_dump(exclude_unset=True) == TEST_REPORT
    assert result.total_bugs is None


def test_sub_report_decoding_to_non_object_kept_verbatim():
    result = normalize(envelope({"bug_report": "[]", "test_report": "42"}))
    assert result.bug_report == "[]"
    assert result.test_report == "42"


def test_counts_are_not_recomputed():
    """Mismatched counts pass through untouched."""
    report = dict(BUG_REPORT, total_bugs=7, critical_count=5)
    result = normalize(envelope({"bug_report": report}))

    assert len(result.bug_report.bugs) == 2
    assert result.bug_report.total_bugs == 7
    assert result.bug_report.critical_count == 5


def test_severity_is_normalized():
    report = {"bugs": [
        {"title": "a", "severity": "HIGH"},
        {"title": "b", "severity": "catastrophic"},
        {"title": "c"},
        {"title": "d", "severity": None},
    ]}
    result = normalize(envelope({"bug_report": report}))
    assert [bug.severity for bug in result.bug_report.bugs] == ["high", "unknown", "unknown", "unknown"]


def test_unknown_verdict_passes_through():
    report = {"ci_verdict": {"status": "Manual Review Required"}}
    result = normalize(envelope({"test_report": report}))

    assert result.test_report.ci_verdict.status == "Manual Review Required"
    assert result.verdict == "manual_review_required"


def test_extra_fields_are_kept():
    payload = {"bug_report": dict(BUG_REPORT, agent_version="2.1"), "notification": {
        "email_sent": True, "recipients": ["qa@example.com"], "subject": "Blocked", "reason": "Critical"}}
    result = normalize(envelope(payload))

    assert result.bug_report.model_dump()["agent_version"] == "2.1"
    assert result.notification.email_sent is True


def test_incompatible_structure_kept_raw():
    """A nested value with an unexpected shape is kept as sent."""
    result = normalize(envelope({"bug_report": {"bugs": "none", "total_bugs": 0}}))

    assert result is not None
    assert result.bug_report.bugs == "none"
    assert result.bug_report.bug_list == []
    assert result.total_bugs == 0


def test_null_nested_fields_accepted():
    payload = {
        "bug_report": {"bugs": None, "total_bugs": None},
        "test_report": {"test_summary": None, "severity_breakdown": None,
                        "recommended_actions": None, "ci_verdict": None},
    }
    result = normalize(envelope(payload))

    assert result is not None
    assert result.bug_report.bugs is None
    assert result.test_report.severity_breakdown is None
    assert result.verdict is None
    assert result.model_dump(exclude_unset=True) == payload


def test_loosely_typed_values_accepted():
    payload = {
        "bug_report": {"bugs": [{"title": 404, "severity": 3}], "total_bugs": 1},
        "notification": "email sent to qa",
    }
    result = normalize(envelope(payload))

    assert result is not None
    assert result.bug_report.bugs[0].title == 404
    assert result.bug_report.bugs[0].severity == "unknown"
    assert result.notification == "email sent to qa"


def test_scalar_values_are_not_coerced():
    payload = {
        "bug_report": {"total_bugs": "3", "critical_count": 1.0, "summary": 7},
        "test_report": {"test_summary": {"pass_rate": 84, "passed": "16"},
                        "ci_verdict": {"status": "deploy_blocked", "reasoning": ["JWT", "crash"]}},
    }
    result = normalize(envelope(payload))

    assert result.total_bugs == "3"
    assert result.test_report.test_summary.pass_rate == 84
    assert isinstance(result.test_report.test_summary.pass_rate, int)
    assert result.model_dump(exclude_unset=True) == payload


def test_input_is_not_mutated():
    payload = {"bug_report": json.dumps(BUG_REPORT)}
    raw = envelope(payload)
    normalize(raw)
    assert isinstance(payload["bug_report"], str)
