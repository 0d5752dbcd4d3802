"""
Data models for the test-run analysis dashboard.
Using Pydantic for validation and type safety.

The agent's schema is not versioned, so every report field is optional,
scalar values are kept exactly as sent (no "3" -> 3 coercion) and unknown
keys are kept. Nested structures are parsed into models where they fit and
kept raw where they don't (left-to-right unions ending in Any), so one odd
field never costs the whole reply. Fields the agent leaves out stay unset
and are skipped on serialization (exclude_unset).

Agent models are frozen: a stored analysis cannot be edited in place.
"""

import re
from typing import Any, Optional, List, Literal, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator


SEVERITIES = ("critical", "high", "medium", "low", "unknown")

# Canonical CI verdicts. Anything else is passed through untouched.
SAFE_TO_DEPLOY = "safe_to_deploy"
NEEDS_ATTENTION = "needs_attention"
DEPLOY_BLOCKED = "deploy_blocked"
VERDICTS = (SAFE_TO_DEPLOY, NEEDS_ATTENTION, DEPLOY_BLOCKED)


def normalize_verdict(status: Any) -> Optional[str]:
    """Lowercase a verdict and collapse whitespace runs to underscores."""
    if status is None:
        return None
    return re.sub(r"\s+", "_", str(status).lower())


def loose(default: Any = None, **kwargs):
    """Field for a structured value that falls back to the raw value."""
    return Field(default, union_mode="left_to_right", **kwargs)


class AgentModel(BaseModel):
    """Base for everything the agent produces."""

    model_config = ConfigDict(extra="allow", frozen=True)


class Bug(AgentModel):
    """Single bug identified by the agent."""

    title: Any = None
    severity: Literal["critical", "high", "medium", "low", "unknown"] = Field(
        "unknown", description="Lowercased severity, 'unknown' if unrecognized"
    )
    description: Any = None
    root_cause: Any = None
    suggested_fix: Any = None

    @field_validator("severity", mode="before")
    @classmethod
    def _normalize_severity(cls, value):
        if not isinstance(value, str):
            return "unknown"
        value = value.strip().lower()
        return value if value in SEVERITIES else "unknown"


class BugReport(AgentModel):
    """
    Bugs found in a test run.

    The counts are whatever the agent reported; they are never recomputed
    from `bugs` and may disagree with it.
    """

    bugs: Union[List[Bug], Any] = loose()
    total_bugs: Any = None
    critical_count: Any = None
    high_count: Any = None
    medium_count: Any = None
    low_count: Any = None
    summary: Any = None

    @property
    def bug_list(self) -> List[Bug]:
        """Bugs that parsed as Bug, empty when `bugs` is missing or raw."""
        if not isinstance(self.bugs, list):
            return []
        return [bug for bug in self.bugs if isinstance(bug, Bug)]


class TestSummary(AgentModel):
    __test__ = False

    total_tests: Any = None
    passed: Any = None
    failed: Any = None
    pass_rate: Any = Field(None, description='e.g. "84.2%"')


class SeverityBreakdown(AgentModel):
    severity: Any = None
    count: Any = None
    details: Any = None


class RecommendedAction(AgentModel):
    action: Any = None
    priority: Any = None
    reason: Any = None


class CIVerdict(AgentModel):
    """Deployment-readiness judgment."""

    status: Any = Field(None, description="safe_to_deploy | needs_attention | deploy_blocked")
    reasoning: Any = None

    @property
    def normalized_status(self) -> Optional[str]:
        return normalize_verdict(self.status)


class TestReport(AgentModel):
    __test__ = False

    test_summary: Union[TestSummary, Any] = loose()
    severity_breakdown: Union[List[SeverityBreakdown], Any] = loose()
    coverage_observations: Any = None
    recommended_actions: Union[List[RecommendedAction], Any] = loose()
    ci_verdict: Union[CIVerdict, Any] = loose()


class NotificationResult(AgentModel):
    """Email notification the coordinator agent may have sent."""

    email_sent: Any = None
    recipients: Any = None
    subject: Any = None
    reason: Any = None


class AnalysisResult(AgentModel):
    """
    Normalized agent output.

    A sub-report that is not a BugReport / TestReport is whatever the agent
    sent (usually text that could not be decoded); it is kept so nothing
    the agent said is lost.
    """

    bug_report: Union[BugReport, Any] = loose()
    test_report: Union[TestReport, Any] = loose()
    notification: Union[NotificationResult, Any] = loose()

    @property
    def total_bugs(self) -> Any:
        """total_bugs exactly as the agent sent it, None when absent."""
        if isinstance(self.bug_report, BugReport):
            return self.bug_report.total_bugs
        return None

    @property
    def verdict(self) -> Optional[str]:
        """Normalized CI verdict status, None when absent."""
        if isinstance(self.test_report, TestReport) and isinstance(self.test_report.ci_verdict, CIVerdict):
            return self.test_report.ci_verdict.normalized_status
        return None


class HistoryEntry(BaseModel):
    """One persisted analysis run. Immutable once created."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    date: str = Field(..., description="ISO-8601 timestamp")
    input_summary: str = Field(..., alias="inputSummary", description="First 120 characters of the input")
    full_input: str = Field(..., alias="fullInput")
    result: AnalysisResult


class AgentResponse(BaseModel):
    """Envelope returned by the external agent call."""

    success: bool
    response: Any = None
    error: Optional[str] = None
