# api.py
"""
FastAPI wrapper for the TestPilot analysis dashboard.
Exposes analysis and history as a REST API.
"""

import threading
import uuid
from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel
from typing import List, Optional

from app import config
from app.analyzer import Dashboard, EmptyInputError
from app.history import ALL_VERDICTS, trend
from app.main import build_dashboard
from app.models import AnalysisResult
from app.normalizer import normalize
from app.report import generate_report_markdown
from app.samples import SAMPLE_INPUT, SAMPLE_RESULT

app = FastAPI(
    title="TestPilot",
    description="AI analysis of test runs with bounded, searchable history",
    version="1.0.0"
)

_dashboard: Optional[Dashboard] = None
_dashboard_lock = threading.Lock()


def get_dashboard() -> Dashboard:
    """One dashboard shared by every request thread."""
    global _dashboard
    with _dashboard_lock:
        if _dashboard is None:
            _dashboard = build_dashboard()
    return _dashboard

# ── Request / Response models ───────────────────────────────────────────────

class AnalyzeRequest(BaseModel):
    text: str
    # Requests sharing a session_id supersede each other; omit for an independent request
    session_id: Optional[str] = None

class AgentInfo(BaseModel):
    id: str
    name: str
    role: str

class HealthResponse(BaseModel):
    status: str
    version: str
    history_entries: int
    agent_id: str
    agents: List[AgentInfo]

# ── Endpoints ───────────────────────────────────────────────────────────────

def _health(dashboard: Dashboard) -> dict:
    return {
        "status": "ok",
        "version": "1.0.0",
        "history_entries": len(dashboard.history),
        "agent_id": dashboard.agent_id,
        "agents": config.AGENTS,
    }


@app.get("/", response_model=HealthResponse)
def root(dashboard: Dashboard = Depends(get_dashboard)):
    return _health(dashboard)


@app.get("/health", response_model=HealthResponse)
def health(dashboard: Dashboard = Depends(get_dashboard)):
    return _health(dashboard)


@app.post("/analyze")
def analyze(request: AnalyzeRequest, dashboard: Dashboard = Depends(get_dashboard)):
    try:
        outcome = dashboard.analyze(request.text, session=request.session_id or uuid.uuid4().hex)
    except EmptyInputError:
        raise HTTPException(status_code=400, detail="text is required")

    if outcome.stale:
        raise HTTPException(status_code=409, detail=outcome.error)
    if not outcome.ok:
        raise HTTPException(status_code=502, detail=outcome.error)

    return {
        "id": outcome.entry.id,
        "date": outcome.entry.date,
        "result": outcome.result.model_dump(exclude_unset=True),
    }


@app.get("/history")
def list_history(search: str = "", verdict: str = ALL_VERDICTS, dashboard: Dashboard = Depends(get_dashboard)):
    entries = dashboard.search(search, verdict)
    return [
        {
            **entry.model_dump(by_alias=True, exclude_unset=True, exclude={"result", "full_input"}),
            "total_bugs": entry.result.total_bugs,
            "verdict": entry.result.verdict,
            "trend": trend(entries, i).value,
        }
        for i, entry in enumerate(entries)
    ]


@app.get("/history/{entry_id}")
def get_entry(entry_id: str, dashboard: Dashboard = Depends(get_dashboard)):
    entry = dashboard.history.get(entry_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="history entry not found")
    return entry.model_dump(by_alias=True, exclude_unset=True)


@app.get("/history/{entry_id}/report", response_class=PlainTextResponse)
def get_report(entry_id: str, dashboard: Dashboard = Depends(get_dashboard)):
    entry = dashboard.history.get(entry_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="history entry not found")
    return generate_report_markdown(entry.result)


@app.delete("/history/{entry_id}")
def delete_entry(entry_id: str, dashboard: Dashboard = Depends(get_dashboard)):
    dashboard.delete_entry(entry_id)
    return {"deleted": entry_id, "history_entries": len(dashboard.history)}


@app.delete("/history")
def clear_history(dashboard: Dashboard = Depends(get_dashboard)):
    dashboard.clear_history()
    return {"history_entries": 0}


@app.get("/demo")
def demo():
    """Returns the built-in sample analysis without calling the agent."""
    result: AnalysisResult = normalize({"success": True, "response": {"result": SAMPLE_RESULT}})
    return {
        "input": SAMPLE_INPUT,
        "result": result.model_dump(exclude_unset=True),
    }
