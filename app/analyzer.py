"""
Core analyzer module.

Sends test-run text to the coordinator agent, normalizes the reply and
records accepted results in history. Handles failures gracefully - a bad
agent reply or a broken history file never crashes the dashboard.
"""

import logging
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional

from app.agent_client import AgentClient
from app.history import ALL_VERDICTS, HistoryStore
from app.models import AgentResponse, AnalysisResult, HistoryEntry
from app.normalizer import normalize
from app.prompts import PROMPT_VERSION, build_task_prompt
from app.storage import HistoryRepository

logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')

# inputSummary is truncated to this many characters
SUMMARY_LENGTH = 120

PARSE_ERROR_MESSAGE = "Could not parse agent response. The agent may have returned an unexpected format."
DEFAULT_ERROR_MESSAGE = "Analysis failed. Please try again."
SUPERSEDED_MESSAGE = "Analysis was superseded by a newer request."

# Session used when a caller does not name one, e.g. the CLI
DEFAULT_SESSION = "default"


class AnalyzerError(Exception):
    """Base exception for analyzer errors."""
    pass


class EmptyInputError(AnalyzerError):
    """No test output was provided."""
    pass


@dataclass
class AnalysisOutcome:
    """What the dashboard shows after a request completes."""

    result: Optional[AnalysisResult] = None
    entry: Optional[HistoryEntry] = None
    error: Optional[str] = None
    stale: bool = False

    @property
    def ok(self) -> bool:
        return self.result is not None


def build_entry(input_text: str, result: AnalysisResult) -> HistoryEntry:
    """Create the history record for an accepted analysis."""
    return HistoryEntry(
        id=uuid.uuid4().hex,
        date=datetime.now(timezone.utc).isoformat(),
        input_summary=input_text[:SUMMARY_LENGTH],
        full_input=input_text,
        result=result,
    )


class Dashboard:
    """
    Composes the agent client, normalizer and history.

    Within a session only the most recent request may write results:
    begin_request() hands out a token, and replies carrying an older token
    for the same session are dropped. Requests in different sessions never
    supersede each other. State changes are serialized by a lock so the
    dashboard can be shared by a threaded server.
    """

    def __init__(self, client: AgentClient, repository: HistoryRepository, agent_id: str):
        self.client = client
        self.repository = repository
        self.agent_id = agent_id
        self.history: HistoryStore = repository.load()
        self.current_result: Optional[AnalysisResult] = None
        self._in_flight: Dict[str, str] = {}
        self._lock = threading.Lock()

    def begin_request(self, session: str = DEFAULT_SESSION) -> str:
        """Start a request, superseding any still in flight for `session`."""
        token = uuid.uuid4().hex
        with self._lock:
            self._in_flight[session] = token
            self.current_result = None
        return token

    def complete_request(self, token: str, input_text: str, reply: AgentResponse,
                         session: str = DEFAULT_SESSION) -> AnalysisOutcome:
        """Apply an agent reply if it still belongs to the session's current request."""
        with self._lock:
            if self._in_flight.get(session) != token:
                logger.info(f"Ignoring reply for superseded request in session {session}")
                return AnalysisOutcome(error=SUPERSEDED_MESSAGE, stale=True)
            del self._in_flight[session]

        if not reply.success:
            logger.warning(f"Agent call failed: {reply.error}")
            return AnalysisOutcome(error=reply.error or DEFAULT_ERROR_MESSAGE)

        result = normalize(reply.model_dump())
        if result is None:
            return AnalysisOutcome(error=PARSE_ERROR_MESSAGE)

        entry = build_entry(input_text, result)
        with self._lock:
            self._commit(self.history.append(entry))
            self.current_result = result
        logger.info(f"Analysis completed: {result.total_bugs} bugs, verdict {result.verdict}")
        return AnalysisOutcome(result=result, entry=entry)

    def analyze(self, input_text: str, session: str = DEFAULT_SESSION) -> AnalysisOutcome:
        """
        Run a full analysis.

        Workflow:
        1. Frame the input as an agent message
        2. Call the coordinator agent
        3. Normalize and record the reply

        Raises EmptyInputError for blank input; every other failure is
        reported through the outcome.
        """
        if not input_text or not input_text.strip():
            raise EmptyInputError("Test output is empty")

        token = self.begin_request(session)
        logger.info(f"Requesting analysis from agent {self.agent_id} (prompt {PROMPT_VERSION})")
        reply = self.client.call(build_task_prompt(input_text), self.agent_id)
        return self.complete_request(token, input_text, reply, session)

    def search(self, search_term: str = "", verdict_filter: str = ALL_VERDICTS) -> List[HistoryEntry]:
        return self.history.query(search_term, verdict_filter)

    def delete_entry(self, entry_id: str) -> None:
        with self._lock:
            self._commit(self.history.remove(entry_id))

    def clear_history(self) -> None:
        with self._lock:
            self._commit(self.history.clear())

    def _commit(self, store: HistoryStore) -> None:
        # Caller holds the lock. In-memory state wins even if the write fails
        self.history = store
        self.repository.save(store)
