"""
Client for the external AI agent gateway.

One request, one response. The gateway answers with a
{success, response, error} envelope; transport problems are folded into
the same envelope so callers only ever check `success`.
"""

import logging
import requests
from typing import Optional

from app.models import AgentResponse

logger = logging.getLogger(__name__)


class AgentClient:
    """Calls an agent over HTTP."""

    def __init__(self, endpoint: str, timeout: int = 120, session: Optional[requests.Session] = None):
        self.endpoint = endpoint
        self.timeout = timeout
        self.session = session or requests.Session()

    def call(self, message: str, agent_id: str) -> AgentResponse:
        """
        Send a message to an agent.

        Failure modes (all returned as success=False, never raised):
        - Timeout
        - Connection / HTTP error
        - Body that is not JSON
        """
        try:
            response = self.session.post(
                self.endpoint,
                json={"message": message, "agent_id": agent_id},
                timeout=self.timeout,
            )
            response.raise_for_status()
            body = response.json()

        except requests.Timeout:
            logger.warning(f"Agent {agent_id} timed out after {self.timeout}s")
            return AgentResponse(success=False, error="Agent request timed out")

        except requests.JSONDecodeError:
            logger.warning(f"Agent {agent_id} returned a non-JSON body")
            return AgentResponse(success=False, error="Agent returned invalid JSON")

        except requests.RequestException as e:
            logger.warning(f"Agent {agent_id} request failed: {e}")
            return AgentResponse(success=False, error=f"Agent request failed: {str(e)}")

        # Gateways that already speak the envelope are passed through as-is
        if isinstance(body, dict) and "success" in body:
            return AgentResponse(
                success=bool(body.get("success")),
                response=body.get("response"),
                error=str(body["error"]) if body.get("error") is not None else None,
            )
        return AgentResponse(success=True, response=body)
