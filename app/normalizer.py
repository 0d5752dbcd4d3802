"""
Agent response normalizer.

Turns the agent's reply envelope into an AnalysisResult, or rejects it.
The agent's output shape is not fixed: the payload may be double-encoded
JSON, may sit one `result` level deeper, and either sub-report may arrive
as a JSON string. Unwrapping is bounded (one string decode, one `result`
unwrap) so adversarial nesting cannot cause unbounded work.

Never raises - any failure is a rejection (None).
"""

import json
import logging
from typing import Any, Optional
from pydantic import ValidationError

from app.models import AnalysisResult

logger = logging.getLogger(__name__)

REPORT_FIELDS = ("bug_report", "test_report")


class NormalizationError(Exception):
    """Agent payload is unusable."""
    pass


def _extract_payload(raw: Any) -> dict:
    """Pull the analysis payload out of the `response.result` envelope."""
    if not isinstance(raw, dict):
        raise NormalizationError("envelope is not an object")
    response = raw.get("response")
    if not isinstance(response, dict):
        raise NormalizationError("envelope has no response object")

    data = response.get("result")
    if isinstance(data, str):
        try:
            data = json.loads(data)
        except json.JSONDecodeError:
            raise NormalizationError("response.result is not valid JSON")

    if not isinstance(data, dict):
        raise NormalizationError(f"payload is {type(data).__name__}, expected object")

    # Coordinator agents sometimes wrap the payload once more
    if isinstance(data.get("result"), dict):
        data = data["result"]

    return dict(data)


def _decode_report(value: Any) -> Any:
    """Decode a JSON-string sub-report, keeping the raw text if it isn't an object."""
    if not isinstance(value, str):
        return value
    try:
        decoded = json.loads(value)
    except json.JSONDecodeError:
        logger.warning("Sub-report is not valid JSON - keeping raw text")
        return value
    if not isinstance(decoded, dict):
        logger.warning("Sub-report decoded to %s - keeping raw text", type(decoded).__name__)
        return value
    return decoded


def normalize(raw: Any) -> Optional[AnalysisResult]:
    """
    Normalize an agent reply envelope.

    Returns the validated AnalysisResult, or None when the reply carries
    no usable analysis. Counts and other fields are passed through as the
    agent sent them.
    """
    try:
        data = _extract_payload(raw)

        for field in REPORT_FIELDS:
            if field in data:
                data[field] = _decode_report(data[field])

        if all(data.get(field) is None for field in REPORT_FIELDS):
            raise NormalizationError("payload has neither bug_report nor test_report")

        return AnalysisResult.model_validate(data)

    except NormalizationError as e:
        logger.warning(f"Rejected agent response: {e}")
    except ValidationError as e:
        logger.warning(f"Rejected agent response - schema mismatch: {e.error_count()} error(s)")
    except Exception as e:
        logger.warning(f"Rejected agent response - unexpected error: {e}")

    return None
