"""Service that submits completed questionnaires and finds the id to poll."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from neurosnap.clients import BackendClient
from neurosnap.core.config import AppSettings
from neurosnap.schemas import AssessmentSubmission

logger = logging.getLogger(__name__)

# Deployments disagree on where the identifier lives; first non-empty wins.
_RESULT_ID_PATHS: tuple[tuple[str, ...], ...] = (
    ("data", "surveyId"),
    ("data", "userId"),
    ("surveyId",),
    ("userId",),
    ("id",),
)


class SubmissionIdentifierMissing(Exception):
    """Raised when a submission response carries no usable identifier."""

    def __init__(self, response: Any) -> None:
        super().__init__(
            "Submission response did not include a survey or user identifier."
        )
        self.response = response


@dataclass(slots=True)
class SubmissionReceipt:
    """Outcome of a confirmed submission."""

    result_id: str
    response: Any
    placeholder: bool = False


def _lookup(payload: Any, path: tuple[str, ...]) -> Any:
    current = payload
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def extract_result_id(response: Any) -> Optional[str]:
    """Return the identifier to poll from a submission response, if any."""
    for path in _RESULT_ID_PATHS:
        value = _lookup(response, path)
        if isinstance(value, bool) or value is None:
            continue
        if isinstance(value, (int, float)):
            return str(value)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


class SubmissionService:
    """Submit the full questionnaire once and return the id to poll."""

    def __init__(self, backend: BackendClient, settings: AppSettings) -> None:
        self._backend = backend
        self._settings = settings

    async def submit(self, submission: AssessmentSubmission) -> SubmissionReceipt:
        response = await self._backend.submit_answers(submission.to_payload())
        result_id = extract_result_id(response)
        if result_id is not None:
            logger.info("Submission confirmed with result id %s", result_id)
            return SubmissionReceipt(result_id=result_id, response=response)

        placeholder = self._placeholder_result_id()
        if placeholder is not None:
            logger.warning(
                "Submission response had no identifier; substituting development "
                "placeholder %s. Response was: %r",
                placeholder,
                response,
            )
            return SubmissionReceipt(
                result_id=placeholder, response=response, placeholder=True
            )

        logger.error("Submission response had no identifier: %r", response)
        raise SubmissionIdentifierMissing(response)

    def _placeholder_result_id(self) -> Optional[str]:
        if not self._settings.is_development:
            return None
        placeholder = self._settings.polling.dev_placeholder_result_id
        if placeholder and placeholder.strip():
            return placeholder.strip()
        return None


__all__ = [
    "SubmissionIdentifierMissing",
    "SubmissionReceipt",
    "SubmissionService",
    "extract_result_id",
]
