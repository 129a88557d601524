"""
FastAPI routes exposing assessment submission and analysis report views.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Response

from neurosnap.clients import BackendError, BackendHTTPError
from neurosnap.dependencies import (
    get_app_settings,
    get_backend_client,
    get_report_registry,
    get_submission_service,
)
from neurosnap.schemas import AssessmentAccepted, AssessmentSubmission
from neurosnap.services import SubmissionIdentifierMissing
from neurosnap.services.report_view import SUBMISSION_FAILURE_MESSAGE

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck(
    settings: Annotated[Any, Depends(get_app_settings)],
) -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok", "environment": settings.app_env}


@router.get("/surveys/{model_code}", status_code=HTTPStatus.OK)
async def get_survey_questions(
    model_code: str,
    backend: Annotated[Any, Depends(get_backend_client)],
) -> dict:
    """Pass the question catalog for one instrument through from the backend."""
    try:
        return await backend.get_survey_questions(model_code)
    except BackendHTTPError as exc:
        status_code = (
            exc.status_code
            if HTTPStatus.BAD_REQUEST <= exc.status_code < HTTPStatus.INTERNAL_SERVER_ERROR
            else HTTPStatus.BAD_GATEWAY
        )
        raise HTTPException(status_code=status_code, detail=exc.message) from exc
    except BackendError as exc:
        raise HTTPException(status_code=HTTPStatus.BAD_GATEWAY, detail=str(exc)) from exc


@router.post(
    "/assessments",
    response_model=AssessmentAccepted,
    status_code=HTTPStatus.ACCEPTED,
)
async def submit_assessment(
    payload: AssessmentSubmission,
    submissions: Annotated[Any, Depends(get_submission_service)],
    registry: Annotated[Any, Depends(get_report_registry)],
) -> AssessmentAccepted:
    """Submit the questionnaire and start polling for its analysis."""
    try:
        receipt = await submissions.submit(payload)
    except SubmissionIdentifierMissing as exc:
        raise HTTPException(
            status_code=HTTPStatus.BAD_GATEWAY, detail=SUBMISSION_FAILURE_MESSAGE
        ) from exc
    except BackendError as exc:
        logger.warning("Submission failed: %s", exc)
        raise HTTPException(
            status_code=HTTPStatus.BAD_GATEWAY, detail=SUBMISSION_FAILURE_MESSAGE
        ) from exc

    presenter = registry.open(receipt.result_id)
    presenter.start(receipt.result_id)
    return AssessmentAccepted(
        result_id=receipt.result_id,
        status=presenter.state.status,
        placeholder=receipt.placeholder,
    )


@router.get("/assessments/{result_id}/report", status_code=HTTPStatus.OK)
async def get_assessment_report(
    result_id: str,
    registry: Annotated[Any, Depends(get_report_registry)],
) -> dict:
    """Return the current view state of an analysis report."""
    presenter = registry.get(result_id)
    if presenter is None:
        raise HTTPException(
            status_code=HTTPStatus.NOT_FOUND, detail="No report session for this id."
        )
    return presenter.render()


@router.post("/assessments/{result_id}/retry", status_code=HTTPStatus.ACCEPTED)
async def retry_assessment_report(
    result_id: str,
    registry: Annotated[Any, Depends(get_report_registry)],
) -> dict:
    """Start a fresh poll session for a result id submitted earlier."""
    presenter = registry.get(result_id)
    if presenter is None:
        raise HTTPException(
            status_code=HTTPStatus.NOT_FOUND, detail="No report session for this id."
        )
    presenter.start(result_id)
    return presenter.render()


@router.delete("/assessments/{result_id}", status_code=HTTPStatus.NO_CONTENT)
async def close_assessment_report(
    result_id: str,
    registry: Annotated[Any, Depends(get_report_registry)],
) -> Response:
    """Stop polling for ``result_id`` and forget its view state."""
    if not registry.discard(result_id):
        raise HTTPException(
            status_code=HTTPStatus.NOT_FOUND, detail="No report session for this id."
        )
    return Response(status_code=HTTPStatus.NO_CONTENT)
