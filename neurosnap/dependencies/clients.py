"""
Factory functions to provide shared clients and services as FastAPI dependencies.

The backend client is built once per process and handed to every service that
needs it.
"""

from functools import lru_cache

from neurosnap.clients import BackendClient
from neurosnap.services import (
    AnalysisReportPresenter,
    ReportViewRegistry,
    ResultPoller,
    SubmissionService,
)

from .config import get_app_settings


@lru_cache()
def get_backend_client() -> BackendClient:
    """Create the process-wide assessment backend client."""
    return BackendClient(get_app_settings().backend)


@lru_cache()
def get_result_poller() -> ResultPoller:
    """Provide the analysis result poller."""
    settings = get_app_settings()
    return ResultPoller(
        get_backend_client(),
        rate_limit_fallback_seconds=settings.polling.rate_limit_fallback_seconds,
    )


def get_submission_service() -> SubmissionService:
    """Build a submission service using the shared backend client."""
    return SubmissionService(get_backend_client(), get_app_settings())


def build_report_presenter() -> AnalysisReportPresenter:
    """Build a presenter wired to the shared poller."""
    return AnalysisReportPresenter(
        get_result_poller(),
        submission_service=get_submission_service(),
        max_attempts=get_app_settings().polling.poll_max_attempts,
    )


@lru_cache()
def get_report_registry() -> ReportViewRegistry:
    """Provide the process-local registry of report presenters."""
    return ReportViewRegistry(
        build_report_presenter,
        max_sessions=get_app_settings().polling.max_report_sessions,
    )


__all__ = [
    "build_report_presenter",
    "get_backend_client",
    "get_report_registry",
    "get_result_poller",
    "get_submission_service",
]
