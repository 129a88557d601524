"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    build_report_presenter,
    get_backend_client,
    get_report_registry,
    get_result_poller,
    get_submission_service,
)
from .config import get_app_settings

__all__ = [
    "build_report_presenter",
    "get_app_settings",
    "get_backend_client",
    "get_report_registry",
    "get_result_poller",
    "get_submission_service",
]
