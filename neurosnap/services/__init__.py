"""Service layer exports."""

from .polling import (
    PollExhaustedError,
    PollFailedError,
    PollResult,
    PollTimeoutError,
    ResultPoller,
)
from .report_view import AnalysisReportPresenter, ReportViewRegistry
from .submission import (
    SubmissionIdentifierMissing,
    SubmissionReceipt,
    SubmissionService,
)

__all__ = [
    "AnalysisReportPresenter",
    "PollExhaustedError",
    "PollFailedError",
    "PollResult",
    "PollTimeoutError",
    "ReportViewRegistry",
    "ResultPoller",
    "SubmissionIdentifierMissing",
    "SubmissionReceipt",
    "SubmissionService",
]
