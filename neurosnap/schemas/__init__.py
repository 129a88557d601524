"""Public schema exports."""

from .assessment import (
    AnalysisReport,
    AssessmentAccepted,
    AssessmentSubmission,
    PollOptions,
    PollRequest,
    ProgressCallback,
    ReportStatus,
    ReportViewState,
    UserInfo,
)

__all__ = [
    "AnalysisReport",
    "AssessmentAccepted",
    "AssessmentSubmission",
    "PollOptions",
    "PollRequest",
    "ProgressCallback",
    "ReportStatus",
    "ReportViewState",
    "UserInfo",
]
