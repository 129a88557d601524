"""
Pydantic models for assessment submission, result polling, and report views.
"""

from typing import Any, Callable, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

ProgressCallback = Callable[[int, int], None]


class UserInfo(BaseModel):
    """Respondent profile collected on the first wizard step."""

    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    gender: Optional[str] = Field(None, description='Either "male" or "female".')
    age: Optional[int] = None
    city: Optional[str] = None
    occupation: Optional[str] = None
    education: Optional[str] = None
    phone: Optional[str] = None


class AssessmentSubmission(BaseModel):
    """Complete questionnaire payload, one answer map per instrument.

    Answers were validated by the wizard already; the maps are passed through
    as-is (single choice ``"1"``, multiple ``["1", "3"]``, scale ``4``, free
    text, or sorting ``{"order": [...]}``).
    """

    model_config = ConfigDict(populate_by_name=True)

    user_info: UserInfo = Field(..., alias="userInfo")
    five_questions: Dict[str, Any] = Field(default_factory=dict, alias="fiveQuestions")
    mbti: Dict[str, Any] = Field(default_factory=dict)
    big_five: Dict[str, Any] = Field(default_factory=dict, alias="bigFive")
    disc: Dict[str, Any] = Field(default_factory=dict)
    holland: Dict[str, Any] = Field(default_factory=dict)
    values: Dict[str, Any] = Field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        """Serialize using the backend's camelCase field names."""
        return self.model_dump(by_alias=True, exclude_none=True)


class PollRequest(BaseModel):
    """Identifies the result a poll session waits for."""

    model_config = ConfigDict(frozen=True)

    result_id: str = Field(..., description="Opaque identifier returned by submission.")

    @field_validator("result_id")
    @classmethod
    def _require_identifier(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("result_id must not be empty")
        return value


class PollOptions(BaseModel):
    """Configuration for one poll session."""

    max_attempts: int = Field(20, gt=0)
    on_progress: Optional[ProgressCallback] = Field(
        None,
        description="Called as on_progress(attempt, max_attempts) before each request.",
    )


class AnalysisReport(BaseModel):
    """AI analysis report as produced by the backend.

    Only the fields the views display are declared; the rest of the nested
    record is kept untouched.
    """

    model_config = ConfigDict(
        extra="allow", populate_by_name=True, protected_namespaces=()
    )

    id: Optional[Union[str, int]] = None
    user_id: Optional[Union[str, int]] = Field(None, alias="userId")
    analysis_type: Optional[str] = Field(None, alias="analysisType")
    summary: str
    confidence_score: Optional[float] = Field(None, alias="confidenceScore")
    processing_time: Optional[float] = Field(None, alias="processingTime")
    model_code: Optional[str] = Field(None, alias="modelCode")
    created_at: Optional[str] = Field(None, alias="createdAt")
    detailed_analysis: Dict[str, Any] = Field(
        default_factory=dict, alias="detailedAnalysis"
    )
    recommendations: List[str] = Field(default_factory=list)
    knowledge_sources: List[str] = Field(default_factory=list, alias="knowledgeSources")


ReportStatus = Literal[
    "idle",
    "loading",
    "ready",
    "timeout",
    "error",
    "empty",
    "submission_error",
]


class ReportViewState(BaseModel):
    """Everything a view needs to render the analysis page."""

    status: ReportStatus = "idle"
    result_id: Optional[str] = None
    current_attempt: int = 0
    max_attempts: int = 0
    report: Optional[AnalysisReport] = None
    message: Optional[str] = None


class AssessmentAccepted(BaseModel):
    """Response returned once a submission has been confirmed."""

    result_id: str
    status: ReportStatus
    placeholder: bool = Field(
        False, description="True when a development placeholder id was substituted."
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
