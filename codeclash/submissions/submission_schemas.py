from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ==================== ENUMS ====================

class SubmissionStatus(str, Enum):
    SUCCESS = "Success"
    FAILURE = "Failure"


# Older clients reported "Accepted" for a passing run
_STATUS_ALIASES = {
    "success": SubmissionStatus.SUCCESS,
    "accepted": SubmissionStatus.SUCCESS,
    "failure": SubmissionStatus.FAILURE,
}


def normalize_status(value) -> SubmissionStatus:
    if isinstance(value, SubmissionStatus):
        return value
    status = _STATUS_ALIASES.get(str(value or "").strip().lower())
    if status is None:
        raise ValueError("status must be one of: Success, Failure")
    return status

# ==================== REQUEST SCHEMAS ====================

class SubmissionCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    problem_id: Optional[str] = Field(None, alias="problemId")
    problem_title: str = Field(..., alias="problemTitle", min_length=1)
    problem_difficulty: str = Field(..., alias="problemDifficulty", min_length=1)
    problem_category: str = Field(..., alias="problemCategory", min_length=1)
    language: Optional[str] = None
    status: SubmissionStatus
    point: int

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v):
        return normalize_status(v)

    @field_validator("language")
    @classmethod
    def validate_language(cls, v):
        return v.strip().lower() if v else None


class ContestSubmissionCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    contest_id: str = Field(..., alias="contestId", min_length=1)
    problem_id: str = Field(..., alias="problemId", min_length=1)
    code: str = ""
    output: str = ""
    language: Optional[str] = None
    status: SubmissionStatus
    point: int = 0

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v):
        return normalize_status(v)
