from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ReviewStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Experience(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class ReviewCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, use_enum_values=True, validate_default=True)

    problem_id: str = Field(..., alias="problemId", min_length=1)
    submission_id: str = Field(..., alias="submissionId", min_length=1)
    rating: int = Field(..., ge=1, le=5)
    comment: str = Field("", max_length=2000)
    experience: Experience = Experience.POSITIVE


class ReviewStatusUpdate(BaseModel):
    status: ReviewStatus
