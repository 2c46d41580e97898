from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from codeclash.core.utils import to_naive_utc


class ContestType(str, Enum):
    INDIVIDUAL = "individual"
    TEAM = "team"


class ContestCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, use_enum_values=True, validate_default=True)

    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    start_time: datetime = Field(..., alias="startTime")
    end_time: datetime = Field(..., alias="endTime")
    problems: List[str] = []
    type: ContestType = ContestType.INDIVIDUAL

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_time(cls, v):
        return to_naive_utc(v)

    @model_validator(mode="after")
    def check_window(self):
        if self.end_time <= self.start_time:
            raise ValueError("endTime must be after startTime")
        return self


class ContestUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, use_enum_values=True, validate_default=True)

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    start_time: Optional[datetime] = Field(None, alias="startTime")
    end_time: Optional[datetime] = Field(None, alias="endTime")
    problems: Optional[List[str]] = None
    type: Optional[ContestType] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_time(cls, v):
        return to_naive_utc(v)


class ParticipantJoin(BaseModel):
    model_config = ConfigDict(populate_by_name=True, use_enum_values=True, validate_default=True)

    contest_id: str = Field(..., alias="contestId", min_length=1)
    type: ContestType = ContestType.INDIVIDUAL
    team_code: Optional[str] = Field(None, alias="teamCode")
