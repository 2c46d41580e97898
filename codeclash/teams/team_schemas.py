from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from codeclash.teams.team_models import TeamStatus

# ==================== REQUEST SCHEMAS ====================

class TeamCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, max_length=100)
    contest_id: str = Field(..., alias="contestId", min_length=1)
    max_size: Optional[int] = Field(None, alias="maxSize", ge=1, le=50)

class TeamQuickCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    contest_id: str = Field(..., alias="contestId", min_length=1)
    max_size: Optional[int] = Field(None, alias="maxSize", ge=1, le=50)

class TeamJoin(BaseModel):
    code: str = Field(..., min_length=6, max_length=6)

class ReadyUpdate(BaseModel):
    ready: bool

class TeamStatusOverride(BaseModel):
    status: TeamStatus
