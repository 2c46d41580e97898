from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from codeclash.core.utils import utcnow

# ==================== ENUMS ====================

class TeamStatus(str, Enum):
    WAITING = "waiting"
    READY = "ready"
    STARTED = "started"
    COMPLETED = "completed"

class MemberRole(str, Enum):
    LEADER = "leader"
    MEMBER = "member"

# ==================== DATABASE MODELS ====================

class TeamMember(BaseModel):
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    user_id: str
    user_name: Optional[str] = None
    user_image: Optional[str] = None
    role: MemberRole = MemberRole.MEMBER
    ready: bool = False
    joined_at: datetime = Field(default_factory=utcnow)

class Team(BaseModel):
    """
    Team waiting room for a team contest.
    ``code`` is the shareable join code; ``team_id`` is the storage identifier.
    ``revision`` increments on every membership or status write.
    """
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    team_id: str  # TEAM_XXXXXX
    name: str
    contest_id: str
    code: str  # 6 chars, A-Z0-9
    created_by: str  # leader's user_id
    members: List[TeamMember] = []
    status: TeamStatus = TeamStatus.WAITING
    max_size: Optional[int] = None
    ready_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    revision: int = 0
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
