from datetime import datetime
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import BaseModel, Field

from codeclash.core.permissions import UserContext
from codeclash.core.utils import strip_many, utcnow


class AuditLog(BaseModel):
    actor_user_id: str
    actor_email: Optional[str] = None
    role: str
    action: str  # update_role, override_team_status, delete_problem, ...
    target_type: str  # user, team, problem, contest, participant, review
    target_id: str
    metadata: dict = {}
    timestamp: datetime = Field(default_factory=utcnow)


async def log_audit(
    db: AsyncIOMotorDatabase,
    actor: UserContext,
    action: str,
    target_type: str,
    target_id: str,
    metadata: dict = None
):
    """
    Record an administrative action

    Args:
        actor: Caller performing the action
        action: Action performed (e.g., 'update_role', 'delete_team')
        target_type: Resource type (e.g., 'user', 'team', 'review')
        target_id: ID of the resource
        metadata: Additional context (optional)
    """
    audit_log = AuditLog(
        actor_user_id=actor.user_id,
        actor_email=actor.email,
        role=actor.role,
        action=action,
        target_type=target_type,
        target_id=target_id,
        metadata=metadata or {},
    )

    await db.audit_logs.insert_one(audit_log.model_dump())


async def get_audit_trail(
    db: AsyncIOMotorDatabase,
    target_type: str = None,
    target_id: str = None,
    limit: int = 100
):
    """Retrieve audit logs, newest first, with optional filters"""
    query = {}

    if target_type:
        query["target_type"] = target_type

    if target_id:
        query["target_id"] = target_id

    cursor = db.audit_logs.find(query).sort("timestamp", -1).limit(limit)
    return strip_many(await cursor.to_list(length=limit))
