from typing import Optional

from fastapi import APIRouter, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from codeclash.core.common_audit import log_audit
from codeclash.core.dependencies import get_db
from codeclash.core.errors import Forbidden
from codeclash.core.permissions import UserContext, get_current_user, require_admin
from codeclash.contests import participant_service as service
from codeclash.contests.contest_schemas import ContestType, ParticipantJoin

router = APIRouter(prefix="/contest-participants", tags=["Contest Participants"])

@router.post("", status_code=201)
async def join_contest(
    data: ParticipantJoin,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user)
):
    participant = await service.join_contest(db, user, data.model_dump())
    return {"message": "Joined contest", "participant": participant}

# ==================== ADMIN ====================

@router.get("")
async def list_participants(
    contest_id: Optional[str] = Query(None, alias="contestId"),
    type: Optional[ContestType] = None,
    search: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin)
):
    participants, total = await service.list_participants(
        db, contest_id, type.value if type else None, search, skip, limit
    )
    return {"participants": participants, "total": total, "skip": skip, "limit": limit}

@router.get("/counts")
async def participant_counts(
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin)
):
    return await service.get_participant_counts(db)

@router.get("/stats")
async def participant_stats(
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin)
):
    return await service.get_participant_stats(db)

@router.get("/{participant_id}")
async def get_participant(
    participant_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user)
):
    participant = await service.get_participant(db, participant_id)
    if participant["user_id"] != user.user_id and not user.is_admin:
        raise Forbidden("Not authorized to view this participant")
    return participant

@router.delete("/{participant_id}")
async def delete_participant(
    participant_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin)
):
    await service.delete_participant(db, participant_id)
    await log_audit(db, admin, "delete_participant", "participant", participant_id)
    return {"message": "Participant removed"}
