from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from codeclash.core.common_audit import log_audit
from codeclash.core.dependencies import get_db
from codeclash.core.permissions import UserContext, require_admin
from codeclash.contests import contest_service as service
from codeclash.contests.contest_schemas import ContestCreate, ContestUpdate

router = APIRouter(prefix="/contests", tags=["Contests"])

# ==================== PUBLIC ====================

@router.get("")
async def list_contests(db: AsyncIOMotorDatabase = Depends(get_db)):
    """
    All contests by start time, with referenced problems resolved
    """
    return await service.list_contests(db)

@router.get("/{contest_id}")
async def get_contest(contest_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    return await service.get_contest(db, contest_id)

# ==================== ADMIN ====================

@router.post("", status_code=201)
async def create_contest(
    data: ContestCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin)
):
    contest = await service.create_contest(db, data.model_dump(), admin.user_id)
    return {"message": "Contest created", "contestId": contest["contest_id"], "contest": contest}

@router.put("/{contest_id}")
async def replace_contest(
    contest_id: str,
    data: ContestCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin)
):
    return await service.replace_contest(db, contest_id, data.model_dump())

@router.patch("/{contest_id}/toggle")
async def toggle_contest(
    contest_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin)
):
    paused = await service.toggle_pause(db, contest_id)
    return {"message": "Contest paused" if paused else "Contest resumed", "paused": paused}

@router.patch("/{contest_id}")
async def update_contest(
    contest_id: str,
    data: ContestUpdate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin)
):
    return await service.update_contest(db, contest_id, data.model_dump(exclude_none=True))

@router.delete("/{contest_id}")
async def delete_contest(
    contest_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin)
):
    await service.delete_contest(db, contest_id)
    await log_audit(db, admin, "delete_contest", "contest", contest_id)
    return {"message": "Contest deleted"}
