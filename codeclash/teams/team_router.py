from typing import Optional

from fastapi import APIRouter, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from codeclash.core.common_audit import log_audit
from codeclash.core.dependencies import get_db
from codeclash.core.errors import Forbidden
from codeclash.core.permissions import UserContext, get_current_user, require_admin
from codeclash.teams import team_service as service
from codeclash.teams.team_models import TeamStatus
from codeclash.teams.team_schemas import (
    ReadyUpdate, TeamCreate, TeamJoin, TeamQuickCreate, TeamStatusOverride
)

router = APIRouter(prefix="/teams", tags=["Teams"])

# ==================== TEAM FORMATION ====================

@router.post("", status_code=201)
async def create_team(
    data: TeamCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user)
):
    """
    Create a team; the caller becomes its leader
    """
    team = await service.create_team(
        db, data.name, data.contest_id, user.user_id, user.name, user.image, data.max_size
    )
    return {"message": "Team created", "teamCode": team["code"], "team": team}

@router.post("/quick-create")
async def quick_create_team(
    data: TeamQuickCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user)
):
    """
    Reuse the caller's team for the contest or create one named after them
    """
    team, created = await service.quick_create_team(
        db, data.contest_id, user.user_id, user.name, user.image, data.max_size
    )
    return {
        "message": "Team created" if created else "Existing team found",
        "created": created,
        "teamCode": team["code"],
        "team": team,
    }

@router.post("/join")
async def join_team(
    data: TeamJoin,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user)
):
    team = await service.join_team(db, data.code, user.user_id, user.name, user.image)
    return {"message": "Joined team successfully!", "team": team}

# ==================== ADMIN SUMMARY ====================

@router.get("/stats/summary")
async def team_stats_summary(
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin)
):
    return await service.get_team_stats(db)

# ==================== LOOKUPS ====================

@router.get("/user/{user_id}")
async def get_team_by_user(
    user_id: str,
    contest_id: Optional[str] = Query(None, alias="contestId"),
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user)
):
    """
    Most recent team of a user in a contest
    """
    if user.user_id != user_id and not user.is_admin:
        raise Forbidden("Not authorized to view another user's team")
    return await service.get_user_team(db, user_id, contest_id)

@router.get("/code/{team_code}")
async def get_team_by_code(
    team_code: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user)
):
    return await service.get_team_by_code(db, team_code)

# ==================== READINESS ====================

@router.patch("/{team_code}/ready")
async def update_ready_state(
    team_code: str,
    data: ReadyUpdate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user)
):
    return await service.set_member_ready(db, team_code, user.user_id, data.ready)

@router.patch("/{team_code}/start")
async def start_contest(
    team_code: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user)
):
    team = await service.start_team(db, team_code, user.user_id)
    return {"message": "Contest started", "team": team}

# ==================== ADMINISTRATION ====================

@router.get("")
async def list_teams(
    contest_id: Optional[str] = Query(None, alias="contestId"),
    status: Optional[TeamStatus] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin)
):
    teams = await service.list_teams(db, contest_id, status.value if status else None, skip, limit)
    return {"teams": teams, "count": len(teams)}

@router.get("/{team_id}")
async def get_team(
    team_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin)
):
    return await service.get_team(db, team_id)

@router.patch("/{team_id}")
async def override_team_status(
    team_id: str,
    data: TeamStatusOverride,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin)
):
    """
    Administrative status overwrite; readiness rules do not apply
    """
    team = await service.override_team_status(db, team_id, data.status)
    await log_audit(db, admin, "override_team_status", "team", team_id, {"status": team["status"]})
    return team

@router.delete("/{team_id}")
async def delete_team(
    team_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin)
):
    await service.delete_team(db, team_id)
    await log_audit(db, admin, "delete_team", "team", team_id)
    return {"message": "Team deleted"}
