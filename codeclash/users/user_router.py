from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from motor.motor_asyncio import AsyncIOMotorDatabase

from codeclash.core.common_audit import log_audit
from codeclash.core.dependencies import get_db
from codeclash.core.permissions import (
    UserContext, ensure_self_or_admin, get_current_user, require_admin
)
from codeclash.submissions import leaderboard_service
from codeclash.users import user_service as service
from codeclash.users.user_schemas import RoleUpdate, UserCreate, UserRole

router = APIRouter(prefix="/users", tags=["Users"])

# ==================== PROFILE ====================

@router.post("", status_code=201)
async def register_user(
    data: UserCreate,
    response: Response,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user)
):
    """
    Sign-in hook: creates the profile on first call, returns it afterwards
    """
    profile, created = await service.upsert_user(db, user, data.user_name, data.user_image)
    if not created:
        response.status_code = 200
        return {"message": "User already exists", "user": profile}
    return {"message": "User created", "user": profile}

@router.get("/me")
async def get_me(
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user)
):
    return await service.get_user_by_email(db, user.email)

@router.get("")
async def list_users(
    role: Optional[UserRole] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin)
):
    users = await service.list_users(db, role.value if role else None, skip, limit)
    return {"users": users, "count": len(users)}

# ==================== LEADERBOARD & STATS ====================

@router.get("/leaderboard")
async def leaderboard(
    skip: int = Query(0, ge=0),
    limit: Optional[int] = Query(None, ge=1, le=500),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await leaderboard_service.get_global_leaderboard(db, skip, limit)

@router.get("/leaderboard/top")
async def leaderboard_top(db: AsyncIOMotorDatabase = Depends(get_db)):
    return await leaderboard_service.get_top_leaderboard(db)

@router.get("/profile/{email}")
async def profile_stats(
    email: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user)
):
    ensure_self_or_admin(user, email)
    return await leaderboard_service.get_user_profile_stats(db, email)

@router.get("/dashboard/{email}")
async def dashboard(
    email: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user)
):
    ensure_self_or_admin(user, email)
    return await leaderboard_service.get_user_dashboard(db, email)

@router.get("/{email}")
async def get_user(
    email: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user)
):
    ensure_self_or_admin(user, email)
    return await service.get_user_by_email(db, email)

# ==================== ADMINISTRATION ====================

@router.patch("/{user_id}/role")
async def update_role(
    user_id: str,
    data: RoleUpdate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin)
):
    profile = await service.update_user_role(db, user_id, data.role.value)
    await log_audit(db, admin, "update_role", "user", user_id, {"role": data.role.value})
    return {"message": "Role updated", "user": profile}
