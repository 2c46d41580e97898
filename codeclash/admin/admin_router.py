from typing import Optional

from fastapi import APIRouter, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from codeclash.admin import admin_service as service
from codeclash.core.common_audit import get_audit_trail
from codeclash.core.dependencies import get_db
from codeclash.core.permissions import UserContext, require_admin

router = APIRouter(prefix="/admin", tags=["Admin"])

@router.get("/dashboard")
async def dashboard(
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin)
):
    return await service.get_dashboard(db)

@router.get("/growth")
async def growth(
    days: int = Query(30, ge=1, le=365),
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin)
):
    return await service.get_growth(db, days)

@router.get("/audit-logs")
async def audit_logs(
    target_type: Optional[str] = Query(None, alias="targetType"),
    target_id: Optional[str] = Query(None, alias="targetId"),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin)
):
    return await get_audit_trail(db, target_type, target_id, limit)
