from typing import Optional

from fastapi import APIRouter, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from codeclash.core.common_audit import log_audit
from codeclash.core.dependencies import get_db
from codeclash.core.permissions import (
    UserContext, ensure_self_or_admin, get_current_user, require_admin
)
from codeclash.reviews import review_service as service
from codeclash.reviews.review_schemas import ReviewCreate, ReviewStatus, ReviewStatusUpdate

router = APIRouter(prefix="/reviews", tags=["Reviews"])

@router.post("", status_code=201)
async def submit_review(
    data: ReviewCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user)
):
    review = await service.submit_review(db, user, data.model_dump())
    return {"message": "Review submitted successfully", "reviewId": review["review_id"], "review": review}

@router.get("/problem/{problem_id}")
async def problem_reviews(
    problem_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await service.get_problem_reviews(db, problem_id, page, limit)

@router.get("/user/{email}")
async def user_reviews(
    email: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user)
):
    ensure_self_or_admin(user, email)
    return {"reviews": await service.get_user_reviews(db, email)}

@router.post("/{review_id}/helpful")
async def vote_helpful(
    review_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user)
):
    await service.vote_helpful(db, review_id, user.email)
    return {"message": "Thank you for your feedback"}

# ==================== MODERATION ====================

@router.get("")
async def list_reviews(
    status: Optional[ReviewStatus] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin)
):
    reviews, pagination = await service.list_reviews(
        db, status.value if status else None, search, page, limit
    )
    return {"reviews": reviews, "pagination": pagination}

@router.patch("/{review_id}/status")
async def update_review_status(
    review_id: str,
    data: ReviewStatusUpdate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin)
):
    await service.update_review_status(db, review_id, data.status.value)
    await log_audit(db, admin, "moderate_review", "review", review_id, {"status": data.status.value})
    return {"message": "Review status updated successfully"}
