from fastapi import APIRouter, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from codeclash.core.dependencies import get_db
from codeclash.core.permissions import UserContext, ensure_self_or_admin, get_current_user
from codeclash.submissions import leaderboard_service, submission_service as service
from codeclash.submissions.submission_schemas import ContestSubmissionCreate, SubmissionCreate

router = APIRouter(prefix="/submissions", tags=["Submissions"])
contest_router = APIRouter(prefix="/contest-submissions", tags=["Contest Submissions"])

# ==================== PRACTICE ====================

@router.post("", status_code=201)
async def submit_solution(
    data: SubmissionCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user)
):
    submission = await service.record_submission(db, user, data.model_dump())
    return {
        "message": "Submission saved",
        "submissionId": submission["submission_id"],
        "submission": submission,
    }

@router.get("/{email}")
async def get_user_submissions(
    email: str,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user)
):
    ensure_self_or_admin(user, email)
    submissions = await service.list_user_submissions(db, email, skip, limit)
    return {"submissions": submissions, "count": len(submissions)}

# ==================== CONTEST ====================

@contest_router.post("", status_code=201)
async def submit_contest_solution(
    data: ContestSubmissionCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user)
):
    submission = await service.record_contest_submission(db, user, data.model_dump())
    return {"message": "Submission saved", "submissionId": submission["submission_id"]}

@contest_router.get("/leaderboard/{contest_id}")
async def contest_leaderboard(
    contest_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await leaderboard_service.get_contest_leaderboard(db, contest_id)
