import logging
from typing import List

from motor.motor_asyncio import AsyncIOMotorDatabase

from codeclash.core.errors import ValidationError
from codeclash.core.permissions import UserContext
from codeclash.core.utils import generate_id, strip_mongo_id, utcnow
from codeclash.submissions.submission_schemas import normalize_status

logger = logging.getLogger(__name__)

# ==================== PRACTICE SUBMISSIONS ====================

async def record_submission(db: AsyncIOMotorDatabase, user: UserContext, data: dict) -> dict:
    """Store one practice submission (write-once)"""
    if not user.email:
        raise ValidationError("Missing user email")

    submission = {
        "submission_id": generate_id("SUB"),
        "user_id": user.user_id,
        "user_email": user.email,
        "user_name": user.name or user.email,
        "problem_id": data.get("problem_id"),
        "problem_title": data["problem_title"],
        "problem_difficulty": data["problem_difficulty"],
        "problem_category": data["problem_category"],
        "language": data.get("language"),
        "status": normalize_status(data["status"]).value,
        "point": int(data["point"]),
        "submitted_at": utcnow(),
    }

    await db.submissions.insert_one(submission)
    return strip_mongo_id(submission)


async def list_user_submissions(
    db: AsyncIOMotorDatabase,
    email: str,
    skip: int = 0,
    limit: int = 100
) -> List[dict]:
    cursor = db.submissions.find(
        {"user_email": email}, {"_id": 0}
    ).sort("submitted_at", -1).skip(skip).limit(limit)
    return await cursor.to_list(length=limit)

# ==================== CONTEST SUBMISSIONS ====================

async def record_contest_submission(db: AsyncIOMotorDatabase, user: UserContext, data: dict) -> dict:
    submission = {
        "submission_id": generate_id("CSUB"),
        "contest_id": data["contest_id"],
        "problem_id": data["problem_id"],
        "user_id": user.user_id,
        "user_email": user.email,
        "user_name": user.name or user.email,
        "code": data.get("code") or "",
        "output": data.get("output") or "",
        "language": data.get("language"),
        "status": normalize_status(data["status"]).value,
        "point": int(data.get("point") or 0),
        "submitted_at": utcnow(),
    }

    await db.contest_submissions.insert_one(submission)
    logger.info("Contest submission %s recorded for %s", submission["submission_id"], data["contest_id"])
    return strip_mongo_id(submission)
