import logging
from typing import List

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from codeclash.core.errors import Conflict, NotFound, ValidationError
from codeclash.core.utils import generate_id, strip_mongo_id, utcnow
from codeclash.problems.problem_service import get_problems_by_ids

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("title", "description", "start_time", "end_time", "problems", "type")
MAX_TOGGLE_ATTEMPTS = 5


async def _with_problems(db: AsyncIOMotorDatabase, contest: dict) -> dict:
    """Resolve the contest's problem ids with a second query"""
    contest["problem_details"] = await get_problems_by_ids(db, contest.get("problems", []))
    return contest

# ==================== READ ====================

async def list_contests(db: AsyncIOMotorDatabase) -> List[dict]:
    contests = await db.contests.find({}, {"_id": 0}).sort("start_time", 1).to_list(length=None)

    problem_ids = list({pid for c in contests for pid in c.get("problems", [])})
    problems = {p["problem_id"]: p for p in await get_problems_by_ids(db, problem_ids)}
    for contest in contests:
        contest["problem_details"] = [
            problems[pid] for pid in contest.get("problems", []) if pid in problems
        ]
    return contests


async def get_contest(db: AsyncIOMotorDatabase, contest_id: str) -> dict:
    contest = await db.contests.find_one({"contest_id": contest_id}, {"_id": 0})
    if not contest:
        raise NotFound("Contest not found")
    return await _with_problems(db, contest)

# ==================== WRITE ====================

async def create_contest(db: AsyncIOMotorDatabase, data: dict, created_by: str) -> dict:
    contest = {
        "contest_id": generate_id("CST"),
        **data,
        "paused": False,
        "created_by": created_by,
        "created_at": utcnow(),
    }
    await db.contests.insert_one(contest)
    logger.info("Contest %s created", contest["contest_id"])
    return strip_mongo_id(contest)


async def _apply_update(db: AsyncIOMotorDatabase, contest_id: str, changes: dict) -> dict:
    changes["updated_at"] = utcnow()
    contest = await db.contests.find_one_and_update(
        {"contest_id": contest_id},
        {"$set": changes},
        projection={"_id": 0},
        return_document=ReturnDocument.AFTER
    )
    if not contest:
        raise NotFound("Contest not found")
    return contest


async def replace_contest(db: AsyncIOMotorDatabase, contest_id: str, data: dict) -> dict:
    """Overwrite every editable field; the pause flag is left alone"""
    changes = {field: data.get(field) for field in EDITABLE_FIELDS}
    return await _apply_update(db, contest_id, changes)


async def update_contest(db: AsyncIOMotorDatabase, contest_id: str, changes: dict) -> dict:
    if not changes:
        raise ValidationError("No fields to update")

    if "start_time" in changes or "end_time" in changes:
        current = await get_contest(db, contest_id)
        start = changes.get("start_time", current["start_time"])
        end = changes.get("end_time", current["end_time"])
        if end <= start:
            raise ValidationError("endTime must be after startTime")

    return await _apply_update(db, contest_id, changes)


async def toggle_pause(db: AsyncIOMotorDatabase, contest_id: str) -> bool:
    """
    Flip the pause flag and return the new value.
    The write is conditional on the value read, so two concurrent toggles flip twice.
    """
    for _ in range(MAX_TOGGLE_ATTEMPTS):
        contest = await db.contests.find_one({"contest_id": contest_id}, {"_id": 0, "paused": 1})
        if not contest:
            raise NotFound("Contest not found")

        paused = bool(contest.get("paused", False))
        result = await db.contests.update_one(
            {"contest_id": contest_id, "paused": True if paused else {"$ne": True}},
            {"$set": {"paused": not paused, "updated_at": utcnow()}}
        )
        if result.modified_count == 1:
            logger.info("Contest %s paused=%s", contest_id, not paused)
            return not paused

    raise Conflict("Contest was modified concurrently, please retry")


async def delete_contest(db: AsyncIOMotorDatabase, contest_id: str):
    result = await db.contests.delete_one({"contest_id": contest_id})
    if result.deleted_count == 0:
        raise NotFound("Contest not found")
