"""
Contest participation records.
At most one row per (contest, user); the unique index decides, not a prior lookup.
"""

import logging
from typing import List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from codeclash.core.errors import Conflict, NotFound
from codeclash.core.permissions import UserContext
from codeclash.core.utils import contains_pattern, generate_id, strip_mongo_id, utcnow

logger = logging.getLogger(__name__)

RECENT_PARTICIPANTS = 10


async def join_contest(db: AsyncIOMotorDatabase, user: UserContext, data: dict) -> dict:
    contest = await db.contests.find_one({"contest_id": data["contest_id"]}, {"_id": 0, "title": 1})
    if not contest:
        raise NotFound("Contest not found")

    participant = {
        "participant_id": generate_id("PART"),
        "contest_id": data["contest_id"],
        "contest_title": contest.get("title"),
        "user_id": user.user_id,
        "user_email": user.email,
        "user_name": user.name or user.email,
        "user_image": user.image,
        "type": data.get("type", "individual"),
        "team_code": data.get("team_code"),
        "joined_at": utcnow(),
    }

    try:
        await db.contest_participants.insert_one(participant)
    except DuplicateKeyError:
        raise Conflict("Already joined this contest")

    logger.info("User %s joined contest %s", user.user_id, data["contest_id"])
    return strip_mongo_id(participant)


def _participant_query(contest_id: Optional[str], type: Optional[str], search: Optional[str]) -> dict:
    query = {}
    if contest_id:
        query["contest_id"] = contest_id
    if type:
        query["type"] = type
    if search:
        pattern = contains_pattern(search)
        query["$or"] = [{"user_name": pattern}, {"user_email": pattern}]
    return query


async def list_participants(
    db: AsyncIOMotorDatabase,
    contest_id: Optional[str] = None,
    type: Optional[str] = None,
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 50
) -> Tuple[List[dict], int]:
    query = _participant_query(contest_id, type, search)
    total = await db.contest_participants.count_documents(query)
    cursor = db.contest_participants.find(query, {"_id": 0}).sort("joined_at", -1).skip(skip).limit(limit)
    return await cursor.to_list(length=limit), total


async def get_participant_counts(db: AsyncIOMotorDatabase) -> dict:
    """Participant count per contest id"""
    rows = await db.contest_participants.aggregate([
        {"$group": {"_id": "$contest_id", "count": {"$sum": 1}}}
    ]).to_list(length=None)
    return {row["_id"]: row["count"] for row in rows}


async def get_participant_stats(db: AsyncIOMotorDatabase) -> dict:
    total = await db.contest_participants.count_documents({})

    by_type = await db.contest_participants.aggregate([
        {"$group": {"_id": "$type", "count": {"$sum": 1}}}
    ]).to_list(length=None)

    by_contest = await db.contest_participants.aggregate([
        {"$group": {
            "_id": "$contest_id",
            "contest_title": {"$first": "$contest_title"},
            "count": {"$sum": 1},
        }},
        {"$sort": {"count": -1, "_id": 1}}
    ]).to_list(length=None)

    recent = await db.contest_participants.find(
        {}, {"_id": 0}
    ).sort("joined_at", -1).limit(RECENT_PARTICIPANTS).to_list(length=RECENT_PARTICIPANTS)

    return {
        "total_participants": total,
        "by_type": {row["_id"]: row["count"] for row in by_type},
        "by_contest": [
            {"contest_id": row["_id"], "contest_title": row.get("contest_title"), "count": row["count"]}
            for row in by_contest
        ],
        "recent": recent,
    }


async def get_participant(db: AsyncIOMotorDatabase, participant_id: str) -> dict:
    participant = await db.contest_participants.find_one({"participant_id": participant_id}, {"_id": 0})
    if not participant:
        raise NotFound("Participant not found")
    return participant


async def delete_participant(db: AsyncIOMotorDatabase, participant_id: str):
    result = await db.contest_participants.delete_one({"participant_id": participant_id})
    if result.deleted_count == 0:
        raise NotFound("Participant not found")
