"""
Team formation and readiness coordination.

Every write after creation is a compare-and-swap on the team's ``revision``:
the service reads the team, validates the request against what it read, and
only applies the update if nobody else changed the team in between. A lost
race re-reads and re-validates.
"""

import logging
import secrets
import string
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from codeclash.core.errors import (
    CapacityExceeded, Conflict, Forbidden, NotFound,
    PreconditionFailed, ServerError, ValidationError
)
from codeclash.core.utils import generate_id, strip_mongo_id, utcnow
from codeclash.teams.team_models import MemberRole, Team, TeamMember, TeamStatus

logger = logging.getLogger(__name__)

TEAM_CODE_ALPHABET = string.ascii_uppercase + string.digits
TEAM_CODE_LENGTH = 6
MAX_CODE_ATTEMPTS = 20
MAX_WRITE_ATTEMPTS = 5

CLOSED_STATUSES = (TeamStatus.STARTED.value, TeamStatus.COMPLETED.value)


def generate_team_code() -> str:
    """Sample the 36-symbol alphabet six times"""
    return "".join(secrets.choice(TEAM_CODE_ALPHABET) for _ in range(TEAM_CODE_LENGTH))


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


def all_members_ready(team: dict) -> bool:
    members = team.get("members", [])
    return bool(members) and all(m.get("ready") is True for m in members)


def _member_index(team: dict, user_id: str) -> Optional[int]:
    for idx, member in enumerate(team.get("members", [])):
        if member.get("user_id") == user_id:
            return idx
    return None


async def _compare_and_set(db: AsyncIOMotorDatabase, team: dict, update: dict) -> bool:
    """Apply ``update`` only if the team still has the revision we read"""
    update.setdefault("$inc", {})["revision"] = 1
    result = await db.teams.update_one(
        {"team_id": team["team_id"], "revision": team.get("revision")},
        update
    )
    return result.modified_count == 1

# ==================== LOOKUPS ====================

async def get_team_by_code(db: AsyncIOMotorDatabase, code: str) -> dict:
    team = await db.teams.find_one({"code": normalize_code(code)}, {"_id": 0})
    if not team:
        raise NotFound("Team not found")
    return team


async def get_team(db: AsyncIOMotorDatabase, team_id: str) -> dict:
    team = await db.teams.find_one({"team_id": team_id}, {"_id": 0})
    if not team:
        raise NotFound("Team not found")
    return team


async def find_user_team(db: AsyncIOMotorDatabase, user_id: str, contest_id: str) -> Optional[dict]:
    """Most recently created team in the contest that has the user as a member"""
    cursor = db.teams.find(
        {"contest_id": contest_id, "members.user_id": user_id},
        {"_id": 0}
    ).sort([("created_at", -1), ("_id", -1)]).limit(1)
    teams = await cursor.to_list(length=1)
    return teams[0] if teams else None


async def get_user_team(db: AsyncIOMotorDatabase, user_id: str, contest_id: str) -> dict:
    if not user_id or not contest_id:
        raise ValidationError("Missing userId or contestId")
    team = await find_user_team(db, user_id, contest_id)
    if not team:
        raise NotFound("Team not found")
    return team


async def list_teams(
    db: AsyncIOMotorDatabase,
    contest_id: str = None,
    status: str = None,
    skip: int = 0,
    limit: int = 50
) -> List[dict]:
    query = {}
    if contest_id:
        query["contest_id"] = contest_id
    if status:
        query["status"] = status

    cursor = db.teams.find(query, {"_id": 0}).sort("created_at", -1).skip(skip).limit(limit)
    return await cursor.to_list(length=limit)

# ==================== CREATION ====================

async def generate_unique_team_code(db: AsyncIOMotorDatabase) -> str:
    """Re-sample until no existing team holds the code"""
    for _ in range(MAX_CODE_ATTEMPTS):
        code = generate_team_code()
        if not await db.teams.find_one({"code": code}, {"_id": 1}):
            return code
    raise ServerError("Could not allocate a unique team code")


async def create_team(
    db: AsyncIOMotorDatabase,
    name: str,
    contest_id: str,
    user_id: str,
    user_name: str = None,
    user_image: str = None,
    max_size: int = None
) -> dict:
    """Create a team whose only member is the creator, as leader"""
    name = (name or "").strip()
    if not name or not contest_id or not user_id:
        raise ValidationError("Missing required fields")

    for _ in range(MAX_CODE_ATTEMPTS):
        code = await generate_unique_team_code(db)
        team = Team(
            team_id=generate_id("TEAM"),
            name=name,
            contest_id=contest_id,
            code=code,
            created_by=user_id,
            max_size=max_size,
            members=[TeamMember(
                user_id=user_id,
                user_name=user_name,
                user_image=user_image,
                role=MemberRole.LEADER,
            )],
        ).model_dump()

        try:
            await db.teams.insert_one(team)
        except DuplicateKeyError:
            # the unique index on code caught a concurrent insert
            continue

        logger.info("Team %s created for contest %s by %s", code, contest_id, user_id)
        return strip_mongo_id(team)

    raise ServerError("Could not allocate a unique team code")


async def quick_create_team(
    db: AsyncIOMotorDatabase,
    contest_id: str,
    user_id: str,
    user_name: str = None,
    user_image: str = None,
    max_size: int = None
) -> tuple[dict, bool]:
    """
    Return the caller's current team for the contest, creating one named after them if none exists

    Returns:
        (team, created)
    """
    if not contest_id or not user_id:
        raise ValidationError("Missing required fields")

    existing = await find_user_team(db, user_id, contest_id)
    if existing:
        return existing, False

    name = f"{user_name}'s Team" if user_name else "New Team"
    team = await create_team(db, name, contest_id, user_id, user_name, user_image, max_size)
    return team, True

# ==================== MEMBERSHIP ====================

async def join_team(
    db: AsyncIOMotorDatabase,
    code: str,
    user_id: str,
    user_name: str = None,
    user_image: str = None
) -> dict:
    """Append the caller as a not-ready member; the team goes back to waiting"""
    if not code or not user_id:
        raise ValidationError("Missing required fields")

    for _ in range(MAX_WRITE_ATTEMPTS):
        team = await get_team_by_code(db, code)

        if _member_index(team, user_id) is not None:
            raise Conflict("Already in this team")

        if team.get("status") in CLOSED_STATUSES:
            raise PreconditionFailed("Team has already started")

        max_size = team.get("max_size")
        if max_size and len(team.get("members", [])) >= max_size:
            raise CapacityExceeded(f"Team is full (max {max_size} members)")

        now = utcnow()
        member = TeamMember(user_id=user_id, user_name=user_name, user_image=user_image, joined_at=now)
        applied = await _compare_and_set(db, team, {
            "$push": {"members": member.model_dump()},
            "$set": {
                "status": TeamStatus.WAITING.value,
                "ready_at": None,
                "updated_at": now,
            }
        })
        if applied:
            logger.info("User %s joined team %s", user_id, team["code"])
            return await get_team_by_code(db, code)

    raise Conflict("Team was modified concurrently, please retry")


async def set_member_ready(db: AsyncIOMotorDatabase, code: str, user_id: str, ready: bool) -> dict:
    """
    Update one member's ready flag and recompute the team status:
    ready (with ready_at stamped) iff every member is ready, otherwise waiting
    """
    if not user_id or ready is None:
        raise ValidationError("Missing required fields")

    for _ in range(MAX_WRITE_ATTEMPTS):
        team = await get_team_by_code(db, code)

        idx = _member_index(team, user_id)
        if idx is None:
            raise NotFound("Member not found in this team")

        if team.get("status") in CLOSED_STATUSES:
            raise PreconditionFailed("Team has already started")

        members = team["members"]
        members[idx]["ready"] = bool(ready)
        all_ready = all_members_ready(team)

        now = utcnow()
        applied = await _compare_and_set(db, team, {
            "$set": {
                f"members.{idx}.ready": bool(ready),
                "status": (TeamStatus.READY if all_ready else TeamStatus.WAITING).value,
                "ready_at": now if all_ready else None,
                "updated_at": now,
            }
        })
        if applied:
            return await get_team_by_code(db, code)

    raise Conflict("Team was modified concurrently, please retry")


async def start_team(db: AsyncIOMotorDatabase, code: str, requester_id: str) -> dict:
    """Leader-only; every member must be ready"""
    for _ in range(MAX_WRITE_ATTEMPTS):
        team = await get_team_by_code(db, code)

        if team.get("created_by") != requester_id:
            raise Forbidden("Only the leader can start the contest")

        if team.get("status") == TeamStatus.COMPLETED.value:
            raise PreconditionFailed("Team has already completed the contest")

        if not all_members_ready(team):
            raise PreconditionFailed("All members must be ready")

        if team.get("status") == TeamStatus.STARTED.value:
            return team

        now = utcnow()
        applied = await _compare_and_set(db, team, {
            "$set": {
                "status": TeamStatus.STARTED.value,
                "started_at": now,
                "updated_at": now,
            }
        })
        if applied:
            logger.info("Team %s started contest %s", team["code"], team["contest_id"])
            return await get_team_by_code(db, code)

    raise Conflict("Team was modified concurrently, please retry")

# ==================== ADMINISTRATION ====================

async def override_team_status(db: AsyncIOMotorDatabase, team_id: str, status: TeamStatus) -> dict:
    """Direct status overwrite, bypassing the readiness rules"""
    status = TeamStatus(status)
    result = await db.teams.update_one(
        {"team_id": team_id},
        {"$set": {"status": status.value, "updated_at": utcnow()}, "$inc": {"revision": 1}}
    )
    if result.matched_count == 0:
        raise NotFound("Team not found")

    logger.info("Team %s status overridden to %s", team_id, status.value)
    return await get_team(db, team_id)


async def delete_team(db: AsyncIOMotorDatabase, team_id: str):
    result = await db.teams.delete_one({"team_id": team_id})
    if result.deleted_count == 0:
        raise NotFound("Team not found")


async def get_team_stats(db: AsyncIOMotorDatabase) -> dict:
    """Team counts per status and average team size"""
    pipeline = [
        {"$group": {
            "_id": "$status",
            "count": {"$sum": 1},
            "members": {"$sum": {"$size": {"$ifNull": ["$members", []]}}}
        }}
    ]
    rows = await db.teams.aggregate(pipeline).to_list(length=None)

    by_status = {s.value: 0 for s in TeamStatus}
    total = 0
    total_members = 0
    for row in rows:
        by_status[row["_id"]] = row["count"]
        total += row["count"]
        total_members += row["members"]

    return {
        "total_teams": total,
        "by_status": by_status,
        "average_team_size": round(total_members / total, 2) if total else 0.0,
    }
