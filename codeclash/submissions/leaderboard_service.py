"""
Point totals, success/failure counts and activity histograms.

All roll-ups are aggregation pipelines over the submissions collections and are
computed fresh on every call. Point values are summed as stored, so a failed
submission contributes whatever point value it was recorded with.
"""

from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from codeclash.core.errors import NotFound
from codeclash.core.utils import local_day_window, round_half_up
from codeclash.submissions.submission_schemas import SubmissionStatus

TOP_LEADERBOARD_SIZE = 4
RECENT_SUBMISSIONS = 5


def _count_status(status: SubmissionStatus) -> dict:
    return {"$sum": {"$cond": [{"$eq": ["$status", status.value]}, 1, 0]}}


def _day_bucket(field: str) -> dict:
    return {"$dateToString": {"format": "%Y-%m-%d", "date": f"${field}"}}


def _inject_rank(rows: List[dict], skip: int = 0) -> List[dict]:
    for idx, row in enumerate(rows):
        row["user_email"] = row.pop("_id")
        row["rank"] = skip + idx + 1
    return rows

# ==================== PER-USER PROFILE ====================

async def get_user_profile_stats(db: AsyncIOMotorDatabase, email: str) -> dict:
    """
    Point total, submission counts and a daily activity histogram for one user

    Raises:
        404: The user has no submissions
    """
    summary = await db.submissions.aggregate([
        {"$match": {"user_email": email}},
        {"$sort": {"submitted_at": 1}},
        {"$group": {
            "_id": "$user_email",
            "user_name": {"$first": "$user_name"},
            "total_points": {"$sum": "$point"},
            "total_submissions": {"$sum": 1},
            "success_count": _count_status(SubmissionStatus.SUCCESS),
            "failure_count": _count_status(SubmissionStatus.FAILURE),
            "first_submission_at": {"$min": "$submitted_at"},
            "last_submission_at": {"$max": "$submitted_at"},
        }}
    ]).to_list(length=1)

    if not summary:
        raise NotFound("No submissions found for this user")

    activity = await db.submissions.aggregate([
        {"$match": {"user_email": email}},
        {"$group": {"_id": _day_bucket("submitted_at"), "count": {"$sum": 1}}},
        {"$sort": {"_id": 1}}
    ]).to_list(length=None)

    profile = summary[0]
    profile["user_email"] = profile.pop("_id")
    profile["daily_activity"] = {row["_id"]: row["count"] for row in activity}
    return profile

# ==================== GLOBAL LEADERBOARD ====================

async def get_global_leaderboard(
    db: AsyncIOMotorDatabase,
    skip: int = 0,
    limit: Optional[int] = None
) -> List[dict]:
    """
    Users ranked by summed points.
    Ties go to the user whose first submission came earlier, then by email.
    """
    pipeline = [
        {"$sort": {"submitted_at": 1}},
        {"$group": {
            "_id": "$user_email",
            "user_name": {"$first": "$user_name"},
            "total_points": {"$sum": "$point"},
            "total_submissions": {"$sum": 1},
            "success_count": _count_status(SubmissionStatus.SUCCESS),
            "failure_count": _count_status(SubmissionStatus.FAILURE),
            "first_submission_at": {"$min": "$submitted_at"},
        }},
        {"$sort": {"total_points": -1, "first_submission_at": 1, "_id": 1}},
    ]
    if skip:
        pipeline.append({"$skip": skip})
    if limit:
        pipeline.append({"$limit": limit})

    rows = await db.submissions.aggregate(pipeline).to_list(length=None)
    return _inject_rank(rows, skip)


async def get_top_leaderboard(db: AsyncIOMotorDatabase) -> List[dict]:
    return await get_global_leaderboard(db, limit=TOP_LEADERBOARD_SIZE)

# ==================== CONTEST LEADERBOARD ====================

async def get_contest_leaderboard(db: AsyncIOMotorDatabase, contest_id: str) -> List[dict]:
    """Per-contest standings from contest submissions"""
    pipeline = [
        {"$match": {"contest_id": contest_id}},
        {"$sort": {"submitted_at": 1}},
        {"$group": {
            "_id": "$user_email",
            "user_name": {"$first": "$user_name"},
            "total_points": {"$sum": "$point"},
            "success_count": _count_status(SubmissionStatus.SUCCESS),
            "failure_count": _count_status(SubmissionStatus.FAILURE),
            "first_submission_at": {"$min": "$submitted_at"},
            "submissions": {"$push": {
                "problem_id": "$problem_id",
                "status": "$status",
                "point": "$point",
                "submitted_at": "$submitted_at",
            }},
        }},
        {"$sort": {"total_points": -1, "first_submission_at": 1, "_id": 1}},
    ]

    rows = await db.contest_submissions.aggregate(pipeline).to_list(length=None)
    return _inject_rank(rows)

# ==================== DASHBOARD ====================

async def get_user_dashboard(db: AsyncIOMotorDatabase, email: str) -> dict:
    """
    Solved problems, success rate, favourite language and today's solves
    """
    success = SubmissionStatus.SUCCESS.value

    totals = await db.submissions.aggregate([
        {"$match": {"user_email": email}},
        {"$group": {
            "_id": None,
            "total_points": {"$sum": "$point"},
            "total_submissions": {"$sum": 1},
            "success_count": _count_status(SubmissionStatus.SUCCESS),
        }}
    ]).to_list(length=1)
    totals = totals[0] if totals else {"total_points": 0, "total_submissions": 0, "success_count": 0}

    solved = await db.submissions.aggregate([
        {"$match": {"user_email": email, "status": success}},
        {"$group": {"_id": {"$ifNull": ["$problem_id", "$problem_title"]}}}
    ]).to_list(length=None)

    languages = await db.submissions.aggregate([
        {"$match": {"user_email": email, "language": {"$nin": [None, ""]}}},
        {"$group": {"_id": "$language", "count": {"$sum": 1}}},
        {"$sort": {"count": -1, "_id": 1}},
        {"$limit": 1}
    ]).to_list(length=1)

    day_start, day_end = local_day_window()
    solved_today = await db.submissions.count_documents({
        "user_email": email,
        "status": success,
        "submitted_at": {"$gte": day_start, "$lt": day_end},
    })

    recent = await db.submissions.find(
        {"user_email": email}, {"_id": 0}
    ).sort("submitted_at", -1).limit(RECENT_SUBMISSIONS).to_list(length=RECENT_SUBMISSIONS)

    total = totals["total_submissions"]
    return {
        "user_email": email,
        "total_points": totals["total_points"],
        "total_submissions": total,
        "solved_problems": len(solved),
        "success_rate": round_half_up(totals["success_count"] / total * 100) if total else 0,
        "favorite_language": languages[0]["_id"] if languages else None,
        "solved_today": solved_today,
        "recent_submissions": recent,
    }

# ==================== GROWTH ====================

async def get_daily_counts(db: AsyncIOMotorDatabase, collection: str, field: str, since) -> dict:
    """Documents per calendar date (UTC) with ``field`` at or after ``since``"""
    rows = await db[collection].aggregate([
        {"$match": {field: {"$gte": since}}},
        {"$group": {"_id": _day_bucket(field), "count": {"$sum": 1}}},
        {"$sort": {"_id": 1}}
    ]).to_list(length=None)
    return {row["_id"]: row["count"] for row in rows}
