"""
Platform-wide dashboard numbers for administrators.
"""

from datetime import timedelta

from motor.motor_asyncio import AsyncIOMotorDatabase

from codeclash.core.utils import local_day_window, round_half_up, utcnow
from codeclash.submissions.leaderboard_service import get_daily_counts
from codeclash.submissions.submission_schemas import SubmissionStatus

COUNTED_COLLECTIONS = {
    "total_users": "users",
    "total_problems": "problems",
    "total_contests": "contests",
    "total_teams": "teams",
    "total_submissions": "submissions",
    "total_participants": "contest_participants",
}
ACTIVE_WINDOW = timedelta(hours=1)
RECENT_SUBMISSIONS = 5


async def get_dashboard(db: AsyncIOMotorDatabase) -> dict:
    counts = {}
    for key, collection in COUNTED_COLLECTIONS.items():
        counts[key] = await db[collection].count_documents({})

    day_start, day_end = local_day_window()
    submissions_today = await db.submissions.count_documents(
        {"submitted_at": {"$gte": day_start, "$lt": day_end}}
    )

    accepted = await db.submissions.count_documents({"status": SubmissionStatus.SUCCESS.value})
    total = counts["total_submissions"]
    acceptance_rate = round_half_up(accepted / total * 100, 1) if total else 0

    active_emails = await db.submissions.distinct(
        "user_email", {"submitted_at": {"$gte": utcnow() - ACTIVE_WINDOW}}
    )

    languages = await db.submissions.aggregate([
        {"$match": {"language": {"$nin": [None, ""]}}},
        {"$group": {"_id": "$language", "count": {"$sum": 1}}},
        {"$sort": {"count": -1, "_id": 1}},
        {"$limit": 1}
    ]).to_list(length=1)

    pending_reviews = await db.reviews.count_documents({"status": "pending"})

    recent = await db.submissions.find(
        {}, {"_id": 0}
    ).sort("submitted_at", -1).limit(RECENT_SUBMISSIONS).to_list(length=RECENT_SUBMISSIONS)

    return {
        **counts,
        "submissions_today": submissions_today,
        "acceptance_rate": acceptance_rate,
        "active_users": len(active_emails),
        "pending_reviews": pending_reviews,
        "top_language": languages[0]["_id"] if languages else None,
        "recent_submissions": recent,
    }


async def get_growth(db: AsyncIOMotorDatabase, days: int = 30) -> list:
    """
    New users and submissions per UTC calendar day for the last ``days`` days,
    oldest first, with empty days filled in
    """
    today = utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
    since = today - timedelta(days=days - 1)

    users = await get_daily_counts(db, "users", "created_at", since)
    submissions = await get_daily_counts(db, "submissions", "submitted_at", since)

    series = []
    for offset in range(days):
        day = (since + timedelta(days=offset)).strftime("%Y-%m-%d")
        series.append({
            "date": day,
            "new_users": users.get(day, 0),
            "submissions": submissions.get(day, 0),
        })
    return series
