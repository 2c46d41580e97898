"""
Problem reviews: one per (user, problem), moderated by admins.
"""

import logging
import math
from typing import List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from codeclash.core.errors import Conflict, NotFound
from codeclash.core.permissions import UserContext
from codeclash.core.utils import contains_pattern, generate_id, round_half_up, strip_mongo_id, utcnow
from codeclash.reviews.review_schemas import ReviewStatus

logger = logging.getLogger(__name__)

# Hidden from every listing
PRIVATE_FIELDS = {"_id": 0, "helpful_voters": 0}


def _pagination(page: int, limit: int, total: int) -> dict:
    return {"page": page, "limit": limit, "total": total, "pages": math.ceil(total / limit) if limit else 0}


async def submit_review(db: AsyncIOMotorDatabase, user: UserContext, data: dict) -> dict:
    """
    Raises:
        404: Unknown problem
        409: The caller already reviewed this problem
    """
    if not await db.problems.find_one({"problem_id": data["problem_id"]}, {"_id": 1}):
        raise NotFound("Problem not found")

    now = utcnow()
    review = {
        "review_id": generate_id("REV"),
        "user_email": user.email,
        "user_name": user.name or "Anonymous",
        "user_photo": user.image or "",
        "problem_id": data["problem_id"],
        "submission_id": data["submission_id"],
        "rating": int(data["rating"]),
        "comment": data.get("comment") or "",
        "experience": data.get("experience") or "positive",
        "status": ReviewStatus.APPROVED.value,
        "helpful_votes": 0,
        "helpful_voters": [],
        "created_at": now,
        "updated_at": now,
    }

    try:
        await db.reviews.insert_one(review)
    except DuplicateKeyError:
        raise Conflict("You have already reviewed this problem")

    strip_mongo_id(review)
    review.pop("helpful_voters")
    return review


async def get_problem_reviews(
    db: AsyncIOMotorDatabase,
    problem_id: str,
    page: int = 1,
    limit: int = 10
) -> dict:
    """Approved reviews of a problem with rating stats"""
    query = {"problem_id": problem_id, "status": ReviewStatus.APPROVED.value}

    reviews = await db.reviews.find(query, PRIVATE_FIELDS).sort("created_at", -1) \
        .skip((page - 1) * limit).limit(limit).to_list(length=limit)
    total = await db.reviews.count_documents(query)

    summary = await db.reviews.aggregate([
        {"$match": query},
        {"$group": {"_id": None, "average": {"$avg": "$rating"}, "count": {"$sum": 1}}}
    ]).to_list(length=1)

    buckets = await db.reviews.aggregate([
        {"$match": query},
        {"$group": {"_id": "$rating", "count": {"$sum": 1}}}
    ]).to_list(length=None)

    distribution = {str(r): 0 for r in range(1, 6)}
    for row in buckets:
        distribution[str(row["_id"])] = row["count"]

    average = summary[0]["average"] if summary else 0
    return {
        "reviews": reviews,
        "pagination": _pagination(page, limit, total),
        "stats": {
            "average_rating": round_half_up(average or 0, 1),
            "total_ratings": summary[0]["count"] if summary else 0,
            "rating_distribution": distribution,
        },
    }


async def get_user_reviews(db: AsyncIOMotorDatabase, email: str) -> List[dict]:
    cursor = db.reviews.find({"user_email": email}, PRIVATE_FIELDS).sort("created_at", -1)
    return await cursor.to_list(length=None)


async def list_reviews(
    db: AsyncIOMotorDatabase,
    status: Optional[str] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 10
) -> Tuple[List[dict], dict]:
    query = {}
    if status:
        query["status"] = status
    if search:
        pattern = contains_pattern(search)
        query["$or"] = [{"user_name": pattern}, {"user_email": pattern}, {"comment": pattern}]

    reviews = await db.reviews.find(query, PRIVATE_FIELDS).sort("created_at", -1) \
        .skip((page - 1) * limit).limit(limit).to_list(length=limit)
    total = await db.reviews.count_documents(query)
    return reviews, _pagination(page, limit, total)


async def update_review_status(db: AsyncIOMotorDatabase, review_id: str, status: str):
    result = await db.reviews.update_one(
        {"review_id": review_id},
        {"$set": {"status": status, "updated_at": utcnow()}}
    )
    if result.matched_count == 0:
        raise NotFound("Review not found")
    logger.info("Review %s set to %s", review_id, status)


async def vote_helpful(db: AsyncIOMotorDatabase, review_id: str, email: str):
    """One helpful vote per user per review"""
    result = await db.reviews.update_one(
        {"review_id": review_id, "helpful_voters": {"$ne": email}},
        {"$inc": {"helpful_votes": 1}, "$addToSet": {"helpful_voters": email}}
    )
    if result.matched_count == 0:
        if not await db.reviews.find_one({"review_id": review_id}, {"_id": 1}):
            raise NotFound("Review not found")
        raise Conflict("You already marked this review as helpful")
