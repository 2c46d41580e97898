import logging
from typing import List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from codeclash.core.errors import Conflict, NotFound
from codeclash.core.permissions import UserContext
from codeclash.core.utils import utcnow

logger = logging.getLogger(__name__)


async def upsert_user(
    db: AsyncIOMotorDatabase,
    user: UserContext,
    name: Optional[str] = None,
    image: Optional[str] = None
) -> Tuple[dict, bool]:
    """
    Create the caller's profile on first sign-in.

    A single upsert keyed on email, so two concurrent sign-ins cannot
    create two profiles. Returns (profile, created).
    """
    try:
        result = await db.users.update_one(
            {"email": user.email},
            {"$setOnInsert": {
                "user_id": user.user_id,
                "email": user.email,
                "name": name or user.name or user.email,
                "image": image or user.image,
                "role": "user",
                "created_at": utcnow(),
            }},
            upsert=True
        )
    except DuplicateKeyError:
        # user_id already registered under a different email
        raise Conflict("Account already registered with another email")

    created = result.upserted_id is not None
    if created:
        logger.info("User %s registered", user.email)

    profile = await db.users.find_one({"email": user.email}, {"_id": 0})
    return profile, created


async def get_user_by_email(db: AsyncIOMotorDatabase, email: str) -> dict:
    profile = await db.users.find_one({"email": email}, {"_id": 0})
    if not profile:
        raise NotFound("User not found")
    return profile


async def list_users(
    db: AsyncIOMotorDatabase,
    role: Optional[str] = None,
    skip: int = 0,
    limit: int = 100
) -> List[dict]:
    query = {"role": role} if role else {}
    cursor = db.users.find(query, {"_id": 0}).sort("created_at", -1).skip(skip).limit(limit)
    return await cursor.to_list(length=limit)


async def update_user_role(db: AsyncIOMotorDatabase, user_id: str, role: str) -> dict:
    profile = await db.users.find_one_and_update(
        {"user_id": user_id},
        {"$set": {"role": role, "updated_at": utcnow()}},
        projection={"_id": 0},
        return_document=ReturnDocument.AFTER
    )
    if not profile:
        raise NotFound("User not found")

    logger.info("Role of %s changed to %s", user_id, role)
    return profile
