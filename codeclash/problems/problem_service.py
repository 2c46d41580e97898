from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from codeclash.core.errors import NotFound, ValidationError
from codeclash.core.utils import contains_pattern, generate_id, strip_mongo_id, utcnow


async def create_problem(db: AsyncIOMotorDatabase, data: dict, created_by: str) -> dict:
    problem = {
        "problem_id": generate_id("PRB"),
        **data,
        "created_by": created_by,
        "created_at": utcnow(),
    }
    await db.problems.insert_one(problem)
    return strip_mongo_id(problem)


async def list_problems(
    db: AsyncIOMotorDatabase,
    difficulty: Optional[str] = None,
    category: Optional[str] = None,
    title: Optional[str] = None
) -> List[dict]:
    """Newest first; title is a case-insensitive substring match"""
    query = {}
    if difficulty:
        query["difficulty"] = difficulty
    if category:
        query["category"] = category
    if title:
        query["title"] = contains_pattern(title)

    cursor = db.problems.find(query, {"_id": 0}).sort("created_at", -1)
    return await cursor.to_list(length=None)


async def get_problem(db: AsyncIOMotorDatabase, problem_id: str) -> dict:
    problem = await db.problems.find_one({"problem_id": problem_id}, {"_id": 0})
    if not problem:
        raise NotFound("Problem not found")
    return problem


async def get_problems_by_ids(db: AsyncIOMotorDatabase, problem_ids: List[str]) -> List[dict]:
    """Resolve references, keeping the order they were given in"""
    if not problem_ids:
        return []
    docs = await db.problems.find(
        {"problem_id": {"$in": problem_ids}}, {"_id": 0}
    ).to_list(length=None)
    by_id = {doc["problem_id"]: doc for doc in docs}
    return [by_id[pid] for pid in problem_ids if pid in by_id]


async def update_problem(db: AsyncIOMotorDatabase, problem_id: str, changes: dict) -> dict:
    if not changes:
        raise ValidationError("No fields to update")

    changes["updated_at"] = utcnow()
    problem = await db.problems.find_one_and_update(
        {"problem_id": problem_id},
        {"$set": changes},
        projection={"_id": 0},
        return_document=ReturnDocument.AFTER
    )
    if not problem:
        raise NotFound("Problem not found")
    return problem


async def delete_problem(db: AsyncIOMotorDatabase, problem_id: str):
    result = await db.problems.delete_one({"problem_id": problem_id})
    if result.deleted_count == 0:
        raise NotFound("Problem not found")
