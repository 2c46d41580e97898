from fastapi import Request
from motor.motor_asyncio import AsyncIOMotorDatabase

from codeclash.core.database import MongoStore


def get_store(request: Request) -> MongoStore:
    """Store owned by the application"""
    return request.app.state.store


async def get_db(request: Request) -> AsyncIOMotorDatabase:
    """Database dependency"""
    return get_store(request).db


def get_judge_client(request: Request):
    return request.app.state.judge_client


def get_ai_client(request: Request):
    return request.app.state.ai_client
