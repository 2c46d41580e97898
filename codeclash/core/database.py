"""
MongoDB store lifecycle
One Motor client per process, created by the app factory and shared by all requests
"""

import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from codeclash.core.config import MongoDBConfig

logger = logging.getLogger(__name__)


class MongoStore:
    """
    Explicit owner of the database handle.

    ``connect()`` must run (the app lifespan does it) before ``db`` is read;
    reading it earlier raises instead of silently creating a second client.
    """

    def __init__(self, config: MongoDBConfig, client: Optional[AsyncIOMotorClient] = None):
        self.config = config
        self._client = client
        self._db: Optional[AsyncIOMotorDatabase] = None

    async def connect(self) -> AsyncIOMotorDatabase:
        if self._db is not None:
            return self._db

        if self._client is None:
            self._client = AsyncIOMotorClient(self.config.get_connection_string())
            await self._client.admin.command("ping")

        self._db = self._client[self.config.db_name]
        logger.info("Connected to MongoDB database %s", self.config.db_name)
        return self._db

    @property
    def db(self) -> AsyncIOMotorDatabase:
        if self._db is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._db

    @property
    def is_connected(self) -> bool:
        return self._db is not None

    def close(self):
        if self._client is not None:
            self._client.close()
        self._client = None
        self._db = None

    async def create_indexes(self):
        """Create MongoDB indexes, including every uniqueness constraint the services rely on"""
        await create_indexes(self.db)


async def create_indexes(db: AsyncIOMotorDatabase):
    # Users
    await db.users.create_index("email", unique=True)
    await db.users.create_index("user_id", unique=True)
    await db.users.create_index("created_at")

    # Problems
    await db.problems.create_index("problem_id", unique=True)
    await db.problems.create_index([("difficulty", ASCENDING), ("category", ASCENDING)])
    await db.problems.create_index([("created_at", DESCENDING)])

    # Contests
    await db.contests.create_index("contest_id", unique=True)
    await db.contests.create_index("start_time")

    # Contest participants
    await db.contest_participants.create_index("participant_id", unique=True)
    await db.contest_participants.create_index(
        [("contest_id", ASCENDING), ("user_id", ASCENDING)], unique=True
    )
    await db.contest_participants.create_index([("joined_at", DESCENDING)])

    # Teams
    await db.teams.create_index("team_id", unique=True)
    await db.teams.create_index("code", unique=True)
    await db.teams.create_index([("contest_id", ASCENDING), ("members.user_id", ASCENDING)])
    await db.teams.create_index("status")

    # Submissions
    await db.submissions.create_index("submission_id", unique=True)
    await db.submissions.create_index([("user_email", ASCENDING), ("submitted_at", DESCENDING)])
    await db.submissions.create_index("submitted_at")

    # Contest submissions
    await db.contest_submissions.create_index("submission_id", unique=True)
    await db.contest_submissions.create_index([("contest_id", ASCENDING), ("user_email", ASCENDING)])

    # Reviews
    await db.reviews.create_index("review_id", unique=True)
    await db.reviews.create_index([("user_email", ASCENDING), ("problem_id", ASCENDING)], unique=True)
    await db.reviews.create_index([("problem_id", ASCENDING), ("status", ASCENDING)])

    # AI chats
    await db.ai_chats.create_index("chat_id", unique=True)
    await db.ai_chats.create_index([("user_email", ASCENDING), ("updated_at", DESCENDING)])

    # Audit logs
    await db.audit_logs.create_index([("timestamp", DESCENDING)])
    await db.audit_logs.create_index([("target_type", ASCENDING), ("target_id", ASCENDING)])

    logger.info("Indexes created")
