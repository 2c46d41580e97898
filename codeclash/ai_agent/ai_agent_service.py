"""
AI chat sessions.

A chat holds an ordered list of user/ai message pairs and is capped at
``AI_MAX_MESSAGES_PER_CHAT`` messages. The cap is checked before the model
is called and enforced again by the append itself, which only matches while
the stored count is below the cap.
"""

import logging
from typing import List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase

from codeclash.core import config
from codeclash.core.errors import LimitReached, NotFound
from codeclash.core.utils import generate_id, utcnow

logger = logging.getLogger(__name__)

CHAT_NAME_LENGTH = 30
DEFAULT_CHAT_NAME = "New Chat"
HISTORY_LIMIT = 20
LIMIT_MESSAGE = "Chat message limit reached. Please start a new chat."


def chat_name_from_query(query: str) -> str:
    name = query[:CHAT_NAME_LENGTH]
    return name + "..." if len(query) > CHAT_NAME_LENGTH else name


def _message_pair(query: str, answer: str) -> list:
    now = utcnow()
    return [
        {"sender": "user", "text": query, "timestamp": now},
        {"sender": "ai", "text": answer, "timestamp": now},
    ]


async def get_chat(db: AsyncIOMotorDatabase, chat_id: str, email: str) -> dict:
    chat = await db.ai_chats.find_one({"chat_id": chat_id, "user_email": email}, {"_id": 0})
    if not chat:
        raise NotFound("Chat not found")
    return chat


async def ask(
    db: AsyncIOMotorDatabase,
    ai_client,
    email: str,
    query: str,
    chat_id: Optional[str] = None,
    max_messages: Optional[int] = None
) -> Tuple[str, str, bool]:
    """
    Forward ``query`` to the model and record the exchange.
    Returns (answer, chat_id, is_new_chat).
    """
    cap = max_messages or config.AI_MAX_MESSAGES_PER_CHAT

    existing = None
    if chat_id:
        existing = await get_chat(db, chat_id, email)
        if existing.get("message_count", 0) >= cap:
            raise LimitReached(LIMIT_MESSAGE)

    answer = await ai_client.complete(query)

    if existing is None:
        now = utcnow()
        chat = {
            "chat_id": generate_id("CHAT"),
            "user_email": email,
            "name": chat_name_from_query(query),
            "messages": _message_pair(query, answer),
            "message_count": 2,
            "created_at": now,
            "updated_at": now,
        }
        await db.ai_chats.insert_one(chat)
        logger.info("AI chat %s created for %s", chat["chat_id"], email)
        return answer, chat["chat_id"], True

    update = {
        "$push": {"messages": {"$each": _message_pair(query, answer)}},
        "$inc": {"message_count": 2},
        "$set": {"updated_at": utcnow()},
    }
    if existing.get("name") == DEFAULT_CHAT_NAME:
        update["$set"]["name"] = chat_name_from_query(query)

    result = await db.ai_chats.update_one(
        {"chat_id": chat_id, "user_email": email, "message_count": {"$lt": cap}},
        update
    )
    if result.modified_count == 0:
        # Deleted meanwhile, or a concurrent request filled the last slot
        await get_chat(db, chat_id, email)
        raise LimitReached(LIMIT_MESSAGE)

    return answer, chat_id, False


async def get_history(db: AsyncIOMotorDatabase, email: str) -> List[dict]:
    """Most recently updated chats, metadata only"""
    cursor = db.ai_chats.find(
        {"user_email": email},
        {"_id": 0, "chat_id": 1, "name": 1, "message_count": 1, "created_at": 1, "updated_at": 1}
    ).sort("updated_at", -1).limit(HISTORY_LIMIT)
    return await cursor.to_list(length=HISTORY_LIMIT)


async def rename_chat(db: AsyncIOMotorDatabase, chat_id: str, email: str, name: str):
    result = await db.ai_chats.update_one(
        {"chat_id": chat_id, "user_email": email},
        {"$set": {"name": name.strip(), "updated_at": utcnow()}}
    )
    if result.matched_count == 0:
        raise NotFound("Chat not found or access denied")


async def delete_chat(db: AsyncIOMotorDatabase, chat_id: str, email: str):
    result = await db.ai_chats.delete_one({"chat_id": chat_id, "user_email": email})
    if result.deleted_count == 0:
        raise NotFound("Chat not found or access denied")
