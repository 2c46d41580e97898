from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from codeclash.ai_agent import ai_agent_service as service
from codeclash.ai_agent.ai_agent_schemas import AskRequest, ChatRename
from codeclash.core.dependencies import get_ai_client, get_db
from codeclash.core.errors import Forbidden
from codeclash.core.permissions import UserContext, get_current_user

router = APIRouter(prefix="/ai-agent", tags=["AI Agent"])

@router.post("")
@router.post("/", include_in_schema=False)
async def ask_ai(
    data: AskRequest,
    db: AsyncIOMotorDatabase = Depends(get_db),
    ai_client=Depends(get_ai_client),
    user: UserContext = Depends(get_current_user)
):
    """
    Ask the assistant; continues ``chatId`` when given, else opens a new chat
    """
    if data.user_email and data.user_email != user.email:
        raise Forbidden("userEmail does not match the signed-in user")

    answer, chat_id, is_new = await service.ask(db, ai_client, user.email, data.query, data.chat_id)
    return {"answer": answer, "chatId": chat_id, "isNewChat": is_new}

@router.get("/history")
async def chat_history(
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user)
):
    return await service.get_history(db, user.email)

@router.get("/chats/{chat_id}")
async def get_chat(
    chat_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user)
):
    return await service.get_chat(db, chat_id, user.email)

@router.put("/chats/{chat_id}")
async def rename_chat(
    chat_id: str,
    data: ChatRename,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user)
):
    await service.rename_chat(db, chat_id, user.email, data.name)
    return {"success": True, "message": "Chat renamed successfully"}

@router.delete("/chats/{chat_id}")
async def delete_chat(
    chat_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user)
):
    await service.delete_chat(db, chat_id, user.email)
    return {"success": True, "message": "Chat deleted successfully"}
