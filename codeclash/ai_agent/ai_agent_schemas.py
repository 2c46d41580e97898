from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AskRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    query: str = Field(..., min_length=1)
    chat_id: Optional[str] = Field(None, alias="chatId")
    # Accepted for older clients; must match the token when sent
    user_email: Optional[str] = Field(None, alias="userEmail")


class ChatRename(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
