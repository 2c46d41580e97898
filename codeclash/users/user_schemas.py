from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class UserCreate(BaseModel):
    """Sign-in payload; email and id come from the token"""
    model_config = ConfigDict(populate_by_name=True)

    user_name: Optional[str] = Field(None, alias="userName", max_length=100)
    user_image: Optional[str] = Field(None, alias="userImage")


class RoleUpdate(BaseModel):
    role: UserRole
