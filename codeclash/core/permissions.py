from typing import Optional

from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from codeclash.core.auth_utils import verify_token
from codeclash.core.dependencies import get_db
from codeclash.core.errors import Forbidden, Unauthorized


class UserContext:
    """
    Authenticated caller: identity from the token, role from the users collection
    """
    def __init__(self, payload: dict, profile: Optional[dict] = None):
        profile = profile or {}
        self.user_id = payload["sub"]
        self.email = profile.get("email") or payload.get("email")
        self.name = profile.get("name") or payload.get("name")
        self.image = profile.get("image") or payload.get("picture")
        # Never trust a role claim in the token
        self.role = profile.get("role", "user")

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


async def get_current_user(
    payload: dict = Depends(verify_token),
    db: AsyncIOMotorDatabase = Depends(get_db),
) -> UserContext:
    """
    Dependency: resolves the caller's profile

    Raises:
        401: Invalid token or no email available for the caller
    """
    profile = await db.users.find_one({"user_id": payload["sub"]}, {"_id": 0})
    if not profile and payload.get("email"):
        profile = await db.users.find_one({"email": payload["email"]}, {"_id": 0})

    user = UserContext(payload, profile)
    if not user.email:
        raise Unauthorized("Invalid token: missing email")
    return user


async def require_admin(user: UserContext = Depends(get_current_user)) -> UserContext:
    """
    Dependency: caller must hold the admin role

    Raises:
        403: Not an admin
    """
    if not user.is_admin:
        raise Forbidden("Access denied. Admin privileges required.")
    return user


def ensure_self_or_admin(user: UserContext, email: str):
    """Per-user reads are limited to the owner unless the caller is an admin"""
    if user.email != email and not user.is_admin:
        raise Forbidden("Not authorized to access another user's data")
