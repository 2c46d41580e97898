# codeclash/core/auth_utils.py
from fastapi import Header
from jose import jwt, JWTError

from codeclash.core import config
from codeclash.core.errors import ServerError, Unauthorized


def _decode_jwt_token(token: str) -> dict:
    if not config.JWT_SECRET_KEY:
        raise ServerError("Token verification is not configured")
    try:
        return jwt.decode(token, config.JWT_SECRET_KEY, algorithms=[config.JWT_ALGORITHM])
    except JWTError:
        raise Unauthorized("Invalid or Expired Token")


def verify_token(authorization: str = Header(None)) -> dict:
    if not authorization or not authorization.startswith("Bearer "):
        raise Unauthorized("Unauthorized")

    token = authorization.split(" ", 1)[1].strip()
    payload = _decode_jwt_token(token)
    if not payload.get("sub"):
        raise Unauthorized("Invalid token: missing subject")
    return payload
