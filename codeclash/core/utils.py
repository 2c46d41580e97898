import re
import secrets
from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Tuple


def generate_id(prefix: str) -> str:
    """Generate unique ID with prefix"""
    return f"{prefix}_{secrets.token_hex(8).upper()}"


def utcnow() -> datetime:
    """Naive UTC timestamp, the form Mongo hands back"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def local_day_window(now: datetime = None) -> Tuple[datetime, datetime]:
    """
    Server-local midnight-to-midnight window for "today", as naive UTC bounds
    """
    local_now = now or datetime.now().astimezone()
    start = local_now.replace(hour=0, minute=0, second=0, microsecond=0)
    end = start + timedelta(days=1)
    return (
        start.astimezone(timezone.utc).replace(tzinfo=None),
        end.astimezone(timezone.utc).replace(tzinfo=None),
    )


def strip_mongo_id(doc: dict) -> dict:
    """Drop Mongo's internal _id before a document leaves the service layer"""
    if doc is not None:
        doc.pop("_id", None)
    return doc


def strip_many(docs: list[dict]) -> list[dict]:
    return [strip_mongo_id(doc) for doc in docs]


def contains_pattern(text: str) -> dict:
    """Case-insensitive substring match with regex metacharacters escaped"""
    return {"$regex": re.escape(text), "$options": "i"}


def to_naive_utc(value: datetime) -> datetime:
    """Normalize a client-supplied datetime to the stored naive UTC form"""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def round_half_up(value: float, digits: int = 0):
    """Round with halves going up, the way the web clients display numbers"""
    quantum = Decimal(1).scaleb(-digits)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return int(rounded) if digits == 0 else float(rounded)
