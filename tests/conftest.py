import os

os.environ["JWT_SECRET_KEY"] = "test-secret"

import httpx
import pytest
from jose import jwt
from mongomock_motor import AsyncMongoMockClient

from codeclash.ai_agent.openrouter_client import OpenRouterClient
from codeclash.core import config
from codeclash.core.config import MongoDBConfig
from codeclash.core.database import MongoStore
from codeclash.core.permissions import UserContext
from codeclash.core.utils import utcnow
from codeclash.execution.judge_client import Judge0Client
from codeclash.main import create_app

TEST_SECRET = "test-secret"


@pytest.fixture(autouse=True)
def jwt_secret(monkeypatch):
    monkeypatch.setattr(config, "JWT_SECRET_KEY", TEST_SECRET)


@pytest.fixture
async def store():
    store = MongoStore(MongoDBConfig(db_name="codeclash_test"), client=AsyncMongoMockClient())
    await store.connect()
    await store.create_indexes()
    return store


@pytest.fixture
def db(store):
    return store.db


def make_token(user_id: str, email: str, name: str = None, **claims) -> str:
    payload = {"sub": user_id, "email": email, "name": name or email.split("@")[0], **claims}
    return jwt.encode(payload, TEST_SECRET, algorithm="HS256")


def auth_headers(user_id: str, email: str, **claims) -> dict:
    return {"Authorization": f"Bearer {make_token(user_id, email, **claims)}"}


def user_context(user_id: str, email: str, name: str = None) -> UserContext:
    return UserContext({"sub": user_id, "email": email, "name": name or email.split("@")[0]})


async def register_user(db, user_id: str, email: str, role: str = "user", name: str = None):
    await db.users.insert_one({
        "user_id": user_id,
        "email": email,
        "name": name or email.split("@")[0],
        "role": role,
        "created_at": utcnow(),
    })


def _no_remote_call(request: httpx.Request) -> httpx.Response:
    raise AssertionError(f"unexpected remote call to {request.url}")


class RemoteStub:
    """Records requests and answers them with ``handler``"""

    def __init__(self, handler=None):
        self.requests = []
        self.handler = handler or _no_remote_call

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)


@pytest.fixture
def judge_stub():
    return RemoteStub()


@pytest.fixture
def ai_stub():
    return RemoteStub()


@pytest.fixture
def app(store, judge_stub, ai_stub):
    judge = Judge0Client(
        "https://judge.test", api_key="key", host="judge.test",
        transport=httpx.MockTransport(judge_stub)
    )
    ai = OpenRouterClient(
        "https://ai.test/api/v1/chat/completions", api_key="key", model="test-model",
        transport=httpx.MockTransport(ai_stub)
    )
    return create_app(store=store, judge_client=judge, ai_client=ai)


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
