import httpx
import pytest

from codeclash.ai_agent import ai_agent_service
from codeclash.ai_agent.openrouter_client import NO_RESPONSE, OpenRouterClient
from codeclash.core.errors import LimitReached, NotFound, RateLimited, RequestTimeout, UpstreamError

from conftest import RemoteStub


class FakeModel:
    def __init__(self, answer="42"):
        self.answer = answer
        self.queries = []

    async def complete(self, query):
        self.queries.append(query)
        return self.answer


def test_chat_name_truncation():
    assert ai_agent_service.chat_name_from_query("short") == "short"
    long_query = "x" * 45
    assert ai_agent_service.chat_name_from_query(long_query) == "x" * 30 + "..."


async def test_new_chat_then_append(db):
    model = FakeModel()
    answer, chat_id, is_new = await ai_agent_service.ask(db, model, "a@x.io", "What is a heap?")

    assert answer == "42"
    assert is_new is True

    _, same_id, is_new = await ai_agent_service.ask(db, model, "a@x.io", "And a trie?", chat_id)
    assert same_id == chat_id
    assert is_new is False

    chat = await ai_agent_service.get_chat(db, chat_id, "a@x.io")
    assert chat["message_count"] == 4
    assert [m["sender"] for m in chat["messages"]] == ["user", "ai", "user", "ai"]
    assert chat["name"] == "What is a heap?"


async def test_chat_at_cap_rejects_append(db):
    model = FakeModel()
    _, chat_id, _ = await ai_agent_service.ask(db, model, "a@x.io", "first", max_messages=4)
    await ai_agent_service.ask(db, model, "a@x.io", "second", chat_id, max_messages=4)

    with pytest.raises(LimitReached):
        await ai_agent_service.ask(db, model, "a@x.io", "third", chat_id, max_messages=4)

    chat = await ai_agent_service.get_chat(db, chat_id, "a@x.io")
    assert len(chat["messages"]) == 4
    # the model is not consulted once the cap is hit
    assert model.queries == ["first", "second"]


async def test_chats_are_private(db):
    _, chat_id, _ = await ai_agent_service.ask(db, FakeModel(), "a@x.io", "mine")

    with pytest.raises(NotFound):
        await ai_agent_service.ask(db, FakeModel(), "b@x.io", "hijack", chat_id)
    with pytest.raises(NotFound):
        await ai_agent_service.delete_chat(db, chat_id, "b@x.io")


async def test_history_rename_delete(db):
    model = FakeModel()
    _, chat_id, _ = await ai_agent_service.ask(db, model, "a@x.io", "graphs")
    await ai_agent_service.rename_chat(db, chat_id, "a@x.io", "Graph notes")

    history = await ai_agent_service.get_history(db, "a@x.io")
    assert history[0]["name"] == "Graph notes"
    assert "messages" not in history[0]

    await ai_agent_service.delete_chat(db, chat_id, "a@x.io")
    assert await ai_agent_service.get_history(db, "a@x.io") == []


def make_model(handler) -> OpenRouterClient:
    return OpenRouterClient(
        "https://ai.test/api/v1/chat/completions", api_key="key", model="m",
        transport=httpx.MockTransport(RemoteStub(handler))
    )


async def test_openrouter_answer():
    def handler(request):
        assert request.headers["Authorization"] == "Bearer key"
        return httpx.Response(200, json={"choices": [{"message": {"content": "Use BFS"}}]})

    assert await make_model(handler).complete("shortest path?") == "Use BFS"


async def test_openrouter_empty_answer():
    answer = await make_model(lambda request: httpx.Response(200, json={"choices": []})).complete("?")
    assert answer == NO_RESPONSE


@pytest.mark.parametrize("response, error", [
    (httpx.Response(429), RateLimited),
    (httpx.Response(502), UpstreamError),
])
async def test_openrouter_error_mapping(response, error):
    with pytest.raises(error):
        await make_model(lambda request: response).complete("?")


async def test_openrouter_timeout():
    def handler(request):
        raise httpx.ConnectTimeout("slow", request=request)

    with pytest.raises(RequestTimeout):
        await make_model(handler).complete("?")


async def test_openrouter_non_object_body():
    with pytest.raises(UpstreamError):
        await make_model(lambda request: httpx.Response(200, json=[1])).complete("?")


@pytest.mark.parametrize("body", [{"choices": ["text"]}, {"choices": [{"message": "text"}]}])
async def test_openrouter_malformed_choices(body):
    answer = await make_model(lambda request: httpx.Response(200, json=body)).complete("?")
    assert answer == NO_RESPONSE
