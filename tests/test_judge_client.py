import base64
import json

import httpx
import pytest

from codeclash.core.errors import InvalidArgument, RequestTimeout, UpstreamError
from codeclash.execution.judge_client import MOCK_RESULT, Judge0Client

from conftest import RemoteStub


def b64(text: str) -> str:
    return base64.b64encode(text.encode()).decode()


def make_client(stub, **kwargs) -> Judge0Client:
    return Judge0Client(
        "https://judge.test", api_key="secret", host="judge.test",
        transport=httpx.MockTransport(stub), **kwargs
    )


async def test_unknown_language_never_reaches_judge():
    stub = RemoteStub()

    with pytest.raises(InvalidArgument):
        await make_client(stub).run("puts 1", "ruby")

    assert stub.requests == []


async def test_round_trip_encodes_and_decodes():
    def handler(request):
        body = json.loads(request.content)
        assert request.url.path == "/submissions"
        assert request.url.params["wait"] == "true"
        assert request.url.params["base64_encoded"] == "true"
        assert request.headers["X-RapidAPI-Key"] == "secret"
        assert body["language_id"] == 71
        assert base64.b64decode(body["source_code"]).decode() == "print(input())"
        assert base64.b64decode(body["stdin"]).decode() == "hi"
        return httpx.Response(200, json={
            "stdout": b64("hi\n"),
            "stderr": None,
            "compile_output": None,
            "status": {"id": 3, "description": "Accepted"},
        })

    stub = RemoteStub(handler)
    result = await make_client(stub).run("print(input())", "Python", "hi")

    assert result == {"stdout": "hi\n", "stderr": "", "compile_output": "", "status": "Accepted"}
    assert len(stub.requests) == 1


async def test_empty_stdin_sent_as_empty_string():
    def handler(request):
        assert json.loads(request.content)["stdin"] == ""
        return httpx.Response(200, json={"status": {"description": "Accepted"}})

    result = await make_client(RemoteStub(handler)).run("int main(){}", "cpp")
    assert result["stdout"] == ""


async def test_timeout_maps_to_request_timeout():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(RequestTimeout) as exc:
        await make_client(RemoteStub(handler)).run("x", "python")
    assert exc.value.status_code == 408


async def test_upstream_failure():
    stub = RemoteStub(lambda request: httpx.Response(503, json={"error": "down"}))

    with pytest.raises(UpstreamError):
        await make_client(stub).run("x", "java")


async def test_mock_fallback_when_enabled():
    stub = RemoteStub(lambda request: httpx.Response(500))

    result = await make_client(stub, mock_fallback=True).run("x", "javascript")

    assert result == MOCK_RESULT


def undecodable(request):
    return httpx.Response(200, json={"stdout": "@@@", "status": {"description": "Accepted"}})


async def test_undecodable_output_is_upstream_error():
    with pytest.raises(UpstreamError):
        await make_client(RemoteStub(undecodable)).run("x", "python")


async def test_undecodable_output_uses_mock_fallback():
    result = await make_client(RemoteStub(undecodable), mock_fallback=True).run("x", "python")

    assert result == MOCK_RESULT


async def test_non_object_body_is_upstream_error():
    stub = RemoteStub(lambda request: httpx.Response(200, json=["Accepted"]))

    with pytest.raises(UpstreamError):
        await make_client(stub).run("x", "python")
