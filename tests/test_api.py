import base64

import httpx
import pytest

from conftest import auth_headers, register_user

ADMIN = ("admin-1", "admin@x.io")
ALICE = ("alice-1", "alice@x.io")
BOB = ("bob-1", "bob@x.io")


@pytest.fixture
async def users(db):
    await register_user(db, *ADMIN, role="admin")
    await register_user(db, *ALICE)
    await register_user(db, *BOB)


async def test_service_endpoints(client):
    assert (await client.get("/health")).json() == {"status": "ok"}
    assert (await client.get("/version")).json()["status"] == "stable"
    assert "CodeClash" in (await client.get("/")).text


async def test_missing_token_is_401(client):
    response = await client.post("/teams", json={"name": "A", "contestId": "CST_1"})

    assert response.status_code == 401
    assert "message" in response.json()


async def test_invalid_body_is_400(client, users):
    response = await client.post("/teams", json={"contestId": "CST_1"}, headers=auth_headers(*ALICE))

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid request"


async def test_sign_in_upsert(client):
    headers = auth_headers("new-1", "new@x.io")

    first = await client.post("/users", json={"userName": "Newbie"}, headers=headers)
    assert first.status_code == 201
    assert first.json()["user"]["role"] == "user"

    second = await client.post("/users", json={"userName": "Renamed"}, headers=headers)
    assert second.status_code == 200
    assert second.json()["user"]["name"] == "Newbie"


async def test_role_claim_in_token_is_ignored(client, users):
    response = await client.get("/users", headers=auth_headers(*ALICE, role="admin"))

    assert response.status_code == 403


async def test_role_change_is_audited(client, users):
    response = await client.patch(
        f"/users/{BOB[0]}/role", json={"role": "admin"}, headers=auth_headers(*ADMIN)
    )
    assert response.status_code == 200
    assert response.json()["user"]["role"] == "admin"

    logs = (await client.get("/admin/audit-logs", headers=auth_headers(*ADMIN))).json()
    assert logs[0]["action"] == "update_role"
    assert logs[0]["target_id"] == BOB[0]

    missing = await client.patch("/users/nobody/role", json={"role": "user"}, headers=auth_headers(*ADMIN))
    assert missing.status_code == 404


async def test_per_user_reads_are_owner_only(client, users):
    assert (await client.get(f"/users/{BOB[1]}", headers=auth_headers(*ALICE))).status_code == 403
    assert (await client.get(f"/users/{ALICE[1]}", headers=auth_headers(*ALICE))).status_code == 200
    assert (await client.get(f"/users/{ALICE[1]}", headers=auth_headers(*ADMIN))).status_code == 200


async def test_team_flow(client, users):
    created = await client.post(
        "/teams", json={"name": "Rockets", "contestId": "CST_1"}, headers=auth_headers(*ALICE)
    )
    assert created.status_code == 201
    code = created.json()["teamCode"]

    joined = await client.post("/teams/join", json={"code": code}, headers=auth_headers(*BOB))
    assert joined.status_code == 200
    again = await client.post("/teams/join", json={"code": code}, headers=auth_headers(*BOB))
    assert again.status_code == 409

    early = await client.patch(f"/teams/{code}/start", headers=auth_headers(*ALICE))
    assert early.status_code == 400

    for who in (ALICE, BOB):
        response = await client.patch(f"/teams/{code}/ready", json={"ready": True}, headers=auth_headers(*who))
        assert response.status_code == 200
    assert response.json()["status"] == "ready"

    forbidden = await client.patch(f"/teams/{code}/start", headers=auth_headers(*BOB))
    assert forbidden.status_code == 403

    started = await client.patch(f"/teams/{code}/start", headers=auth_headers(*ALICE))
    assert started.status_code == 200
    assert started.json()["team"]["status"] == "started"

    mine = await client.get(f"/teams/user/{BOB[0]}", params={"contestId": "CST_1"}, headers=auth_headers(*BOB))
    assert mine.json()["code"] == code
    other = await client.get(f"/teams/user/{BOB[0]}", params={"contestId": "CST_1"}, headers=auth_headers(*ALICE))
    assert other.status_code == 403

    stats = await client.get("/teams/stats/summary", headers=auth_headers(*ADMIN))
    assert stats.json()["by_status"]["started"] == 1
    assert (await client.get("/teams/stats/summary", headers=auth_headers(*ALICE))).status_code == 403


async def test_problem_and_contest_catalog(client, users):
    admin = auth_headers(*ADMIN)
    problem = {
        "title": "Two Sum",
        "description": "Find two numbers",
        "category": "arrays",
        "difficulty": "easy",
        "languages": ["python"],
        "testCases": [{"input": "1 2", "output": "3", "isSample": True}],
        "points": 10,
    }
    forbidden = await client.post("/problems", json=problem, headers=auth_headers(*ALICE))
    assert forbidden.status_code == 403

    created = await client.post("/problems", json=problem, headers=admin)
    assert created.status_code == 201
    problem_id = created.json()["problemId"]

    found = await client.get("/problems", params={"title": "two s"})
    assert [p["problem_id"] for p in found.json()] == [problem_id]
    assert (await client.get("/problems", params={"title": ".*"})).json() == []

    contest = await client.post("/contests", json={
        "title": "Weekly 1",
        "startTime": "2030-01-01T10:00:00Z",
        "endTime": "2030-01-01T12:00:00Z",
        "problems": [problem_id],
        "type": "team",
    }, headers=admin)
    assert contest.status_code == 201
    contest_id = contest.json()["contestId"]

    fetched = (await client.get(f"/contests/{contest_id}")).json()
    assert fetched["paused"] is False
    assert fetched["problem_details"][0]["title"] == "Two Sum"

    toggled = await client.patch(f"/contests/{contest_id}/toggle", headers=admin)
    assert toggled.json()["paused"] is True

    bad_window = await client.post("/contests", json={
        "title": "Broken",
        "startTime": "2030-01-01T12:00:00Z",
        "endTime": "2030-01-01T10:00:00Z",
    }, headers=admin)
    assert bad_window.status_code == 400

    joined = await client.post("/contest-participants", json={"contestId": contest_id}, headers=auth_headers(*ALICE))
    assert joined.status_code == 201
    duplicate = await client.post("/contest-participants", json={"contestId": contest_id}, headers=auth_headers(*ALICE))
    assert duplicate.status_code == 409

    counts = await client.get("/contest-participants/counts", headers=admin)
    assert counts.json() == {contest_id: 1}


async def test_submissions_and_leaderboard(client, users):
    payload = {
        "problemId": "PRB_1",
        "problemTitle": "Two Sum",
        "problemDifficulty": "easy",
        "problemCategory": "arrays",
        "language": "python",
        "status": "Accepted",
        "point": 10,
    }
    saved = await client.post("/submissions", json=payload, headers=auth_headers(*ALICE))
    assert saved.status_code == 201
    assert saved.json()["submission"]["status"] == "Success"

    bad = await client.post("/submissions", json={**payload, "status": "Pending"}, headers=auth_headers(*ALICE))
    assert bad.status_code == 400

    board = (await client.get("/users/leaderboard/top")).json()
    assert board[0]["user_email"] == ALICE[1]

    profile = await client.get(f"/users/profile/{ALICE[1]}", headers=auth_headers(*ALICE))
    assert profile.json()["total_points"] == 10
    assert (await client.get(f"/users/profile/{BOB[1]}", headers=auth_headers(*BOB))).status_code == 404


async def test_run_code_rejects_unknown_language(client, judge_stub):
    response = await client.post("/run-code", json={"code": "puts 1", "language": "ruby"})

    assert response.status_code == 400
    assert judge_stub.requests == []


async def test_run_code(client, judge_stub):
    encoded = base64.b64encode(b"3\n").decode()
    judge_stub.handler = lambda request: httpx.Response(
        200, json={"stdout": encoded, "status": {"description": "Accepted"}}
    )

    response = await client.post("/run-code", json={"code": "print(3)", "language": "python"})

    assert response.json() == {"stdout": "3\n", "stderr": "", "compile_output": "", "status": "Accepted"}


async def test_ai_agent_limit_response(client, ai_stub, users, db):
    ai_stub.handler = lambda request: httpx.Response(
        200, json={"choices": [{"message": {"content": "hello"}}]}
    )
    headers = auth_headers(*ALICE)

    first = await client.post("/ai-agent", json={"query": "hi"}, headers=headers)
    body = first.json()
    assert body["isNewChat"] is True

    await db.ai_chats.update_one({"chat_id": body["chatId"]}, {"$set": {"message_count": 50}})
    limited = await client.post("/ai-agent", json={"query": "more", "chatId": body["chatId"]}, headers=headers)

    assert limited.status_code == 400
    assert limited.json()["limitReached"] is True
    assert len(ai_stub.requests) == 1

    spoofed = await client.post("/ai-agent", json={"query": "x", "userEmail": BOB[1]}, headers=headers)
    assert spoofed.status_code == 403


async def test_ai_agent_rate_limit(client, ai_stub, users):
    ai_stub.handler = lambda request: httpx.Response(429)

    response = await client.post("/ai-agent", json={"query": "hi"}, headers=auth_headers(*ALICE))

    assert response.status_code == 429


async def test_admin_growth_series(client, users):
    response = await client.get("/admin/growth", params={"days": 7}, headers=auth_headers(*ADMIN))

    series = response.json()
    assert len(series) == 7
    assert series[-1]["new_users"] == 3


async def test_admin_dashboard(client, users):
    payload = {
        "problemTitle": "Two Sum",
        "problemDifficulty": "easy",
        "problemCategory": "arrays",
        "language": "python",
        "point": 10,
    }
    await client.post("/submissions", json={**payload, "status": "Success"}, headers=auth_headers(*ALICE))
    await client.post("/submissions", json={**payload, "status": "Failure"}, headers=auth_headers(*BOB))

    response = await client.get("/admin/dashboard", headers=auth_headers(*ADMIN))

    body = response.json()
    assert body["total_users"] == 3
    assert body["total_submissions"] == 2
    assert body["submissions_today"] == 2
    assert body["acceptance_rate"] == 50.0
    assert body["active_users"] == 2
    assert body["top_language"] == "python"
    assert (await client.get("/admin/dashboard", headers=auth_headers(*BOB))).status_code == 403


async def test_contest_updates(client, users):
    admin = auth_headers(*ADMIN)
    contest = {
        "title": "Monthly",
        "startTime": "2030-02-01T10:00:00",
        "endTime": "2030-02-01T14:00:00",
    }
    contest_id = (await client.post("/contests", json=contest, headers=admin)).json()["contestId"]

    patched = await client.patch(f"/contests/{contest_id}", json={"title": "Monthly #2"}, headers=admin)
    assert patched.json()["title"] == "Monthly #2"

    inverted = await client.patch(
        f"/contests/{contest_id}", json={"endTime": "2030-02-01T09:00:00"}, headers=admin
    )
    assert inverted.status_code == 400

    replaced = await client.put(f"/contests/{contest_id}", json={**contest, "title": "Renamed"}, headers=admin)
    assert replaced.json()["title"] == "Renamed"
    assert replaced.json()["type"] == "individual"

    deleted = await client.delete(f"/contests/{contest_id}", headers=admin)
    assert deleted.status_code == 200
    assert (await client.get(f"/contests/{contest_id}")).status_code == 404
