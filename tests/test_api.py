"""HTTP API 테스트"""
from datetime import datetime

from models.team import Team
from models.user import User


async def _signup(client, school_number=20241814, password="P@ssw0rd!"):
    response = await client.post("/api/auth/signup", json={
        "schoolNumber": school_number,
        "department": "글로벌미디어학부",
        "password": password,
    })
    assert response.status_code == 201
    return response.json()["accessToken"]


# ============ 인증 ============

async def test_signup_and_me(client):
    token = await _signup(client)

    response = await client.get("/api/user", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    me = response.json()
    assert me["school_number"] == 20241814
    assert me["capital"] == 50000
    assert me["total_assets"] == 50000
    assert " " in me["name"]
    assert "password" not in me


async def test_duplicate_signup(client):
    await _signup(client)
    response = await client.post("/api/auth/signup", json={
        "schoolNumber": 20241814, "department": "x", "password": "another1",
    })
    assert response.status_code == 409


async def test_signup_validation(client):
    response = await client.post("/api/auth/signup", json={
        "schoolNumber": 1, "department": "x", "password": "short",
    })
    assert response.status_code == 422


async def test_check_user(client):
    response = await client.post("/api/auth/check-user", json={"schoolNumber": 1234})
    assert response.json() == {"exists": False}

    await _signup(client, school_number=1234)
    response = await client.post("/api/auth/check-user", json={"schoolNumber": 1234})
    assert response.json() == {"exists": True}


async def test_signin_rotates_token(client):
    old_token = await _signup(client)

    response = await client.post("/api/auth/signin", json={
        "schoolNumber": 20241814, "password": "P@ssw0rd!",
    })
    assert response.status_code == 200
    body = response.json()
    assert body["accessToken"] != old_token
    assert body["userId"] > 0
    assert body["nickname"]

    old = await client.get("/api/user", headers={"Authorization": f"Bearer {old_token}"})
    assert old.status_code == 401
    new = await client.get("/api/user", headers={"Authorization": f"Bearer {body['accessToken']}"})
    assert new.status_code == 200


async def test_signin_wrong_password(client):
    await _signup(client)
    response = await client.post("/api/auth/signin", json={
        "schoolNumber": 20241814, "password": "wrong-password",
    })
    assert response.status_code == 401


async def test_missing_or_malformed_authorization(client):
    assert (await client.get("/api/user")).status_code == 401
    assert (await client.get("/api/user", headers={"Authorization": "Token abc"})).status_code == 401
    assert (await client.get("/api/user", headers={"Authorization": "Bearer "})).status_code == 401
    assert (await client.get("/api/user", headers={"Authorization": "Bearer unknown"})).status_code == 401


# ============ 투자 ============

async def test_buy_and_sell_over_http(client, auth_headers, team):
    response = await client.post("/api/invest", json={"amount": 10000, "teamId": team.id}, headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "success"

    portfolio = (await client.get("/api/user/portfolio", headers=auth_headers)).json()
    assert portfolio["total_invested"] == 10000
    assert portfolio["items"][0]["shares"] == 10.0

    position = (await client.get(f"/api/user/portfolio/{team.id}", headers=auth_headers)).json()
    assert position["amount"] == 10000

    response = await client.post("/api/invest/sell", json={"amount": 10000, "teamId": team.id}, headers=auth_headers)
    assert response.status_code == 200

    me = (await client.get("/api/user", headers=auth_headers)).json()
    assert me["capital"] == 50000

    history = (await client.get("/api/user/history", headers=auth_headers)).json()
    assert [h["type"] for h in history] == ["sell", "buy"]


async def test_ledger_errors_render_kind(client, auth_headers, team):
    response = await client.post("/api/invest", json={"amount": 60000, "teamId": team.id}, headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["status"] == "error"
    assert response.json()["kind"] == "InsufficientFunds"

    response = await client.post("/api/invest/sell", json={"amount": 100, "teamId": team.id}, headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["kind"] == "NoHolding"

    response = await client.post("/api/invest", json={"amount": 100, "teamId": 9999}, headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["kind"] == "InvalidTarget"


async def test_invest_request_validation(client, auth_headers, team):
    response = await client.post("/api/invest", json={"amount": 0, "teamId": team.id}, headers=auth_headers)
    assert response.status_code == 422

    response = await client.post("/api/invest", json={"amount": 100, "teamId": team.id})
    assert response.status_code == 401


async def test_leaderboard(client, make_user):
    await make_user(school_number=1, capital=100)
    await make_user(school_number=2, capital=200)

    response = await client.get("/api/leaderboard", params={"page": 1, "pageSize": 10})

    assert response.status_code == 200
    assert len(response.json()) == 2

    response = await client.get("/api/leaderboard", params={"page": 2, "pageSize": 1})
    assert len(response.json()) == 1

    response = await client.get("/api/leaderboard", params={"pageSize": 101})
    assert response.status_code == 422


# ============ 팀/가격 ============

async def test_teams(client, make_team):
    a = await make_team(name="A")
    await make_team(name="B", p=1200)

    teams = (await client.get("/api/teams")).json()
    assert [t["team_name"] for t in teams] == ["A", "B"]
    assert [t["current_price"] for t in teams] == [1000, 1200]

    assert (await client.get(f"/api/teams/{a.id}")).json()["team_name"] == "A"

    missing = await client.get("/api/teams/9999")
    assert missing.status_code == 404
    assert missing.json()["kind"] == "InvalidTarget"


async def test_prices_after_recalculation(client, admin_headers, team):
    response = await client.post("/api/admin/prices/recalculate", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["updated_teams"] == 1

    history = (await client.get(f"/api/teams/{team.id}/prices")).json()
    assert [h["price"] for h in history] == [700]

    latest = (await client.get("/api/prices")).json()
    assert latest[0]["team_id"] == team.id
    assert latest[0]["price"] == 700

    status = (await client.get("/api/admin/scheduler", headers=admin_headers)).json()
    assert status["cycles"] == 1
    assert status["running"] is False


# ============ 관리자 ============

async def test_admin_requires_key(client):
    assert (await client.get("/api/admin/scheduler")).status_code == 403
    assert (await client.get("/api/admin/scheduler", headers={"X-Admin-Key": "nope"})).status_code == 403


async def test_pricing_config_roundtrip(client, admin_headers):
    items = (await client.get("/api/admin/pricing-config", headers=admin_headers)).json()
    assert {i["key"]: i["value"] for i in items}["C1"] == 30000
    assert not any(i["stored"] for i in items)

    response = await client.put("/api/admin/pricing-config", json={"values": {"GAMMA": 0.6}}, headers=admin_headers)
    assert response.status_code == 200
    gamma = next(i for i in response.json() if i["key"] == "GAMMA")
    assert gamma["value"] == 0.6
    assert gamma["stored"] is True

    response = await client.put("/api/admin/pricing-config", json={"values": {"BOGUS": 1}}, headers=admin_headers)
    assert response.status_code == 400


async def test_admin_delete_user(client, admin_headers, session_factory, auth_headers, user, make_team):
    team = await make_team(money=15000)
    await client.post("/api/invest", json={"amount": 5000, "teamId": team.id}, headers=auth_headers)

    response = await client.delete(f"/api/admin/users/{user.id}", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["refundedAmount"] == 5000
    assert "refunded_amount" not in response.json()
    async with session_factory() as s:
        assert (await s.get(Team, team.id)).money == 15000
        assert await s.get(User, user.id) is None

    missing = await client.delete(f"/api/admin/users/{user.id}", headers=admin_headers)
    assert missing.status_code == 404


async def test_admin_batch_delete(client, admin_headers, make_user):
    first = await make_user(school_number=1)
    second = await make_user(school_number=2)

    response = await client.post(
        "/api/admin/users/delete",
        json={"userIds": [first.id, second.id, 9999]},
        headers=admin_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["deletedCount"] == 2
    assert body["totalRefund"] == 0
    assert body["details"] == [
        {"userId": first.id, "refunded": 0},
        {"userId": second.id, "refunded": 0},
    ]


async def test_admin_refresh_ranks(client, admin_headers, make_user):
    await make_user(school_number=1, capital=100)
    top = await make_user(school_number=2, capital=900)

    response = await client.post("/api/admin/ranks/refresh", headers=admin_headers)
    assert response.json() == {"ranked_users": 2}

    board = (await client.get("/api/leaderboard")).json()
    assert board[0]["school_number"] == top.school_number
    assert board[0]["rank"] == 1


async def test_admin_tables(client, admin_headers, user, team):
    tables = (await client.get("/api/admin/tables", headers=admin_headers)).json()
    names = {t["table_name"]: t for t in tables}
    assert names["users"]["row_count"] == 1
    assert "password" not in names["users"]["columns"]

    row = (await client.get(f"/api/admin/tables/users/{user.id}", headers=admin_headers)).json()
    assert row["school_number"] == user.school_number
    assert "access_token" not in row

    response = await client.put(
        f"/api/admin/tables/competition_teams/{team.id}",
        json={"values": {"status": "ended", "pitch_url": "https://example.com/pitch"}},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["status"] == "ended"

    response = await client.put(
        f"/api/admin/tables/users/{user.id}",
        json={"values": {"password": "x"}},
        headers=admin_headers,
    )
    assert response.status_code == 400

    assert (await client.get("/api/admin/tables/nope/1", headers=admin_headers)).status_code == 404
    assert (await client.get("/api/admin/tables/users/9999", headers=admin_headers)).status_code == 404


async def test_admin_table_write_coerces_datetime(client, admin_headers, team):
    response = await client.put(
        f"/api/admin/tables/competition_teams/{team.id}",
        json={"values": {"created_at": datetime(2025, 3, 1, 9, 0).isoformat()}},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["created_at"].startswith("2025-03-01T09:00")


# ============ 코멘트 ============

async def test_team_comments_over_http(client, auth_headers, user, team):
    response = await client.post(f"/api/teams/{team.id}/comments", json={"body": "Great work!"}, headers=auth_headers)
    assert response.status_code == 201
    assert response.json()["author_id"] == user.id

    listed = (await client.get(f"/api/teams/{team.id}/comments", params={"mode": "preview"})).json()
    assert listed["count"] == 1
    assert listed["items"][0]["body"] == "Great work!"
    assert listed["hasMore"] is False

    unauthenticated = await client.post(f"/api/teams/{team.id}/comments", json={"body": "hi"})
    assert unauthenticated.status_code == 401

    empty = await client.post(f"/api/teams/{team.id}/comments", json={"body": ""}, headers=auth_headers)
    assert empty.status_code == 422

    missing = await client.get("/api/teams/9999/comments")
    assert missing.status_code == 404
    assert missing.json()["kind"] == "InvalidTarget"

    missing = await client.post("/api/teams/9999/comments", json={"body": "hi"}, headers=auth_headers)
    assert missing.status_code == 404


async def test_recent_comments_over_http(client, auth_headers, user, team):
    await client.post(f"/api/teams/{team.id}/comments", json={"body": "team"}, headers=auth_headers)
    response = await client.post("/api/comments", json={"body": "global"}, headers=auth_headers)
    assert response.status_code == 201
    assert response.json()["author_name"] == user.name

    recent = (await client.get("/api/comments", params={"limit": 1})).json()
    assert [c["body"] for c in recent["comments"]] == ["global"]
    assert recent["hasMore"] is True
    assert recent["totalCount"] == 2

    rest = (await client.get("/api/comments", params={"cursor": recent["nextCursor"]})).json()
    assert [c["body"] for c in rest["comments"]] == ["team"]
    assert rest["comments"][0]["author_department"] == user.department
