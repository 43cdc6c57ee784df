"""
tests.test_auth_api

End-to-end flows through the HTTP surface: login, refresh, logout, validation
and the rate gates in front of them.
"""

from __future__ import annotations

import pytest

from marketplace_auth.auth.models import Role

PASSWORD = "correct horse battery"


async def _login(client, username: str = "alice", *, device: str | None = None, **headers):
    body = {"username": username, "password": PASSWORD}
    if device is not None:
        body["deviceInfo"] = device
    return await client.post("/auth/login", json=body, headers=headers)


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.mark.asyncio
async def test_login_refresh_logout_flow(client, make_user) -> None:
    await make_user("alice", roles={Role.buyer, Role.seller})

    resp = await _login(client, device="phone")
    assert resp.status_code == 200
    tokens = resp.json()
    assert tokens["tokenType"] == "Bearer"
    assert tokens["expiresIn"] == 3600
    assert tokens["username"] == "alice"
    assert tokens["roles"] == ["BUYER", "SELLER"]
    assert tokens["role"] == "BUYER"

    refreshed = await client.post("/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
    assert refreshed.status_code == 200
    assert refreshed.json()["refreshToken"] == tokens["refreshToken"]
    assert refreshed.json()["accessToken"]

    out = await client.post("/auth/logout", json={"refreshToken": tokens["refreshToken"]})
    assert out.status_code == 200
    assert out.json() == {"message": "Logged out successfully"}

    again = await client.post("/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
    assert again.status_code == 401
    assert again.json()["error"] == "Token refresh failed"


@pytest.mark.asyncio
async def test_logout_all_devices_kills_every_session(client, make_user) -> None:
    await make_user("alice")
    first = (await _login(client, device="phone")).json()
    second = (await _login(client, device="laptop")).json()

    resp = await client.post("/auth/logout-all", headers=_bearer(first["accessToken"]))
    assert resp.status_code == 200
    assert resp.json() == {"message": "Logged out from all devices successfully"}

    for session in (first, second):
        r = await client.post("/auth/refresh", json={"refreshToken": session["refreshToken"]})
        assert r.status_code == 401


@pytest.mark.asyncio
async def test_access_token_is_rejected_after_expiry(client, make_user, clock) -> None:
    await make_user("alice")
    tokens = (await _login(client)).json()

    assert (await client.get("/auth/me", headers=_bearer(tokens["accessToken"]))).status_code == 200

    clock.advance(seconds=3601)
    resp = await client.get("/auth/me", headers=_bearer(tokens["accessToken"]))
    assert resp.status_code == 401
    assert resp.headers["www-authenticate"] == "Bearer"

    # The refresh token outlives the access token.
    refreshed = await client.post("/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
    assert refreshed.status_code == 200
    me = await client.get("/auth/me", headers=_bearer(refreshed.json()["accessToken"]))
    assert me.status_code == 200


@pytest.mark.asyncio
async def test_me_returns_current_user(client, make_user) -> None:
    alice = await make_user("alice", roles={Role.seller})
    tokens = (await _login(client)).json()

    resp = await client.get("/auth/me", headers=_bearer(tokens["accessToken"]))
    assert resp.status_code == 200
    assert resp.json() == {
        "id": str(alice.id),
        "username": "alice",
        "email": "alice@campus.example.edu",
        "role": "SELLER",
        "roles": ["SELLER"],
        "isActive": True,
    }


@pytest.mark.asyncio
async def test_login_failure_body(client, make_user) -> None:
    await make_user("alice")

    resp = await client.post("/auth/login", json={"username": "alice", "password": "nope"})
    assert resp.status_code == 401
    assert resp.json() == {"error": "Authentication failed", "message": "Invalid username or password"}


@pytest.mark.asyncio
async def test_login_rejects_inactive_account(client, make_user) -> None:
    await make_user("alice", active=False)

    resp = await _login(client)
    assert resp.status_code == 401
    assert resp.json()["error"] == "Authentication failed"


@pytest.mark.asyncio
async def test_refresh_rejects_garbage_and_access_tokens(client, make_user) -> None:
    await make_user("alice")
    tokens = (await _login(client)).json()

    for candidate in ("garbage", "a.b.c", tokens["accessToken"]):
        resp = await client.post("/auth/refresh", json={"refreshToken": candidate})
        assert resp.status_code == 401
        assert resp.json()["error"] == "Invalid token"


@pytest.mark.asyncio
async def test_logout_is_always_ok(client) -> None:
    resp = await client.post("/auth/logout", json={"refreshToken": "never-issued"})
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_logout_all_requires_bearer(client) -> None:
    resp = await client.post("/auth/logout-all")
    assert resp.status_code == 401
    assert resp.json()["error"] == "Unauthorized"


@pytest.mark.asyncio
async def test_malformed_bearer_is_unauthorized_not_server_error(client) -> None:
    for header in ("Bearer not.a.jwt", "Bearer ....", "Bearer x"):
        resp = await client.get("/auth/me", headers={"Authorization": header})
        assert resp.status_code == 401


@pytest.mark.asyncio
async def test_validate(client, make_user) -> None:
    await make_user("alice", roles={Role.buyer, Role.seller})
    tokens = (await _login(client)).json()

    ok = await client.get("/auth/validate", headers=_bearer(tokens["accessToken"]))
    assert ok.status_code == 200
    assert ok.json() == {"valid": True, "username": "alice", "roles": ["BUYER", "SELLER"]}

    missing = await client.get("/auth/validate")
    assert missing.status_code == 401
    assert missing.json() == {"valid": False, "roles": [], "message": "No valid token found"}

    bad = await client.get("/auth/validate", headers=_bearer("tampered"))
    assert bad.status_code == 401
    assert bad.json()["valid"] is False


@pytest.mark.asyncio
async def test_register_then_login(client) -> None:
    body = {"username": "newbie", "email": "newbie@campus.example.edu", "password": "long enough pw"}

    resp = await client.post("/auth/register", json=body)
    assert resp.status_code == 200
    assert resp.json()["roles"] == ["BUYER", "SELLER"]

    dup = await client.post("/auth/register", json=body)
    assert dup.status_code == 400
    assert dup.json() == {"error": "Registration failed", "message": "Username already exists"}

    login = await client.post(
        "/auth/login", json={"username": "newbie", "password": "long enough pw"}
    )
    assert login.status_code == 200


@pytest.mark.asyncio
async def test_register_validates_input(client) -> None:
    resp = await client.post(
        "/auth/register",
        json={"username": "x", "email": "not-an-email", "password": "short"},
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_auth_profile_limits_sixth_attempt(open_client, settings, make_user) -> None:
    await make_user("alice")
    limited = settings.model_copy(update={"auth_rate_limit_max_requests": 5})

    async with open_client(limited) as client:
        for _ in range(5):
            resp = await client.post("/auth/login", json={"username": "alice", "password": "x"})
            assert resp.status_code == 401

        resp = await _login(client)
        assert resp.status_code == 429
        assert resp.json()["error"] == "Rate limit exceeded"
        assert resp.json()["retryAfter"] == 60
        assert resp.headers["retry-after"] == "60"

        # Another client is counted separately.
        other = await _login(client, **{"X-Forwarded-For": "203.0.113.9, 10.0.0.1"})
        assert other.status_code == 200


@pytest.mark.asyncio
async def test_auth_profile_window_resets(open_client, settings, make_user, monotonic) -> None:
    await make_user("alice")
    limited = settings.model_copy(update={"auth_rate_limit_max_requests": 5})

    async with open_client(limited) as client:
        for _ in range(5):
            await _login(client)
        assert (await _login(client)).status_code == 429

        monotonic.advance(61)
        assert (await _login(client)).status_code == 200


@pytest.mark.asyncio
async def test_general_profile_limits_hundred_and_first_request(client) -> None:
    for _ in range(100):
        resp = await client.get("/auth/validate")
        assert resp.status_code == 401

    resp = await client.get("/auth/validate")
    assert resp.status_code == 429
    assert resp.json()["retryAfter"] == 60


@pytest.mark.asyncio
async def test_request_id_is_echoed(client) -> None:
    resp = await client.get("/healthz", headers={"x-request-id": "req-123"})
    assert resp.headers["x-request-id"] == "req-123"

    generated = await client.get("/healthz")
    assert generated.headers["x-request-id"]
