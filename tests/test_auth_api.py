"""Firebase ID-token verification and the /api/auth routes."""

import threading
from unittest.mock import AsyncMock, patch

import pytest

pytestmark = pytest.mark.asyncio

CLAIMS = {
    "uid": "uid-9",
    "name": "Meera",
    "email": "meera@example.com",
    "picture": "https://lh3.googleusercontent.com/a/meera",
}


class TestTokenVerification:
    async def test_valid_token(self, async_client):
        with patch("rollcall.api.deps.verify_id_token", return_value=CLAIMS) as verify:
            res = await async_client.get("/api/auth/me", headers={"Authorization": "Bearer good"})
        assert res.status_code == 200
        verify.assert_called_once_with("good")
        assert res.json() == {
            "uid": "uid-9",
            "name": "Meera",
            "email": "meera@example.com",
            "picture": "https://lh3.googleusercontent.com/a/meera?sz=150",
        }

    async def test_rejected_token(self, async_client):
        with patch("rollcall.api.deps.verify_id_token", side_effect=ValueError("bad")):
            res = await async_client.get("/api/auth/me", headers={"Authorization": "Bearer bad"})
        assert res.status_code == 401

    async def test_firebase_unavailable(self, async_client):
        with patch("rollcall.api.deps.verify_id_token", side_effect=RuntimeError("no app")):
            res = await async_client.get("/api/auth/me", headers={"Authorization": "Bearer any"})
        assert res.status_code == 503

    async def test_no_token(self, async_client):
        res = await async_client.get("/api/auth/me")
        assert res.status_code == 401
        assert res.json()["detail"] == "You must sign-in first"

    async def test_placeholder_picture(self, async_client):
        claims = {"uid": "uid-9", "name": "No Pic"}
        with patch("rollcall.api.deps.verify_id_token", return_value=claims):
            res = await async_client.get("/api/auth/me", headers={"Authorization": "Bearer good"})
        assert res.json()["picture"].endswith("profile_placeholder.svg")

    async def test_verification_runs_off_the_event_loop(self, async_client):
        loop_thread = threading.get_ident()
        seen = []

        def verify(token):
            seen.append(threading.get_ident())
            return CLAIMS

        with patch("rollcall.api.deps.verify_id_token", side_effect=verify):
            res = await async_client.get("/api/auth/me", headers={"Authorization": "Bearer good"})
        assert res.status_code == 200
        assert seen and seen[0] != loop_thread


class TestDeviceToken:
    async def test_register(self, async_client, signed_in):
        with patch("rollcall.api.auth.register_device_token", AsyncMock(return_value=["t1", "t2"])) as register:
            res = await async_client.post("/api/auth/fcm-token", json={"token": "t2"})
        assert res.status_code == 200
        assert res.json() == {"status": "ok", "count": 2}
        register.assert_awaited_once_with(signed_in.uid, "t2")


class TestWebSocketUser:
    async def test_anonymous(self):
        from rollcall.api.deps import get_ws_user

        assert await get_ws_user(None) is None

    async def test_rejected_token_is_anonymous(self):
        from rollcall.api.deps import get_ws_user

        with patch("rollcall.api.deps.verify_id_token", side_effect=ValueError("bad")):
            assert await get_ws_user("bad") is None

    async def test_valid_token(self):
        from rollcall.api.deps import get_ws_user

        with patch("rollcall.api.deps.verify_id_token", return_value=CLAIMS):
            user = await get_ws_user("good")
        assert user.uid == "uid-9"
        assert user.name == "Meera"
