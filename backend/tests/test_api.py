"""
GeoPatrol Backend — API Endpoint Tests
========================================

What:  End-to-end tests through the HTTP surface against in-memory SQLite
       and a temporary upload directory.

Test Strategy:
    ✅ Register → login → submit → history happy path
    ✅ Error statuses and messages for every documented failure
    ✅ Protected routes never touch the stores without a valid token
    ✅ Couriers only ever see their own reports, newest first
    ✅ Startup exits when the database is unreachable
    ✅ Error bodies carry the request ID, including unexpected 500s
"""

import os
from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from geopatrol.main import lifespan
from geopatrol.services.token_service import TokenService


async def _register(client, username="alice", password="secret123"):
    return await client.post("/api/register", json={"username": username, "password": password})


async def _login_headers(client, username="alice", password="secret123"):
    await _register(client, username, password)
    response = await client.post("/api/login", json={"username": username, "password": password})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}


async def _submit(client, headers, image, no_resi="JNE123"):
    return await client.post(
        "/api/laporan",
        headers=headers,
        data={"no_resi": no_resi, "latitude": "-6.2", "longitude": "106.8"},
        files={"foto": ("paket.jpg", image, "image/jpeg")},
    )


class TestRootAndHealth:

    @pytest.mark.asyncio
    async def test_root(self, test_client):
        response = await test_client.get("/")
        assert response.status_code == 200
        assert response.text == "API GEO PATROL RUNNING"

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"

    @pytest.mark.asyncio
    async def test_health_database_down(self, test_client):
        with patch("geopatrol.routes.health.check_connection", AsyncMock(side_effect=OSError("refused"))):
            response = await test_client.get("/health")
        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"

    @pytest.mark.asyncio
    async def test_init_db_is_idempotent(self, test_client):
        for _ in range(2):
            response = await test_client.get("/init-db")
            assert response.status_code == 200
            assert response.text == "Database initialized successfully"

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, test_client):
        response = await test_client.get("/", headers={"X-Request-ID": "abc12345"})
        assert response.headers["X-Request-ID"] == "abc12345"

    @pytest.mark.asyncio
    async def test_error_body_carries_request_id(self, test_client):
        response = await test_client.get("/api/laporan", headers={"X-Request-ID": "req00041"})
        assert response.json()["request_id"] == "req00041"

    @pytest.mark.asyncio
    async def test_unexpected_error_carries_request_id(self, app):
        @app.get("/explode")
        async def explode():
            raise RuntimeError("boom")

        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/explode", headers={"X-Request-ID": "req00042"})

        assert response.status_code == 500
        assert response.json() == {
            "error": "Server error",
            "code": "internal_server_error",
            "request_id": "req00042",
        }


class TestRegisterAndLogin:

    @pytest.mark.asyncio
    async def test_register(self, test_client):
        response = await _register(test_client)
        assert response.status_code == 201
        assert response.json() == {"message": "Registrasi Berhasil!"}

    @pytest.mark.asyncio
    async def test_register_duplicate(self, test_client, count_couriers):
        await _register(test_client)

        response = await _register(test_client, password="different")

        assert response.status_code == 400
        assert response.json()["error"] == "Username sudah digunakan!"
        assert await count_couriers("alice") == 1
        # The first account still logs in with its original password
        login = await test_client.post("/api/login", json={"username": "alice", "password": "secret123"})
        assert login.status_code == 200

    @pytest.mark.asyncio
    async def test_register_username_too_long(self, test_client, count_couriers):
        response = await _register(test_client, username="k" * 51)

        assert response.status_code == 400
        assert response.json()["code"] == "invalid_input"
        assert await count_couriers("k" * 51) == 0

    @pytest.mark.asyncio
    async def test_register_missing_fields(self, test_client):
        response = await test_client.post("/api/register", json={"username": "alice"})
        assert response.status_code == 400
        assert response.json()["error"] == "Username dan Password wajib diisi!"

    @pytest.mark.asyncio
    async def test_register_no_body(self, test_client):
        response = await test_client.post("/api/register")
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_register_malformed_json(self, test_client):
        response = await test_client.post(
            "/api/register",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_input"

    @pytest.mark.asyncio
    async def test_login_success(self, test_client, test_settings):
        await _register(test_client)

        response = await test_client.post("/api/login", json={"username": "alice", "password": "secret123"})

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Login sukses"
        payload = TokenService(secret=test_settings.jwt_secret).verify(body["token"])
        assert payload.username == "alice"
        assert payload.exp - payload.iat == 3600

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, test_client):
        await _register(test_client)

        response = await test_client.post("/api/login", json={"username": "alice", "password": "nope"})

        assert response.status_code == 401
        assert response.json()["error"] == "Password salah!"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_login_unknown_user(self, test_client):
        response = await test_client.post("/api/login", json={"username": "ghost", "password": "secret123"})

        assert response.status_code == 401
        assert response.json()["error"] == "Username tidak ditemukan!"

    @pytest.mark.asyncio
    async def test_login_missing_fields(self, test_client):
        response = await test_client.post("/api/login", json={"password": "secret123"})
        assert response.status_code == 400


class TestReports:

    @pytest.mark.asyncio
    async def test_submit_and_list(self, test_client, sample_image_bytes, temp_storage):
        headers = await _login_headers(test_client)

        response = await _submit(test_client, headers, sample_image_bytes)

        assert response.status_code == 200
        assert response.json() == {"message": "Laporan berhasil disimpan"}

        history = await test_client.get("/api/laporan", headers=headers)
        assert history.status_code == 200
        reports = history.json()
        assert len(reports) == 1
        report = reports[0]
        assert report["no_resi"] == "JNE123"
        assert report["latitude"] == "-6.2"
        assert report["longitude"] == "106.8"
        assert report["status"] == "delivered"
        assert report["foto_path"].endswith(".jpg")
        assert report["foto_url"] == f"/uploads/{report['foto_path']}"
        assert os.listdir(temp_storage) == [report["foto_path"]]

    @pytest.mark.asyncio
    async def test_uploaded_photo_is_served(self, test_client, sample_image_bytes):
        headers = await _login_headers(test_client)
        await _submit(test_client, headers, sample_image_bytes)
        report = (await test_client.get("/api/laporan", headers=headers)).json()[0]

        response = await test_client.get(report["foto_url"])

        assert response.status_code == 200
        assert response.content == sample_image_bytes

    @pytest.mark.asyncio
    async def test_history_empty(self, test_client):
        headers = await _login_headers(test_client)
        response = await test_client.get("/api/laporan", headers=headers)
        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_history_newest_first(self, test_client, sample_image_bytes):
        headers = await _login_headers(test_client)
        for no_resi in ("FIRST", "SECOND", "THIRD"):
            await _submit(test_client, headers, sample_image_bytes, no_resi=no_resi)

        reports = (await test_client.get("/api/laporan", headers=headers)).json()

        assert [r["no_resi"] for r in reports] == ["THIRD", "SECOND", "FIRST"]

    @pytest.mark.asyncio
    async def test_couriers_only_see_their_own(self, test_client, sample_image_bytes):
        alice = await _login_headers(test_client, "alice")
        bob = await _login_headers(test_client, "bob")
        await _submit(test_client, alice, sample_image_bytes, no_resi="ALICE-1")

        bob_reports = (await test_client.get("/api/laporan", headers=bob)).json()
        alice_reports = (await test_client.get("/api/laporan", headers=alice)).json()

        assert bob_reports == []
        assert [r["no_resi"] for r in alice_reports] == ["ALICE-1"]

    @pytest.mark.asyncio
    async def test_submit_without_photo(self, test_client, count_reports, temp_storage):
        headers = await _login_headers(test_client)

        response = await test_client.post(
            "/api/laporan",
            headers=headers,
            data={"no_resi": "JNE123", "latitude": "-6.2", "longitude": "106.8"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Foto wajib diupload!"
        assert await count_reports() == 0
        assert os.listdir(temp_storage) == []

    @pytest.mark.asyncio
    async def test_submit_missing_field(self, test_client, sample_image_bytes, count_reports, temp_storage):
        headers = await _login_headers(test_client)

        response = await test_client.post(
            "/api/laporan",
            headers=headers,
            data={"no_resi": "JNE123", "latitude": "-6.2"},
            files={"foto": ("paket.jpg", sample_image_bytes, "image/jpeg")},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Data tidak lengkap!"
        assert await count_reports() == 0
        assert os.listdir(temp_storage) == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field,value", [("no_resi", "R" * 101), ("latitude", "1" * 51), ("longitude", "1" * 51)])
    async def test_submit_field_longer_than_column(
        self, test_client, sample_image_bytes, count_reports, temp_storage, field, value
    ):
        headers = await _login_headers(test_client)
        data = {"no_resi": "JNE123", "latitude": "-6.2", "longitude": "106.8", field: value}

        response = await test_client.post(
            "/api/laporan",
            headers=headers,
            data=data,
            files={"foto": ("paket.jpg", sample_image_bytes, "image/jpeg")},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "invalid_input"
        assert await count_reports() == 0
        assert os.listdir(temp_storage) == []

    @pytest.mark.asyncio
    async def test_submit_photo_too_large(self, test_client, test_settings, count_reports):
        headers = await _login_headers(test_client)
        oversized = b"x" * (test_settings.max_upload_size + 1)

        response = await _submit(test_client, headers, oversized)

        assert response.status_code == 400
        assert await count_reports() == 0


class TestTokenGate:

    @pytest.mark.asyncio
    async def test_submit_without_token(self, test_client, sample_image_bytes, count_reports, temp_storage):
        response = await _submit(test_client, {}, sample_image_bytes)

        assert response.status_code == 403
        assert response.json()["error"] == "Token tidak ditemukan"
        assert await count_reports() == 0
        assert os.listdir(temp_storage) == []

    @pytest.mark.asyncio
    async def test_list_without_token(self, test_client):
        response = await test_client.get("/api/laporan")
        assert response.status_code == 403
        assert response.json()["code"] == "missing_token"

    @pytest.mark.asyncio
    async def test_garbage_token(self, test_client, sample_image_bytes, count_reports):
        response = await _submit(test_client, {"Authorization": "Bearer garbage"}, sample_image_bytes)

        assert response.status_code == 403
        assert response.json()["error"] == "Token tidak valid"
        assert await count_reports() == 0

    @pytest.mark.asyncio
    async def test_non_bearer_scheme(self, test_client):
        response = await test_client.get("/api/laporan", headers={"Authorization": "Basic YWxpY2U6c2VjcmV0"})
        assert response.status_code == 403
        assert response.json()["error"] == "Token tidak valid"

    @pytest.mark.asyncio
    async def test_token_signed_with_other_secret(self, test_client):
        forged = TokenService(secret="attacker").issue_for(1, "alice")
        response = await test_client.get("/api/laporan", headers={"Authorization": f"Bearer {forged}"})
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_expired_token(self, test_client, test_settings):
        await _register(test_client)
        expired = TokenService(secret=test_settings.jwt_secret).create_access_token(
            {"id": 1, "username": "alice"}, expires_delta=timedelta(seconds=-1)
        )
        response = await test_client.get("/api/laporan", headers={"Authorization": f"Bearer {expired}"})
        assert response.status_code == 403


class TestLifespan:

    @pytest.mark.asyncio
    async def test_startup_exits_when_database_unreachable(self, app):
        with patch("geopatrol.main.check_connection", AsyncMock(side_effect=OSError("refused"))):
            with pytest.raises(SystemExit):
                async with lifespan(app):
                    pass

    @pytest.mark.asyncio
    async def test_startup_and_shutdown(self, app):
        with patch("geopatrol.main.dispose_engine", AsyncMock()) as dispose:
            async with lifespan(app):
                pass
        dispose.assert_awaited_once_with(app.state.engine)
