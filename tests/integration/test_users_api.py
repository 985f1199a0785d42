"""Integration tests for the /users API."""

import pytest

PETER_ID = "35c62d76-8152-4626-8712-eeb96381bea8"


class TestRegister:
    """Tests for POST /users/register."""

    @pytest.mark.asyncio
    async def test_register_success(self, client):
        response = await client.post(
            "/users/register",
            json={"email": "maria@abv.bg", "password": "secret", "username": "Maria"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["email"] == "maria@abv.bg"
        assert data["username"] == "Maria"
        assert data["accessToken"]
        assert "password" not in data
        assert "hashedPassword" not in data

    @pytest.mark.asyncio
    async def test_registered_user_can_log_in(self, client):
        await client.post(
            "/users/register", json={"email": "maria@abv.bg", "password": "secret"}
        )

        response = await client.post(
            "/users/login", json={"email": "maria@abv.bg", "password": "secret"}
        )

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_register_duplicate(self, client):
        """Identity comparison is case-insensitive."""
        response = await client.post(
            "/users/register", json={"email": "PETER@abv.bg", "password": "x"}
        )

        assert response.status_code == 409
        assert response.json() == {
            "code": 409,
            "message": "A user with the same email already exists",
        }

    @pytest.mark.asyncio
    async def test_register_missing_fields(self, client):
        response = await client.post("/users/register", json={"email": "a@b.c"})

        assert response.status_code == 400
        assert response.json()["message"] == "Missing fields"


class TestLogin:
    """Tests for POST /users/login."""

    @pytest.mark.asyncio
    async def test_login_success(self, client):
        response = await client.post(
            "/users/login", json={"email": "peter@abv.bg", "password": "123456"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["_id"] == PETER_ID
        assert data["accessToken"]
        assert "hashedPassword" not in data

    @pytest.mark.asyncio
    async def test_each_login_opens_new_session(self, client):
        body = {"email": "peter@abv.bg", "password": "123456"}

        first = await client.post("/users/login", json=body)
        second = await client.post("/users/login", json=body)

        assert first.json()["accessToken"] != second.json()["accessToken"]

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, client):
        response = await client.post(
            "/users/login", json={"email": "peter@abv.bg", "password": "wrong"}
        )

        assert response.status_code == 403
        assert response.json()["message"] == "Login or password don't match"

    @pytest.mark.asyncio
    async def test_login_unknown_user(self, client):
        response = await client.post(
            "/users/login", json={"email": "nobody@abv.bg", "password": "123456"}
        )

        assert response.status_code == 403
        assert response.json()["message"] == "Login or password don't match"


class TestSession:
    """Tests for /users/me and /users/logout."""

    @pytest.mark.asyncio
    async def test_me(self, client, peter_headers):
        response = await client.get("/users/me", headers=peter_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["_id"] == PETER_ID
        assert "hashedPassword" not in data

    @pytest.mark.asyncio
    async def test_me_anonymous(self, client):
        response = await client.get("/users/me")

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_logout_ends_session(self, client, peter_headers):
        response = await client.get("/users/logout", headers=peter_headers)

        assert response.status_code == 204
        assert response.content == b""

        after = await client.get("/users/me", headers=peter_headers)
        assert after.status_code == 403
        assert after.json()["message"] == "Invalid access token"

    @pytest.mark.asyncio
    async def test_logout_anonymous(self, client):
        response = await client.get("/users/logout")

        assert response.status_code == 403
        assert response.json()["message"] == "User session does not exist"
