"""
User Routes Tests.
"""

import asyncio

import pytest
from fastapi import status

from civicdesk.api.config import settings
from civicdesk.api.main import app
from civicdesk.auth.session import AuthSession


def register_and_login(client):
    client.post(
        "/register",
        data={"username": "citizen01", "email": "citizen@example.com", "number": "5550100", "password": "Complaint2024"},
        follow_redirects=False,
    )
    client.post("/login", data={"username": "citizen01", "password": "Complaint2024"}, follow_redirects=False)


@pytest.mark.api
class TestCurrentUser:
    def test_requires_session(self, client):
        response = client.get("/users/me")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["detail"] == "Not authenticated"

    def test_profile_of_password_user(self, client):
        register_and_login(client)

        response = client.get("/users/me")

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["username"] == "citizen01"
        assert body["email"] == "citizen@example.com"
        assert body["has_password"] is True
        assert body["google_linked"] is False
        assert body["email_verified"] is False
        assert body["last_login"] is not None
        assert "hashed_password" not in body

    def test_session_for_missing_user_is_rejected(self, client):
        ghost = AuthSession(username="ghost", user_id=999)
        asyncio.run(app.state.session_store.put(ghost))
        cookie = {"Cookie": f"{settings.SESSION_COOKIE_NAME}={ghost.session_id}"}

        assert client.get("/users/me", headers=cookie).status_code == status.HTTP_401_UNAUTHORIZED
        # The dashboard trusts the session record
        assert client.get("/dashboard", headers=cookie).json()["username"] == "ghost"
