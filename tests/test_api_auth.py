"""
Tests for the authentication API.

Error responses roll back the shared test transaction, so requests expected
to fail come last in each test.
"""

from plinth.db.repositories.workspace import WorkspaceRepository
from plinth.models.db import User
from plinth.services.auth import create_refresh_token, decode_token


class TestRegister:
    """Test local registration."""

    def test_register_creates_user_and_workspace(self, api_client, db_session):
        """Test that registering returns tokens and creates a default workspace."""
        response = api_client.post(
            "/auth/register",
            json={
                "email": "New.User@Example.com",
                "password": "s3cret-pass",
                "first_name": "New",
                "last_name": "User",
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["user"]["email"] == "new.user@example.com"
        assert data["user"]["first_name"] == "New"
        assert decode_token(data["access_token"])["email"] == "new.user@example.com"

        user = db_session.query(User).filter_by(email="new.user@example.com").one()
        workspaces = WorkspaceRepository(db_session).get_by_user(user.id)
        assert len(workspaces) == 1
        assert workspaces[0].description.startswith("Your default workspace")

    def test_register_short_password(self, api_client):
        """Test that short passwords are rejected by validation."""
        response = api_client.post(
            "/auth/register", json={"email": "a@example.com", "password": "short"}
        )

        assert response.status_code == 422

    def test_register_duplicate_email(self, api_client, sample_user):
        """Test that an existing email is a conflict."""
        response = api_client.post(
            "/auth/register",
            json={"email": "OWNER@example.com", "password": "password123"},
        )

        assert response.status_code == 409
        assert response.json()["detail"] == "User with this email already exists"


class TestLogin:
    """Test login and token refresh."""

    def test_login(self, api_client, sample_user):
        """Test logging in with valid credentials."""
        response = api_client.post(
            "/auth/login",
            json={"email": "owner@example.com", "password": "password123"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["user"]["id"] == str(sample_user.id)
        assert decode_token(data["refresh_token"], "refresh")["sub"] == str(
            sample_user.id
        )

    def test_login_wrong_password(self, api_client, sample_user):
        """Test that a wrong password is rejected."""
        response = api_client.post(
            "/auth/login",
            json={"email": "owner@example.com", "password": "wrong-password"},
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"

    def test_login_unknown_email(self, api_client):
        """Test that an unknown email is rejected the same way."""
        response = api_client.post(
            "/auth/login",
            json={"email": "nobody@example.com", "password": "password123"},
        )

        assert response.status_code == 401

    def test_refresh(self, api_client, sample_user):
        """Test exchanging a refresh token for a new pair."""
        response = api_client.post(
            "/auth/refresh", json={"refresh_token": create_refresh_token(sample_user)}
        )

        assert response.status_code == 200
        assert response.json()["user"]["email"] == "owner@example.com"

    def test_refresh_with_access_token(self, api_client, sample_user, auth_headers):
        """Test that an access token cannot be used as a refresh token."""
        access_token = auth_headers["Authorization"].split(" ", 1)[1]

        response = api_client.post("/auth/refresh", json={"refresh_token": access_token})

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid refresh token"


class TestMe:
    """Test the current user endpoint."""

    def test_me(self, api_client, sample_user, auth_headers):
        """Test fetching the authenticated user's profile."""
        response = api_client.get("/auth/me", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["email"] == "owner@example.com"
        assert response.json()["first_name"] == "Olive"

    def test_me_without_token(self, api_client):
        """Test that anonymous requests are rejected."""
        response = api_client.get("/auth/me")

        assert response.status_code == 401
        assert response.json()["detail"] == "Not authenticated"

    def test_me_with_malformed_header(self, api_client):
        """Test that non-bearer schemes are rejected."""
        response = api_client.get("/auth/me", headers={"Authorization": "Basic abc"})

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid authorization header"

    def test_me_with_refresh_token(self, api_client, sample_user):
        """Test that refresh tokens are not accepted as access tokens."""
        token = create_refresh_token(sample_user)

        response = api_client.get(
            "/auth/me", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401


class TestOAuthCallback:
    """Test sign-in with an external identity."""

    def test_creates_new_user(self, api_client, db_session):
        """Test that an unknown identity creates a passwordless account."""
        response = api_client.post(
            "/auth/oauth/callback",
            json={
                "email": "gina@example.com",
                "provider": "google",
                "provider_id": "g-123",
                "first_name": "Gina",
                "avatar_url": "https://example.com/gina.png",
            },
        )

        assert response.status_code == 200
        assert response.json()["user"]["avatar_url"] == "https://example.com/gina.png"
        user = db_session.query(User).filter_by(email="gina@example.com").one()
        assert user.password_hash is None
        assert [a.provider for a in user.oauth_accounts] == ["google"]

    def test_links_existing_user(self, api_client, sample_user, db_session):
        """Test that an existing email gets the identity linked."""
        profile = {
            "email": "owner@example.com",
            "provider": "github",
            "provider_id": "gh-1",
            "avatar_url": "https://example.com/olive.png",
        }

        first = api_client.post("/auth/oauth/callback", json=profile)
        second = api_client.post("/auth/oauth/callback", json=profile)

        assert first.status_code == 200
        assert second.status_code == 200
        assert first.json()["user"]["id"] == str(sample_user.id)
        db_session.refresh(sample_user)
        assert len(sample_user.oauth_accounts) == 1
        assert sample_user.avatar_url == "https://example.com/olive.png"
