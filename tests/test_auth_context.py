"""
Tests for the workspace context dependency.

Validates workspace isolation and multi-tenancy security.
"""

import uuid

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from plinth.api.auth import AuthContext, get_workspace_context
from plinth.db.connection import get_db
from plinth.models.db import MemberRole


@pytest.fixture
def context_client(db_session):
    """App with a single endpoint echoing the resolved workspace context."""
    app = FastAPI()

    @app.get("/context")
    async def read_context(auth: AuthContext = Depends(get_workspace_context)):
        return {
            "workspace_id": str(auth.workspace_id),
            "user": auth.user.email,
            "role": auth.role.value,
        }

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


class TestGetWorkspaceContext:
    """Integration tests for get_workspace_context."""

    def test_valid_member(self, context_client, auth_headers, sample_workspace):
        """Members get a context with their role."""
        response = context_client.get(
            "/context",
            headers={**auth_headers, "X-Workspace-Id": str(sample_workspace.id)},
        )

        assert response.status_code == 200
        assert response.json() == {
            "workspace_id": str(sample_workspace.id),
            "user": "owner@example.com",
            "role": MemberRole.OWNER.value,
        }

    def test_missing_header(self, context_client, auth_headers):
        """Requests without X-Workspace-Id are rejected."""
        response = context_client.get("/context", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["detail"] == "X-Workspace-Id header is required"

    def test_invalid_uuid(self, context_client, auth_headers):
        """Malformed workspace ids are rejected."""
        response = context_client.get(
            "/context", headers={**auth_headers, "X-Workspace-Id": "not-a-uuid"}
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid workspace ID format"

    def test_unknown_workspace(self, context_client, auth_headers):
        """Unknown workspaces return 404."""
        response = context_client.get(
            "/context", headers={**auth_headers, "X-Workspace-Id": str(uuid.uuid4())}
        )

        assert response.status_code == 404

    def test_non_member(self, context_client, sample_workspace, other_user):
        """Users outside the workspace are forbidden."""
        from plinth.services.auth import create_access_token

        response = context_client.get(
            "/context",
            headers={
                "Authorization": f"Bearer {create_access_token(other_user)}",
                "X-Workspace-Id": str(sample_workspace.id),
            },
        )

        assert response.status_code == 403
        assert response.json()["detail"] == "You are not a member of this workspace"

    def test_inactive_workspace(
        self, context_client, db_session, auth_headers, sample_workspace
    ):
        """Inactive workspaces are forbidden even for members."""
        sample_workspace.is_active = False
        db_session.commit()

        response = context_client.get(
            "/context",
            headers={**auth_headers, "X-Workspace-Id": str(sample_workspace.id)},
        )

        assert response.status_code == 403
        assert response.json()["detail"] == "Workspace is inactive"

    def test_requires_authentication(self, context_client, sample_workspace):
        """Anonymous requests fail before the workspace is checked."""
        response = context_client.get(
            "/context", headers={"X-Workspace-Id": str(sample_workspace.id)}
        )

        assert response.status_code == 401
