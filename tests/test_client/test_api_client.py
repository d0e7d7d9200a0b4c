"""Tests for the Plinth HTTP client."""

import json

import httpx
import pytest

from plinth.client.api_client import ClientConfig, PlinthClient


class RecordingTransport:
    """Builds an httpx.MockTransport that records requests."""

    def __init__(self, responses):
        self.responses = responses
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body = self.responses[(request.method, request.url.path)]
        return httpx.Response(status, json=body)

    def transport(self):
        return httpx.MockTransport(self)


def make_client(responses, **config):
    recorder = RecordingTransport(responses)
    client = PlinthClient(
        ClientConfig(server_url="http://testserver", **config),
        transport=recorder.transport(),
    )
    return client, recorder


class TestModules:
    """Test module endpoints."""

    def test_get_enabled_modules(self):
        """Test listing enabled modules with auth headers."""
        client, recorder = make_client(
            {("GET", "/modules/enabled"): (200, [{"id": "sales-order"}])},
            access_token="token-123",
            workspace_id="ws-1",
        )

        modules = client.get_enabled_modules()

        assert modules == [{"id": "sales-order"}]
        request = recorder.requests[0]
        assert request.headers["Authorization"] == "Bearer token-123"
        assert request.headers["X-Workspace-Id"] == "ws-1"

    def test_no_auth_headers_without_config(self):
        """Test that unset credentials send no auth headers."""
        client, recorder = make_client({("GET", "/modules"): (200, [])})

        assert client.get_modules() == []
        assert "Authorization" not in recorder.requests[0].headers
        assert "X-Workspace-Id" not in recorder.requests[0].headers

    def test_get_load_order(self):
        """Test that the load order list is unwrapped."""
        client, _ = make_client(
            {("GET", "/modules/load-order"): (200, {"load_order": ["a", "b"]})}
        )

        assert client.get_load_order() == ["a", "b"]

    def test_enable_and_disable(self):
        """Test the enable and disable commands."""
        client, recorder = make_client(
            {
                ("POST", "/modules/sales-order/enable"): (
                    200,
                    {"message": "Module sales-order enabled successfully"},
                ),
                ("POST", "/modules/sales-order/disable"): (
                    200,
                    {"message": "Module sales-order disabled successfully"},
                ),
            }
        )

        assert "enabled" in client.enable_module("sales-order")["message"]
        assert "disabled" in client.disable_module("sales-order")["message"]
        assert [r.method for r in recorder.requests] == ["POST", "POST"]

    def test_error_status_raises(self):
        """Test that error responses raise HTTPStatusError."""
        client, _ = make_client(
            {("GET", "/modules/ghost"): (404, {"detail": "Module ghost not found"})}
        )

        with pytest.raises(httpx.HTTPStatusError) as exc_info:
            client.get_module("ghost")

        assert exc_info.value.response.status_code == 404


class TestAuth:
    """Test authentication helpers."""

    def test_login_keeps_token(self):
        """Test that login stores the access token for later requests."""
        client, recorder = make_client(
            {
                ("POST", "/auth/login"): (
                    200,
                    {"access_token": "abc", "refresh_token": "def"},
                ),
                ("GET", "/modules"): (200, []),
            }
        )

        data = client.login("owner@example.com", "password123")
        client.get_modules()

        assert data["access_token"] == "abc"
        assert json.loads(recorder.requests[0].content) == {
            "email": "owner@example.com",
            "password": "password123",
        }
        assert recorder.requests[1].headers["Authorization"] == "Bearer abc"
        assert client.config.access_token == "abc"

    def test_set_workspace(self):
        """Test switching the workspace header."""
        client, recorder = make_client({("GET", "/modules"): (200, [])})

        client.set_workspace("ws-2")
        client.get_modules()

        assert recorder.requests[0].headers["X-Workspace-Id"] == "ws-2"

    def test_context_manager_closes(self):
        """Test that the client closes its HTTP session on exit."""
        client, _ = make_client({})

        with client as entered:
            assert entered is client

        assert client._client.is_closed
