"""
Tests for the module management API.

Error responses roll back the shared test transaction, so requests expected
to fail come last in each test.
"""

import importlib
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from plinth.api.routes import modules as modules_routes
from plinth.db.connection import get_db
from plinth.db.repositories.installed_module import InstalledModuleRepository
from plinth.modules.integration import ModuleIntegration
from plinth.modules.loader import package_name
from plinth.modules.manager import ModuleManager
from plinth.modules.service import ModulesService

SAMPLE_MODULES_ROOT = Path(__file__).resolve().parent.parent / "modules"


@pytest.fixture
def reporting_modules(write_module, modules_service, db_session):
    """Two modules where reporting depends on core-extras, booted with none enabled."""
    write_module(
        "core-extras",
        name="Core Extras",
        backend={"services": ["backend/services/extras.py"]},
        files={"backend/services/extras.py": "class ExtrasService:\n    pass\n"},
    )
    write_module("reporting", name="Reporting", depends=["core", "core-extras"])
    modules_service.initialize(db_session)
    return modules_service


class TestListModules:
    """Test module listing endpoints."""

    def test_requires_authentication(self, api_client):
        """Test that module endpoints reject anonymous requests."""
        response = api_client.get("/modules")

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_list_all(self, api_client, auth_headers, reporting_modules):
        """Test listing every discovered module."""
        response = api_client.get("/modules", headers=auth_headers)

        assert response.status_code == 200
        data = {m["id"]: m for m in response.json()}
        assert set(data) == {"core-extras", "reporting"}
        assert data["reporting"]["name"] == "Reporting"
        assert data["reporting"]["depends"] == ["core", "core-extras"]
        assert data["reporting"]["enabled"] is False
        assert data["reporting"]["installed"] is False
        assert data["core-extras"]["backend"]["services"] == [
            "backend/services/extras.py"
        ]

    def test_list_empty(self, api_client, auth_headers, modules_service, db_session):
        """Test listing when no modules are installed."""
        modules_service.initialize(db_session)

        response = api_client.get("/modules", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == []

    def test_get_one(self, api_client, auth_headers, reporting_modules):
        """Test fetching a single module."""
        response = api_client.get("/modules/reporting", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["id"] == "reporting"
        assert response.json()["version"] == "1.0.0"

    def test_get_unknown(self, api_client, auth_headers, reporting_modules):
        """Test fetching a module that does not exist."""
        response = api_client.get("/modules/ghost", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["detail"] == "Module ghost not found"

    def test_load_order(self, api_client, auth_headers, reporting_modules):
        """Test the dependency-respecting load order."""
        response = api_client.get("/modules/load-order", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"load_order": ["core-extras", "reporting"]}

    def test_load_order_cycle(
        self, api_client, auth_headers, write_module, modules_service, db_session
    ):
        """Test that a dependency cycle is reported as a conflict."""
        write_module("a", depends=["b"])
        write_module("b", depends=["a"])
        manager = modules_service.manager
        for module in manager.scanner.discover():
            manager.registry.register_discovered(module)

        response = api_client.get("/modules/load-order", headers=auth_headers)

        assert response.status_code == 409
        assert "Circular dependency" in response.json()["detail"]


class TestEnableDisable:
    """Test enabling and disabling through the API."""

    def test_enable_then_list_enabled(
        self, api_client, auth_headers, reporting_modules, db_session
    ):
        """Test that enabling persists and shows up in the enabled list."""
        response = api_client.post("/modules/core-extras/enable", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"message": "Module core-extras enabled successfully"}

        response = api_client.post("/modules/reporting/enable", headers=auth_headers)
        assert response.status_code == 200

        enabled = api_client.get("/modules/enabled", headers=auth_headers).json()
        assert [m["id"] for m in enabled] == ["core-extras", "reporting"]
        assert all(m["enabled"] and m["installed"] for m in enabled)
        assert InstalledModuleRepository(db_session).get_enabled_ids() == [
            "core-extras",
            "reporting",
        ]

    def test_disable(self, api_client, auth_headers, reporting_modules, db_session):
        """Test that disabling removes the module from the enabled list."""
        api_client.post("/modules/core-extras/enable", headers=auth_headers)

        response = api_client.post("/modules/core-extras/disable", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {
            "message": "Module core-extras disabled successfully"
        }
        assert api_client.get("/modules/enabled", headers=auth_headers).json() == []
        row = InstalledModuleRepository(db_session).get_by_module_id("core-extras")
        assert row.enabled is False

    def test_disable_unknown(self, api_client, auth_headers, reporting_modules):
        """Test that disabling an unknown module still succeeds."""
        response = api_client.post("/modules/ghost/disable", headers=auth_headers)

        assert response.status_code == 200

    def test_enable_unknown(self, api_client, auth_headers, reporting_modules):
        """Test that enabling an unknown module returns 404."""
        response = api_client.post("/modules/ghost/enable", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["detail"] == "Module ghost not found"

    def test_enable_with_missing_dependency(
        self, api_client, auth_headers, write_module, modules_service, db_session
    ):
        """Test that a missing dependency is reported as a conflict."""
        write_module("reporting", depends=["core-extras"])
        modules_service.initialize(db_session)

        response = api_client.post("/modules/reporting/enable", headers=auth_headers)

        assert response.status_code == 409
        assert "core-extras" in response.json()["detail"]
        assert modules_service.manager.registry.is_enabled("reporting") is False

    def test_service_not_initialized(self, api_client, auth_headers):
        """Test that a missing module system yields 503."""
        from plinth.api.app import app

        del app.state.modules_service

        response = api_client.get("/modules", headers=auth_headers)

        assert response.status_code == 503


class TestSampleModuleEndToEnd:
    """Enable the bundled sales-order module and call its endpoints."""

    @pytest.fixture
    def sales_app(self, db_session):
        """A fresh app so mounted module routes do not leak between tests."""
        service = ModulesService(ModuleManager(roots=[SAMPLE_MODULES_ROOT]))
        service.initialize(db_session)

        app = FastAPI()
        app.include_router(modules_routes.router)
        app.state.modules_service = service
        app.state.module_integration = ModuleIntegration(service.manager)

        def override_get_db():
            try:
                yield db_session
                db_session.commit()
            except Exception:
                db_session.rollback()
                raise

        app.dependency_overrides[get_db] = override_get_db
        return app

    def test_enable_mounts_sales_routes(
        self, sales_app, db_session, auth_headers, sample_workspace
    ):
        """Test that enabling the module exposes its workspace-scoped API."""
        client = TestClient(sales_app)

        response = client.post("/modules/sales-order/enable", headers=auth_headers)
        assert response.status_code == 200

        SalesOrder = importlib.import_module(
            f"{package_name('sales-order')}.backend.models.sales_order"
        ).SalesOrder

        SalesOrder.__table__.create(bind=db_session.connection(), checkfirst=True)

        headers = {**auth_headers, "X-Workspace-Id": str(sample_workspace.id)}
        response = client.post(
            "/sales/orders",
            headers=headers,
            json={"order_number": "SO-001", "customer": "Acme", "amount": "99.50"},
        )
        assert response.status_code == 201
        order = response.json()
        assert order["order_number"] == "SO-001"
        assert order["status"] == "pending"
        assert order["workspace_id"] == str(sample_workspace.id)

        listed = client.get("/sales/orders", headers=headers).json()
        assert [o["order_number"] for o in listed] == ["SO-001"]

        response = client.patch(
            f"/sales/orders/{order['id']}",
            headers=headers,
            json={"status": "completed"},
        )
        assert response.status_code == 200
        assert response.json()["status"] == "completed"

        # Requests without a workspace are rejected
        response = client.get("/sales/orders", headers=auth_headers)
        assert response.status_code == 400
