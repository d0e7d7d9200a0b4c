"""
Pytest configuration and fixtures for Plinth tests.

This module provides shared fixtures for the database, the API client, and
module trees built on disk under ``tmp_path``.
"""

import json
import os
import uuid
from pathlib import Path
from typing import Callable, Generator, Optional

# Cheap hashes keep auth tests fast; must be set before settings load
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from plinth.models.db import Base, MemberRole, User, Workspace, WorkspaceMember
from plinth.modules.manager import ModuleManager
from plinth.modules.service import ModulesService

REPO_ROOT = Path(__file__).resolve().parent.parent
SAMPLE_MODULES_ROOT = REPO_ROOT / "modules"


@pytest.fixture(scope="session")
def test_engine():
    """Create a test database engine using SQLite in-memory."""
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={
            "check_same_thread": False
        },  # Allow cross-thread access for TestClient
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(test_engine) -> Generator[Session, None, None]:
    """
    Create a new database session for a test.

    Each test gets a fresh session with a transaction that is rolled back
    after the test completes, ensuring test isolation.
    """
    connection = test_engine.connect()
    transaction = connection.begin()
    session = sessionmaker(bind=connection)()

    yield session

    session.close()
    transaction.rollback()
    connection.close()


# ===== Module trees =====


@pytest.fixture
def modules_root(tmp_path: Path) -> Path:
    """Empty module root directory."""
    root = tmp_path / "modules"
    root.mkdir()
    return root


@pytest.fixture
def write_module(modules_root: Path) -> Callable[..., Path]:
    """
    Factory writing a module directory.

    Usage:
        write_module("reporting", depends=["core-extras"], files={...})

    ``manifest`` replaces the generated manifest entirely; pass a string to
    write it verbatim (e.g. invalid JSON). ``files`` maps relative paths to
    file contents.
    """

    def _write(
        module_id: str,
        name: Optional[str] = None,
        version: str = "1.0.0",
        depends: Optional[list[str]] = None,
        installable: bool = True,
        backend: Optional[dict] = None,
        frontend: Optional[dict] = None,
        files: Optional[dict[str, str]] = None,
        manifest: Optional[dict | str] = None,
        root: Optional[Path] = None,
    ) -> Path:
        module_dir = (root or modules_root) / module_id
        module_dir.mkdir(parents=True, exist_ok=True)

        if manifest is None:
            manifest = {
                "name": name or module_id.replace("-", " ").title(),
                "version": version,
                "depends": depends or [],
                "installable": installable,
            }
            if backend is not None:
                manifest["backend"] = backend
            if frontend is not None:
                manifest["frontend"] = frontend

        content = manifest if isinstance(manifest, str) else json.dumps(manifest)
        (module_dir / "manifest.json").write_text(content)

        for relative_path, source in (files or {}).items():
            file_path = module_dir / relative_path
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(source)

        return module_dir

    return _write


@pytest.fixture
def module_manager(modules_root: Path) -> ModuleManager:
    """Manager over the temporary module root with a private registry."""
    return ModuleManager(roots=[modules_root])


@pytest.fixture
def modules_service(module_manager: ModuleManager) -> ModulesService:
    """Module service without development auto-enable."""
    return ModulesService(module_manager, auto_enable=False)


# ===== Platform data =====


@pytest.fixture
def sample_user(db_session: Session) -> User:
    """Create a sample user with password 'password123'."""
    from plinth.services.auth import hash_password

    user = User(
        id=uuid.uuid4(),
        email="owner@example.com",
        password_hash=hash_password("password123"),
        first_name="Olive",
        last_name="Owner",
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def other_user(db_session: Session) -> User:
    """Create a second user who is not a member of any workspace."""
    from plinth.services.auth import hash_password

    user = User(
        id=uuid.uuid4(),
        email="member@example.com",
        password_hash=hash_password("password123"),
        first_name="Max",
        last_name="Member",
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def sample_workspace(db_session: Session, sample_user: User) -> Workspace:
    """Create a sample workspace owned by sample_user."""
    workspace = Workspace(
        id=uuid.uuid4(),
        name="Test Workspace",
        slug="test-workspace",
        description="Workspace for tests",
        is_active=True,
    )
    db_session.add(workspace)
    db_session.flush()
    db_session.add(
        WorkspaceMember(
            workspace_id=workspace.id, user_id=sample_user.id, role=MemberRole.OWNER
        )
    )
    db_session.commit()
    db_session.refresh(workspace)
    return workspace


@pytest.fixture
def auth_headers(sample_user: User) -> dict[str, str]:
    """Bearer authorization header for sample_user."""
    from plinth.services.auth import create_access_token

    return {"Authorization": f"Bearer {create_access_token(sample_user)}"}


@pytest.fixture
def api_client(db_session: Session, modules_service: ModulesService):
    """Create a test client for FastAPI with database dependency override."""
    from fastapi.testclient import TestClient

    from plinth.api.app import app
    from plinth.db.connection import get_db
    from plinth.modules.integration import ModuleIntegration

    # Override the get_db dependency to use test database
    def override_get_db():
        try:
            yield db_session
            db_session.commit()
        except Exception:
            db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db

    # Lifespan does not run without a context manager; wire the module
    # system onto app.state directly
    app.state.module_manager = modules_service.manager
    app.state.modules_service = modules_service
    app.state.module_integration = ModuleIntegration(modules_service.manager)

    client = TestClient(app)
    yield client

    # Clean up
    app.dependency_overrides.clear()
    for name in ("module_manager", "modules_service", "module_integration"):
        if hasattr(app.state, name):
            delattr(app.state, name)
