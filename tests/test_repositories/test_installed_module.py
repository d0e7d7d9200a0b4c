"""Tests for InstalledModuleRepository."""

from datetime import datetime, timezone
from pathlib import Path

from plinth.db.repositories.installed_module import InstalledModuleRepository
from plinth.modules.manifest import ModuleManifest
from plinth.modules.types import ModuleMetadata


def metadata(module_id, version="1.0.0", category=None):
    return ModuleMetadata(
        id=module_id,
        path=Path("/tmp") / module_id,
        manifest=ModuleManifest(
            name=module_id.title(), version=version, category=category
        ),
    )


class TestInstalledModuleRepository:
    """Test persisted module status."""

    def test_mark_enabled_creates_row(self, db_session):
        """Test that the first enable creates an installed row."""
        repo = InstalledModuleRepository(db_session)

        row = repo.mark_enabled(metadata("reporting", category="analytics"))

        assert row.module_id == "reporting"
        assert row.name == "Reporting"
        assert row.category == "analytics"
        assert row.enabled is True
        assert row.installed is True
        assert row.installed_at is not None

    def test_mark_enabled_updates_existing(self, db_session):
        """Test that re-enabling keeps installed_at and refreshes the version."""
        repo = InstalledModuleRepository(db_session)
        installed_at = datetime(2024, 1, 1, tzinfo=timezone.utc)
        repo.create(
            module_id="reporting",
            name="Reporting",
            version="1.0.0",
            enabled=False,
            installed=True,
            installed_at=installed_at,
        )

        row = repo.mark_enabled(metadata("reporting", version="1.1.0"))

        assert repo.count() == 1
        assert row.enabled is True
        assert row.version == "1.1.0"
        assert row.installed_at.replace(tzinfo=timezone.utc) == installed_at

    def test_mark_enabled_fills_missing_installed_at(self, db_session):
        """Test that rows without an install time get one."""
        repo = InstalledModuleRepository(db_session)
        repo.create(module_id="reporting", name="Reporting", version="1.0.0")

        row = repo.mark_enabled(metadata("reporting"))

        assert row.installed_at is not None

    def test_get_enabled_ids(self, db_session):
        """Test that only enabled rows are returned."""
        repo = InstalledModuleRepository(db_session)
        repo.create(module_id="b", name="B", version="1.0.0", enabled=True)
        repo.create(module_id="a", name="A", version="1.0.0", enabled=True)
        repo.create(module_id="c", name="C", version="1.0.0", enabled=False)

        assert sorted(repo.get_enabled_ids()) == ["a", "b"]

    def test_set_enabled(self, db_session):
        """Test toggling the enabled flag of an existing row."""
        repo = InstalledModuleRepository(db_session)
        repo.mark_enabled(metadata("reporting"))

        row = repo.set_enabled("reporting", False)

        assert row.enabled is False
        assert row.installed is True
        assert repo.get_enabled_ids() == []

    def test_set_enabled_without_row(self, db_session):
        """Test that toggling an unknown module returns None."""
        repo = InstalledModuleRepository(db_session)

        assert repo.set_enabled("ghost", True) is None
        assert repo.count() == 0

    def test_get_by_module_id(self, db_session):
        """Test lookup by module id."""
        repo = InstalledModuleRepository(db_session)
        repo.mark_enabled(metadata("reporting"))

        assert repo.get_by_module_id("reporting").name == "Reporting"
        assert repo.get_by_module_id("ghost") is None
