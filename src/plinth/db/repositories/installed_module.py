"""
Installed module repository.
"""

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from plinth.db.repositories.base import BaseRepository
from plinth.models.db import InstalledModule
from plinth.modules.types import ModuleMetadata


class InstalledModuleRepository(BaseRepository[InstalledModule]):
    """Repository for persisted module status."""

    def __init__(self, session: Session):
        super().__init__(InstalledModule, session)

    def get_by_module_id(self, module_id: str) -> Optional[InstalledModule]:
        """
        Get the status row of a module.

        Args:
            module_id: Module id (directory name)

        Returns:
            InstalledModule instance or None
        """
        return (
            self.session.query(InstalledModule)
            .filter(InstalledModule.module_id == module_id)
            .first()
        )

    def get_enabled(self) -> List[InstalledModule]:
        return (
            self.session.query(InstalledModule)
            .filter(InstalledModule.enabled.is_(True))
            .order_by(InstalledModule.created_at, InstalledModule.module_id)
            .all()
        )

    def get_enabled_ids(self) -> List[str]:
        """Ids of all modules persisted as enabled."""
        return [row.module_id for row in self.get_enabled()]

    def mark_enabled(self, module: ModuleMetadata) -> InstalledModule:
        """
        Upsert the row of a module as enabled and installed.

        ``installed_at`` is set when the row is created and kept afterwards.

        Args:
            module: Discovered module being enabled

        Returns:
            The created or updated row
        """
        manifest = module.manifest
        row = self.get_by_module_id(module.id)
        if row is None:
            return self.create(
                module_id=module.id,
                name=manifest.name,
                version=manifest.version,
                category=manifest.category,
                enabled=True,
                installed=True,
                installed_at=datetime.now(timezone.utc),
            )

        row.name = manifest.name
        row.version = manifest.version
        row.category = manifest.category
        row.enabled = True
        row.installed = True
        if row.installed_at is None:
            row.installed_at = datetime.now(timezone.utc)
        self.session.flush()
        return row

    def set_enabled(self, module_id: str, enabled: bool) -> Optional[InstalledModule]:
        """
        Update the enabled flag of an existing row.

        Returns:
            Updated row, or None if the module has no row
        """
        row = self.get_by_module_id(module_id)
        if row is None:
            return None
        row.enabled = enabled
        self.session.flush()
        return row
