"""
Module status service.

Bridges the in-memory module system and the ``installed_modules`` table:
enabled ids are read from the database at boot, and administrative
enable/disable calls are written through to it.
"""

import dataclasses
import logging
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from plinth.db.repositories.installed_module import InstalledModuleRepository
from plinth.exceptions import ModuleSystemError, UnknownModuleError
from plinth.models.db import InstalledModule
from plinth.modules.manager import ModuleManager
from plinth.modules.types import LoadedModule, ModuleMetadata

logger = logging.getLogger(__name__)


class ModulesService:
    """
    Persistence-aware facade over a ``ModuleManager``.

    The returned ``ModuleMetadata`` records are copies whose ``enabled``,
    ``installed`` and ``installed_at`` fields reflect the database row.
    """

    def __init__(self, manager: ModuleManager, auto_enable: bool = False) -> None:
        """
        Args:
            manager: Manager owning the registry for this process
            auto_enable: Enable every discovered module after initialization
                (development convenience)
        """
        self.manager = manager
        self.auto_enable = auto_enable

    def initialize(self, session: Session) -> List[LoadedModule]:
        """
        Boot the module system from persisted state.

        Args:
            session: Database session used to read enabled module ids and
                to persist auto-enabled ones (the caller commits)

        Returns:
            Modules loaded by the manager, including auto-enabled ones
        """
        enabled_ids = InstalledModuleRepository(session).get_enabled_ids()
        self.manager.initialize(enabled_ids)

        if self.auto_enable:
            self._auto_enable_all(session)

        return self.manager.get_loaded_modules()

    def _auto_enable_all(self, session: Session) -> None:
        """Enable and persist every discovered module that is not enabled yet."""
        registry = self.manager.registry
        for module_id in self.manager.get_load_order():
            if registry.is_enabled(module_id):
                continue
            try:
                self.enable(session, module_id)
                logger.info(f"Auto-enabled module: {module_id}")
            except ModuleSystemError as e:
                logger.warning(f"Failed to auto-enable module {module_id}: {e}")

    # ===== Queries =====

    def find_all(self, session: Session) -> List[ModuleMetadata]:
        """All discovered modules merged with their persisted status."""
        rows = self._rows_by_id(session)
        return [
            self._merge(module, rows.get(module.id))
            for module in self.manager.get_all_modules()
        ]

    def find_one(self, session: Session, module_id: str) -> Optional[ModuleMetadata]:
        module = self.manager.get_module(module_id)
        if module is None:
            return None
        row = InstalledModuleRepository(session).get_by_module_id(module_id)
        return self._merge(module, row)

    def find_enabled(self, session: Session) -> List[ModuleMetadata]:
        """Enabled modules, in enable order, merged with their persisted status."""
        rows = self._rows_by_id(session)
        return [
            self._merge(module, rows.get(module.id))
            for module in self.manager.get_enabled_modules()
        ]

    def get_load_order(self) -> List[str]:
        return self.manager.get_load_order()

    # ===== Commands =====

    def enable(self, session: Session, module_id: str) -> Dict[str, str]:
        """
        Enable a module and persist it as enabled.

        Args:
            session: Database session (the caller commits)
            module_id: Id of a discovered module

        Returns:
            Confirmation message

        Raises:
            UnknownModuleError: If the module was not discovered
            MissingDependencyError: If a direct dependency is not available
        """
        module = self.manager.get_module(module_id)
        if module is None:
            raise UnknownModuleError(module_id)

        self.manager.enable_module(module_id, validate_strict=True)
        InstalledModuleRepository(session).mark_enabled(module)

        return {"message": f"Module {module_id} enabled successfully"}

    def disable(self, session: Session, module_id: str) -> Dict[str, str]:
        """
        Disable a module and persist it as disabled.

        Unknown ids and modules without a status row are not an error.
        """
        self.manager.disable_module(module_id)
        row = InstalledModuleRepository(session).set_enabled(module_id, False)
        if row is None:
            logger.debug(f"No persisted status for module {module_id}")

        return {"message": f"Module {module_id} disabled successfully"}

    # ===== Helpers =====

    def _rows_by_id(self, session: Session) -> Dict[str, InstalledModule]:
        return {row.module_id: row for row in InstalledModuleRepository(session).get_all()}

    def _merge(
        self, module: ModuleMetadata, row: Optional[InstalledModule]
    ) -> ModuleMetadata:
        return dataclasses.replace(
            module,
            enabled=row.enabled if row is not None else False,
            installed=row.installed if row is not None else False,
            installed_at=row.installed_at if row is not None else None,
        )
