"""
Module registry.

In-memory store of discovered modules, the enabled set, and loaded module
records. One registry is created by the application's composition root and
passed to the loader and manager; tests create their own isolated instances.
"""

import logging
from typing import Dict, List, Optional

from plinth.exceptions import CircularDependencyError
from plinth.modules.manifest import CORE_MODULE_ID
from plinth.modules.types import LoadedModule, ModuleMetadata

logger = logging.getLogger(__name__)


class ModuleRegistry:
    """
    Authority on module discovery, enablement and load state.

    Mutations are last-writer-wins with no locking; the manager is the single
    writer during initialization and administrative enable/disable calls are
    expected to be infrequent.
    """

    def __init__(self) -> None:
        self._discovered: Dict[str, ModuleMetadata] = {}
        self._loaded: Dict[str, LoadedModule] = {}
        # dict keys keep enable order
        self._enabled: Dict[str, None] = {}

    # ===== Registration =====

    def register_discovered(self, module: ModuleMetadata) -> None:
        """Insert or overwrite a discovered module by id."""
        self._discovered[module.id] = module
        logger.debug(f"Registered discovered module: {module.id}")

    def register_loaded(self, loaded: LoadedModule) -> None:
        """Insert or overwrite a loaded module record by id."""
        if loaded.id not in self._discovered:
            raise ValueError(
                f"Cannot register loaded module '{loaded.id}': not discovered"
            )
        self._loaded[loaded.id] = loaded
        logger.debug(f"Registered loaded module: {loaded.id}")

    # ===== Enablement =====

    def enable(self, module_id: str) -> bool:
        """
        Add a module to the enabled set.

        Returns:
            False (without mutating anything) if the module was never discovered
        """
        module = self._discovered.get(module_id)
        if module is None:
            return False
        self._enabled[module_id] = None
        module.enabled = True
        return True

    def disable(self, module_id: str) -> bool:
        """Remove a module from the enabled set and drop its loaded record."""
        self._enabled.pop(module_id, None)
        self._loaded.pop(module_id, None)
        module = self._discovered.get(module_id)
        if module is not None:
            module.enabled = False
        return True

    def is_enabled(self, module_id: str) -> bool:
        return module_id in self._enabled

    # ===== Queries =====

    def get_all_discovered(self) -> List[ModuleMetadata]:
        return list(self._discovered.values())

    def get_discovered(self, module_id: str) -> Optional[ModuleMetadata]:
        return self._discovered.get(module_id)

    def get_enabled(self) -> List[ModuleMetadata]:
        """Enabled modules in the order they were enabled."""
        return [
            self._discovered[module_id]
            for module_id in self._enabled
            if module_id in self._discovered
        ]

    def get_enabled_ids(self) -> List[str]:
        return list(self._enabled)

    def get_all_loaded(self) -> List[LoadedModule]:
        return list(self._loaded.values())

    def get_loaded(self, module_id: str) -> Optional[LoadedModule]:
        return self._loaded.get(module_id)

    def clear(self) -> None:
        """Forget every module. Intended for tests."""
        self._discovered.clear()
        self._loaded.clear()
        self._enabled.clear()

    # ===== Ordering =====

    def get_load_order(self) -> List[str]:
        """
        Compute a dependency-respecting order over all discovered modules.

        Depth-first: each module's declared dependencies are placed before the
        module itself. The core id and dependencies that were never discovered
        are skipped. Modules with nothing left to wait for keep discovery order.

        Returns:
            Module ids, dependencies first

        Raises:
            CircularDependencyError: If a module is reached again while its own
                dependencies are still being placed
        """
        placed: List[str] = []
        placed_set: set[str] = set()
        visiting: set[str] = set()

        def visit(module_id: str) -> None:
            if module_id in placed_set:
                return
            if module_id in visiting:
                raise CircularDependencyError(module_id)

            visiting.add(module_id)
            module = self._discovered[module_id]
            for dep in module.depends:
                if dep == CORE_MODULE_ID or dep not in self._discovered:
                    continue
                visit(dep)
            visiting.discard(module_id)

            placed.append(module_id)
            placed_set.add(module_id)

        for module_id in self._discovered:
            visit(module_id)

        return placed

    def __len__(self) -> int:
        return len(self._discovered)

    def __contains__(self, module_id: object) -> bool:
        return module_id in self._discovered
