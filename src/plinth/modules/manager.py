"""
Module manager.

Orchestrates the module system: discovery, registration, dependency
validation, enabling and loading. The host application calls
``initialize()`` exactly once at boot; enable/disable are administrative
operations afterwards.
"""

import enum
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from plinth.exceptions import MissingDependencyError
from plinth.modules.loader import ModuleLoader
from plinth.modules.registry import ModuleRegistry
from plinth.modules.scanner import ModuleScanner
from plinth.modules.types import LoadedModule, ModuleMetadata

logger = logging.getLogger(__name__)


class ManagerState(str, enum.Enum):
    """Stages of a single initialization run."""

    IDLE = "idle"
    DISCOVERING = "discovering"
    REGISTERING = "registering"
    VALIDATING_DEPENDENCIES = "validating_dependencies"
    ENABLING = "enabling"
    LOADING = "loading"
    READY = "ready"


class ModuleManager:
    """
    Main orchestrator for the module system.

    The registry is owned by whoever constructs the manager; pass one in to
    share it with other components, or let the manager create a private one.

    Bulk initialization is lenient about missing dependencies (warnings only)
    while ``enable_module`` is strict by default and raises. Both go through
    the same enable path with a ``validate_strict`` flag.

    Calling ``initialize`` concurrently from two tasks is not supported.
    """

    def __init__(
        self,
        roots: Optional[Sequence[Path | str]] = None,
        registry: Optional[ModuleRegistry] = None,
        scanner: Optional[ModuleScanner] = None,
        loader: Optional[ModuleLoader] = None,
    ) -> None:
        """
        Initialize the manager.

        Args:
            roots: Module root directories (ignored when a scanner is given)
            registry: Registry to populate; a new one is created if omitted
            scanner: Scanner to use for discovery
            loader: Loader to use; must share the manager's registry
        """
        self.registry = registry if registry is not None else ModuleRegistry()
        self.scanner = scanner if scanner is not None else ModuleScanner(roots)
        self.loader = loader if loader is not None else ModuleLoader(self.registry)
        self.state = ManagerState.IDLE

    @property
    def roots(self) -> List[Path]:
        return self.scanner.roots

    @property
    def is_ready(self) -> bool:
        return self.state == ManagerState.READY

    def initialize(self, enabled_ids: Iterable[str] = ()) -> List[LoadedModule]:
        """
        Discover, register, validate, enable and load modules.

        Args:
            enabled_ids: Ids to enable (usually read from persistent storage)

        Returns:
            Modules loaded during this run

        Raises:
            CircularDependencyError: If the discovered modules contain a cycle
        """
        enabled_ids = list(enabled_ids)
        logger.info(f"Initializing module system (enabled: {enabled_ids})")

        self.state = ManagerState.DISCOVERING
        discovered = self.scanner.discover()

        self.state = ManagerState.REGISTERING
        for module in discovered:
            self.registry.register_discovered(module)

        self.state = ManagerState.VALIDATING_DEPENDENCIES
        self._validate_all_dependencies(discovered)

        self.state = ManagerState.ENABLING
        for module_id in enabled_ids:
            if self.registry.enable(module_id):
                logger.info(f"Enabled module: {module_id}")
            else:
                logger.warning(
                    f"Failed to enable {module_id}: not found in discovered modules"
                )

        self.state = ManagerState.LOADING
        loaded = self.loader.load_modules(self.registry.get_enabled())

        self.state = ManagerState.READY
        logger.info(
            f"Module system ready: {len(discovered)} discovered, "
            f"{len(self.registry.get_enabled())} enabled, {len(loaded)} loaded"
        )
        return loaded

    def enable_module(self, module_id: str, validate_strict: bool = True) -> bool:
        """
        Enable and load a single module.

        Args:
            module_id: Id of a discovered module
            validate_strict: Raise on missing direct dependencies instead of
                only warning

        Returns:
            False if the module was never discovered, True otherwise

        Raises:
            MissingDependencyError: In strict mode, if a direct dependency is
                not among the discovered modules
        """
        module = self.registry.get_discovered(module_id)
        if module is None:
            return False

        check = self.scanner.validate_dependencies(
            module, self.registry.get_all_discovered()
        )
        if not check.valid:
            if validate_strict:
                raise MissingDependencyError(module_id, check.missing)
            logger.warning(
                f"Module {module_id} has missing dependencies: "
                f"{', '.join(check.missing)}"
            )

        self.registry.enable(module_id)
        loaded = self.loader.load_module(module)
        self.registry.register_loaded(loaded)
        logger.info(f"Module {module_id} enabled")
        return True

    def disable_module(self, module_id: str) -> bool:
        """Disable a module. Always succeeds, even for unknown ids."""
        self.loader.unload_module(module_id)
        return True

    def get_all_modules(self) -> List[ModuleMetadata]:
        return self.registry.get_all_discovered()

    def get_module(self, module_id: str) -> Optional[ModuleMetadata]:
        return self.registry.get_discovered(module_id)

    def get_enabled_modules(self) -> List[ModuleMetadata]:
        return self.registry.get_enabled()

    def get_loaded_modules(self) -> List[LoadedModule]:
        return self.registry.get_all_loaded()

    def get_load_order(self) -> List[str]:
        return self.registry.get_load_order()

    def _validate_all_dependencies(self, modules: List[ModuleMetadata]) -> None:
        """Warn about missing dependencies; never blocks enabling."""
        for module in modules:
            check = self.scanner.validate_dependencies(module, modules)
            if not check.valid:
                logger.warning(
                    f"Module {module.id} has missing dependencies: "
                    f"{', '.join(check.missing)}"
                )
