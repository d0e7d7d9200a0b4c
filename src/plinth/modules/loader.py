"""
Module code loading.

Imports the backend and frontend files declared in an enabled module's
manifest and collects the symbols they export.

Each module directory is mounted as a synthetic package
(``plinth_modules.<module id>``, see ``package_name``) so files inside it are imported under a
stable dotted name and may use relative imports between themselves. Files
outside the module directory are imported directly from their path.
"""

import hashlib
import importlib
import importlib.util
import inspect
import logging
import re
import sys
import types
from pathlib import Path
from typing import Any, Iterable, List

from plinth.exceptions import ModuleLoadError
from plinth.modules.registry import ModuleRegistry
from plinth.modules.types import LoadedModule, ModuleMetadata

logger = logging.getLogger(__name__)

# Top-level package under which module directories are mounted
MODULE_NAMESPACE = "plinth_modules"


def safe_identifier(value: str) -> str:
    """Turn a module id or path segment into a valid Python identifier."""
    ident = re.sub(r"\W", "_", value)
    if not ident or ident[0].isdigit():
        ident = f"_{ident}"
    return ident


def package_name(module_id: str, namespace: str = MODULE_NAMESPACE) -> str:
    """
    Dotted package name under which a module directory is mounted.

    Ids that are already identifiers are used as is. Any other id gets a
    short digest of the raw id appended, so ids such as ``a-b`` and ``a_b``
    never share a package.
    """
    if module_id.isidentifier():
        return f"{namespace}.{module_id}"
    digest = hashlib.sha1(module_id.encode("utf-8")).hexdigest()[:8]
    return f"{namespace}.{safe_identifier(module_id)}_{digest}"


def collect_exports(py_module: types.ModuleType) -> List[Any]:
    """
    Collect the exported symbols of an imported file.

    The ``default`` attribute comes first when present. Then every public
    class or function defined in the file (or listed in ``__all__``) is added.
    Imported names are ignored unless ``__all__`` re-exports them.

    Args:
        py_module: Imported Python module

    Returns:
        Symbols in collection order, without repeated objects
    """
    exports: List[Any] = []

    def add(symbol: Any) -> None:
        if not any(symbol is existing for existing in exports):
            exports.append(symbol)

    default = getattr(py_module, "default", None)
    if default is not None:
        add(default)

    explicit = getattr(py_module, "__all__", None)
    if explicit is not None:
        names = [name for name in explicit if name != "default"]
    else:
        names = [
            name
            for name, value in vars(py_module).items()
            if not name.startswith("_")
            and name != "default"
            and getattr(value, "__module__", None) == py_module.__name__
        ]

    for name in names:
        symbol = getattr(py_module, name, None)
        if not (inspect.isclass(symbol) or inspect.isfunction(symbol)):
            continue
        if not getattr(symbol, "__name__", None):
            continue
        add(symbol)

    return exports


class ModuleLoader:
    """
    Loads module code into the running application.

    Example:
        >>> registry = ModuleRegistry()
        >>> loader = ModuleLoader(registry)
        >>> loaded = loader.load_modules(registry.get_enabled())
    """

    def __init__(self, registry: ModuleRegistry) -> None:
        self.registry = registry

    def load_module(self, module: ModuleMetadata) -> LoadedModule:
        """
        Import a module's declared files and collect their exports.

        Individual files that fail to import are logged and omitted; the
        returned record then simply lacks their symbols.

        Args:
            module: Discovered module to load

        Returns:
            LoadedModule with the collected controller, service and frontend
            plugin symbols
        """
        logger.info(f"Loading module: {module.id} v{module.manifest.version}")
        importlib.invalidate_caches()
        loaded = LoadedModule(metadata=module)

        backend = module.manifest.backend
        if backend is not None:
            if backend.models:
                # Imported for their side effects (table registration)
                self._load_files(module, backend.models)
            loaded.backend_controllers = self._load_files(module, backend.controllers)
            loaded.backend_services = self._load_files(module, backend.services)
        else:
            logger.debug(f"No backend components for {module.id}")

        frontend = module.manifest.frontend
        if frontend is not None and frontend.plugins:
            loaded.frontend_plugins = self._load_files(module, frontend.plugins)
        else:
            logger.debug(f"No frontend plugins for {module.id}")

        logger.info(
            f"Loaded module {module.id}: "
            f"{len(loaded.backend_controllers)} controller(s), "
            f"{len(loaded.backend_services)} service(s), "
            f"{len(loaded.frontend_plugins)} frontend plugin(s)"
        )
        return loaded

    def load_modules(self, modules: Iterable[ModuleMetadata]) -> List[LoadedModule]:
        """
        Load modules in dependency order.

        Walks the registry's load order and loads every module that is both in
        ``modules`` and currently enabled. A module whose load raises is logged
        and skipped; loading continues with the next one.

        Args:
            modules: Candidate modules (usually the registry's enabled modules)

        Returns:
            Successfully loaded modules, in load order

        Raises:
            CircularDependencyError: If the load order cannot be computed
        """
        candidates = {module.id: module for module in modules}
        loaded_modules: List[LoadedModule] = []

        for module_id in self.registry.get_load_order():
            module = candidates.get(module_id)
            if module is None or not self.registry.is_enabled(module_id):
                continue

            try:
                loaded = self.load_module(module)
                self.registry.register_loaded(loaded)
                loaded_modules.append(loaded)
            except Exception as e:
                logger.error(f"Failed to load module {module_id}: {e}", exc_info=True)
                continue

        return loaded_modules

    def unload_module(self, module_id: str) -> None:
        """
        Disable a module in the registry.

        Code that was already imported stays imported; only the registry's
        bookkeeping changes.
        """
        self.registry.disable(module_id)
        logger.info(f"Unloaded module: {module_id}")

    # ===== File import =====

    def _load_files(self, module: ModuleMetadata, file_paths: List[str]) -> List[Any]:
        """Import each file and collect exports, skipping files that fail."""
        exports: List[Any] = []

        for file_path in file_paths:
            try:
                py_module = self._import_file(module, file_path)
            except ModuleLoadError as e:
                logger.error(str(e), exc_info=e.__cause__ is not None)
                continue

            for symbol in collect_exports(py_module):
                if not any(symbol is existing for existing in exports):
                    exports.append(symbol)

        return exports

    def _resolve(self, module: ModuleMetadata, file_path: str) -> Path:
        path = Path(file_path)
        if not path.is_absolute():
            path = module.path / path
        if path.suffix == "" and not path.is_dir():
            path = path.with_suffix(".py")
        return path.resolve()

    def _import_file(self, module: ModuleMetadata, file_path: str) -> types.ModuleType:
        """
        Import a single file declared by a module.

        Raises:
            ModuleLoadError: If the file is missing or raises while importing
        """
        full_path = self._resolve(module, file_path)
        if not full_path.exists():
            raise ModuleLoadError(module.id, full_path, "file not found")

        dotted_name = self._dotted_name(module, full_path)
        try:
            if dotted_name is not None:
                return importlib.import_module(dotted_name)
            return self._import_from_path(module, full_path)
        except ModuleLoadError:
            raise
        except Exception as e:
            raise ModuleLoadError(module.id, full_path, repr(e)) from e

    def _dotted_name(self, module: ModuleMetadata, full_path: Path) -> str | None:
        """Dotted import name for a file inside the module directory, if any."""
        try:
            relative = full_path.relative_to(module.path.resolve())
        except ValueError:
            return None

        parts = list(relative.parts)
        if full_path.is_dir():
            if not (full_path / "__init__.py").exists():
                return None
        else:
            parts[-1] = Path(parts[-1]).stem
        if not parts or not all(part.isidentifier() for part in parts):
            return None

        package = self._ensure_package(module)
        return ".".join([package, *parts])

    def _ensure_package(self, module: ModuleMetadata) -> str:
        """Mount the module directory at its ``package_name``."""
        namespace = sys.modules.get(MODULE_NAMESPACE)
        if namespace is None:
            namespace = types.ModuleType(MODULE_NAMESPACE)
            namespace.__path__ = []
            sys.modules[MODULE_NAMESPACE] = namespace

        mount_name = package_name(module.id)
        module_dir = str(module.path.resolve())
        existing = sys.modules.get(mount_name)
        if existing is not None and list(getattr(existing, "__path__", [])) == [
            module_dir
        ]:
            return mount_name

        # Same id mounted from another directory: drop stale imports
        stale = [
            name
            for name in sys.modules
            if name == mount_name or name.startswith(mount_name + ".")
        ]
        for name in stale:
            del sys.modules[name]

        package = types.ModuleType(mount_name)
        package.__path__ = [module_dir]
        package.__package__ = mount_name
        sys.modules[mount_name] = package
        setattr(namespace, mount_name.rsplit(".", 1)[1], package)
        return mount_name

    def _import_from_path(
        self, module: ModuleMetadata, full_path: Path
    ) -> types.ModuleType:
        """Import a file that cannot be addressed through the module package."""
        name = (
            f"{MODULE_NAMESPACE}._files."
            f"{safe_identifier(module.id)}_{safe_identifier(str(full_path))}"
        )
        if full_path.is_dir():
            full_path = full_path / "__init__.py"

        spec = importlib.util.spec_from_file_location(name, full_path)
        if spec is None or spec.loader is None:
            raise ModuleLoadError(module.id, full_path, "not an importable file")

        py_module = importlib.util.module_from_spec(spec)
        sys.modules[name] = py_module
        try:
            spec.loader.exec_module(py_module)
        except BaseException:
            sys.modules.pop(name, None)
            raise
        return py_module
