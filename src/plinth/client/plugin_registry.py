"""
Frontend plugin registry.

Asks the API which modules are enabled, imports the frontend plugin of each
one that has an import entry, and resolves workspace-relative routes to the
plugin that renders them.
"""

import importlib
import logging
import sys
import types
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from plinth.client.plugin_types import PluginModule, PluginNavItem, WorkspaceContext
from plinth.modules.loader import package_name

logger = logging.getLogger(__name__)

# Top-level package under which plugin files are imported
PLUGIN_NAMESPACE = "plinth_plugins"

# Dotted path ("pkg.module" or "pkg.module:attr"), file path, or loader callable
PluginImport = Union[str, Path, Callable[[], Any]]


def _import_file(module_id: str, path: Path) -> types.ModuleType:
    """
    Import a plugin file as ``plinth_plugins.<module id>.<file stem>``.

    The file's directory becomes the package, so sibling files can be
    imported relatively from the plugin.
    """
    path = path.resolve()
    if not path.stem.isidentifier():
        raise ImportError(f"Plugin file name is not importable: {path}")

    namespace = sys.modules.get(PLUGIN_NAMESPACE)
    if namespace is None:
        namespace = types.ModuleType(PLUGIN_NAMESPACE)
        namespace.__path__ = []
        sys.modules[PLUGIN_NAMESPACE] = namespace

    mounted = package_name(module_id, namespace=PLUGIN_NAMESPACE)
    existing = sys.modules.get(mounted)
    if existing is None or list(getattr(existing, "__path__", [])) != [str(path.parent)]:
        for name in [n for n in sys.modules if n.startswith(mounted + ".")]:
            del sys.modules[name]
        package = types.ModuleType(mounted)
        package.__path__ = [str(path.parent)]
        package.__package__ = mounted
        sys.modules[mounted] = package

    importlib.invalidate_caches()
    return importlib.import_module(f"{mounted}.{path.stem}")


def resolve_plugin_import(module_id: str, target: PluginImport) -> Any:
    """
    Import whatever a plugin import entry points at.

    Returns:
        The imported object: a Python module, or the attribute named after
        ``:`` in a dotted path, or whatever a loader callable returns
    """
    if callable(target):
        return target()

    if isinstance(target, Path) or str(target).endswith(".py"):
        return _import_file(module_id, Path(target))

    module_path, _, attr = str(target).partition(":")
    imported = importlib.import_module(module_path)
    return getattr(imported, attr) if attr else imported


def coerce_plugin(exported: Any) -> Optional[PluginModule]:
    """
    Turn an imported object into a ``PluginModule``.

    Modules and objects exposing ``default`` are unwrapped first; mappings are
    converted. Anything else yields None.
    """
    if isinstance(exported, types.ModuleType) or (
        not isinstance(exported, (PluginModule, Mapping))
        and hasattr(exported, "default")
    ):
        exported = getattr(exported, "default", None)

    if isinstance(exported, PluginModule):
        return exported
    if isinstance(exported, Mapping):
        return PluginModule.from_mapping(exported)
    return None


class PluginRegistry:
    """
    Registry of frontend plugins for enabled modules.

    Example:
        >>> registry = PluginRegistry(client, {"sales-order": "sales_order.plugin"})
        >>> registry.load_plugins()
        >>> registry.get_plugin_by_route("sales/orders/42")
    """

    def __init__(
        self,
        api_client: Any,
        plugin_imports: Optional[Mapping[str, PluginImport]] = None,
    ):
        """
        Args:
            api_client: Object with ``get_enabled_modules()`` returning module
                records (e.g. ``PlinthClient``)
            plugin_imports: Module id to plugin import entry
        """
        self.api_client = api_client
        self.plugin_imports: Dict[str, PluginImport] = dict(plugin_imports or {})
        self._plugins: Dict[str, PluginModule] = {}
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    # ===== Loading =====

    def load_plugins(self) -> None:
        """
        Load and register the plugins of all enabled modules.

        Runs once per instance until ``clear()``. A plugin that fails to
        import is logged and skipped. If the API cannot be reached, the error
        is logged and the registry stays uninitialized so a later call retries.
        """
        if self._initialized:
            logger.debug("Plugin registry already initialized, skipping load")
            return

        try:
            enabled_modules = self.api_client.get_enabled_modules()
        except Exception as e:
            logger.error(f"Error loading plugins: {e}", exc_info=True)
            return

        module_ids = [self._module_id(m) for m in enabled_modules]
        logger.info(f"Found {len(module_ids)} enabled module(s): {module_ids}")

        for module_id in module_ids:
            if not module_id:
                continue

            target = self.plugin_imports.get(module_id)
            if target is None:
                logger.warning(f"No plugin import registered for module: {module_id}")
                continue

            try:
                plugin = coerce_plugin(resolve_plugin_import(module_id, target))
            except Exception as e:
                logger.error(
                    f"Failed to load plugin for module {module_id}: {e}", exc_info=True
                )
                continue

            if plugin is None or not plugin.id or plugin.component is None:
                logger.warning(
                    f"Plugin for module {module_id} is missing required fields "
                    f"(id and component)"
                )
                continue

            self._plugins[plugin.id] = plugin
            logger.info(f"Registered plugin: {plugin.id} with route: {plugin.route}")

        if not self._plugins:
            logger.warning(
                f"No plugins were registered (enabled: {module_ids}, "
                f"imports: {sorted(self.plugin_imports)})"
            )

        self._initialized = True

    def reload(self) -> None:
        self.clear()
        self.load_plugins()

    @staticmethod
    def _module_id(module: Any) -> Optional[str]:
        if isinstance(module, Mapping):
            return module.get("id") or module.get("module_id")
        return getattr(module, "id", None) or getattr(module, "module_id", None)

    # ===== Registration =====

    def register(self, plugin: PluginModule) -> None:
        """Register a plugin, overriding any plugin with the same id."""
        existing = self._find_by_route(plugin.route)
        if existing is not None:
            logger.warning(
                f"Plugin route conflict: Route '{plugin.route}' already registered. "
                f"Plugin '{plugin.id}' will override."
            )
        self._plugins[plugin.id] = plugin

    def unregister(self, plugin_id: str) -> None:
        plugin = self._plugins.pop(plugin_id, None)
        if plugin is not None and plugin.destroy is not None:
            plugin.destroy()

    def clear(self) -> None:
        """Destroy and forget every plugin, allowing ``load_plugins`` again."""
        for plugin in self._plugins.values():
            if plugin.destroy is not None:
                plugin.destroy()
        self._plugins.clear()
        self._initialized = False

    def init_plugins(self, context: WorkspaceContext) -> None:
        """Call each plugin's ``init`` hook with the workspace context."""
        for plugin in self._plugins.values():
            if plugin.init is None:
                continue
            try:
                plugin.init(context)
            except Exception as e:
                logger.error(f"Failed to initialize plugin {plugin.id}: {e}", exc_info=True)

    # ===== Queries =====

    def get_all_plugins(self) -> List[PluginModule]:
        return list(self._plugins.values())

    def get_plugin(self, plugin_id: str) -> Optional[PluginModule]:
        return self._plugins.get(plugin_id)

    def get_enabled(
        self, permissions: Optional[Iterable[str]] = None
    ) -> List[PluginModule]:
        """
        Plugins available to a user with the given permissions.

        A plugin without required permissions is always available; otherwise
        one matching permission is enough.
        """
        granted = set(permissions or ())
        if not granted:
            return self.get_all_plugins()
        return [
            plugin
            for plugin in self._plugins.values()
            if not plugin.permissions or plugin.permissions & granted
        ]

    def get_plugin_nav_items(self) -> List[PluginNavItem]:
        return [plugin.nav_item() for plugin in self._plugins.values()]

    def get_plugin_by_route(self, route: str) -> Optional[PluginModule]:
        """
        Find the plugin that renders a workspace-relative route.

        Tried in order: exact route, route prefix (``route + "/"``), dynamic
        route matchers, then the same exact/prefix match after dropping one or
        more leading segments (so ``sales-order/sales/orders`` still resolves
        to the plugin at ``sales/orders``).

        Args:
            route: Path relative to the workspace, without leading slash

        Returns:
            Matching plugin or None
        """
        route = route.strip("/")
        found = self._find_by_route(route)
        if found is None:
            for plugin in self._plugins.values():
                if route.startswith(plugin.route + "/"):
                    found = plugin
                    break

        if found is None:
            for plugin in self._plugins.values():
                if self._matches_dynamic(plugin, route):
                    found = plugin
                    break

        if found is None and "/" in route:
            parts = route.split("/")
            for i in range(1, len(parts)):
                candidate = "/".join(parts[i:])
                found = self._match_exact_or_prefix(candidate)
                if found is not None:
                    logger.debug(
                        f"Found plugin {found.id} by removing parent prefix: {candidate}"
                    )
                    break

        if found is None:
            logger.debug(f"No plugin found for route: {route}")
        return found

    @staticmethod
    def _matches_dynamic(plugin: PluginModule, route: str) -> bool:
        if plugin.route_matcher is None:
            return False
        try:
            return plugin.route_matcher(route) is not None
        except Exception as e:
            logger.error(f"Route matcher of plugin {plugin.id} failed: {e}", exc_info=True)
            return False

    def _find_by_route(self, route: str) -> Optional[PluginModule]:
        for plugin in self._plugins.values():
            if plugin.route == route:
                return plugin
        return None

    def _match_exact_or_prefix(self, route: str) -> Optional[PluginModule]:
        for plugin in self._plugins.values():
            if plugin.route == route or route.startswith(plugin.route + "/"):
                return plugin
        return None

    def __len__(self) -> int:
        return len(self._plugins)
