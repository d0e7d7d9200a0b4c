"""
Types shared by frontend plugins and the plugin registry.

A module's frontend plugin file exports ``default``: either a
``PluginModule`` or a mapping with the same keys.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Set

logger = logging.getLogger(__name__)

# Returns route params for a matching path, or None
RouteMatcher = Callable[[str], Optional[Dict[str, str]]]

EventHandler = Callable[..., None]


class EventBus:
    """
    Minimal publish/subscribe bus for communication between plugins.

    Handlers run synchronously in registration order. A handler that raises
    is logged and does not stop the others.
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, List[EventHandler]] = defaultdict(list)

    def emit(self, event: str, data: Any = None) -> None:
        for handler in list(self._handlers.get(event, [])):
            try:
                handler(data)
            except Exception as e:
                logger.error(f"Handler for event '{event}' failed: {e}", exc_info=True)

    def on(self, event: str, handler: EventHandler) -> None:
        self._handlers[event].append(handler)

    def off(self, event: str, handler: EventHandler) -> None:
        handlers = self._handlers.get(event)
        if handlers and handler in handlers:
            handlers.remove(handler)


@dataclass
class WorkspaceContext:
    """Context a plugin receives when it is initialized."""

    api: Any
    workspace: Any
    user: Any
    workspace_member: Any
    event_bus: Optional[EventBus] = None


@dataclass
class PluginNavItem:
    """Navigation entry contributed by a plugin."""

    id: str
    name: str
    route: str
    icon: Optional[str] = None
    children: List["PluginNavItem"] = field(default_factory=list)


@dataclass
class PluginModule:
    """
    A frontend plugin contributed by a module.

    Attributes:
        id: Unique plugin identifier (usually the module id)
        name: Display name
        version: Plugin version
        route: Route path relative to the workspace, e.g. ``sales/orders``
        component: Page renderer for the route
        icon: Icon name
        route_matcher: Matcher for dynamic routes such as ``projects/[id]``
        permissions: Permissions granting access; empty means everyone
        init: Called with a ``WorkspaceContext`` once the workspace is known
        destroy: Called when the plugin is removed
        metadata: Free-form description/author/category
    """

    id: str
    name: str
    version: str
    route: str
    component: Any = None
    icon: Optional[str] = None
    route_matcher: Optional[RouteMatcher] = None
    permissions: Set[str] = field(default_factory=set)
    init: Optional[Callable[[WorkspaceContext], None]] = None
    destroy: Optional[Callable[[], None]] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PluginModule":
        """
        Build a plugin from a mapping export.

        Raises:
            KeyError: If id, name, version or route is missing
        """
        return cls(
            id=data["id"],
            name=data["name"],
            version=data["version"],
            route=data["route"],
            component=data.get("component"),
            icon=data.get("icon"),
            route_matcher=data.get("route_matcher"),
            permissions=set(data.get("permissions") or ()),
            init=data.get("init"),
            destroy=data.get("destroy"),
            metadata=dict(data.get("metadata") or {}),
        )

    def nav_item(self) -> PluginNavItem:
        return PluginNavItem(id=self.id, name=self.name, icon=self.icon, route=self.route)
