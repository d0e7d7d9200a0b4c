"""
Workspace navigation helpers.

Builds the sidebar structure from the core pages plus one entry per plugin,
and turns nav entries into URLs under ``/workspace/<slug>``.
"""

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from plinth.client.plugin_types import PluginNavItem

DEFAULT_ICON = "square-terminal"


@dataclass
class NavSubItem:
    title: str
    slug: str


@dataclass
class NavItem:
    title: str
    icon: str
    items: List[NavSubItem]
    is_active: bool = False


@dataclass
class NavData:
    nav_main: List[NavItem] = field(default_factory=list)
    nav_secondary: List[NavItem] = field(default_factory=list)


def generate_nav_url(workspace_slug: str, parent: NavItem, sub_item: NavSubItem) -> str:
    """
    URL of a sub-navigation entry.

    Plugin routes contain ``/`` and are used directly under the workspace
    (``/workspace/acme/sales/orders``). Core pages are placed under their
    parent's slugified title (``/workspace/acme/settings/general``).
    """
    base_url = f"/workspace/{workspace_slug}"
    if "/" in sub_item.slug:
        return f"{base_url}/{sub_item.slug}"
    parent_slug = re.sub(r"\s+", "-", parent.title.lower())
    return f"{base_url}/{parent_slug}/{sub_item.slug}"


def create_nav_data(
    workspace_slug: str, plugin_nav_items: Optional[Iterable[PluginNavItem]] = None
) -> NavData:
    """
    Navigation for a workspace: core sections followed by one section per plugin.

    Args:
        workspace_slug: Slug of the current workspace
        plugin_nav_items: Entries from ``PluginRegistry.get_plugin_nav_items()``
    """
    core_items = [
        NavItem(
            title="Dashboard",
            icon="square-terminal",
            is_active=True,
            items=[NavSubItem(title="Overview", slug="overview")],
        ),
        NavItem(
            title="Settings",
            icon="settings-2",
            items=[NavSubItem(title="General", slug="general")],
        ),
    ]

    plugin_items = [
        NavItem(
            title=plugin.name,
            icon=plugin.icon or DEFAULT_ICON,
            items=[NavSubItem(title=plugin.name, slug=plugin.route)],
        )
        for plugin in (plugin_nav_items or [])
    ]

    return NavData(nav_main=core_items + plugin_items)
