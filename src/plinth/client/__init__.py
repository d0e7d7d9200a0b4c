"""
Client-side support for module frontends.

The plugin registry resolves workspace routes to the frontend plugins of
enabled modules; the API client talks to a running Plinth server.
"""

from plinth.client.api_client import ClientConfig, PlinthClient
from plinth.client.plugin_registry import PluginRegistry
from plinth.client.plugin_types import (
    EventBus,
    PluginModule,
    PluginNavItem,
    WorkspaceContext,
)

__all__ = [
    "ClientConfig",
    "EventBus",
    "PlinthClient",
    "PluginModule",
    "PluginNavItem",
    "PluginRegistry",
    "WorkspaceContext",
]
