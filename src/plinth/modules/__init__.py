"""
Module system for optional feature packages.

This package provides infrastructure for discovering, ordering, loading and
managing feature modules. A module is a directory with a manifest.json placed
under one of the configured module roots.
"""

from plinth.modules.integration import ModuleIntegration
from plinth.modules.loader import ModuleLoader
from plinth.modules.manager import ManagerState, ModuleManager
from plinth.modules.manifest import ModuleManifest
from plinth.modules.registry import ModuleRegistry
from plinth.modules.scanner import ModuleScanner
from plinth.modules.types import DependencyCheck, LoadedModule, ModuleMetadata

__all__ = [
    "DependencyCheck",
    "LoadedModule",
    "ManagerState",
    "ModuleIntegration",
    "ModuleLoader",
    "ModuleManager",
    "ModuleManifest",
    "ModuleMetadata",
    "ModuleRegistry",
    "ModuleScanner",
]
