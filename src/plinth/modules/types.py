"""
Runtime records for the module system.

``ModuleMetadata`` is produced by the scanner for every installable module it
finds; ``LoadedModule`` is produced by the loader once a module's code has been
imported.
"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional

from plinth.modules.manifest import ModuleManifest


@dataclass
class ModuleMetadata:
    """Discovery-time record for a module found on disk."""

    id: str  # Module directory name
    path: Path  # Absolute path to the module directory
    manifest: ModuleManifest
    enabled: bool = False
    installed: bool = False
    installed_at: Optional[datetime] = None

    @property
    def depends(self) -> List[str]:
        return self.manifest.depends

    def __repr__(self) -> str:
        return (
            f"<ModuleMetadata(id={self.id!r}, "
            f"version={self.manifest.version!r}, path={str(self.path)!r})>"
        )


@dataclass
class LoadedModule:
    """Symbols produced by importing an enabled module's files."""

    metadata: ModuleMetadata
    backend_controllers: List[Any] = field(default_factory=list)
    backend_services: List[Any] = field(default_factory=list)
    frontend_plugins: List[Any] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.metadata.id


@dataclass
class DependencyCheck:
    """Result of checking a module's first-level dependencies."""

    valid: bool
    missing: List[str] = field(default_factory=list)
