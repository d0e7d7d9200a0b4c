"""Custom exceptions for Plinth."""

from pathlib import Path
from typing import Iterable


class ModuleSystemError(Exception):
    """Base class for errors raised by the module system."""


class ManifestError(ModuleSystemError):
    """Raised when a module manifest cannot be read or is invalid."""

    def __init__(self, path: Path | str, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Invalid manifest {self.path}: {reason}")


class UnknownModuleError(ModuleSystemError):
    """Raised when a module id is not among the discovered modules."""

    def __init__(self, module_id: str):
        self.module_id = module_id
        super().__init__(f"Module {module_id} not found")


class MissingDependencyError(ModuleSystemError):
    """Raised when a module is enabled while its direct dependencies are absent."""

    def __init__(self, module_id: str, missing: Iterable[str]):
        self.module_id = module_id
        self.missing = list(missing)
        super().__init__(
            f"Module {module_id} has missing dependencies: {', '.join(self.missing)}"
        )


class CircularDependencyError(ModuleSystemError):
    """Raised when the dependency graph of discovered modules contains a cycle."""

    def __init__(self, module_id: str):
        self.module_id = module_id
        super().__init__(f"Circular dependency detected: {module_id}")


class ModuleLoadError(ModuleSystemError):
    """Raised when a single module file fails to import."""

    def __init__(self, module_id: str, file_path: Path | str, reason: str = ""):
        self.module_id = module_id
        self.file_path = Path(file_path)
        message = f"Failed to load {self.file_path} for module {module_id}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class AuthenticationError(Exception):
    """Raised when credentials or tokens are invalid."""


class ConflictError(Exception):
    """Raised when creating a resource that already exists."""


class NotFoundError(Exception):
    """Raised when a requested platform resource does not exist."""


class PermissionDeniedError(Exception):
    """Raised when the current user lacks the role required for an action."""
