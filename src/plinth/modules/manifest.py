"""
Module manifest schema and validation.

Defines the structure of the per-module metadata file (manifest.json) that
describes a feature module: its identity, the modules it depends on, and the
backend/frontend files it contributes. Manifests are validated using Pydantic.
"""

import json
import logging
from pathlib import Path
from typing import List, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from plinth.exceptions import ManifestError

logger = logging.getLogger(__name__)

# Reserved dependency id for the platform itself; always available.
CORE_MODULE_ID = "core"

MANIFEST_FILENAME = "manifest.json"


class BackendFiles(BaseModel):
    """Backend files contributed by a module, relative to the module directory."""

    model_config = ConfigDict(extra="ignore")

    controllers: List[str] = Field(default_factory=list)
    services: List[str] = Field(default_factory=list)
    models: List[str] = Field(default_factory=list)


class FrontendFiles(BaseModel):
    """Frontend files contributed by a module, relative to the module directory."""

    model_config = ConfigDict(extra="ignore")

    plugins: List[str] = Field(default_factory=list)
    components: List[str] = Field(default_factory=list)


class ModuleManifest(BaseModel):
    """
    Static descriptor of a feature module.

    Loaded from ``manifest.json`` inside the module directory. ``name`` and
    ``version`` are required; everything else is optional.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str = Field(..., min_length=1, description="Human-readable module name")

    version: str = Field(..., min_length=1, description="Module version string")

    category: Optional[str] = None

    author: Optional[str] = None

    description: Optional[str] = None

    depends: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("depends", "dependsOn", "depends_on"),
        description="Ids of modules that must load before this one",
    )

    installable: bool = Field(
        False,
        description="Only installable modules are eligible for enabling",
    )

    backend: Optional[BackendFiles] = None

    frontend: Optional[FrontendFiles] = None

    @field_validator("depends")
    @classmethod
    def dedupe_depends(cls, depends: List[str]) -> List[str]:
        """Keep declaration order but drop repeated ids."""
        seen: list[str] = []
        for dep in depends:
            if dep not in seen:
                seen.append(dep)
        return seen

    @property
    def has_backend(self) -> bool:
        return self.backend is not None

    @property
    def has_frontend(self) -> bool:
        return self.frontend is not None

    @classmethod
    def from_file(cls, manifest_path: Path) -> "ModuleManifest":
        """
        Load a module manifest from a manifest.json file.

        Args:
            manifest_path: Path to the manifest file

        Returns:
            ModuleManifest instance

        Raises:
            ManifestError: If the file is unreadable, not JSON, or fails
                validation (including missing name/version)
        """
        try:
            with open(manifest_path, encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise ManifestError(manifest_path, f"cannot read file: {e}") from e
        except json.JSONDecodeError as e:
            raise ManifestError(manifest_path, f"invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise ManifestError(manifest_path, "manifest must be a JSON object")

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            missing = [
                str(err["loc"][0])
                for err in e.errors()
                if err["type"] == "missing" and err["loc"]
            ]
            if missing:
                raise ManifestError(
                    manifest_path,
                    f"missing required fields: {', '.join(missing)}",
                ) from e
            raise ManifestError(manifest_path, str(e)) from e
