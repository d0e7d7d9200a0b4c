"""Tests for module manifest parsing."""

import json

import pytest

from plinth.exceptions import ManifestError
from plinth.modules.manifest import ModuleManifest


def write_manifest(tmp_path, data):
    path = tmp_path / "manifest.json"
    path.write_text(data if isinstance(data, str) else json.dumps(data))
    return path


class TestModuleManifest:
    """Test ModuleManifest validation."""

    def test_minimal_manifest(self):
        """Test that name and version are enough."""
        manifest = ModuleManifest(name="Reporting", version="1.0.0")

        assert manifest.name == "Reporting"
        assert manifest.version == "1.0.0"
        assert manifest.depends == []
        assert manifest.installable is False
        assert manifest.backend is None
        assert manifest.frontend is None
        assert manifest.has_backend is False

    def test_full_manifest(self):
        """Test parsing every supported field."""
        manifest = ModuleManifest.model_validate(
            {
                "name": "Sales Orders",
                "version": "1.2.0",
                "category": "sales",
                "author": "Plinth Team",
                "description": "Manage sales orders",
                "depends": ["core"],
                "installable": True,
                "backend": {
                    "controllers": ["backend/controllers/orders.py"],
                    "services": ["backend/services/orders.py"],
                    "models": ["backend/models/orders.py"],
                },
                "frontend": {"plugins": ["frontend/plugin.py"]},
            }
        )

        assert manifest.category == "sales"
        assert manifest.installable is True
        assert manifest.backend.controllers == ["backend/controllers/orders.py"]
        assert manifest.backend.models == ["backend/models/orders.py"]
        assert manifest.frontend.plugins == ["frontend/plugin.py"]
        assert manifest.frontend.components == []
        assert manifest.has_backend is True
        assert manifest.has_frontend is True

    @pytest.mark.parametrize("key", ["depends", "dependsOn", "depends_on"])
    def test_dependency_key_aliases(self, key):
        """Test that all dependency key spellings are accepted."""
        manifest = ModuleManifest.model_validate(
            {"name": "Reporting", "version": "1.0.0", key: ["core-extras"]}
        )

        assert manifest.depends == ["core-extras"]

    def test_depends_are_deduplicated_in_order(self):
        """Test that repeated dependencies are dropped, keeping first occurrence."""
        manifest = ModuleManifest(
            name="Reporting", version="1.0.0", depends=["b", "a", "b", "core", "a"]
        )

        assert manifest.depends == ["b", "a", "core"]

    def test_unknown_fields_are_ignored(self):
        """Test that extra manifest keys do not fail validation."""
        manifest = ModuleManifest.model_validate(
            {"name": "Reporting", "version": "1.0.0", "license": "MIT"}
        )

        assert manifest.name == "Reporting"


class TestManifestFromFile:
    """Test loading manifests from disk."""

    def test_load_valid_file(self, tmp_path):
        """Test loading a valid manifest file."""
        path = write_manifest(
            tmp_path, {"name": "Reporting", "version": "2.0.0", "installable": True}
        )

        manifest = ModuleManifest.from_file(path)

        assert manifest.name == "Reporting"
        assert manifest.version == "2.0.0"

    @pytest.mark.parametrize(
        "data,missing",
        [
            ({"version": "1.0.0"}, "name"),
            ({"name": "Reporting"}, "version"),
        ],
    )
    def test_missing_required_field(self, tmp_path, data, missing):
        """Test that a missing name or version is reported by field."""
        path = write_manifest(tmp_path, data)

        with pytest.raises(ManifestError) as exc_info:
            ModuleManifest.from_file(path)

        assert missing in exc_info.value.reason
        assert exc_info.value.path == path

    def test_invalid_json(self, tmp_path):
        """Test that malformed JSON raises ManifestError."""
        path = write_manifest(tmp_path, "{not json")

        with pytest.raises(ManifestError, match="invalid JSON"):
            ModuleManifest.from_file(path)

    def test_non_object_json(self, tmp_path):
        """Test that a JSON array is rejected."""
        path = write_manifest(tmp_path, "[1, 2, 3]")

        with pytest.raises(ManifestError, match="JSON object"):
            ModuleManifest.from_file(path)

    def test_missing_file(self, tmp_path):
        """Test that an unreadable file raises ManifestError."""
        with pytest.raises(ManifestError, match="cannot read file"):
            ModuleManifest.from_file(tmp_path / "manifest.json")
