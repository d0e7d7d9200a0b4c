"""
Module discovery.

Walks one or more root directories looking for feature modules. Each immediate
subdirectory of a root that contains a valid manifest.json is a candidate
module; its directory name becomes the module id.

Discovery is tolerant: a missing root, an empty root or a malformed manifest
never aborts the scan. Only an unexpected error while listing a root
propagates.
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from plinth.exceptions import ManifestError
from plinth.modules.manifest import CORE_MODULE_ID, MANIFEST_FILENAME, ModuleManifest
from plinth.modules.types import DependencyCheck, ModuleMetadata

logger = logging.getLogger(__name__)


class ModuleScanner:
    """
    Discovers installable modules under a list of root directories.

    Roots are scanned in order. When two roots provide a module with the same
    id, the module from the earlier root wins and the later one is skipped
    with a warning.

    Example:
        >>> scanner = ModuleScanner([Path("modules"), Path("packages")])
        >>> for module in scanner.discover():
        ...     print(module.id, module.manifest.version)
    """

    def __init__(
        self,
        roots: Optional[Sequence[Path | str]] = None,
        manifest_name: str = MANIFEST_FILENAME,
    ) -> None:
        """
        Initialize the scanner.

        Args:
            roots: Directories to scan, in precedence order
            manifest_name: File name of the manifest inside each module directory
        """
        self.roots: List[Path] = [Path(root) for root in (roots or [])]
        self.manifest_name = manifest_name

    def discover(
        self, roots: Optional[Sequence[Path | str]] = None
    ) -> List[ModuleMetadata]:
        """
        Discover all installable modules.

        Args:
            roots: Directories to scan instead of the configured roots

        Returns:
            Module records from all roots, earlier roots first
        """
        scan_roots = [Path(root) for root in roots] if roots is not None else self.roots
        logger.info(f"Scanning {len(scan_roots)} module root(s)")

        modules: List[ModuleMetadata] = []
        seen: dict[str, Path] = {}

        for root in scan_roots:
            for module in self._scan_root(root):
                if module.id in seen:
                    logger.warning(
                        f"Duplicate module id '{module.id}' at {module.path} "
                        f"ignored (already discovered at {seen[module.id]})"
                    )
                    continue
                seen[module.id] = module.path
                modules.append(module)

        logger.info(f"Discovered {len(modules)} module(s): {[m.id for m in modules]}")
        return modules

    def _scan_root(self, root: Path) -> List[ModuleMetadata]:
        """Scan the immediate subdirectories of a single root."""
        modules: List[ModuleMetadata] = []

        try:
            entries = sorted(root.iterdir(), key=lambda p: p.name)
        except FileNotFoundError:
            logger.debug(f"Module root does not exist: {root}")
            return modules
        except NotADirectoryError:
            logger.warning(f"Module root is not a directory: {root}")
            return modules

        for entry in entries:
            if not entry.is_dir():
                continue

            module = self._read_module(entry)
            if module is not None:
                modules.append(module)

        logger.debug(f"Found {len(modules)} module(s) in {root}")
        return modules

    def _read_module(self, module_dir: Path) -> Optional[ModuleMetadata]:
        """Build a module record from a directory, or None if it is not usable."""
        manifest_path = module_dir / self.manifest_name
        if not manifest_path.exists():
            # Not a module directory
            logger.debug(f"No {self.manifest_name} in {module_dir}, skipping")
            return None

        try:
            manifest = ModuleManifest.from_file(manifest_path)
        except ManifestError as e:
            logger.warning(f"Rejected module at {module_dir}: {e.reason}")
            return None

        if manifest.installable is not True:
            logger.info(f"Module '{module_dir.name}' is not installable, skipping")
            return None

        logger.debug(
            f"Discovered module: {module_dir.name} v{manifest.version} at {module_dir}"
        )
        return ModuleMetadata(
            id=module_dir.name,
            path=module_dir.resolve(),
            manifest=manifest,
        )

    def validate_dependencies(
        self, module: ModuleMetadata, available_modules: Iterable[ModuleMetadata]
    ) -> DependencyCheck:
        """
        Check a module's declared dependencies against a set of modules.

        Only first-level dependencies are checked; transitive ordering is the
        registry's concern. The core platform id is always considered present.

        Args:
            module: Module whose dependencies are checked
            available_modules: Modules that count as present

        Returns:
            DependencyCheck listing missing ids in declaration order
        """
        available_ids = {m.id for m in available_modules}
        missing = [
            dep
            for dep in module.depends
            if dep != CORE_MODULE_ID and dep not in available_ids
        ]
        return DependencyCheck(valid=not missing, missing=missing)
