"""A Go module project: its manifest, dependencies and toolchain operations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from . import manifest
from .assembler import DependencyAssembler, usage_predicate
from .errors import GoCommandError, ManifestNotFoundError
from .imports import ImportScanner
from .toolchain import GoToolchain
from .versions import sort_newest_first

if TYPE_CHECKING:
    from collections.abc import Callable

    from .cache import VersionResolutionCache
    from .manifest import ManifestDocument
    from .models import DependencyRecord

logger = logging.getLogger(__name__)

MANIFEST_NOT_FOUND = "go.mod file not found"


@dataclass(frozen=True)
class RefreshResult:
    """The dependencies of a project, or the reason they could not be loaded."""

    records: tuple[DependencyRecord, ...] = ()
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class GoModProject:
    """Loads the ``go.mod`` of a directory and assembles its dependencies.

    Mutations are delegated to the ``go`` toolchain; after a successful
    mutation the cached manifest is invalidated and the project refreshed.
    """

    def __init__(
        self,
        directory: Path | str,
        resolver: VersionResolutionCache | None = None,
        scanner: ImportScanner | None = None,
        toolchain: GoToolchain | None = None,
    ) -> None:
        self.directory = Path(directory)
        self.resolver = resolver
        self.scanner = scanner
        self.toolchain = toolchain if toolchain is not None else GoToolchain(self.directory)
        self.assembler = DependencyAssembler(resolver)
        self._document: ManifestDocument | None = None

    def find_manifest(self) -> Path | None:
        return manifest.find_manifest(self.directory)

    def has_manifest(self) -> bool:
        return self.find_manifest() is not None

    def document(self) -> ManifestDocument | None:
        """Return the parsed manifest, or None if the project has no ``go.mod``."""
        if self._document is None:
            path = self.find_manifest()
            if path is None:
                return None
            self._document = manifest.parse_file(path)
        return self._document

    def require_manifest(self) -> ManifestDocument:
        document = self.document()
        if document is None:
            raise ManifestNotFoundError(self.directory)
        return document

    def invalidate(self) -> None:
        self._document = None

    def _usage(self) -> Callable[[str], bool]:
        if self.scanner is None:
            return lambda _path: False
        return usage_predicate(self.scanner.scan(self.directory))

    def refresh(self) -> RefreshResult:
        """Re-read ``go.mod`` and rebuild the dependency records."""
        try:
            self.invalidate()
            document = self.document()
            if document is None:
                return RefreshResult(error=MANIFEST_NOT_FOUND)
            records = self.assembler.assemble(document, self._usage())
        except Exception as e:
            logger.exception("Failed to parse go.mod")
            return RefreshResult(error=f"Failed to parse go.mod: {e}")
        return RefreshResult(records=tuple(records))

    def _mutate(self, description: str, operation: Callable[[], object]) -> RefreshResult:
        try:
            operation()
        except GoCommandError as e:
            logger.warning("Failed to %s: %s", description, e)
            return RefreshResult(error=f"Failed to {description}: {e}")
        if self.resolver is not None:
            self.resolver.clear()
        return self.refresh()

    def add_package(self, module_path: str, version: str | None = None) -> RefreshResult:
        return self._mutate("add package", lambda: self.toolchain.get(module_path, version or "latest"))

    def remove_package(self, module_path: str) -> RefreshResult:
        return self._mutate("remove package", lambda: self.toolchain.drop_require(module_path))

    def update_package(self, module_path: str, version: str | None = None) -> RefreshResult:
        """Update a module to ``version``, or with ``go get -u`` when no version is given."""
        if version is None:
            return self._mutate("update package", lambda: self.toolchain.get_update(module_path))
        return self._mutate("update package", lambda: self.toolchain.get(module_path, version))

    def update_all(self) -> RefreshResult:
        return self._mutate("update packages", self.toolchain.update_all)

    def tidy(self) -> RefreshResult:
        return self._mutate("run go mod tidy", self.toolchain.tidy)

    def available_versions(self, module_path: str) -> list[str]:
        """Return the available versions of a module, newest first.

        Uses the resolver when there is one and falls back to ``go list``.
        """
        if self.resolver is not None:
            versions = self.resolver.resolve_all_versions(module_path)
            if versions:
                return versions
        try:
            listed = self.toolchain.list_versions(module_path)
        except GoCommandError as e:
            logger.debug("go list failed for %s: %s", module_path, e)
            return []
        return sort_newest_first(listed)
