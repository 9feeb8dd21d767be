"""Assembly of dependency records from a parsed manifest."""

from __future__ import annotations

import dataclasses
import functools
import logging
from typing import TYPE_CHECKING

from .models import DependencyRecord, VersionUpdate

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from .cache import VersionResolutionCache
    from .manifest import ManifestDocument

logger = logging.getLogger(__name__)


def is_package_used(package_path: str, imports: Iterable[str]) -> bool:
    """Check whether any import refers to ``package_path``.

    Matches an exact import, an import of a sub-package of ``package_path``,
    and an import of a parent path of ``package_path``.
    """
    return any(
        import_path == package_path
        or import_path.startswith(f"{package_path}/")
        or package_path.startswith(f"{import_path}/")
        for import_path in imports
    )


def usage_predicate(imports: Iterable[str]) -> Callable[[str], bool]:
    """Bind a set of observed imports into a ``path -> used`` predicate."""
    return functools.partial(is_package_used, imports=frozenset(imports))


def _never_used(_path: str) -> bool:
    return False


class DependencyAssembler:
    """Builds :class:`DependencyRecord` objects for every required module.

    Without a resolver the assembler works offline: no latest versions are
    looked up and no record reports an update.
    """

    def __init__(self, resolver: VersionResolutionCache | None = None) -> None:
        self.resolver = resolver

    def assemble(
        self,
        document: ManifestDocument,
        is_used: Callable[[str], bool] = _never_used,
    ) -> list[DependencyRecord]:
        """Return one record per require directive, in manifest order."""
        requires = document.require
        if self.resolver is not None:
            updates = self.resolver.check_updates(requires)
        else:
            updates = [VersionUpdate(path=r.path, current_version=r.version) for r in requires]
        records = [
            dataclasses.replace(
                DependencyRecord.from_require_directive(directive),
                latest_version=update.latest_version,
                has_update=update.has_update,
                used_in_code=is_used(directive.path),
            )
            for directive, update in zip(requires, updates, strict=True)
        ]
        logger.debug(
            "Assembled %d dependencies for %s (%d with updates)",
            len(records),
            document.module or "<unnamed module>",
            sum(1 for r in records if r.has_update),
        )
        return records


def direct(records: Iterable[DependencyRecord]) -> list[DependencyRecord]:
    return [r for r in records if not r.indirect]


def indirect(records: Iterable[DependencyRecord]) -> list[DependencyRecord]:
    return [r for r in records if r.indirect]


def with_updates(records: Iterable[DependencyRecord]) -> list[DependencyRecord]:
    return [r for r in records if r.has_update]
