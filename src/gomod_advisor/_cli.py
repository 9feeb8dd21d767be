"""Command-line interface for gomod-advisor."""

from __future__ import annotations

import json
import logging
import os
import sys
from typing import TYPE_CHECKING

from . import __version__ as gomod_advisor_version
from .assembler import direct, with_updates
from .cache import VersionResolutionCache
from .config import OutputFormat, Settings
from .imports import ImportScanner
from .logger import setup_logger
from .project import GoModProject, RefreshResult
from .sources import GitHubSource, GoProxySource, VersionSource

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from .models import DependencyRecord

logger = logging.getLogger(__name__)

TABLE_COLUMNS = ("MODULE", "VERSION", "LATEST", "UPDATE", "USED", "INDIRECT")


def build_sources(settings: Settings) -> list[VersionSource]:
    """Create the version sources enabled by ``settings``, in fallback order."""
    timeouts = {"connect_timeout": settings.connect_timeout, "read_timeout": settings.request_timeout}
    sources: list[VersionSource] = []
    proxy_url = settings.proxy_url
    if proxy_url is not None:
        sources.append(GoProxySource(proxy_url, **timeouts))
    if settings.github_api:
        sources.append(GitHubSource(token=settings.github_token, **timeouts))
    return sources


def build_resolver(settings: Settings) -> VersionResolutionCache | None:
    sources = build_sources(settings)
    if not sources:
        logger.warning("All version sources are disabled; latest versions will not be resolved")
        return None
    return VersionResolutionCache(
        sources,
        ttl=settings.cache_ttl,
        max_workers=settings.max_workers,
        progress=True,
    )


def _flag(value: bool) -> str:  # noqa: FBT001
    return "yes" if value else ""


def format_table(records: Sequence[DependencyRecord]) -> str:
    """Render dependency records as a plain-text table."""
    rows = [TABLE_COLUMNS] + [
        (
            r.path,
            r.version,
            r.latest_version or "?",
            _flag(r.has_update),
            _flag(r.used_in_code),
            _flag(r.indirect),
        )
        for r in records
    ]
    widths = [max(len(row[i]) for row in rows) for i in range(len(TABLE_COLUMNS))]
    lines = ["  ".join(cell.ljust(width) for cell, width in zip(row, widths, strict=True)).rstrip() for row in rows]
    return "\n".join(lines) + "\n"


def format_records(records: Sequence[DependencyRecord], output_format: OutputFormat) -> str:
    if output_format == OutputFormat.json:
        return json.dumps([r.to_obj() for r in records], indent=4) + "\n"
    return format_table(records)


def format_versions(module_path: str, versions: Iterable[str], output_format: OutputFormat) -> str:
    versions = list(versions)
    if output_format == OutputFormat.json:
        return json.dumps({"path": module_path, "versions": versions}, indent=4) + "\n"
    return "".join(f"{v}\n" for v in versions)


def _run(settings: Settings, project: GoModProject) -> tuple[RefreshResult | None, str | None]:
    """Run the operation selected by ``settings``.

    Returns the refreshed project (if any) and text to output (if any).
    """
    if settings.list_versions:
        versions = project.available_versions(settings.list_versions)
        return None, format_versions(settings.list_versions, versions, settings.output_format)
    to_version = settings.to_version or None
    if settings.add:
        result = project.add_package(settings.add, to_version)
    elif settings.remove:
        result = project.remove_package(settings.remove)
    elif settings.update:
        result = project.update_package(settings.update, to_version)
    elif settings.update_all:
        result = project.update_all()
    elif settings.tidy:
        result = project.tidy()
    else:
        result = project.refresh()
    return result, None


def main(settings: Settings | None = None) -> int:
    if settings is None:
        settings = Settings()
    setup_logger(settings.log_level)

    # If max_workers isn't provided, use the number of CPUs.
    # If that fails, use 1.
    if settings.max_workers == -1:
        settings.max_workers = os.cpu_count() or 1

    logger.debug("Starting gomod-advisor with settings: %s", settings)

    if settings.version:
        sys.stdout.write(f"gomod-advisor {gomod_advisor_version}\n")
        return 0

    if settings.output_file is not None and not settings.force and settings.output_file.exists():
        logger.error("%s already exists!\nRe-run with `--force` to overwrite the file.", settings.output_file)
        return 1

    resolver = build_resolver(settings) if settings.check_updates or settings.list_versions else None
    scanner = ImportScanner() if settings.scan_imports else None
    project = GoModProject(settings.target, resolver=resolver, scanner=scanner)

    try:
        result, output = _run(settings, project)
    finally:
        if resolver is not None:
            resolver.close()

    if result is not None:
        if not result.ok:
            logger.error("%s", result.error)
            return 1
        records = list(result.records)
        if settings.direct_only:
            records = direct(records)
        if settings.updates_only:
            records = with_updates(records)
        output = format_records(records, settings.output_format)

    if output is not None:
        if settings.output_file is None:
            sys.stdout.write(output)
        else:
            settings.output_file.write_text(output)
            logger.info("Output saved to %s", settings.output_file.absolute())
    return 0
