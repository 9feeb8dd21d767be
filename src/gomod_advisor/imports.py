"""Scanning of Go sources for imported packages."""

from __future__ import annotations

import logging
import re
from pathlib import Path

logger = logging.getLogger(__name__)

SINGLE_IMPORT_MATCH = re.compile(r'import\s+(?:[\w.]+\s+)?"([^"]+)"')
BLOCK_IMPORT_MATCH = re.compile(r"import\s*\(\s*([\s\S]*?)\s*\)")
IMPORT_LINE_MATCH = re.compile(r'(?:[\w.]+\s+)?"([^"]+)"')

SKIPPED_DIRECTORIES = frozenset({"vendor", "testdata"})


def is_external_import(import_path: str) -> bool:
    """Standard library packages have no dot in their first path element."""
    return "." in import_path.split("/", 1)[0]


def extract_imports(source_code: str) -> set[str]:
    """Return the external import paths of one Go source file."""
    imports = {m.group(1) for m in SINGLE_IMPORT_MATCH.finditer(source_code)}
    for block in BLOCK_IMPORT_MATCH.finditer(source_code):
        imports.update(m.group(1) for m in IMPORT_LINE_MATCH.finditer(block.group(1)))
    return {i for i in imports if is_external_import(i)}


class ImportScanner:
    """Collects the external imports used by the ``.go`` files of a project."""

    def __init__(self, skipped_directories: frozenset[str] = SKIPPED_DIRECTORIES) -> None:
        self.skipped_directories = skipped_directories

    def _is_skipped(self, path: Path, root: Path) -> bool:
        return any(part in self.skipped_directories for part in path.relative_to(root).parts[:-1])

    def scan(self, project_dir: Path | str) -> frozenset[str]:
        root = Path(project_dir)
        if not root.is_dir():
            return frozenset()
        imports: set[str] = set()
        for go_file in root.rglob("*.go"):
            if not go_file.is_file() or self._is_skipped(go_file, root):
                continue
            try:
                imports.update(extract_imports(go_file.read_text(encoding="utf-8", errors="replace")))
            except OSError as e:
                logger.debug("Could not read %s: %s", go_file, e)
        logger.debug("Found %d external imports in %s", len(imports), root)
        return frozenset(imports)
