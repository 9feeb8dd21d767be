"""Parsing of ``go.mod`` manifests.

The parser is deliberately tolerant: lines it does not understand are
skipped so hand-edited manifests with directives we do not model (``godebug``,
``toolchain``, ``tool``, ...) still parse.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "go.mod"

WHITESPACE = re.compile(r"\s+")
COMMENT = "//"
INDIRECT_COMMENT = "// indirect"
REPLACE_ARROW = "=>"


@dataclass(frozen=True)
class RequireDirective:
    """A ``require`` directive, e.g. ``github.com/gin-gonic/gin v1.9.1 // indirect``."""

    path: str
    version: str
    indirect: bool = False


@dataclass(frozen=True)
class ReplaceDirective:
    """A ``replace`` directive, e.g. ``github.com/old/pkg v1.0.0 => ../local/pkg``.

    When ``old_version`` is None the replacement applies to every version of ``old_path``.
    """

    old_path: str
    old_version: str | None
    new_path: str
    new_version: str | None


@dataclass(frozen=True)
class ExcludeDirective:
    path: str
    version: str


@dataclass(frozen=True)
class RetractDirective:
    """A ``retract`` directive; ``version`` may be a range such as ``[v1.0.0, v1.5.0]``."""

    version: str
    rationale: str | None = None


@dataclass(frozen=True)
class ManifestDocument:
    """The parsed contents of a ``go.mod`` file."""

    module: str = ""
    go_version: str = ""
    require: tuple[RequireDirective, ...] = ()
    replace: tuple[ReplaceDirective, ...] = ()
    exclude: tuple[ExcludeDirective, ...] = ()
    retract: tuple[RetractDirective, ...] = ()

    def replacement_for(self, path: str, version: str | None = None) -> ReplaceDirective | None:
        """Return the replace directive that applies to ``path`` (at ``version``), if any.

        A directive pinned to a version takes precedence over one that applies to all versions.
        """
        wildcard = None
        for directive in self.replace:
            if directive.old_path != path:
                continue
            if directive.old_version is None:
                wildcard = directive
            elif version is not None and directive.old_version == version:
                return directive
        return wildcard

    def is_excluded(self, path: str, version: str) -> bool:
        return any(e.path == path and e.version == version for e in self.exclude)


class BlockType(Enum):
    REQUIRE = "require"
    REPLACE = "replace"
    EXCLUDE = "exclude"
    RETRACT = "retract"


BLOCK_OPENERS = {f"{block.value} (": block for block in BlockType}


def parse_require_line(line: str) -> RequireDirective | None:
    """Parse ``path version [// indirect]``."""
    if not line.strip():
        return None
    indirect = INDIRECT_COMMENT in line
    content = line.split(COMMENT, 1)[0].strip()
    if not content:
        return None
    parts = WHITESPACE.split(content)
    if len(parts) < 2:  # noqa: PLR2004
        return None
    return RequireDirective(path=parts[0], version=parts[1], indirect=indirect)


def parse_replace_line(line: str) -> ReplaceDirective | None:
    """Parse ``old [version] => new [version]``."""
    if not line.strip() or REPLACE_ARROW not in line:
        return None
    sides = [side.strip() for side in line.split(REPLACE_ARROW)]
    if len(sides) != 2 or not sides[0] or not sides[1]:  # noqa: PLR2004
        return None
    old_parts = WHITESPACE.split(sides[0])
    new_parts = WHITESPACE.split(sides[1])
    return ReplaceDirective(
        old_path=old_parts[0],
        old_version=old_parts[1] if len(old_parts) > 1 else None,
        new_path=new_parts[0],
        new_version=new_parts[1] if len(new_parts) > 1 else None,
    )


def parse_exclude_line(line: str) -> ExcludeDirective | None:
    """Parse ``path version``."""
    if not line.strip():
        return None
    parts = WHITESPACE.split(line.strip())
    if len(parts) < 2:  # noqa: PLR2004
        return None
    return ExcludeDirective(path=parts[0], version=parts[1])


def parse_retract_line(line: str) -> RetractDirective | None:
    """Parse ``version [// rationale]`` or ``[low, high] [// rationale]``."""
    if not line.strip():
        return None
    version, sep, rationale = line.partition(COMMENT)
    return RetractDirective(version=version.strip(), rationale=rationale.strip() if sep else None)


LINE_PARSERS = {
    BlockType.REQUIRE: parse_require_line,
    BlockType.REPLACE: parse_replace_line,
    BlockType.EXCLUDE: parse_exclude_line,
    BlockType.RETRACT: parse_retract_line,
}


def parse(content: str | bytes) -> ManifestDocument:
    """Parse ``go.mod`` content.

    Never raises on malformed input; unparseable lines are dropped.
    """
    if isinstance(content, bytes):
        content = content.decode("utf-8-sig", errors="replace")
    content = content.removeprefix("\ufeff")

    module = ""
    go_version = ""
    directives: dict[BlockType, list] = {block: [] for block in BlockType}
    current_block: BlockType | None = None

    for line in content.splitlines():
        trimmed = line.strip()
        if not trimmed or trimmed.startswith(COMMENT):
            continue

        if trimmed in BLOCK_OPENERS:
            current_block = BLOCK_OPENERS[trimmed]
            continue
        if trimmed == ")":
            current_block = None
            continue

        if current_block is None:
            if trimmed.startswith("module "):
                module = trimmed.removeprefix("module ").strip()
                continue
            if trimmed.startswith("go "):
                go_version = trimmed.removeprefix("go ").strip()
                continue
            keyword, _, rest = trimmed.partition(" ")
            try:
                block = BlockType(keyword)
            except ValueError:
                logger.debug("Skipping unsupported go.mod line: %s", trimmed)
                continue
            parsed = LINE_PARSERS[block](rest.strip())
        else:
            block = current_block
            parsed = LINE_PARSERS[block](trimmed)

        if parsed is None:
            logger.debug("Skipping malformed %s line: %s", block.value, trimmed)
        else:
            directives[block].append(parsed)

    return ManifestDocument(
        module=module,
        go_version=go_version,
        require=tuple(directives[BlockType.REQUIRE]),
        replace=tuple(directives[BlockType.REPLACE]),
        exclude=tuple(directives[BlockType.EXCLUDE]),
        retract=tuple(directives[BlockType.RETRACT]),
    )


def parse_file(path: Path | str) -> ManifestDocument:
    """Read and parse a ``go.mod`` file from disk."""
    return parse(Path(path).read_bytes())


def find_manifest(directory: Path | str) -> Path | None:
    """Return the ``go.mod`` in ``directory``, or None if there is none."""
    manifest = Path(directory) / MANIFEST_FILENAME
    return manifest if manifest.is_file() else None
