"""Display-ready data models for dependencies and update checks."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .manifest import RequireDirective

GITHUB_PREFIX = "github.com/"


@dataclass(frozen=True)
class VersionUpdate:
    """Result of checking one dependency for a newer version."""

    path: str
    current_version: str
    latest_version: str | None = None
    has_update: bool = False

    def to_obj(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class DependencyRecord:
    """A required module enriched with update and usage information."""

    path: str
    version: str
    indirect: bool = False
    latest_version: str | None = None
    has_update: bool = False
    used_in_code: bool = False

    @classmethod
    def from_require_directive(cls, directive: RequireDirective) -> DependencyRecord:
        return cls(path=directive.path, version=directive.version, indirect=directive.indirect)

    @property
    def name(self) -> str:
        """The last element of the import path."""
        return self.path.rsplit("/", 1)[-1]

    @property
    def is_github(self) -> bool:
        return self.path.startswith(GITHUB_PREFIX)

    @property
    def owner(self) -> str | None:
        """The owner/organization of a ``github.com`` module."""
        if not self.is_github:
            return None
        return self.path.removeprefix(GITHUB_PREFIX).split("/", 1)[0]

    @property
    def clean_version(self) -> str:
        return self.version.removeprefix("v")

    @property
    def pkg_go_dev_url(self) -> str:
        return f"https://pkg.go.dev/{self.path}@{self.version}"

    @property
    def github_url(self) -> str | None:
        if not self.is_github:
            return None
        parts = self.path.removeprefix(GITHUB_PREFIX).split("/")
        if len(parts) < 2:  # noqa: PLR2004
            return None
        return f"https://github.com/{parts[0]}/{parts[1]}"

    def to_obj(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "path": self.path,
            "version": self.version,
            "indirect": self.indirect,
            "latest_version": self.latest_version,
            "has_update": self.has_update,
            "used_in_code": self.used_in_code,
            "pkg_go_dev_url": self.pkg_go_dev_url,
        }
