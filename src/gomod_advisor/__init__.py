"""The `gomod-advisor` APIs."""

__version__ = "0.1.0"

from .assembler import DependencyAssembler, is_package_used  # noqa: E402
from .cache import VersionResolutionCache  # noqa: E402
from .manifest import ManifestDocument, find_manifest, parse, parse_file  # noqa: E402
from .models import DependencyRecord, VersionUpdate  # noqa: E402
from .project import GoModProject, RefreshResult  # noqa: E402
from .sources import GitHubSource, GoProxySource, VersionSource  # noqa: E402
from .versions import GoVersion, compare  # noqa: E402

__all__ = [
    "DependencyAssembler",
    "DependencyRecord",
    "GitHubSource",
    "GoModProject",
    "GoProxySource",
    "GoVersion",
    "ManifestDocument",
    "RefreshResult",
    "VersionResolutionCache",
    "VersionSource",
    "VersionUpdate",
    "compare",
    "find_manifest",
    "is_package_used",
    "parse",
    "parse_file",
]
