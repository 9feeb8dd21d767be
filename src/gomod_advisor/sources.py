"""Version sources: the Go module proxy and GitHub."""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from requests import RequestException, Response, Session

from . import __version__
from .versions import is_valid_version, sort_newest_first

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)

USER_AGENT = f"gomod-advisor/{__version__}"

DEFAULT_CONNECT_TIMEOUT = 10.0
DEFAULT_READ_TIMEOUT = 30.0

GITHUB_MODULE_MATCH = re.compile(r"^github\.com/([^/\s]+)/([^/\s]+)")

HTTP_OK = 200
HTTP_FORBIDDEN = 403
HTTP_NOT_FOUND = 404


def escape_module_path(path: str) -> str:
    """Escape a module path for use in a module proxy URL.

    ASCII uppercase letters are replaced by ``!`` followed by the lowercase letter,
    so ``github.com/Azure/azure-sdk`` becomes ``github.com/!azure/azure-sdk``.
    """
    return "".join(f"!{c.lower()}" if "A" <= c <= "Z" else c for c in path)


def extract_github_repo(module_path: str) -> tuple[str, str] | None:
    """Extract owner and repo from a ``github.com`` module path.

    Examples:
        >>> extract_github_repo("github.com/gin-gonic/gin")
        ('gin-gonic', 'gin')
        >>> extract_github_repo("github.com/go-redis/redis/v8")
        ('go-redis', 'redis')
        >>> extract_github_repo("golang.org/x/sync") is None
        True

    """
    if not module_path:
        return None
    m = GITHUB_MODULE_MATCH.match(module_path)
    if m is None:
        return None
    return m.group(1), m.group(2)


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ModuleVersion(_Payload):
    """Version info returned by the module proxy (``@latest`` and ``.info``)."""

    version: str = Field(alias="Version")
    time: str | None = Field(default=None, alias="Time")


class GitHubRelease(_Payload):
    id: int
    tag_name: str
    name: str | None = None
    html_url: str | None = None
    prerelease: bool = False
    draft: bool = False
    published_at: str | None = None


class GitHubTag(_Payload):
    name: str


class GitHubLicense(_Payload):
    key: str
    name: str
    spdx_id: str | None = None


class GitHubRepository(_Payload):
    id: int
    full_name: str
    name: str
    description: str | None = None
    html_url: str
    stargazers_count: int = 0
    forks_count: int = 0
    open_issues_count: int = 0
    license: GitHubLicense | None = None
    updated_at: str | None = None
    default_branch: str = "main"


_TAG_LIST = TypeAdapter(list[GitHubTag])


class VersionSource(ABC):
    """Something that can answer version queries for a module path.

    Implementations must never raise: failures are reported as an empty
    result so that the next source can be tried.
    """

    name: ClassVar[str]

    def applies_to(self, module_path: str) -> bool:  # noqa: ARG002
        """Return whether this source can answer queries for ``module_path``."""
        return True

    @abstractmethod
    def latest_version(self, module_path: str) -> str | None:
        """Return the latest version of the module, or None if unknown."""
        raise NotImplementedError

    @abstractmethod
    def versions(self, module_path: str) -> list[str]:
        """Return the known versions of the module, newest first."""
        raise NotImplementedError

    def close(self) -> None:
        """Release any resources held by this source."""


class _HTTPSource(VersionSource):
    """A version source backed by a :class:`requests.Session`."""

    def __init__(
        self,
        session: Session | None = None,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        read_timeout: float = DEFAULT_READ_TIMEOUT,
    ) -> None:
        self.session = session if session is not None else Session()
        self.session.headers["User-Agent"] = USER_AGENT
        self.timeout: tuple[float, float] = (connect_timeout, read_timeout)

    def _get(self, url: str, headers: Mapping[str, str] | None = None, **kwargs: Any) -> Response | None:  # noqa: ANN401
        try:
            response = self.session.get(url, headers=headers, timeout=self.timeout, **kwargs)
        except RequestException as e:
            logger.debug("%s request to %s failed: %s", self.name, url, e)
            return None
        self._observe(response)
        if response.status_code != HTTP_OK:
            logger.debug("%s returned HTTP %s for %s", self.name, response.status_code, url)
            return None
        return response

    def _observe(self, response: Response) -> None:
        """Hook for inspecting every response, successful or not."""

    def close(self) -> None:
        self.session.close()


class GoProxySource(_HTTPSource):
    """Client for a Go module proxy (https://go.dev/ref/mod#module-proxy).

    Endpoints:
        GET $base/$module/@v/list           list versions
        GET $base/$module/@latest           latest version info
        GET $base/$module/@v/$version.info  version info
        GET $base/$module/@v/$version.mod   go.mod file
    """

    name = "goproxy"
    DEFAULT_URL = "https://proxy.golang.org"

    def __init__(self, base_url: str = DEFAULT_URL, **kwargs: Any) -> None:  # noqa: ANN401
        """Initialize a module proxy client.

        Args:
            base_url: Proxy base URL, e.g. ``https://proxy.golang.org``
            **kwargs: Passed through to the HTTP session setup (``session``, timeouts)

        """
        super().__init__(**kwargs)
        self.base_url = base_url.rstrip("/")

    def _module_url(self, module_path: str) -> str:
        return f"{self.base_url}/{escape_module_path(module_path)}"

    def versions(self, module_path: str) -> list[str]:
        response = self._get(f"{self._module_url(module_path)}/@v/list")
        if response is None:
            return []
        return sort_newest_first(line.strip() for line in response.text.splitlines() if line.strip())

    def version_info(self, module_path: str, version: str) -> ModuleVersion | None:
        response = self._get(f"{self._module_url(module_path)}/@v/{escape_module_path(version)}.info")
        if response is None:
            return None
        try:
            return ModuleVersion.model_validate_json(response.content)
        except ValidationError as e:
            logger.debug("Malformed version info for %s@%s: %s", module_path, version, e)
            return None

    def latest_version(self, module_path: str) -> str | None:
        response = self._get(f"{self._module_url(module_path)}/@latest")
        if response is not None:
            try:
                return ModuleVersion.model_validate_json(response.content).version or None
            except ValidationError as e:
                logger.debug("Malformed @latest response for %s: %s", module_path, e)
        # fall back to the newest entry of the version list
        versions = self.versions(module_path)
        return versions[0] if versions else None

    def go_mod(self, module_path: str, version: str) -> str | None:
        """Return the ``go.mod`` of a specific module version."""
        response = self._get(f"{self._module_url(module_path)}/@v/{escape_module_path(version)}.mod")
        return None if response is None else response.text

    def module_exists(self, module_path: str) -> bool:
        return self.latest_version(module_path) is not None


class GitHubSource(_HTTPSource):
    """Version information from GitHub releases and tags.

    Only applies to ``github.com/<owner>/<repo>`` module paths.
    """

    name = "github"
    API_BASE = "https://api.github.com"
    RATE_LIMIT_WARNING = 10

    def __init__(self, token: str | None = None, tag_limit: int = 30, **kwargs: Any) -> None:  # noqa: ANN401
        """Initialize GitHub API client.

        Args:
            token: GitHub personal access token for authentication
            tag_limit: Maximum number of tags to request
            **kwargs: Passed through to the HTTP session setup (``session``, timeouts)

        """
        super().__init__(**kwargs)
        if token:
            self.session.headers["Authorization"] = f"token {token}"
        self.session.headers["Accept"] = "application/vnd.github.v3+json"
        self.tag_limit = tag_limit
        self.remaining_requests: int | None = None
        self.reset_time: int | None = None

    def applies_to(self, module_path: str) -> bool:
        return extract_github_repo(module_path) is not None

    def _observe(self, response: Response) -> None:
        remaining = response.headers.get("X-RateLimit-Remaining")
        if remaining is not None and remaining.isdigit():
            self.remaining_requests = int(remaining)
            if self.remaining_requests < self.RATE_LIMIT_WARNING:
                logger.warning("GitHub API rate limit low: %s requests remaining", self.remaining_requests)
        reset = response.headers.get("X-RateLimit-Reset")
        if reset is not None and reset.isdigit():
            self.reset_time = int(reset)
        if response.status_code == HTTP_FORBIDDEN:
            logger.warning("GitHub API rate limit exceeded")

    def latest_release(self, owner: str, repo: str) -> GitHubRelease | None:
        response = self._get(f"{self.API_BASE}/repos/{owner}/{repo}/releases/latest")
        if response is None:
            return None
        try:
            return GitHubRelease.model_validate_json(response.content)
        except ValidationError as e:
            logger.debug("Malformed release for %s/%s: %s", owner, repo, e)
            return None

    def tags(self, owner: str, repo: str) -> list[str]:
        """Return the repository's version-looking tag names, newest first."""
        response = self._get(
            f"{self.API_BASE}/repos/{owner}/{repo}/tags",
            params={"per_page": self.tag_limit},
        )
        if response is None:
            return []
        try:
            tags = _TAG_LIST.validate_json(response.content)
        except ValidationError as e:
            logger.debug("Malformed tag list for %s/%s: %s", owner, repo, e)
            return []
        return sort_newest_first(tag.name for tag in tags if is_valid_version(tag.name))

    def repository(self, owner: str, repo: str) -> GitHubRepository | None:
        response = self._get(f"{self.API_BASE}/repos/{owner}/{repo}")
        if response is None:
            return None
        try:
            return GitHubRepository.model_validate_json(response.content)
        except ValidationError as e:
            logger.debug("Malformed repository metadata for %s/%s: %s", owner, repo, e)
            return None

    def latest_version(self, module_path: str) -> str | None:
        github_info = extract_github_repo(module_path)
        if github_info is None:
            return None
        release = self.latest_release(*github_info)
        if release is not None and release.tag_name:
            return release.tag_name
        # plenty of Go modules only push tags, never cut releases
        tags = self.tags(*github_info)
        return tags[0] if tags else None

    def versions(self, module_path: str) -> list[str]:
        github_info = extract_github_repo(module_path)
        if github_info is None:
            return []
        return self.tags(*github_info)
