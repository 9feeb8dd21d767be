"""Configuration settings for gomod-advisor."""

from __future__ import annotations

from enum import Enum
from pathlib import Path  # noqa: TC003

from pydantic import AliasChoices, Field
from pydantic_settings import (
    BaseSettings,
    CliImplicitFlag,
    SettingsConfigDict,
)

from .cache import DEFAULT_TTL
from .sources import DEFAULT_CONNECT_TIMEOUT, DEFAULT_READ_TIMEOUT, GoProxySource


class OutputFormat(str, Enum):
    """Output formats for gomod-advisor."""

    json = "json"
    table = "table"


class Settings(BaseSettings):
    """Settings for gomod-advisor."""

    target: Path = Field(
        default=Path("."),
        description="""Directory of the Go module to analyze; it must contain a
        `go.mod` file.""",
    )
    goproxy: str = Field(
        default=f"{GoProxySource.DEFAULT_URL},direct",
        validation_alias=AliasChoices("goproxy", "GOPROXY"),
        description="""Comma-separated list of module proxies in `GOPROXY`
        syntax; defaults to the `GOPROXY` environment variable. The first
        http(s) entry is queried for versions; `off` disables the module
        proxy.""",
    )
    use_go_proxy: CliImplicitFlag[bool] = Field(
        default=True,
        description="""Query the Go module proxy for versions.""",
    )
    github_api: CliImplicitFlag[bool] = Field(
        default=True,
        description="""Fall back to GitHub releases and tags for
        `github.com` modules.""",
    )
    github_token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("github_token", "GITHUB_TOKEN"),
        description="""GitHub personal access token used to raise the API
        rate limit. Defaults to the `GITHUB_TOKEN` environment variable.""",
    )
    cache_ttl: float = Field(
        default=DEFAULT_TTL,
        description="""Number of seconds a resolved version stays cached.""",
    )
    connect_timeout: float = Field(default=DEFAULT_CONNECT_TIMEOUT, description="HTTP connect timeout in seconds")
    request_timeout: float = Field(default=DEFAULT_READ_TIMEOUT, description="HTTP read timeout in seconds")
    max_workers: int = Field(
        default=-1,
        description="""Maximum number of version lookups to run concurrently.
            If not provided, the maximum number of logical CPUs will be used.""",
    )
    check_updates: CliImplicitFlag[bool] = Field(
        default=True,
        description="""Look up the latest version of every dependency. Disable
        to work offline.""",
    )
    scan_imports: CliImplicitFlag[bool] = Field(
        default=True,
        description="""Scan the module's `.go` files to flag dependencies
        that are imported.""",
    )
    direct_only: CliImplicitFlag[bool] = Field(
        default=False,
        description="""Hide `// indirect` dependencies.""",
    )
    updates_only: CliImplicitFlag[bool] = Field(
        default=False,
        description="""Only list dependencies with a newer version available.""",
    )
    list_versions: str = Field(
        default="",
        description="""List every available version of the given module
        (newest first) and exit.""",
    )
    add: str = Field(default="", description="Module to add with `go get`")
    remove: str = Field(default="", description="Module to remove with `go mod edit -droprequire`")
    update: str = Field(default="", description="Module to update with `go get`")
    to_version: str = Field(
        default="",
        description="""Version used by `--add` and `--update`. Defaults to
        `latest`.""",
    )
    update_all: CliImplicitFlag[bool] = Field(
        default=False,
        description="""Update every dependency with `go get -u ./...`.""",
    )
    tidy: CliImplicitFlag[bool] = Field(default=False, description="Run `go mod tidy`.")
    force: CliImplicitFlag[bool] = Field(
        default=False,
        description="""Force the overwrite of the output file if it already
        exists.""",
    )
    log_level: str = Field(default="info", description="Log level")
    output_file: Path | None = Field(
        default=None,
        description="""Output file path. If not provided, the output will be
        written to stdout.""",
    )
    output_format: OutputFormat = Field(default=OutputFormat.table, description="Output format.")
    version: CliImplicitFlag[bool] = Field(
        default=False,
        description="""Show the version of gomod-advisor and exit.""",
    )

    model_config = SettingsConfigDict(
        cli_parse_args=True,
        cli_prog_name="gomod-advisor",
        env_prefix="GOMOD_ADVISOR_",
        nested_model_default_partial_update=True,
        populate_by_name=True,
    )

    @property
    def proxy_url(self) -> str | None:
        """The module proxy to query, or None if the proxy is disabled."""
        if not self.use_go_proxy:
            return None
        for entry in self.goproxy.replace("|", ",").split(","):
            entry = entry.strip()  # noqa: PLW2901
            if entry == "off":
                return None
            if entry.startswith(("http://", "https://")):
                return entry
        return None
