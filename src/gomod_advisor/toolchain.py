"""Invocation of the ``go`` command for operations that modify ``go.mod``."""

from __future__ import annotations

import logging
import os
import re
import subprocess
from dataclasses import dataclass
from pathlib import Path
from shutil import which

from .errors import GoCommandError

logger = logging.getLogger(__name__)

GO_VERSION_MATCH = re.compile(r"go(\d+\.\d+(\.\d+)?)")
_LOGGED_OUTPUT_LIMIT = 500


@dataclass(frozen=True)
class CommandResult:
    exit_code: int
    stdout: str
    stderr: str

    @property
    def is_success(self) -> bool:
        return self.exit_code == 0


def go_environment() -> dict[str, str]:
    """Build the environment for go commands from the current one."""
    env = {
        key: value
        for key, value in os.environ.items()
        if key.startswith("GO") or key in ("PATH", "HOME", "USER")
    }
    env["GO111MODULE"] = "on"
    return env


class GoToolchain:
    """Runs ``go`` subcommands in a module directory."""

    def __init__(self, workdir: Path | str, go: str = "go") -> None:
        self.workdir = Path(workdir)
        self.go = go

    def execute(self, *args: str) -> CommandResult:
        """Run ``go <args>`` and return its result.

        Raises:
            GoCommandError: if the command cannot be started or exits with a non-zero status

        """
        command = " ".join((self.go, *args))
        go_path = which(self.go)
        if go_path is None:
            raise GoCommandError(command, -1, f"{self.go} executable not found in PATH")
        logger.info("Executing '%s' in %s", command, self.workdir)
        try:
            proc = subprocess.run(  # noqa: S603
                [go_path, *args],
                cwd=self.workdir,
                env=go_environment(),
                capture_output=True,
                text=True,
                encoding="utf-8",
                check=False,
            )
        except OSError as e:
            raise GoCommandError(command, -1, str(e)) from e
        result = CommandResult(exit_code=proc.returncode, stdout=proc.stdout, stderr=proc.stderr)
        logger.info("'%s' finished with exit code %d", command, result.exit_code)
        if result.stdout.strip():
            logger.debug("stdout: %s", result.stdout[:_LOGGED_OUTPUT_LIMIT])
        if result.stderr.strip():
            logger.debug("stderr: %s", result.stderr[:_LOGGED_OUTPUT_LIMIT])
        if not result.is_success:
            raise GoCommandError(command, result.exit_code, result.stderr)
        return result

    def get(self, module_path: str, version: str | None = None) -> CommandResult:
        """Add or update a module with ``go get path[@version]``."""
        target = f"{module_path}@{version}" if version else module_path
        return self.execute("get", target)

    def get_update(self, module_path: str) -> CommandResult:
        """Update a module and its own dependencies with ``go get -u path``."""
        return self.execute("get", "-u", module_path)

    def update_all(self) -> CommandResult:
        return self.execute("get", "-u", "./...")

    def drop_require(self, module_path: str) -> CommandResult:
        return self.execute("mod", "edit", "-droprequire", module_path)

    def tidy(self) -> CommandResult:
        return self.execute("mod", "tidy")

    def list_versions(self, module_path: str) -> list[str]:
        """Return the versions known to ``go list -m -versions``, oldest first."""
        result = self.execute("list", "-m", "-versions", module_path)
        # Output format: module/path v1.0.0 v1.1.0 v1.2.0
        parts = result.stdout.split()
        return parts[1:]

    def go_version(self) -> str:
        """Return the installed Go version, e.g. ``1.21.0``."""
        m = GO_VERSION_MATCH.search(self.execute("version").stdout)
        return m.group(1) if m else "unknown"

    def is_available(self) -> bool:
        try:
            self.execute("version")
        except GoCommandError:
            return False
        return True
