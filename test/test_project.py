from __future__ import annotations

from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from gomod_advisor.cache import VersionResolutionCache
from gomod_advisor.errors import GoCommandError, ManifestNotFoundError
from gomod_advisor.imports import ImportScanner
from gomod_advisor.models import VersionUpdate
from gomod_advisor.project import MANIFEST_NOT_FOUND, GoModProject
from gomod_advisor.toolchain import CommandResult, GoToolchain


def _resolver() -> Mock:
    resolver = Mock(spec=VersionResolutionCache)
    resolver.check_updates.side_effect = lambda requires: [
        VersionUpdate(r.path, r.version, "v1.3.0", has_update=r.path == "github.com/x/y") for r in requires
    ]
    return resolver


class TestRefresh:
    def test_refresh(self, go_module: Path) -> None:
        project = GoModProject(go_module, resolver=_resolver(), scanner=ImportScanner())
        result = project.refresh()
        assert result.ok
        x, a = result.records
        assert (x.path, x.has_update, x.used_in_code, x.indirect) == ("github.com/x/y", True, True, False)
        assert (a.path, a.has_update, a.used_in_code, a.indirect) == ("github.com/a/b", False, False, True)

    def test_refresh_offline_without_scanner(self, go_module: Path) -> None:
        result = GoModProject(go_module).refresh()
        assert result.ok
        assert all(r.latest_version is None and not r.used_in_code for r in result.records)

    def test_manifest_not_found(self, tmp_path: Path) -> None:
        project = GoModProject(tmp_path)
        assert not project.has_manifest()
        assert project.document() is None
        result = project.refresh()
        assert not result.ok
        assert result.error == MANIFEST_NOT_FOUND
        assert result.records == ()
        with pytest.raises(ManifestNotFoundError):
            project.require_manifest()

    def test_unexpected_failure_is_reported(self, go_module: Path) -> None:
        resolver = Mock(spec=VersionResolutionCache)
        resolver.check_updates.side_effect = RuntimeError("worker pool is gone")
        result = GoModProject(go_module, resolver=resolver).refresh()
        assert result.error == "Failed to parse go.mod: worker pool is gone"

    def test_refresh_rereads_manifest(self, go_module: Path) -> None:
        project = GoModProject(go_module)
        assert len(project.refresh().records) == 2
        (go_module / "go.mod").write_text("module example.com/foo\n\nrequire github.com/only/one v1.0.0\n")
        # the parsed document is cached until the next refresh
        assert len(project.require_manifest().require) == 2
        assert [r.path for r in project.refresh().records] == ["github.com/only/one"]


class TestMutations:
    def setup_method(self) -> None:
        self.toolchain = Mock(spec=GoToolchain)
        self.toolchain.get.return_value = CommandResult(0, "", "")

    def test_add_package_defaults_to_latest(self, go_module: Path) -> None:
        resolver = _resolver()
        project = GoModProject(go_module, resolver=resolver, toolchain=self.toolchain)
        result = project.add_package("github.com/new/dep")
        self.toolchain.get.assert_called_once_with("github.com/new/dep", "latest")
        resolver.clear.assert_called_once()
        assert result.ok

    def test_update_package(self, go_module: Path) -> None:
        project = GoModProject(go_module, toolchain=self.toolchain)
        assert project.update_package("github.com/x/y", "v1.3.0").ok
        self.toolchain.get.assert_called_once_with("github.com/x/y", "v1.3.0")

    def test_update_package_without_version(self, go_module: Path) -> None:
        project = GoModProject(go_module, toolchain=self.toolchain)
        assert project.update_package("github.com/x/y").ok
        self.toolchain.get_update.assert_called_once_with("github.com/x/y")
        self.toolchain.get.assert_not_called()

    def test_remove_update_all_tidy(self, go_module: Path) -> None:
        project = GoModProject(go_module, toolchain=self.toolchain)
        assert project.remove_package("github.com/a/b").ok
        self.toolchain.drop_require.assert_called_once_with("github.com/a/b")
        assert project.update_all().ok
        self.toolchain.update_all.assert_called_once_with()
        assert project.tidy().ok
        self.toolchain.tidy.assert_called_once_with()

    def test_failed_mutation(self, go_module: Path) -> None:
        self.toolchain.drop_require.side_effect = GoCommandError("go mod edit", 1, "no such module")
        resolver = _resolver()
        project = GoModProject(go_module, resolver=resolver, toolchain=self.toolchain)
        result = project.remove_package("github.com/missing/dep")
        assert not result.ok
        assert result.error is not None
        assert result.error.startswith("Failed to remove package: ")
        assert "no such module" in result.error
        resolver.clear.assert_not_called()

    def test_mutation_invalidates_document(self, go_module: Path) -> None:
        def tidy() -> CommandResult:
            (go_module / "go.mod").write_text("module example.com/foo\n")
            return CommandResult(0, "", "")

        self.toolchain.tidy.side_effect = tidy
        project = GoModProject(go_module, toolchain=self.toolchain)
        assert len(project.require_manifest().require) == 2
        result = project.tidy()
        assert result.ok
        assert result.records == ()


class TestAvailableVersions:
    def test_from_resolver(self, go_module: Path) -> None:
        resolver = _resolver()
        resolver.resolve_all_versions.return_value = ["v1.3.0", "v1.2.3"]
        toolchain = Mock(spec=GoToolchain)
        project = GoModProject(go_module, resolver=resolver, toolchain=toolchain)
        assert project.available_versions("github.com/x/y") == ["v1.3.0", "v1.2.3"]
        toolchain.list_versions.assert_not_called()

    def test_falls_back_to_go_list(self, go_module: Path) -> None:
        resolver = _resolver()
        resolver.resolve_all_versions.return_value = []
        toolchain = Mock(spec=GoToolchain)
        toolchain.list_versions.return_value = ["v1.0.0", "v1.10.0", "v1.2.0"]
        project = GoModProject(go_module, resolver=resolver, toolchain=toolchain)
        assert project.available_versions("github.com/x/y") == ["v1.10.0", "v1.2.0", "v1.0.0"]

    def test_go_list_failure(self, go_module: Path) -> None:
        with patch("gomod_advisor.toolchain.which", return_value=None):
            assert GoModProject(go_module).available_versions("github.com/x/y") == []
