"""Tests for detection rules and result models."""
from pathlib import Path

import pytest

from appdetect.models import Ecosystem, PackageManager, Project, ScanResult
from appdetect.rules import DEFAULT_RULES


class TestDetectionRules:
    @pytest.mark.parametrize("name", ["node_modules", ".git", "bin", "obj", ".venv", "pkg.egg-info"])
    def test_skipped_by_default(self, name):
        assert DEFAULT_RULES.is_skipped(name)

    @pytest.mark.parametrize("name", ["src", "api", "AppHost", "packages"])
    def test_not_skipped(self, name):
        assert not DEFAULT_RULES.is_skipped(name)

    def test_with_overrides_returns_copy(self):
        rules = DEFAULT_RULES.with_overrides(extra_skip_dirs=["generated"], include_dirs=["bin"])
        assert rules.is_skipped("generated")
        assert not rules.is_skipped("bin")
        assert DEFAULT_RULES.is_skipped("bin")
        assert not DEFAULT_RULES.is_skipped("generated")

    def test_immutable(self):
        with pytest.raises(AttributeError):
            DEFAULT_RULES.skip_dirs = frozenset()


class TestScanResult:
    def _result(self):
        root = Path("/ws")
        return ScanResult(
            root=root,
            node=[Project(root / "web", root / "web" / "package.json", Ecosystem.NODE, PackageManager.NPM)],
            apphost=[Project(root / "host", root / "host" / "Host.csproj", Ecosystem.APPHOST, PackageManager.DOTNET)],
        )

    def test_by_ecosystem(self):
        result = self._result()
        assert result.by_ecosystem(Ecosystem.NODE) is result.node
        assert result.by_ecosystem(Ecosystem.PYTHON) == []

    def test_all_projects_order(self):
        ecosystems = [p.ecosystem for p in self._result().all_projects()]
        assert ecosystems == [Ecosystem.NODE, Ecosystem.APPHOST]

    def test_to_dict(self):
        data = self._result().to_dict()
        assert data["root"] == str(Path("/ws"))
        assert data["node"][0]["package_manager"] == "npm"
        assert data["apphost"][0]["ecosystem"] == "apphost"
        assert data["cancelled"] is False

    def test_project_identity(self):
        p = self._result().node[0]
        assert p.identity == (Path("/ws/web"), Ecosystem.NODE)
