"""End-to-end tests for workspace detection.

These tests exercise the complete flow a user hits when running from inside
a service directory: find azure.yaml above the current directory -> scan
from the workspace root -> report only projects inside the workspace.
"""

from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

pytestmark = pytest.mark.integration


class TestNestedWorkspace:
    """Running from a subdirectory must never pick up projects beside the workspace."""

    def test_pipeline_from_subdirectory(self, tmp_path, workspace):
        from appdetect.detector import find_node_projects
        from appdetect.workspace import find_workspace_marker

        marker = find_workspace_marker(workspace / "frontend")
        assert marker == workspace / "azure.yaml"

        projects = find_node_projects(marker.parent)
        dirs = {p.dir for p in projects}
        assert dirs == {workspace / "frontend", workspace / "backend"}
        assert tmp_path.resolve() / "outside-project" not in dirs

    def test_cli_from_subdirectory(self, tmp_path, workspace, monkeypatch):
        from appdetect.cli import app

        monkeypatch.chdir(workspace / "frontend")
        result = CliRunner().invoke(app, ["detect", "--json"])
        assert result.exit_code == 0, result.output

        data = json.loads(result.stdout)
        dirs = {p["dir"] for p in data["node"]}
        assert dirs == {str(workspace / "frontend"), str(workspace / "backend")}
        assert str(tmp_path.resolve() / "outside-project") not in dirs


class TestMixedWorkspace:
    """A realistic multi-service workspace with every supported ecosystem."""

    @pytest.fixture
    def mixed(self, tmp_path, make_tree, apphost_program):
        make_tree(tmp_path / "sibling", {"requirements.txt": "django\n"})
        return make_tree(tmp_path / "shop", {
            "azure.yaml": (
                "name: shop\n"
                "services:\n"
                "  web: {project: ./web, language: js}\n"
                "  api: {project: ./api, language: python}\n"
                "  orders: {project: ./orders, language: dotnet}\n"
            ),
            "web/package.json": '{"name": "web"}',
            "web/pnpm-lock.yaml": "lockfileVersion: '6.0'\n",
            "web/node_modules/react/package.json": "{}",
            "api/pyproject.toml": '[project]\nname = "api"\n',
            "api/uv.lock": "version = 1\n",
            "api/.venv/lib/pyproject.toml": "",
            "orders/Orders.csproj": '<Project Sdk="Microsoft.NET.Sdk.Web"></Project>',
            "orders/bin/Debug/Orders.csproj": "",
            "AppHost/AppHost.csproj": '<Project Sdk="Microsoft.NET.Sdk"></Project>',
            "AppHost/Program.cs": apphost_program,
            ".git/HEAD": "ref: refs/heads/main\n",
        })

    def test_detects_each_ecosystem_once(self, mixed):
        from appdetect.models import PackageManager
        from appdetect.workspace import detect_workspace

        root, result = detect_workspace(mixed / "web")
        assert root.path == mixed
        assert [(p.dir.name, p.package_manager) for p in result.node] == [("web", PackageManager.PNPM)]
        assert [(p.dir.name, p.package_manager) for p in result.python] == [("api", PackageManager.UV)]
        assert [p.dir.name for p in result.dotnet] == ["orders"]
        assert [p.dir.name for p in result.apphost] == ["AppHost"]
        assert result.warnings == []

    def test_services_match_detection(self, mixed):
        from appdetect.cli import app

        result = CliRunner().invoke(app, ["services", str(mixed)])
        assert result.exit_code == 0, result.output
        assert "node (pnpm)" in result.output
        assert "python (uv)" in result.output
        assert "dotnet (dotnet)" in result.output
