"""Tests for workspace root resolution and the workspace manifest."""
import pytest

from appdetect.errors import ManifestError
from appdetect.workspace import (
    detect_workspace,
    find_workspace_marker,
    load_workspace_manifest,
    resolve_workspace_root,
)

UNUSED_MARKER = "appdetect-test-marker-that-does-not-exist.yaml"


class TestFindWorkspaceMarker:
    def test_marker_in_start_directory(self, workspace):
        assert find_workspace_marker(workspace) == workspace / "azure.yaml"

    def test_marker_found_from_subdirectory(self, workspace):
        assert find_workspace_marker(workspace / "frontend") == workspace / "azure.yaml"

    def test_start_may_be_a_file(self, workspace):
        start = workspace / "frontend" / "package.json"
        assert find_workspace_marker(start) == workspace / "azure.yaml"

    def test_missing_marker(self, tmp_path):
        assert find_workspace_marker(tmp_path, marker=UNUSED_MARKER) is None


class TestResolveWorkspaceRoot:
    def test_resolves_to_marker_directory(self, workspace):
        root = resolve_workspace_root(workspace / "frontend")
        assert root.path == workspace
        assert root.marker == workspace / "azure.yaml"
        assert not root.fallback

    def test_fallback_to_start(self, tmp_path, caplog):
        start = tmp_path / "loose"
        start.mkdir()
        with caplog.at_level("WARNING", logger="appdetect"):
            root = resolve_workspace_root(start, marker=UNUSED_MARKER)
        assert root.path == start.resolve()
        assert root.marker is None
        assert root.fallback
        assert UNUSED_MARKER in caplog.text


class TestLoadWorkspaceManifest:
    def test_services(self, workspace):
        manifest = load_workspace_manifest(workspace / "azure.yaml")
        assert manifest.name == "my-app"
        assert [s.name for s in manifest.services] == ["frontend", "backend"]
        frontend = manifest.services[0]
        assert frontend.project == workspace / "frontend"
        assert frontend.language == "node"
        assert not frontend.outside_root

    def test_service_outside_root_flagged(self, tmp_path, make_tree):
        root = make_tree(tmp_path / "ws", {
            "azure.yaml": "services:\n  legacy:\n    project: ../legacy\n    language: python\n",
        })
        manifest = load_workspace_manifest(root / "azure.yaml")
        assert manifest.services[0].outside_root

    def test_service_without_project(self, tmp_path, make_tree):
        root = make_tree(tmp_path / "ws", {"azure.yaml": "services:\n  db:\n    host: containerapp\n"})
        service = load_workspace_manifest(root / "azure.yaml").services[0]
        assert service.project is None
        assert service.host == "containerapp"

    def test_empty_file(self, tmp_path, make_tree):
        root = make_tree(tmp_path / "ws", {"azure.yaml": ""})
        manifest = load_workspace_manifest(root / "azure.yaml")
        assert manifest.name == ""
        assert manifest.services == []

    def test_invalid_yaml(self, tmp_path, make_tree):
        root = make_tree(tmp_path / "ws", {"azure.yaml": "services: [unclosed\n"})
        with pytest.raises(ManifestError) as exc_info:
            load_workspace_manifest(root / "azure.yaml")
        assert exc_info.value.context["file"].endswith("azure.yaml")

    def test_top_level_list_rejected(self, tmp_path, make_tree):
        root = make_tree(tmp_path / "ws", {"azure.yaml": "- a\n- b\n"})
        with pytest.raises(ManifestError, match="mapping"):
            load_workspace_manifest(root / "azure.yaml")

    def test_missing_file(self, tmp_path):
        with pytest.raises(ManifestError):
            load_workspace_manifest(tmp_path / "azure.yaml")


class TestDetectWorkspace:
    def test_from_subdirectory(self, tmp_path, workspace):
        root, result = detect_workspace(workspace / "frontend")
        assert root.path == workspace
        assert sorted(p.dir.name for p in result.node) == ["backend", "frontend"]
        assert tmp_path.resolve() / "outside-project" not in [p.dir for p in result.node]

    def test_project_config_skip_dirs(self, workspace):
        (workspace / ".appdetect.toml").write_text('[scan]\nskip_dirs = ["backend"]\n')
        _, result = detect_workspace(workspace)
        assert [p.dir.name for p in result.node] == ["frontend"]

    def test_workers_from_environment(self, workspace, monkeypatch):
        monkeypatch.setenv("APPDETECT_WORKERS", "3")
        _, result = detect_workspace(workspace)
        assert [p.dir.name for p in result.node] == ["backend", "frontend"]
