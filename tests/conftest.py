"""Shared fixtures for appdetect tests."""
import logging

import pytest


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep tests away from the real home directory and APPDETECT_* settings."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))

    from appdetect.config import ENV_VAR_MAP, reset_config_service
    for var in list(ENV_VAR_MAP) + ["APPDETECT_DEBUG"]:
        monkeypatch.delenv(var, raising=False)
    reset_config_service()

    yield home

    reset_config_service()
    from appdetect import ui
    ui.set_plain_mode(False)
    logger = logging.getLogger("appdetect")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def make_tree():
    """Return a helper that writes ``{relative_path: content}`` under a root."""

    def _make(root, files):
        root.mkdir(parents=True, exist_ok=True)
        for rel, content in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        return root.resolve()

    return _make


@pytest.fixture
def workspace(tmp_path, make_tree):
    """A workspace with a sibling project outside it.

    tmp/
      outside-project/package.json
      my-workspace/
        azure.yaml
        frontend/package.json
        backend/package.json
    """
    make_tree(tmp_path / "outside-project", {
        "package.json": '{"name": "outside-project", "scripts": {"dev": "vite"}}',
    })
    return make_tree(tmp_path / "my-workspace", {
        "azure.yaml": (
            "name: my-app\n"
            "services:\n"
            "  frontend:\n"
            "    project: ./frontend\n"
            "    language: node\n"
            "  backend:\n"
            "    project: ./backend\n"
            "    language: node\n"
        ),
        "frontend/package.json": '{"name": "frontend", "scripts": {"dev": "vite"}}',
        "backend/package.json": '{"name": "backend", "scripts": {"dev": "node server.js"}}',
    })


@pytest.fixture
def deny_listing(monkeypatch):
    """Make directories with the given names fail to list, as if unreadable."""
    import os

    def _deny(*names):
        real_scandir = os.scandir

        def fake_scandir(path="."):
            if os.path.basename(os.fspath(path)) in names:
                raise PermissionError(13, "Permission denied", os.fspath(path))
            return real_scandir(path)

        monkeypatch.setattr(os, "scandir", fake_scandir)

    return _deny


@pytest.fixture
def apphost_program():
    """Entry point of an orchestrator (AppHost) project."""
    return """\
var builder = DistributedApplication.CreateBuilder(args);

var api = builder.AddProject<Projects.Api>("api");

builder.Build().Run();
"""
