"""Shared pytest fixtures for the Gowright MCP server test suite.

Provides reusable fixtures for:
- Temporary working directories (empty, Go module, Gowright project)
- Server settings and a dispatcher bound to the temporary directory
- Mocked ``go`` toolchain (``go version`` and shelled-out commands)
- A sample OpenAPI document
"""

from __future__ import annotations

import json
import textwrap
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest

from gowright_mcp.config import ConfigCache, Settings
from gowright_mcp.dispatcher import Dispatcher


GO_VERSION = "go version go1.22.4 linux/amd64"


# ---------------------------------------------------------------------------
# Paths & Directories
# ---------------------------------------------------------------------------

@pytest.fixture
def workdir(tmp_path: Path) -> Path:
    """Empty working directory the dispatcher operates on."""
    directory = tmp_path / "workspace"
    directory.mkdir()
    yield directory


@pytest.fixture
def go_project(workdir: Path) -> Path:
    """Working directory holding a ``go.mod`` and a main package."""
    (workdir / "go.mod").write_text(
        "module github.com/acme/orders\n\ngo 1.22\n", encoding="utf-8"
    )
    (workdir / "main.go").write_text("package main\n\nfunc main() {}\n", encoding="utf-8")
    yield workdir


@pytest.fixture
def gowright_project(go_project: Path) -> Path:
    """Go module that already carries a ``gowright-config.json``."""
    config = {
        "log_level": "debug",
        "parallel": True,
        "max_retries": 2,
        "api_config": {"base_url": "https://orders.internal", "timeout": "5s", "headers": {}},
    }
    (go_project / "gowright-config.json").write_text(json.dumps(config), encoding="utf-8")
    yield go_project


@pytest.fixture
def openapi_spec(workdir: Path) -> Path:
    """A small OpenAPI 3 document in the working directory."""
    path = workdir / "openapi.yaml"
    path.write_text(
        textwrap.dedent(
            """\
            openapi: 3.0.3
            info:
              title: Orders API
              version: 1.2.0
            paths:
              /orders:
                get:
                  responses:
                    "200":
                      description: OK
              /orders/{id}:
                get:
                  responses:
                    "200":
                      description: OK
            """
        ),
        encoding="utf-8",
    )
    yield path


# ---------------------------------------------------------------------------
# Settings & Dispatcher
# ---------------------------------------------------------------------------

@pytest.fixture
def settings(workdir: Path) -> Settings:
    return Settings(working_dir=workdir)


@pytest.fixture
def config_cache() -> ConfigCache:
    return ConfigCache()


@pytest.fixture
def dispatcher(settings: Settings, config_cache: ConfigCache) -> Dispatcher:
    return Dispatcher(settings, cache=config_cache)


# ---------------------------------------------------------------------------
# Mocked go toolchain
# ---------------------------------------------------------------------------

@pytest.fixture
def go_installed():
    """Patch the dispatcher's ``go version`` check to report Go present."""
    with patch(
        "gowright_mcp.dispatcher.check_go_environment",
        AsyncMock(return_value=(True, GO_VERSION)),
    ) as mock_check:
        yield mock_check


@pytest.fixture
def go_missing():
    """Patch the dispatcher's ``go version`` check to report Go absent."""
    with patch(
        "gowright_mcp.dispatcher.check_go_environment",
        AsyncMock(
            return_value=(
                False,
                "Go is not installed or not in PATH. Please install Go 1.22 or later.",
            )
        ),
    ) as mock_check:
        yield mock_check


def make_command_mock(*results: tuple[int, str, str]) -> AsyncMock:
    """AsyncMock standing in for ``run_command``.

    Successive calls return successive *results*; the last one repeats.
    """
    queue: list[tuple[int, str, str]] = list(results) or [(0, "", "")]

    async def _fake(cmd: list[str], *args: Any, **kwargs: Any) -> tuple[int, str, str]:
        if len(queue) > 1:
            return queue.pop(0)
        return queue[0]

    return AsyncMock(side_effect=_fake)


@pytest.fixture
def go_test_command():
    """Patch ``run_command`` as seen by the ``go test`` runner."""
    def _patch(*results: tuple[int, str, str]):
        return patch("gowright_mcp.tester.runner.run_command", make_command_mock(*results))

    return _patch


@pytest.fixture
def bootstrap_command():
    """Patch ``run_command`` as seen by the project scaffolder."""
    def _patch(*results: tuple[int, str, str]):
        return patch(
            "gowright_mcp.scaffolder.project_gen.run_command", make_command_mock(*results)
        )

    return _patch
