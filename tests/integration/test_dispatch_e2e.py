"""Integration tests driving several operations through one dispatcher.

The ``go`` toolchain is mocked at the shell-delegate boundary; templates,
config synthesis, the filesystem and the config cache are real.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from gowright_mcp.config import Settings
from gowright_mcp.dispatcher import Dispatcher
from gowright_mcp.schemas import OPERATIONS


pytestmark = pytest.mark.integration


VALID_CALLS = {
    "generate_test": {"testType": "openapi", "testName": "petstore"},
    "run_test": {"testFile": "petstore_test.go"},
    "generate_config": {"configType": "full"},
    "validate_openapi": {"specPath": "openapi.yaml"},
    "setup_project": {"projectName": "petstore", "modulePath": "example.com/petstore"},
    "analyze_project": {},
}


@pytest.mark.asyncio
async def test_every_operation_returns_text(
    dispatcher: Dispatcher, openapi_spec: Path, go_installed, go_test_command, bootstrap_command
):
    assert set(VALID_CALLS) == set(OPERATIONS)
    with go_test_command((0, "PASS", "")), bootstrap_command((0, "", "")):
        for name, arguments in VALID_CALLS.items():
            result = await dispatcher.dispatch(name, arguments)
            assert result.report.strip(), name
            assert result.success, f"{name}: {result.report}"


@pytest.mark.asyncio
async def test_new_project_workflow(
    dispatcher: Dispatcher, workdir: Path, go_installed, go_test_command, bootstrap_command
):
    with bootstrap_command((0, "", "")):
        setup = await dispatcher.dispatch(
            "setup_project",
            {"projectName": "orders", "modulePath": "github.com/acme/orders", "includeExamples": True},
        )
    assert setup.success
    # go mod init is mocked, so write the go.mod it would have produced.
    (workdir / "go.mod").write_text("module github.com/acme/orders\n\ngo 1.22\n", encoding="utf-8")

    config = await dispatcher.dispatch(
        "generate_config", {"configType": "api", "baseUrl": "https://orders.internal"}
    )
    assert config.success
    on_disk = json.loads((workdir / "gowright-config.json").read_text(encoding="utf-8"))
    assert on_disk["api_config"]["base_url"] == "https://orders.internal"
    assert "report_config" not in on_disk

    generated = await dispatcher.dispatch(
        "generate_test", {"testType": "api", "testName": "create order", "endpoint": "/orders", "method": "POST"}
    )
    assert generated.success
    assert "- Module Path: github.com/acme/orders" in generated.report
    code = (workdir / "create_order_test.go").read_text(encoding="utf-8")
    assert "func TestCreate_order(t *testing.T)" in code
    assert "apiTester.Post(" in code

    with go_test_command((0, "--- PASS: TestCreate_order (0.01s)\nPASS", "")):
        ran = await dispatcher.dispatch("run_test", {"testFile": "create_order_test.go", "verbose": True})
    assert "Summary: 1 passed, 0 failed, 0 skipped" in ran.report

    analysis = await dispatcher.dispatch("analyze_project", {})
    assert "- Config File: gowright-config.json" in analysis.report
    assert "- Sections: api_config" in analysis.report
    assert "- Test Files Found: 4" in analysis.report
    assert "- Project is ready for Gowright testing" in analysis.report


@pytest.mark.asyncio
async def test_generation_is_deterministic(tmp_path: Path, go_installed):
    reports = []
    for name in ("one", "two"):
        root = tmp_path / name
        root.mkdir()
        dispatcher = Dispatcher(Settings(working_dir=root))
        result = await dispatcher.dispatch(
            "generate_test", {"testType": "mobile", "testName": "Login", "platform": "ios"}
        )
        reports.append((root / "login_test.go").read_text(encoding="utf-8"))
        assert result.success
    assert reports[0] == reports[1]
