"""New Gowright project scaffolding.

Generates:
- ``go.mod`` via ``go mod init`` plus the framework dependency via ``go get``
- ``main.go`` that boots the framework
- ``main_test.go`` with a framework initialisation test
- ``gowright-config.json`` with the basic settings and report config
- optionally ``api_test.go`` and ``ui_test.go`` example tests
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from pydantic import BaseModel, Field

from gowright_mcp.config import DEFAULT_CONFIG_FILE, FRAMEWORK_MODULE
from gowright_mcp.probe import detect_project_context
from gowright_mcp.tester.results import CommandResult
from gowright_mcp.utils import run_command, write_text_file
from .config_gen import basic_project_config, render_config_json
from .templates import TemplateRenderer, import_block
from .test_gen import GoTestGenerator


class ProjectFiles(BaseModel):
    """Files written by :meth:`ProjectScaffolder.write_files`."""

    created: list[str] = Field(default_factory=list)
    examples: list[str] = Field(default_factory=list)


class ProjectScaffolder:
    """Bootstraps a Go module and writes the starter Gowright files."""

    def __init__(
        self,
        renderer: TemplateRenderer | None = None,
        framework_module: str = FRAMEWORK_MODULE,
        bootstrap_timeout: int = 120,
    ) -> None:
        self.renderer = renderer or TemplateRenderer()
        self.framework_module = framework_module
        self.bootstrap_timeout = bootstrap_timeout
        self.test_gen = GoTestGenerator(self.renderer, framework_module)

    # -- Toolchain ---------------------------------------------------------

    async def bootstrap_module(self, module_path: str, cwd: str | Path) -> CommandResult:
        """Run ``go mod init`` then ``go get`` for the framework.

        Stops at the first failing command and returns its result.
        """
        result = CommandResult(command=[], returncode=0)
        for cmd in (
            ["go", "mod", "init", module_path],
            ["go", "get", self.framework_module],
        ):
            returncode, stdout, stderr = await run_command(
                cmd, cwd=cwd, timeout=self.bootstrap_timeout
            )
            result = CommandResult(command=cmd, returncode=returncode, stdout=stdout, stderr=stderr)
            if not result.ok:
                return result
        return result

    # -- Rendering ---------------------------------------------------------

    def render_main(self, project_name: str) -> str:
        return self.renderer.render(
            "main.go.j2",
            {
                "imports": import_block(["fmt", f"{self.framework_module}/pkg/gowright"]),
                "banner": f"{project_name} - Gowright framework initialized successfully!",
            },
        )

    def render_main_test(self) -> str:
        return self.renderer.render(
            "main_test.go.j2",
            {
                "imports": import_block(
                    [
                        "testing",
                        f"{self.framework_module}/pkg/gowright",
                        "github.com/stretchr/testify/assert",
                    ]
                ),
            },
        )

    def render_examples(self, root: Path) -> dict[str, str]:
        """Example tests keyed by file name."""
        context = detect_project_context(root)
        return {
            "api_test.go": self.test_gen.generate_api_test(
                "APIExample", "/api/health", "GET", context
            ),
            "ui_test.go": self.test_gen.generate_ui_test(
                "UIExample", "https://example.com", "button#submit", context
            ),
        }

    # -- Output ------------------------------------------------------------

    async def write_files(
        self, root: str | Path, project_name: str, include_examples: bool = False
    ) -> ProjectFiles:
        """Write the starter files into *root* and return their names."""
        root_path = Path(root)
        files: dict[str, str] = {
            "main.go": self.render_main(project_name),
            "main_test.go": self.render_main_test(),
            DEFAULT_CONFIG_FILE: render_config_json(basic_project_config()),
        }
        examples = self.render_examples(root_path) if include_examples else {}

        for name, content in {**files, **examples}.items():
            await asyncio.to_thread(write_text_file, root_path / name, content)

        return ProjectFiles(created=list(files), examples=list(examples))
