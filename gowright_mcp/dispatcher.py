"""Operation dispatch.

Maps an operation name to its parameter model and handler, validates the
raw arguments, runs the handler and hands back an :class:`OperationResult`.
Handlers report business failures as ``OperationResult.fail(...)`` values;
an unexpected exception is still caught here and turned into a failure
result, so nothing escapes to the serving loop.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

from pydantic import BaseModel, Field, ValidationError

from gowright_mcp.config import (
    DEFAULT_CONFIG_FILE,
    ConfigCache,
    LoadedConfig,
    Settings,
    merge_with_defaults,
)
from gowright_mcp.openapi import summarize_spec
from gowright_mcp.probe import ProjectContext, detect_project_context, find_test_files, suggest_test_types
from gowright_mcp.scaffolder.config_gen import (
    ConfigOverrides,
    render_config_json,
    synthesize_config,
    write_config,
)
from gowright_mcp.scaffolder.project_gen import ProjectScaffolder
from gowright_mcp.scaffolder.templates import TemplateRenderer
from gowright_mcp.scaffolder.test_gen import GoTestGenerator
from gowright_mcp.schemas import (
    OPERATIONS,
    AnalyzeProjectParams,
    GenerateConfigParams,
    OperationSpec,
    RunTestParams,
    SetupProjectParams,
    ValidateOpenAPIParams,
    first_error,
)
from gowright_mcp.tester.runner import GoTestRunner
from gowright_mcp.utils import (
    check_go_environment,
    fenced,
    log_operation,
    print_error,
    print_success,
    print_warning,
    test_file_name,
)

VALIDATION_TEST_FILE = "openapi_validation_test.go"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class GowrightMCPError(Exception):
    """Base class for errors raised inside the server."""


class UnknownOperationError(GowrightMCPError):
    """Raised when a request names an operation the server does not expose."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown tool: {name}")


# ---------------------------------------------------------------------------
# Result type
# ---------------------------------------------------------------------------


class OperationResult(BaseModel):
    """Outcome of one operation.

    ``report`` is the text returned to the caller in both the success and
    the failure case; ``artifact`` carries the raw generated text when there
    is one.
    """

    success: bool
    report: str
    artifact: Optional[str] = None
    files: list[str] = Field(default_factory=list)

    @classmethod
    def ok(
        cls, report: str, artifact: Optional[str] = None, files: Optional[list[str]] = None
    ) -> "OperationResult":
        return cls(success=True, report=report, artifact=artifact, files=files or [])

    @classmethod
    def fail(cls, report: str, artifact: Optional[str] = None) -> "OperationResult":
        return cls(success=False, report=report, artifact=artifact)


Handler = Callable[[Any], Awaitable[OperationResult]]


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------


class Dispatcher:
    """Routes validated requests to the operation handlers.

    One dispatcher serves every request of a server process.  Requests are
    processed strictly one at a time.

    Attributes:
        settings: Server settings (working directory, timeouts).
        cache: Read-through cache of Gowright config files; handlers that
            write a config invalidate the affected root.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        cache: ConfigCache | None = None,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.cache = cache if cache is not None else ConfigCache()
        self.renderer = renderer or TemplateRenderer()
        self.test_gen = GoTestGenerator(self.renderer, self.settings.framework_module)
        self.scaffolder = ProjectScaffolder(
            self.renderer,
            framework_module=self.settings.framework_module,
            bootstrap_timeout=self.settings.bootstrap_timeout,
        )
        self.runner = GoTestRunner(
            self.settings.working_dir,
            timeout=self.settings.test_timeout,
            parallel_degree=self.settings.parallel_degree,
        )
        self._handlers: dict[str, Handler] = {
            "generate_test": self.generate_test,
            "run_test": self.run_test,
            "generate_config": self.generate_config,
            "validate_openapi": self.validate_openapi,
            "setup_project": self.setup_project,
            "analyze_project": self.analyze_project,
        }
        self._lock = asyncio.Lock()

    @property
    def working_dir(self) -> Path:
        return self.settings.working_dir

    # -- Public API --------------------------------------------------------

    def lookup(self, name: str) -> OperationSpec:
        """Catalog entry for *name*.

        Raises:
            UnknownOperationError: If no operation has that name.
        """
        spec = OPERATIONS.get(name)
        if spec is None:
            raise UnknownOperationError(name)
        return spec

    async def dispatch(self, name: str, arguments: Optional[dict[str, Any]] = None) -> OperationResult:
        """Validate *arguments* for operation *name* and run its handler."""
        async with self._lock:
            return await self._dispatch(name, arguments if arguments is not None else {})

    async def _dispatch(self, name: str, arguments: Any) -> OperationResult:
        log_operation(name)
        try:
            spec = self.lookup(name)
        except UnknownOperationError as exc:
            print_error(str(exc))
            return OperationResult.fail(f"Error: {exc}")

        try:
            params = spec.validate(arguments)
        except ValidationError as exc:
            message = first_error(exc)
            print_warning(f"{name}: {message}")
            return OperationResult.fail(f"Validation error: {message}")

        try:
            result = await self._handlers[name](params)
        except Exception as exc:  # noqa: BLE001
            print_error(f"{name} failed: {exc}")
            return OperationResult.fail(f"Error: {exc}")

        if result.success:
            print_success(f"{name} completed")
        else:
            print_warning(f"{name} reported a failure")
        return result

    # -- generate_test -----------------------------------------------------

    async def generate_test(self, params: Any) -> OperationResult:
        go_ok, go_detail = await check_go_environment(self.settings.go_version_timeout)
        context = detect_project_context(self.working_dir)
        code = self.test_gen.generate(params, context)
        file_name = test_file_name(params.test_name)

        try:
            await self.test_gen.write(self.working_dir / file_name, code)
        except OSError as exc:
            return OperationResult.fail(
                f"Generated {params.test_type} test code:\n\n{fenced(code, 'go')}\n\n"
                f"Failed to write file: {exc}\n\n"
                f"You can copy the code above and save it manually as {file_name}",
                artifact=code,
            )

        lines = [
            f"Generated {params.test_type} test and saved to {file_name}:",
            "",
            fenced(code, "go"),
            "",
            _context_section(context),
        ]
        if not go_ok:
            lines += ["", f"**Warning:** {go_detail}"]
        lines += [
            "",
            "**Next Steps:**",
            "1. Review the generated test code",
            "2. Adjust configuration values as needed",
            f"3. Run: `go test -v {file_name}`",
        ]
        return OperationResult.ok("\n".join(lines), artifact=code, files=[file_name])

    # -- run_test ----------------------------------------------------------

    async def run_test(self, params: RunTestParams) -> OperationResult:
        run = await self.runner.run(
            params.test_file,
            test_function=params.test_function,
            parallel=bool(params.parallel),
            verbose=bool(params.verbose),
        )
        if not run.passed:
            return OperationResult.fail(
                f"Test execution failed:\n\n{fenced(run.result.detail())}",
                artifact=run.result.detail(),
            )

        report = f"Test execution completed successfully:\n\n{fenced(run.result.stdout)}"
        if run.summary.total:
            report += f"\n\nSummary: {run.summary.summary_text()}"
        return OperationResult.ok(report, artifact=run.result.stdout)

    # -- generate_config ---------------------------------------------------

    async def generate_config(self, params: GenerateConfigParams) -> OperationResult:
        overrides = ConfigOverrides(
            base_url=params.base_url,
            db_driver=params.db_driver,
            db_dsn=params.db_dsn,
            appium_url=params.appium_url,
        )
        config_json = render_config_json(synthesize_config(params.config_type, overrides))
        display_path = params.output_path or DEFAULT_CONFIG_FILE
        target = self.settings.resolve(display_path)

        try:
            await write_config(target, config_json)
        except OSError as exc:
            return OperationResult.fail(
                f"Failed to write config file: {exc}\n\n"
                f"Generated configuration:\n\n{fenced(config_json, 'json')}",
                artifact=config_json,
            )
        self.cache.invalidate(target.parent)

        return OperationResult.ok(
            f"Generated {params.config_type} configuration file at {display_path}:\n\n"
            f"{fenced(config_json, 'json')}",
            artifact=config_json,
            files=[display_path],
        )

    # -- validate_openapi --------------------------------------------------

    async def validate_openapi(self, params: ValidateOpenAPIParams) -> OperationResult:
        spec_file = self.settings.resolve(params.spec_path)
        if not spec_file.is_file():
            return OperationResult.fail(
                f"Error: OpenAPI specification file not found at {params.spec_path}"
            )

        summary = summarize_spec(spec_file)
        context = detect_project_context(self.working_dir)
        code = self.test_gen.generate_openapi_validation_test(
            params.spec_path,
            context,
            check_breaking=bool(params.check_breaking),
            previous_commit=params.previous_commit,
        )

        try:
            await self.test_gen.write(self.working_dir / VALIDATION_TEST_FILE, code)
        except OSError as exc:
            return OperationResult.fail(
                f"Error validating OpenAPI specification: {exc}\n\n"
                f"Generated validation test:\n\n{fenced(code, 'go')}",
                artifact=code,
            )

        spec_section = "\n".join(["**Specification:**", *summary.lines()])
        run = await self.runner.run(
            VALIDATION_TEST_FILE, verbose=True, timeout=self.settings.validate_timeout
        )
        if run.passed:
            return OperationResult.ok(
                f"OpenAPI validation completed:\n\n{fenced(run.result.stdout)}\n\n"
                f"{spec_section}\n\nGenerated test file: {VALIDATION_TEST_FILE}",
                artifact=code,
                files=[VALIDATION_TEST_FILE],
            )

        return OperationResult.fail(
            f"Generated validation test file: {VALIDATION_TEST_FILE}\n\n"
            f"{fenced(code, 'go')}\n\n"
            f"{spec_section}\n\n"
            f"Note: Run 'go test -v {VALIDATION_TEST_FILE}' to execute the validation.\n\n"
            f"Test execution failed: {run.result.detail()}",
            artifact=code,
        )

    # -- setup_project -----------------------------------------------------

    async def setup_project(self, params: SetupProjectParams) -> OperationResult:
        bootstrap = await self.scaffolder.bootstrap_module(params.module_path, self.working_dir)
        if not bootstrap.ok:
            return OperationResult.fail(
                f"Error setting up project: `{bootstrap.command_line()}` failed:\n\n"
                f"{fenced(bootstrap.detail())}"
            )

        try:
            files = await self.scaffolder.write_files(
                self.working_dir, params.project_name, bool(params.include_examples)
            )
        except OSError as exc:
            return OperationResult.fail(f"Error setting up project: {exc}")
        self.cache.invalidate(self.working_dir)

        created = [*files.created, "go.mod", *files.examples]
        lines = [
            f"Project {params.project_name} initialized successfully!",
            "",
            "Files created:",
            *(f"- {name}" for name in created),
            "",
            "Next steps:",
            "1. Run 'go mod tidy' to download dependencies",
            "2. Run 'go test' to execute tests",
            "3. Run 'go run main.go' to start the application",
        ]
        return OperationResult.ok("\n".join(lines), files=created)

    # -- analyze_project ---------------------------------------------------

    async def analyze_project(self, params: AnalyzeProjectParams) -> OperationResult:
        root = self.settings.resolve(params.path) if params.path else self.working_dir
        if not root.is_dir():
            return OperationResult.fail(
                f"Error analyzing project: path not found: {params.path}"
            )

        context = detect_project_context(root)
        go_ok, go_detail = await check_go_environment(self.settings.go_version_timeout)
        loaded = self.cache.load(root)
        test_files = await asyncio.to_thread(find_test_files, root)
        suggestions = suggest_test_types(root)

        lines = ["# Project Analysis", "", "## Go Environment"]
        lines.append(f"- Go Installed: {'Yes' if go_ok else 'No'}")
        lines.append(f"- {'Version' if go_ok else 'Error'}: {go_detail}")

        lines += ["", "## Project Structure"]
        lines.append(f"- Is Go Project: {_yes_no(context.is_go_project)}")
        lines.append(f"- Module Path: {context.module_path or 'Not detected'}")
        lines.append(f"- Has Gowright Config: {_yes_no(context.has_gowright_config)}")
        lines.append(f"- Project Root: {context.project_root}")

        lines += ["", "## Gowright Configuration", *_config_lines(loaded)]

        lines += ["", "## Existing Tests", f"- Test Files Found: {len(test_files)}"]
        lines += [f"  - {name}" for name in test_files]

        recommendations: list[str] = []
        if not go_ok:
            recommendations.append("Install Go 1.22 or later")
        if not context.is_go_project:
            recommendations.append("Initialize Go module: `go mod init <module-path>`")
        if not context.has_gowright_config:
            recommendations.append(
                "Generate Gowright configuration using the `generate_config` tool"
            )
        if not test_files:
            recommendations.append("Generate your first test using the `generate_test` tool")

        lines += ["", "## Recommendations"]
        if recommendations:
            lines += [f"{i}. {text}" for i, text in enumerate(recommendations, start=1)]
        else:
            lines.append("- Project is ready for Gowright testing")

        if suggestions:
            lines += ["", "## Suggested Test Types", *(f"- {s}" for s in suggestions)]

        return OperationResult.ok("\n".join(lines))


# ---------------------------------------------------------------------------
# Report helpers
# ---------------------------------------------------------------------------


def _yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"


def _context_section(context: ProjectContext) -> str:
    return "\n".join(
        [
            "**Project Context:**",
            f"- Go Project: {_yes_no(context.is_go_project)}",
            f"- Has Gowright Config: {_yes_no(context.has_gowright_config)}",
            f"- Module Path: {context.module_path or 'Not detected'}",
        ]
    )


def _config_lines(loaded: Optional[LoadedConfig]) -> list[str]:
    if loaded is None:
        return ["- Config File: Not found"]
    sections = loaded.config.sections()
    effective = merge_with_defaults(loaded.config)
    return [
        f"- Config File: {loaded.path.name}",
        f"- Sections: {', '.join(sections) if sections else 'none'}",
        f"- Log Level: {effective.log_level}",
        f"- Parallel: {_yes_no(bool(effective.parallel))}",
        f"- Max Retries: {effective.max_retries}",
        f"- API Base URL: {effective.api_config.base_url}",
    ]
