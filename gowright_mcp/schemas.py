"""Parameter models for every operation the server exposes.

Each operation has one Pydantic model describing the fields it accepts.
Optional fields default to ``None``; the handlers decide what ``None``
means.  ``generate_test`` is a tagged variant: ``testType`` selects one of
six models, each of which owns a strict field set, so a field that belongs
to another category is rejected instead of silently ignored.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

TestType = Literal["api", "ui", "mobile", "database", "integration", "openapi"]
HttpMethod = Literal["GET", "POST", "PUT", "DELETE", "PATCH"]
Platform = Literal["android", "ios"]
ConfigType = Literal["basic", "api", "ui", "mobile", "database", "full"]

TEST_TYPES: tuple[str, ...] = ("api", "ui", "mobile", "database", "integration", "openapi")
CONFIG_TYPES: tuple[str, ...] = ("basic", "api", "ui", "mobile", "database", "full")


class _Params(BaseModel):
    """Base for operation parameters: camelCase on the wire, extras ignored."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ---------------------------------------------------------------------------
# generate_test variants
# ---------------------------------------------------------------------------


class _TestParams(_Params):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    test_name: str = Field(
        ..., alias="testName", min_length=1, description="Name for the test function"
    )


class APITestParams(_TestParams):
    test_type: Literal["api"] = Field(alias="testType")
    endpoint: Optional[str] = Field(default=None, description="API endpoint path (for API tests)")
    method: Optional[HttpMethod] = Field(default=None, description="HTTP method (for API tests)")


class UITestParams(_TestParams):
    test_type: Literal["ui"] = Field(alias="testType")
    url: Optional[str] = Field(default=None, description="URL to test (for UI tests)")
    selector: Optional[str] = Field(
        default=None, description="CSS selector or element identifier (for UI/Mobile tests)"
    )


class MobileTestParams(_TestParams):
    test_type: Literal["mobile"] = Field(alias="testType")
    platform: Optional[Platform] = Field(default=None, description="Mobile platform (for mobile tests)")
    app_package: Optional[str] = Field(
        default=None, alias="appPackage", description="App package/bundle ID (for mobile tests)"
    )
    selector: Optional[str] = Field(
        default=None, description="CSS selector or element identifier (for UI/Mobile tests)"
    )


class DatabaseTestParams(_TestParams):
    test_type: Literal["database"] = Field(alias="testType")
    query: Optional[str] = Field(default=None, description="SQL query (for database tests)")
    connection: Optional[str] = Field(
        default=None, description="Database connection name (for database tests)"
    )


class IntegrationTestParams(_TestParams):
    test_type: Literal["integration"] = Field(alias="testType")


class OpenAPITestParams(_TestParams):
    test_type: Literal["openapi"] = Field(alias="testType")
    spec_path: Optional[str] = Field(
        default=None, alias="specPath", description="Path to OpenAPI specification (for OpenAPI tests)"
    )


TEST_VARIANTS: dict[str, type[_TestParams]] = {
    "api": APITestParams,
    "ui": UITestParams,
    "mobile": MobileTestParams,
    "database": DatabaseTestParams,
    "integration": IntegrationTestParams,
    "openapi": OpenAPITestParams,
}


class _TestTypeSelector(_Params):
    test_type: TestType = Field(..., alias="testType", description="Type of test to generate")


def validate_generate_test(arguments: dict[str, Any]) -> _TestParams:
    """Pick the variant named by ``testType`` and validate against it."""
    selector = _TestTypeSelector.model_validate(arguments)
    return TEST_VARIANTS[selector.test_type].model_validate(arguments)


# ---------------------------------------------------------------------------
# Other operations
# ---------------------------------------------------------------------------


class RunTestParams(_Params):
    test_file: str = Field(
        ..., alias="testFile", min_length=1, description="Path to the test file to run"
    )
    test_function: Optional[str] = Field(
        default=None, alias="testFunction", description="Specific test function to run (optional)"
    )
    parallel: Optional[bool] = Field(default=None, description="Run tests in parallel")
    verbose: Optional[bool] = Field(default=None, description="Enable verbose output")


class GenerateConfigParams(_Params):
    config_type: ConfigType = Field(
        ..., alias="configType", description="Type of configuration to generate"
    )
    output_path: Optional[str] = Field(
        default=None,
        alias="outputPath",
        description="Output path for the config file (default: gowright-config.json)",
    )
    base_url: Optional[str] = Field(default=None, alias="baseUrl", description="Base URL for API testing")
    db_driver: Optional[str] = Field(
        default=None, alias="dbDriver", description="Database driver (postgres, mysql, sqlite3)"
    )
    db_dsn: Optional[str] = Field(default=None, alias="dbDsn", description="Database connection string")
    appium_url: Optional[str] = Field(
        default=None, alias="appiumUrl", description="Appium server URL (default: http://localhost:4723)"
    )


class ValidateOpenAPIParams(_Params):
    spec_path: str = Field(
        ..., alias="specPath", min_length=1, description="Path to the OpenAPI specification file"
    )
    check_breaking: Optional[bool] = Field(
        default=None,
        alias="checkBreaking",
        description="Check for breaking changes against previous commit",
    )
    previous_commit: Optional[str] = Field(
        default=None,
        alias="previousCommit",
        description="Git commit to compare against (default: HEAD~1)",
    )


class SetupProjectParams(_Params):
    project_name: str = Field(
        ..., alias="projectName", min_length=1, description="Name of the Go project"
    )
    module_path: str = Field(
        ...,
        alias="modulePath",
        min_length=1,
        description="Go module path (e.g., github.com/user/project)",
    )
    include_examples: Optional[bool] = Field(
        default=None, alias="includeExamples", description="Include example test files"
    )


class AnalyzeProjectParams(_Params):
    path: Optional[str] = Field(
        default=None, description="Path to analyze (defaults to current directory)"
    )


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OperationSpec:
    """One entry of the operation catalog."""

    name: str
    description: str
    validate: Callable[[dict[str, Any]], BaseModel]
    input_schema: dict[str, Any]


def _simplify(prop: dict[str, Any]) -> dict[str, Any]:
    """Collapse pydantic's ``anyOf: [X, null]`` for optional fields into ``X``."""
    variants = prop.get("anyOf")
    if not variants:
        return prop
    non_null = [v for v in variants if v.get("type") != "null"]
    if len(non_null) != 1:
        return prop
    simplified = {k: v for k, v in prop.items() if k not in ("anyOf", "default")}
    simplified.update(non_null[0])
    return simplified


def _object_schema(model: type[BaseModel]) -> dict[str, Any]:
    raw = model.model_json_schema(by_alias=True)
    properties = {}
    for name, prop in raw.get("properties", {}).items():
        prop = _simplify(prop)
        prop.pop("title", None)
        properties[name] = prop
    return {
        "type": "object",
        "properties": properties,
        "required": list(raw.get("required", [])),
    }


def _generate_test_schema() -> dict[str, Any]:
    """Flatten the six variants into the single object schema clients see."""
    properties: dict[str, Any] = {
        "testType": {
            "type": "string",
            "enum": list(TEST_TYPES),
            "description": "Type of test to generate",
        },
    }
    for model in TEST_VARIANTS.values():
        for name, prop in _object_schema(model)["properties"].items():
            if name != "testType":
                properties.setdefault(name, prop)
    return {"type": "object", "properties": properties, "required": ["testType", "testName"]}


def _validator(model: type[BaseModel]) -> Callable[[dict[str, Any]], BaseModel]:
    return model.model_validate


OPERATIONS: dict[str, OperationSpec] = {
    spec.name: spec
    for spec in (
        OperationSpec(
            name="generate_test",
            description=(
                "Generate Gowright test code for different testing scenarios "
                "(API, UI, Mobile, Database, Integration, OpenAPI)"
            ),
            validate=validate_generate_test,
            input_schema=_generate_test_schema(),
        ),
        OperationSpec(
            name="run_test",
            description="Run Gowright tests with various options",
            validate=_validator(RunTestParams),
            input_schema=_object_schema(RunTestParams),
        ),
        OperationSpec(
            name="generate_config",
            description="Generate Gowright configuration files for different scenarios",
            validate=_validator(GenerateConfigParams),
            input_schema=_object_schema(GenerateConfigParams),
        ),
        OperationSpec(
            name="validate_openapi",
            description="Validate OpenAPI specifications and check for breaking changes",
            validate=_validator(ValidateOpenAPIParams),
            input_schema=_object_schema(ValidateOpenAPIParams),
        ),
        OperationSpec(
            name="setup_project",
            description="Initialize a new Go project with Gowright framework",
            validate=_validator(SetupProjectParams),
            input_schema=_object_schema(SetupProjectParams),
        ),
        OperationSpec(
            name="analyze_project",
            description=(
                "Analyze current project structure and provide recommendations "
                "for Gowright testing setup"
            ),
            validate=_validator(AnalyzeProjectParams),
            input_schema=_object_schema(AnalyzeProjectParams),
        ),
    )
}


def tool_definitions() -> list[dict[str, Any]]:
    """``{name, description, inputSchema}`` for every operation, in catalog order."""
    return [
        {"name": spec.name, "description": spec.description, "inputSchema": spec.input_schema}
        for spec in OPERATIONS.values()
    ]


def first_error(exc: ValidationError) -> str:
    """Describe the first violated constraint as ``<field>: <message>``."""
    errors = exc.errors()
    if not errors:
        return str(exc)
    error = errors[0]
    field = ".".join(str(part) for part in error.get("loc", ())) or "parameters"
    return f"{field}: {error.get('msg', 'invalid value')}"
