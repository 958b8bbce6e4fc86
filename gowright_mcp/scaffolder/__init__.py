"""Gowright MCP scaffolder -- renders Go tests, configs and starter projects.

Quick usage::

    from gowright_mcp.scaffolder import GoTestGenerator, synthesize_config
    from gowright_mcp.probe import detect_project_context

    generator = GoTestGenerator()
    source = generator.generate_api_test(
        "UserAPI", "/api/users", "GET", detect_project_context()
    )
    config = synthesize_config("api", {"base_url": "https://staging.example.com"})
"""

from .config_gen import ConfigOverrides, basic_project_config, render_config_json, synthesize_config
from .project_gen import ProjectFiles, ProjectScaffolder
from .templates import TemplateRenderer, go_string, import_block
from .test_gen import GoTestGenerator

__all__ = [
    "ConfigOverrides",
    "GoTestGenerator",
    "ProjectFiles",
    "ProjectScaffolder",
    "TemplateRenderer",
    "basic_project_config",
    "go_string",
    "import_block",
    "render_config_json",
    "synthesize_config",
]
