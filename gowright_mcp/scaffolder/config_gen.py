"""Gowright configuration file synthesis.

Builds the nested ``gowright-config.json`` object for one configuration
category.  Every config starts from the same small base (log level,
parallel flag, retry count) and gains exactly the sections its category
needs; ``full`` gains all of them.  Override values replace the matching
default leaf.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel

from gowright_mcp.config import (
    APIConfig,
    AppiumConfig,
    BrowserConfig,
    DatabaseConfig,
    DBConnection,
    GowrightConfig,
    OpenAPIConfig,
    ReportConfig,
)
from gowright_mcp.utils import write_text_file


class ConfigOverrides(BaseModel):
    """Caller-supplied leaf values.

    Only these four fields are recognised; anything else a caller sends is
    ignored.
    """

    base_url: Optional[str] = None
    db_driver: Optional[str] = None
    db_dsn: Optional[str] = None
    appium_url: Optional[str] = None


def _api_section(overrides: ConfigOverrides) -> APIConfig:
    section = APIConfig()
    if overrides.base_url:
        section.base_url = overrides.base_url
    return section


def _database_section(overrides: ConfigOverrides) -> DatabaseConfig:
    main = DBConnection()
    if overrides.db_driver:
        main.driver = overrides.db_driver
    if overrides.db_dsn:
        main.dsn = overrides.db_dsn
    return DatabaseConfig(connections={"main": main})


def _appium_section(overrides: ConfigOverrides) -> AppiumConfig:
    section = AppiumConfig()
    if overrides.appium_url:
        section.server_url = overrides.appium_url
    return section


# Sections each category contributes, in the order they appear in the file.
_CATEGORY_SECTIONS: dict[str, tuple[str, ...]] = {
    "basic": (),
    "api": ("api_config",),
    "ui": ("browser_config",),
    "mobile": ("appium_config",),
    "database": ("database_config",),
    "full": (
        "browser_config",
        "api_config",
        "database_config",
        "appium_config",
        "openapi_config",
        "report_config",
    ),
}


def base_config() -> GowrightConfig:
    """The always-present top-level settings."""
    return GowrightConfig(log_level="info", parallel=True, max_retries=3)


def synthesize_config(
    config_type: str,
    overrides: ConfigOverrides | dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build the config object for *config_type*.

    Args:
        config_type: One of ``basic``, ``api``, ``ui``, ``mobile``,
            ``database`` or ``full``.
        overrides: Leaf overrides; a plain dict is accepted and unknown keys
            in it are dropped.

    Returns:
        A plain dict ready for :func:`render_config_json`.

    Raises:
        ValueError: If *config_type* is not a known category.
    """
    if config_type not in _CATEGORY_SECTIONS:
        raise ValueError(f"Unknown config type: {config_type}")
    if overrides is None:
        overrides = ConfigOverrides()
    elif isinstance(overrides, dict):
        overrides = ConfigOverrides.model_validate(overrides)

    builders = {
        "api_config": lambda: _api_section(overrides),
        "browser_config": BrowserConfig,
        "database_config": lambda: _database_section(overrides),
        "appium_config": lambda: _appium_section(overrides),
        "openapi_config": OpenAPIConfig,
        "report_config": ReportConfig,
    }

    result = base_config().dump()
    for section in _CATEGORY_SECTIONS[config_type]:
        result[section] = builders[section]().model_dump(by_alias=True)
    return result


def basic_project_config() -> dict[str, Any]:
    """Config written by ``setup_project``: the base plus report settings."""
    result = base_config().dump()
    result["report_config"] = ReportConfig().model_dump(by_alias=True)
    return result


def render_config_json(config: dict[str, Any]) -> str:
    """Serialise a config dict the way it is written to disk."""
    return json.dumps(config, indent=2)


async def write_config(path: str | Path, config_json: str) -> Path:
    """Write rendered config JSON to *path* off the event loop."""
    return await asyncio.to_thread(write_text_file, Path(path), config_json)
