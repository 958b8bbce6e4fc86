"""Unit tests for configuration models (gowright_mcp.config).

Tests cover:
- Settings defaults, from_env, resolve
- GowrightConfig section models, dump, sections, defaults
- deep_merge and merge_with_defaults
- ConfigCache load, miss caching, on-disk change detection, precedence,
  parse errors, invalidate
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from gowright_mcp.config import (
    CONFIG_FILE_NAMES,
    DEFAULT_CONFIG_FILE,
    FRAMEWORK_MODULE,
    APIConfig,
    ConfigCache,
    GowrightConfig,
    LocalReports,
    Settings,
    deep_merge,
    merge_with_defaults,
)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class TestSettings:
    @pytest.mark.unit
    def test_defaults(self):
        settings = Settings()
        assert settings.server_name == "gowright-mcp-server"
        assert settings.test_timeout == 300
        assert settings.validate_timeout == 60
        assert settings.bootstrap_timeout == 120
        assert settings.go_version_timeout == 10
        assert settings.parallel_degree == 4
        assert settings.framework_module == FRAMEWORK_MODULE
        assert settings.working_dir == Path.cwd()

    @pytest.mark.unit
    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(test_timeout=0)

    @pytest.mark.unit
    def test_from_env(self, tmp_path: Path):
        env = {
            "GOWRIGHT_MCP_WORKDIR": str(tmp_path),
            "GOWRIGHT_MCP_TEST_TIMEOUT": "600",
            "GOWRIGHT_MCP_VALIDATE_TIMEOUT": "90",
            "GOWRIGHT_MCP_BOOTSTRAP_TIMEOUT": "30",
            "GOWRIGHT_MCP_PARALLEL": "8",
            "GOWRIGHT_MCP_FRAMEWORK_MODULE": "example.com/fork/gowright",
        }
        with patch.dict(os.environ, env, clear=False):
            settings = Settings.from_env()
        assert settings.working_dir == tmp_path
        assert settings.test_timeout == 600
        assert settings.validate_timeout == 90
        assert settings.bootstrap_timeout == 30
        assert settings.parallel_degree == 8
        assert settings.framework_module == "example.com/fork/gowright"

    @pytest.mark.unit
    def test_from_env_ignores_empty_values(self):
        with patch.dict(os.environ, {"GOWRIGHT_MCP_TEST_TIMEOUT": ""}, clear=False):
            settings = Settings.from_env()
        assert settings.test_timeout == 300

    @pytest.mark.unit
    def test_from_env_rejects_non_numeric(self):
        with patch.dict(os.environ, {"GOWRIGHT_MCP_PARALLEL": "many"}, clear=False):
            with pytest.raises(ValueError):
                Settings.from_env()

    @pytest.mark.unit
    def test_resolve_relative(self, tmp_path: Path):
        settings = Settings(working_dir=tmp_path)
        assert settings.resolve("specs/openapi.yaml") == tmp_path / "specs" / "openapi.yaml"

    @pytest.mark.unit
    def test_resolve_absolute(self, tmp_path: Path):
        settings = Settings(working_dir=tmp_path / "elsewhere")
        target = tmp_path / "abs.json"
        assert settings.resolve(target) == target


# ---------------------------------------------------------------------------
# GowrightConfig models
# ---------------------------------------------------------------------------


class TestGowrightConfig:
    @pytest.mark.unit
    def test_recognised_names_order(self):
        assert CONFIG_FILE_NAMES == (
            "gowright-config.json",
            "gowright.config.json",
            ".gowright.json",
            "gowright.json",
        )
        assert DEFAULT_CONFIG_FILE == "gowright-config.json"

    @pytest.mark.unit
    def test_api_defaults(self):
        api = APIConfig()
        assert api.base_url == "https://api.example.com"
        assert api.timeout == "10s"
        assert api.headers["User-Agent"] == "Gowright-Test-Client"

    @pytest.mark.unit
    def test_dump_omits_absent_sections(self):
        config = GowrightConfig(log_level="info", parallel=True, max_retries=3)
        assert config.dump() == {"log_level": "info", "parallel": True, "max_retries": 3}
        assert config.sections() == []

    @pytest.mark.unit
    def test_defaults_carry_every_section(self):
        config = GowrightConfig.defaults()
        assert config.sections() == [
            "api_config",
            "browser_config",
            "database_config",
            "appium_config",
            "openapi_config",
            "report_config",
        ]

    @pytest.mark.unit
    def test_local_reports_json_alias(self):
        reports = LocalReports.model_validate({"json": False, "html": True})
        assert reports.json_ is False
        assert reports.model_dump(by_alias=True)["json"] is False

    @pytest.mark.unit
    def test_unknown_keys_survive(self):
        config = GowrightConfig.model_validate(
            {"api_config": {"base_url": "https://x", "retries": 5}, "custom": {"a": 1}}
        )
        dumped = config.dump()
        assert dumped["api_config"]["retries"] == 5
        assert dumped["custom"] == {"a": 1}

    @pytest.mark.unit
    def test_wrong_type_rejected(self):
        with pytest.raises(ValidationError):
            GowrightConfig.model_validate({"max_retries": "lots"})


# ---------------------------------------------------------------------------
# Merging
# ---------------------------------------------------------------------------


class TestDeepMerge:
    @pytest.mark.unit
    def test_nested_merge(self):
        base = {"a": {"b": 1, "c": 2}, "d": 3}
        override = {"a": {"c": 20, "e": 5}}
        assert deep_merge(base, override) == {"a": {"b": 1, "c": 20, "e": 5}, "d": 3}

    @pytest.mark.unit
    def test_non_dict_replaces(self):
        assert deep_merge({"a": {"b": 1}}, {"a": [1, 2]}) == {"a": [1, 2]}

    @pytest.mark.unit
    def test_inputs_not_mutated(self):
        base = {"a": {"b": 1}}
        override = {"a": {"b": 2}}
        deep_merge(base, override)
        assert base == {"a": {"b": 1}}

    @pytest.mark.unit
    def test_merge_with_defaults_none(self):
        assert merge_with_defaults(None).dump() == GowrightConfig.defaults().dump()

    @pytest.mark.unit
    def test_merge_with_defaults_overlays_leaf(self):
        partial = GowrightConfig.model_validate({"api_config": {"base_url": "https://orders"}})
        merged = merge_with_defaults(partial)
        assert merged.api_config.base_url == "https://orders"
        assert merged.api_config.timeout == "10s"
        assert merged.browser_config is not None
        assert merged.log_level == "info"


# ---------------------------------------------------------------------------
# ConfigCache
# ---------------------------------------------------------------------------


def _write_config(root: Path, name: str, data: dict) -> Path:
    path = root / name
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestConfigCache:
    @pytest.mark.unit
    def test_miss_is_cached(self, tmp_path: Path):
        cache = ConfigCache()
        assert cache.load(tmp_path) is None
        assert tmp_path in cache
        assert len(cache) == 1

        assert cache.load(tmp_path) is None
        assert len(cache) == 1

    @pytest.mark.unit
    def test_file_created_after_miss_is_seen(self, tmp_path: Path):
        cache = ConfigCache()
        assert cache.load(tmp_path) is None

        _write_config(tmp_path, "gowright-config.json", {"log_level": "debug"})
        loaded = cache.load(tmp_path)
        assert loaded is not None
        assert loaded.path.name == "gowright-config.json"
        assert loaded.config.log_level == "debug"

    @pytest.mark.unit
    def test_edited_file_is_reread(self, tmp_path: Path):
        path = _write_config(tmp_path, "gowright-config.json", {"log_level": "info"})
        cache = ConfigCache()
        assert cache.load(tmp_path).config.log_level == "info"

        _write_config(tmp_path, "gowright-config.json", {"log_level": "debug", "parallel": False})
        stat = path.stat()
        os.utime(path, ns=(stat.st_atime_ns, stat.st_mtime_ns + 1_000_000_000))
        loaded = cache.load(tmp_path)
        assert loaded.config.log_level == "debug"
        assert loaded.config.parallel is False

    @pytest.mark.unit
    def test_removed_file_becomes_miss(self, tmp_path: Path):
        path = _write_config(tmp_path, "gowright-config.json", {"log_level": "info"})
        cache = ConfigCache()
        assert cache.load(tmp_path) is not None
        path.unlink()
        assert cache.load(tmp_path) is None

    @pytest.mark.unit
    def test_higher_precedence_file_added_later(self, tmp_path: Path):
        _write_config(tmp_path, "gowright.json", {"log_level": "error"})
        cache = ConfigCache()
        assert cache.load(tmp_path).path.name == "gowright.json"
        _write_config(tmp_path, "gowright-config.json", {"log_level": "warn"})
        assert cache.load(tmp_path).path.name == "gowright-config.json"

    @pytest.mark.unit
    def test_precedence(self, tmp_path: Path):
        _write_config(tmp_path, "gowright.json", {"log_level": "error"})
        _write_config(tmp_path, ".gowright.json", {"log_level": "warn"})
        loaded = ConfigCache().load(tmp_path)
        assert loaded.path.name == ".gowright.json"
        assert loaded.config.log_level == "warn"

    @pytest.mark.unit
    def test_unparseable_file_is_skipped(self, tmp_path: Path):
        (tmp_path / "gowright-config.json").write_text("{not json", encoding="utf-8")
        _write_config(tmp_path, "gowright.json", {"parallel": False})
        loaded = ConfigCache().load(tmp_path)
        assert loaded.path.name == "gowright.json"
        assert loaded.config.parallel is False

    @pytest.mark.unit
    def test_returns_same_object_until_invalidated(self, tmp_path: Path):
        _write_config(tmp_path, "gowright-config.json", {"log_level": "info"})
        cache = ConfigCache()
        first = cache.load(tmp_path)
        with patch("gowright_mcp.config.json.loads") as loads:
            assert cache.load(tmp_path) is first
        loads.assert_not_called()
        cache.invalidate(tmp_path)
        assert cache.load(tmp_path) is not first

    @pytest.mark.unit
    def test_invalidate_all(self, tmp_path: Path):
        cache = ConfigCache()
        one = tmp_path / "one"
        two = tmp_path / "two"
        one.mkdir()
        two.mkdir()
        cache.load(one)
        cache.load(two)
        assert len(cache) == 2
        cache.invalidate()
        assert len(cache) == 0

    @pytest.mark.unit
    def test_invalidate_unknown_root_is_noop(self, tmp_path: Path):
        cache = ConfigCache()
        cache.invalidate(tmp_path / "never-loaded")
        assert len(cache) == 0

    @pytest.mark.unit
    def test_contains_rejects_non_paths(self):
        assert 42 not in ConfigCache()
