"""Best-effort inspection of a Go project directory.

Everything here is read-only and never raises for a missing or unreadable
file: an unreadable ``go.mod`` simply means the module path is reported as
absent.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from gowright_mcp.config import CONFIG_FILE_NAMES

_MODULE_RE = re.compile(r"^module\s+(.+)$", re.MULTILINE)

_SKIP_DIRS = {"vendor", "node_modules"}


class ProjectContext(BaseModel):
    """Snapshot of what a working directory looks like.

    Serialised with camelCase aliases (``isGoProject``, ``modulePath`` ...).
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    is_go_project: bool = Field(default=False, alias="isGoProject")
    has_gowright_config: bool = Field(default=False, alias="hasGowrightConfig")
    config_file: Optional[str] = Field(default=None, alias="configFile")
    module_path: Optional[str] = Field(default=None, alias="modulePath")
    project_root: str = Field(default=".", alias="projectRoot")


def read_module_path(go_mod: Path) -> Optional[str]:
    """Return the path declared on the first ``module`` line of *go_mod*."""
    try:
        content = go_mod.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None
    match = _MODULE_RE.search(content)
    if not match:
        return None
    # Trailing "// comment" is legal on the module line.
    value = match.group(1).split("//", 1)[0].strip().strip('"')
    return value or None


def find_config_file(root: Path) -> Optional[Path]:
    """First recognised Gowright config file under *root*, if any."""
    for name in CONFIG_FILE_NAMES:
        candidate = root / name
        if candidate.is_file():
            return candidate
    return None


def detect_project_context(root: str | Path | None = None) -> ProjectContext:
    """Probe *root* (default: the current directory) for Go/Gowright markers."""
    root_path = Path(root) if root is not None else Path.cwd()
    go_mod = root_path / "go.mod"
    is_go_project = go_mod.is_file()
    config_file = find_config_file(root_path)

    return ProjectContext(
        is_go_project=is_go_project,
        has_gowright_config=config_file is not None,
        config_file=config_file.name if config_file else None,
        module_path=read_module_path(go_mod) if is_go_project else None,
        project_root=str(root_path),
    )


def find_test_files(root: str | Path) -> list[str]:
    """Relative paths of every ``*_test.go`` below *root*.

    Hidden directories, ``vendor`` and ``node_modules`` are skipped.
    """
    root_path = Path(root)
    found: list[str] = []

    def _walk(directory: Path) -> None:
        try:
            entries = sorted(directory.iterdir())
        except OSError:
            return
        for entry in entries:
            if entry.is_dir():
                if entry.name.startswith(".") or entry.name in _SKIP_DIRS:
                    continue
                _walk(entry)
            elif entry.is_file() and entry.name.endswith("_test.go"):
                found.append(entry.relative_to(root_path).as_posix())

    _walk(root_path)
    return found


def suggest_test_types(root: str | Path) -> list[str]:
    """Suggest Gowright test categories from marker files and directories."""
    root_path = Path(root)

    def _any(*names: str) -> bool:
        return any((root_path / name).exists() for name in names)

    suggestions: list[str] = []
    if _any("main.go", "server.go", "api", "handlers"):
        suggestions.append("**API Testing** - Detected potential web server/API code")
    if _any("migrations", "models", "database"):
        suggestions.append("**Database Testing** - Detected database-related code")
    if _any("openapi.yaml", "openapi.yml", "swagger.yaml", "api.yaml"):
        suggestions.append("**OpenAPI Testing** - Detected OpenAPI specification")
    if len(suggestions) > 1:
        suggestions.append("**Integration Testing** - Multiple components detected")
    if _any("web", "static", "templates"):
        suggestions.append("**UI Testing** - Detected web frontend code")
    return suggestions
