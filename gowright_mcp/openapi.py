"""Lightweight reading of OpenAPI documents.

Only enough of the document is read to tell the caller what was found
(version, title, number of paths).  Real validation and breaking-change
detection happen in the generated Go test through the Gowright framework.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field


class OpenAPISummary(BaseModel):
    """What a quick parse of a spec file revealed."""

    path: str
    parsed: bool = Field(default=False)
    version: Optional[str] = Field(default=None, description="Value of 'openapi' or 'swagger'")
    title: Optional[str] = None
    path_count: int = Field(default=0, ge=0)
    error: Optional[str] = None

    def lines(self) -> list[str]:
        """Markdown bullet lines for the operation report."""
        if not self.parsed:
            return [f"- Could not parse specification: {self.error}"]
        return [
            f"- OpenAPI Version: {self.version or 'Not declared'}",
            f"- Title: {self.title or 'Untitled'}",
            f"- Paths: {self.path_count}",
        ]


def summarize_spec(path: str | Path) -> OpenAPISummary:
    """Parse *path* as YAML (which also covers JSON) and summarise it.

    Never raises: unreadable or malformed files come back with
    ``parsed=False`` and the reason in ``error``.
    """
    spec_path = Path(path)
    try:
        document = yaml.safe_load(spec_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
        return OpenAPISummary(path=str(spec_path), error=str(exc))

    if not isinstance(document, dict):
        return OpenAPISummary(path=str(spec_path), error="top-level value is not a mapping")

    version = document.get("openapi") or document.get("swagger")
    info = document.get("info") if isinstance(document.get("info"), dict) else {}
    paths = document.get("paths") if isinstance(document.get("paths"), dict) else {}
    return OpenAPISummary(
        path=str(spec_path),
        parsed=True,
        version=str(version) if version is not None else None,
        title=str(info["title"]) if info.get("title") is not None else None,
        path_count=len(paths),
    )
