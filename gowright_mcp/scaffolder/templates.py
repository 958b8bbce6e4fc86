"""Jinja2 template rendering for generated Go sources.

Provides the TemplateRenderer class which loads Jinja2 templates from the
``gowright_mcp/scaffolder/templates/`` directory and renders them with a
context dictionary, plus the helpers that build Go import blocks and Go
string literals for those templates.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable

from jinja2 import Environment, FileSystemLoader, StrictUndefined


# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 templates for generated Go files.

    Templates are plain Go source with ``{{ ... }}`` placeholders.  HTML
    autoescaping is off and undefined variables raise, so a missing context
    key surfaces as an error instead of an empty string in the output.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=False,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["go_string"] = go_string

    # -- Single template rendering -----------------------------------------

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template with the provided context.

        Args:
            template_path: Path relative to the template directory (e.g.
                ``"api_test.go.j2"``).
            context: Dictionary of variables available inside the template.

        Returns:
            The rendered template content as a string.
        """
        template = self.env.get_template(template_path)
        return template.render(**context)


# ---------------------------------------------------------------------------
# Go helpers
# ---------------------------------------------------------------------------


def go_string(value: Any) -> str:
    """Quote *value* as a Go interpreted string literal.

    JSON string escaping is a subset of Go's, so ``json.dumps`` gives a
    literal that compiles for any input, including quotes and newlines.
    """
    return json.dumps(str(value))


def import_block(packages: Iterable[str]) -> str:
    """Render a gofmt-style ``import (...)`` block.

    Standard-library packages come first, then a blank line, then
    third-party packages (anything whose first path element has a dot).
    Duplicates are dropped.
    """
    unique = sorted(set(packages))
    stdlib = [p for p in unique if "." not in p.split("/", 1)[0]]
    external = [p for p in unique if p not in stdlib]

    lines = ["import ("]
    lines.extend(f'\t"{p}"' for p in stdlib)
    if stdlib and external:
        lines.append("")
    lines.extend(f'\t"{p}"' for p in external)
    lines.append(")")
    return "\n".join(lines)
