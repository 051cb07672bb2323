"""
renderer.py

Responsibility: Substitute launch-option placeholders into workflow file text
before it is parsed as YAML.

Rules:
- Text without Jinja2 markers is returned unchanged.
- `{{ key }}` renders the launch option with that key, including keys that are
  not Python identifiers (`{{ stack-name }}`).
- Placeholders with no matching option render as empty strings, attribute
  chains included (`${{ Secrets.TOKEN }}` renders as `$`).

This module intentionally does NOT know about YAML, workflows, or git.
"""

from __future__ import annotations

import json
import re
from typing import Any

from jinja2 import ChainableUndefined, Environment, TemplateError

from launch_blueprint.options import OptionValue


class RenderError(RuntimeError):
    pass


OPTIONS_VARIABLE = "__launch_options__"

# `{{ name }}` where name is a plain key that Jinja2 would not read as one
# (hyphens, leading digits).
_KEY_PLACEHOLDER_RE = re.compile(r"\{\{\s*([A-Za-z0-9_][\w\-]*)\s*\}\}")
_IDENTIFIER_RE = re.compile(r"^[A-Za-z_]\w*$")

_env = Environment(
    autoescape=False,
    undefined=ChainableUndefined,
    keep_trailing_newline=True,
)


def build_substitutions(launch_options: tuple[OptionValue, ...] | list[OptionValue]) -> dict[str, Any]:
    # Later entries overwrite earlier ones with the same key.
    return {option.key: option.value for option in launch_options}


def has_template_markers(text: str) -> bool:
    return ("{{" in text) or ("{%" in text) or ("{#" in text)


def _route_plain_keys(text: str) -> str:
    def _replace(match: re.Match[str]) -> str:
        key = match.group(1)
        if _IDENTIFIER_RE.match(key):
            return match.group(0)
        return "{{ %s[%s] }}" % (OPTIONS_VARIABLE, json.dumps(key))

    return _KEY_PLACEHOLDER_RE.sub(_replace, text)


def render_workflow_text(text: str, substitutions: dict[str, Any], *, source: str = "<string>") -> str:
    if not has_template_markers(text):
        return text
    context = {k: v for k, v in substitutions.items() if _IDENTIFIER_RE.match(k)}
    context[OPTIONS_VARIABLE] = substitutions
    try:
        return _env.from_string(_route_plain_keys(text)).render(**context)
    except TemplateError as e:
        raise RenderError(f"Failed rendering workflow file: {source}") from e
