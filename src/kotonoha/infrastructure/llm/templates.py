"""Jinja2 template utilities for LLM components."""

import json
from typing import Any

from jinja2 import Environment, PackageLoader, select_autoescape


def to_pretty_json(value: Any) -> str:
    """Dump a value as indented JSON without escaping Japanese text.

    Args:
        value: JSON-serializable value.

    Returns:
        JSON string.
    """
    return json.dumps(value, ensure_ascii=False, indent=2)


def create_jinja_env() -> Environment:
    """Create Jinja2 environment for LLM templates.

    Creates a configured Jinja2 environment that loads templates from
    the kotonoha.infrastructure.llm.templates package.

    Returns:
        Configured Jinja2 environment.
    """
    env = Environment(
        loader=PackageLoader("kotonoha.infrastructure.llm", "templates"),
        autoescape=select_autoescape(),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["pretty_json"] = to_pretty_json
    return env
