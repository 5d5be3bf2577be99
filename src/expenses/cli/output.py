#!/usr/bin/env python3
"""
CLI Output Helpers

Renders report dictionaries as JSON or YAML for machine-readable output.
"""

from typing import Any

import click
import yaml

from ..core.json_utils import format_json

OUTPUT_FORMATS = ["text", "json", "yaml"]


def format_option(func: Any) -> Any:
    """Shared --format option for report commands."""
    return click.option(
        "--format",
        "output_format",
        type=click.Choice(OUTPUT_FORMATS),
        default="text",
        show_default=True,
        help="Output format",
    )(func)


def echo_structured(data: dict[str, Any], output_format: str) -> None:
    """Print a report dictionary as JSON or YAML."""
    if output_format == "json":
        click.echo(format_json(data))
    else:
        click.echo(yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True).rstrip())
