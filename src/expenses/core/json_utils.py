#!/usr/bin/env python3
"""
JSON Utilities Module

Centralized JSON reading and writing with consistent formatting.
Decimal amounts are written as strings so no precision is lost on disk.
"""

import json
import os
import tempfile
from decimal import Decimal
from pathlib import Path
from typing import Any


def _default_serializer(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def write_json(filepath: str | Path, data: Any, ensure_ascii: bool = False, sort_keys: bool = False) -> None:
    """
    Write data to a JSON file with standard pretty-printing.

    The file is written to a temporary sibling first and then moved into
    place, so readers never observe a half-written document.

    Args:
        filepath: Path to the JSON file
        data: Data to write to the file
        ensure_ascii: If True, escape non-ASCII characters (default: False)
        sort_keys: If True, sort dictionary keys (default: False)
    """
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(dir=filepath.parent, prefix=f".{filepath.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(
                data,
                f,
                indent=2,
                ensure_ascii=ensure_ascii,
                sort_keys=sort_keys,
                default=_default_serializer,
            )
        os.replace(tmp_name, filepath)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def read_json(filepath: str | Path) -> Any:
    """
    Read data from a JSON file.

    Args:
        filepath: Path to the JSON file

    Returns:
        The parsed JSON data
    """
    with open(filepath, encoding="utf-8") as f:
        return json.load(f)


def format_json(data: Any, ensure_ascii: bool = False, sort_keys: bool = False) -> str:
    """
    Format data as a pretty-printed JSON string.

    Args:
        data: Data to format
        ensure_ascii: If True, escape non-ASCII characters (default: False)
        sort_keys: If True, sort dictionary keys (default: False)

    Returns:
        Pretty-printed JSON string
    """
    return json.dumps(data, indent=2, ensure_ascii=ensure_ascii, sort_keys=sort_keys, default=_default_serializer)
