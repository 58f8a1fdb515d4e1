"""Shared utilities."""

from shotgen.core.utils.json import read_json, read_json_any, write_json
from shotgen.core.utils.logging import StructuredJSONFormatter, configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
    "StructuredJSONFormatter",
    "read_json",
    "read_json_any",
    "write_json",
]
