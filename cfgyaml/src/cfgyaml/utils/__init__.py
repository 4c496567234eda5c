"""Shared helpers for cfgyaml tooling.

What:
  Re-export the JSON logger factory and checksum helper.

Why:
  The CLI and settings loader import these through one stable facade.

Interfaces:
  ``get_logger``, ``JsonLogger``, ``checksum``.
"""

from .ids import checksum
from .logging import JsonLogger, get_logger

__all__ = [
    "get_logger",
    "JsonLogger",
    "checksum",
]
