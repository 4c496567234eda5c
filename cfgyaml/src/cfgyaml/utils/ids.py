"""Stable checksums for encoded documents.

What:
  Provide the namespaced SHA-256 digest the CLI prints for checked and
  formatted documents.

Why:
  Comparing checksums tells operators whether ``fmt`` would change a file
  without diffing its content.

How:
  Wrap :func:`hashlib.sha256` and prefix the hex digest with ``sha256:``.

Interfaces:
  :func:`checksum`.
"""
from __future__ import annotations

import hashlib


def checksum(data: bytes) -> str:
    """Return ``sha256:<hex>`` for ``data``."""

    digest = hashlib.sha256(data).hexdigest()
    return f"sha256:{digest}"
