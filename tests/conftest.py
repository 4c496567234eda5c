"""Pytest configuration shared by every cfgyaml suite.

What:
  Put the in-repo source tree and the fixture schema module on ``sys.path``
  and pin the settings file used by the CLI.

Why:
  Tests must exercise the working copy rather than an installed wheel, and
  the settings cache is process-global; without a reset between tests the
  outcome would depend on execution order.

How:
  Prepend ``cfgyaml/src`` and ``tests/data`` to ``sys.path`` at import time.
  The autouse :func:`settings_file` fixture points ``CFGYAML_CONFIG_PATH`` at
  ``tests/data/cfgyaml.yaml`` and clears the cache before and after each
  test.

Interfaces:
  :func:`settings_file` (pytest fixture), ``DATA_DIR``.
"""

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "cfgyaml" / "src"
DATA_DIR = Path(__file__).resolve().parent / "data"
for _entry in (DATA_DIR, SRC_DIR):
    if _entry.exists() and str(_entry) not in sys.path:
        sys.path.insert(0, str(_entry))

import pytest

from cfgyaml.config import reset_settings

SETTINGS_PATH = DATA_DIR / "cfgyaml.yaml"


@pytest.fixture(autouse=True)
def settings_file(monkeypatch: pytest.MonkeyPatch):
    """Apply the canned settings file for every test.

    Args:
      monkeypatch: Used to set ``CFGYAML_CONFIG_PATH``.

    Yields:
      Path of the settings file in effect.
    """

    monkeypatch.setenv("CFGYAML_CONFIG_PATH", str(SETTINGS_PATH))
    reset_settings()
    try:
        yield SETTINGS_PATH
    finally:
        reset_settings()
