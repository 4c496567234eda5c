"""Discovery, parsing and caching of the cfgyaml settings file.

What:
  Locate ``cfgyaml.yaml``, decode it with cfgyaml's own decoder into the
  :class:`~cfgyaml.config.schema.Settings` model and cache the result.

Why:
  The CLI needs project-level defaults (default schema, file mode, backup
  policy) without every invocation repeating flags. Decoding the settings
  with the library itself means the settings file obeys exactly the rules the
  tool enforces on other documents.

How:
  Walk candidate paths in precedence order: explicit argument, the
  ``CFGYAML_CONFIG_PATH`` environment variable, ``./cfgyaml.yaml`` and
  ``~/.config/cfgyaml/config.yaml``. Explicit and environment paths must
  exist; default locations are optional and absent files yield the model
  defaults. Failures are converted into :class:`SettingsError` with path
  context.

Interfaces:
  :func:`load_settings`, :func:`get_settings`, :func:`reset_settings`,
  :class:`SettingsError`.

Invariants:
  - The cache honours explicit ``reload`` requests and the requested path.
  - Unknown keys in the settings file are rejected like any other record.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Optional, Tuple

from ..api import read_file
from ..errors import YamlError
from .schema import Settings


class SettingsError(Exception):
    """Raised when the settings file is missing, unreadable or invalid."""


_CONFIG_ENV = "CFGYAML_CONFIG_PATH"
_DEFAULT_LOCATIONS: Tuple[Path, ...] = (
    Path("cfgyaml.yaml"),
    Path("~/.config/cfgyaml/config.yaml"),
)
_SETTINGS_CACHE: Optional[Tuple[Optional[Path], Settings]] = None


def _candidate_paths(path: Optional[Path]) -> Iterable[Tuple[Path, bool]]:
    """Yield ``(candidate, required)`` pairs in priority order."""

    if path is not None:
        yield path.expanduser(), True
        return
    env_path = os.environ.get(_CONFIG_ENV)
    if env_path:
        yield Path(env_path).expanduser(), True
        return
    for default in _DEFAULT_LOCATIONS:
        yield default.expanduser(), False


def _load_from_path(path: Path) -> Settings:
    try:
        return read_file(path, Settings)
    except YamlError as exc:
        raise SettingsError(f"Invalid settings file {path}: {exc}") from exc


def load_settings(path: Optional[Path | str] = None, *, reload: bool = False) -> Settings:
    """Resolve, parse and cache the tool settings.

    Args:
      path: Optional explicit settings file.
      reload: Bypass the cache.

    Returns:
      The validated settings, or the defaults when no optional location
      holds a file.

    Raises:
      SettingsError: If a required file is missing or any file is invalid.
    """

    global _SETTINGS_CACHE

    requested = Path(path).expanduser() if isinstance(path, (str, Path)) else None
    if not reload and _SETTINGS_CACHE is not None:
        cached_path, cached = _SETTINGS_CACHE
        if requested is None or cached_path == requested:
            return cached

    for candidate, required in _candidate_paths(requested):
        if not candidate.exists():
            if required:
                raise SettingsError(f"Settings file missing: {candidate}")
            continue
        settings = _load_from_path(candidate)
        _SETTINGS_CACHE = (candidate, settings)
        return settings

    settings = Settings()
    _SETTINGS_CACHE = (None, settings)
    return settings


def get_settings() -> Settings:
    return load_settings()


def reset_settings() -> None:
    global _SETTINGS_CACHE
    _SETTINGS_CACHE = None
