"""Settings for the cfgyaml command-line tool.

What:
  Expose the settings model and its cached loader.

Why:
  The CLI reads defaults (schema reference, file mode, backup suffix) from a
  settings file; callers should not reach into the loader module directly.

Interfaces:
  - load_settings / get_settings / reset_settings: resolve and cache the
    settings file.
  - Settings / SettingsError: the pydantic model and the loader error.
"""

from .loader import SettingsError, get_settings, load_settings, reset_settings
from .schema import Settings

__all__ = [
    "load_settings",
    "get_settings",
    "reset_settings",
    "Settings",
    "SettingsError",
]
