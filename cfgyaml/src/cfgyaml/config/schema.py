"""Pydantic model describing the cfgyaml tool settings file."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Settings(BaseModel):
    """Defaults applied by the ``cfgyaml`` command-line tool.

    ``schema`` names the default ``module:Type`` used when ``--schema`` is not
    given; ``file_mode`` is the octal permission string for rewritten files;
    a non-empty ``backup_suffix`` makes ``fmt --write`` keep the previous
    content next to the file.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    schema_ref: str = Field(default="", alias="schema")
    file_mode: str = "0644"
    backup_suffix: str = ""
    log_component: str = "cfgyaml"

    @field_validator("file_mode")
    @classmethod
    def _validate_file_mode(cls, value: str) -> str:
        try:
            mode = int(value, 8)
        except ValueError:
            raise ValueError("file_mode must be an octal string such as 0644") from None
        if not 0 <= mode <= 0o7777:
            raise ValueError("file_mode must be between 0000 and 7777")
        return value

    @field_validator("log_component")
    @classmethod
    def _validate_component(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("log_component must not be empty")
        return value

    @property
    def mode(self) -> int:
        return int(self.file_mode, 8)
