"""Exception hierarchy raised by the cfgyaml engines and helpers.

What:
  Define one exception type per failure kind so callers can react to schema
  mistakes, malformed documents, and filesystem problems separately.

Why:
  Configuration files are edited by hand. Operators need diagnostics that say
  where the problem is (byte offset) and which key was being processed, while
  programs need to tell "wrong document" apart from "wrong schema".

How:
  :class:`YamlError` stores the optional ``offset`` and ``name`` and renders
  them into the message. Every other type only narrows the category.

Interfaces:
  :class:`YamlError`, :class:`ShapeMismatchError`, :class:`UnknownFieldError`,
  :class:`MalformedScalarError`, :class:`MalformedQuotedKeyError`,
  :class:`UnsupportedShapeError`, :class:`IOFailureError`.

Invariants & Safety:
  - Decode errors always carry the byte offset at which they were detected.
  - Messages never embed scalar values taken from the document; only keys and
    positions are reported.
"""
from __future__ import annotations

from typing import Optional


class YamlError(Exception):
    """Base error for every cfgyaml failure.

    What:
      Carry a human readable reason plus the position and key in scope.

    Why:
      A single base lets the CLI and wrappers catch every conversion failure
      with one ``except`` clause.

    How:
      Keep ``reason``, ``offset`` and ``name`` as attributes and format them
      as ``"<name> <reason> at <offset>"`` when present.
    """

    def __init__(self, reason: str, *, offset: Optional[int] = None, name: str = "") -> None:
        self.reason = reason
        self.offset = offset
        self.name = name
        super().__init__(self._render())

    def _render(self) -> str:
        parts = []
        if self.name:
            parts.append(self.name)
        parts.append(self.reason)
        message = " ".join(parts)
        if self.offset is not None:
            message = f"{message} at {self.offset}"
        return message


class ShapeMismatchError(YamlError):
    """The text does not have the structure the target shape requires."""


class UnknownFieldError(YamlError):
    """A mapping key has no matching field on the target record."""


class MalformedScalarError(YamlError):
    """A scalar cannot be parsed as the requested integer, float or boolean."""


class MalformedQuotedKeyError(YamlError):
    """A double-quoted key is unterminated, badly escaped or not followed by ``:``."""


class UnsupportedShapeError(YamlError):
    """The requested type or the encoded value has no cfgyaml representation."""


class IOFailureError(YamlError):
    """Reading or writing a document on disk failed."""


__all__ = [
    "YamlError",
    "ShapeMismatchError",
    "UnknownFieldError",
    "MalformedScalarError",
    "MalformedQuotedKeyError",
    "UnsupportedShapeError",
    "IOFailureError",
]
