"""Encoder emitting the cfgyaml notation from Python values.

What:
  Walk a value graph (scalars, lists, dicts, dataclass or pydantic records)
  and write the indentation-based text the decoder reads back.

Why:
  Tools generate and rewrite configuration files. The output must be stable
  (insertion order, fixed two-space nesting) and must never produce text the
  decoder would read differently, e.g. a ``#`` that looks like a comment.

How:
  :meth:`Encoder.encode_value` dispatches on the runtime type. Records use
  their class's :class:`~cfgyaml.shape.RecordShape` to pick visible fields,
  wire names and ``omitempty``. The :class:`~cfgyaml.core.decoder.LineState`
  passed down says whether the value follows ``key:`` or ``-`` so the encoder
  knows whether composite content starts on a new line.

Interfaces:
  :class:`Encoder`, :func:`quote_key`, :func:`needs_quoting`.

Invariants & Safety:
  - Every non-empty value ends with a newline.
  - Keys that would be ambiguous as plain text are double-quoted.
"""
from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from ..errors import UnsupportedShapeError
from ..shape import RecordShape, shape_of
from .decoder import LineState

_KEY_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\a": "\\a",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\v": "\\v",
}
_BLOCK_MARKERS = (">", "|")


def needs_quoting(key: str) -> bool:
    if not key or key.startswith('"'):
        return True
    return any(char.isspace() or not char.isprintable() or char in "#:" for char in key)


def quote_key(key: str) -> str:
    """Return ``key`` as a double-quoted literal with backslash escapes."""

    out = []
    for char in key:
        escaped = _KEY_ESCAPES.get(char)
        if escaped is not None:
            out.append(escaped)
        elif not char.isprintable():
            code = ord(char)
            if code <= 0xFF:
                out.append(f"\\x{code:02x}")
            elif code <= 0xFFFF:
                out.append(f"\\u{code:04x}")
            else:
                out.append(f"\\U{code:08x}")
        else:
            out.append(char)
    return '"' + "".join(out) + '"'


class Encoder:
    """Accumulates encoded text; reuse with :meth:`reset`."""

    def __init__(self) -> None:
        self._parts: list[str] = []

    def reset(self) -> None:
        self._parts = []

    def encode(self, value: Any) -> bytes:
        self.reset()
        self.encode_value(value, 0, LineState.FRESH)
        return "".join(self._parts).encode("utf-8")

    def _write(self, text: str) -> None:
        self._parts.append(text)

    def _indent(self, indent: int) -> None:
        self._parts.append(" " * indent)

    def _inline(self, context: LineState) -> None:
        # Separator between "key:" or "-" and content on the same line.
        if context is not LineState.FRESH:
            self._write(" ")

    def encode_value(self, value: Any, indent: int, context: LineState) -> None:
        if isinstance(value, bool):
            self._inline(context)
            self._write("true\n" if value else "false\n")
        elif isinstance(value, int):
            self._inline(context)
            self._write(f"{value}\n")
        elif isinstance(value, float):
            self._inline(context)
            self._write(f"{value!r}\n")
        elif isinstance(value, str):
            self._string(value, indent, context)
            self._write("\n")
        elif isinstance(value, (list, tuple)):
            self._sequence(value, indent, context)
        elif isinstance(value, Mapping):
            self._mapping(value, indent, context)
        elif isinstance(value, BaseModel) or (
            dataclasses.is_dataclass(value) and not isinstance(value, type)
        ):
            self._record(value, indent, context)
        else:
            raise UnsupportedShapeError(f"unsupported type {type(value).__name__}")

    def _open_block(self, empty: bool, context: LineState) -> bool:
        """Emit what precedes composite content; return True if the first entry needs indentation."""

        if context is LineState.AFTER_MAPPING_COLON:
            self._write("\n")
            return True
        if context is LineState.LIST_ELEMENT:
            self._write("\n" if empty else " ")
            return False
        return True

    def _sequence(self, items: Any, indent: int, context: LineState) -> None:
        need_indent = self._open_block(len(items) == 0, context)
        for item in items:
            if need_indent:
                self._indent(indent)
            need_indent = True
            self._write("-")
            self.encode_value(item, indent + 2, LineState.LIST_ELEMENT)

    def _entry(self, key: str, value: Any, indent: int, need_indent: bool) -> None:
        if need_indent:
            self._indent(indent)
        self._write(quote_key(key) if needs_quoting(key) else key)
        self._write(":")
        self.encode_value(value, indent + 2, LineState.AFTER_MAPPING_COLON)

    def _mapping(self, mapping: Mapping[Any, Any], indent: int, context: LineState) -> None:
        for key in mapping:
            if not isinstance(key, str):
                raise UnsupportedShapeError(f"mapping key of type {type(key).__name__}")
        need_indent = self._open_block(len(mapping) == 0, context)
        for key, value in mapping.items():
            self._entry(key, value, indent, need_indent)
            need_indent = True

    def _record(self, record: Any, indent: int, context: LineState) -> None:
        shape = shape_of(type(record))
        if not isinstance(shape, RecordShape):
            raise UnsupportedShapeError(f"unsupported record type {type(record).__name__}")
        entries = []
        for spec in shape.fields:
            value = getattr(record, spec.attr)
            if spec.can_omit(value):
                continue
            entries.append((spec.wire_name, value))
        need_indent = self._open_block(not entries, context)
        for wire_name, value in entries:
            self._entry(wire_name, value, indent, need_indent)
            need_indent = True

    def _string(self, text: str, indent: int, context: LineState) -> None:
        if not text:
            return
        if "\n" not in text:
            if "#" in text or text.strip() in _BLOCK_MARKERS:
                # Own line: inline "#" starts a comment, a lone ">" or "|" opens a block.
                self._write("\n")
                self._indent(indent)
            else:
                self._inline(context)
            self._write(text)
            return
        if text.endswith("\n"):
            self._inline(context)
            self._write(">")
            text = text[:-1]
        self._write("\n")
        lines = text.split("\n")
        for line in lines[:-1]:
            if line.strip():
                self._indent(indent)
                self._write(line)
                self._write("\n")
            self._write("\n")
        if lines[-1].strip():
            self._indent(indent)
            self._write(lines[-1])
