"""Recursive-descent decoder for the cfgyaml notation.

What:
  Turn a UTF-8 byte buffer into a Python value whose structure is dictated by
  a :mod:`cfgyaml.shape` descriptor.

Why:
  Configuration documents are small and hand edited; a line-oriented walker
  that knows the expected shape at every step gives precise errors ("undefined
  field x at 123") instead of guessing types from the text.

How:
  Each recursive call owns one indentation level and one :class:`LineState`
  telling it whether the current line was already validated by the caller
  (after ``-``), continues after ``key:``, or must be located from scratch.
  Scalars read the rest of the logical line or a block body; sequences loop
  over ``-`` entries; mappings and records loop over ``key:`` lines.

Interfaces:
  :class:`LineState`, :class:`BlockMode`, :class:`Decoder`.

Invariants & Safety:
  - Nesting increases by exactly two spaces per level.
  - ``#`` starts a comment everywhere except inside block-scalar bodies and
    double-quoted keys.
  - Any error aborts the whole decode; no partially built value escapes.
"""
from __future__ import annotations

import re
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError as _PydanticValidationError

from ..errors import (
    MalformedQuotedKeyError,
    MalformedScalarError,
    ShapeMismatchError,
    UnknownFieldError,
    UnsupportedShapeError,
)
from ..shape import (
    MappingShape,
    RecordShape,
    ScalarKind,
    ScalarShape,
    SequenceShape,
    Shape,
    shape_of,
    zero_value,
)
from .cursor import LineCursor

DASH = ord("-")
SPACE = ord(" ")
TAB = ord("\t")
COLON = ord(":")
QUOTE = ord('"')
BACKSLASH = ord("\\")

_INTEGER = re.compile(r"[+-]?[0-9]+")
_ESCAPE = re.compile(r"\\(x[0-9a-fA-F]{2}|u[0-9a-fA-F]{4}|U[0-9a-fA-F]{8}|[0-7]{3}|.)", re.S)
_SIMPLE_ESCAPES = {
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
    "\\": "\\",
    '"': '"',
    "'": "'",
}


class LineState(Enum):
    """What the callee may assume about the current line."""

    FRESH = "fresh"
    LIST_ELEMENT = "list_element"
    AFTER_MAPPING_COLON = "after_mapping_colon"


class BlockMode(Enum):
    DEFAULT = "default"
    FOLDED = "folded"
    LITERAL = "literal"


def unquote_key(body: str) -> str:
    """Resolve backslash escapes inside a double-quoted key.

    Raises:
      ValueError: On an unknown escape or an out-of-range code point.
    """

    def _replace(match: "re.Match[str]") -> str:
        token = match.group(1)
        simple = _SIMPLE_ESCAPES.get(token)
        if simple is not None:
            return simple
        if len(token) > 1 and token[0] in "xuU":
            return chr(int(token[1:], 16))
        if len(token) == 3 and token.isdigit():
            code = int(token, 8)
            if code > 0xFF:
                raise ValueError(f"octal escape \\{token} out of range")
            return chr(code)
        raise ValueError(f"invalid escape \\{token}")

    return _ESCAPE.sub(_replace, body)


class Decoder:
    """Decode one document held in memory.

    A decoder owns its cursor; use one instance per concurrent conversion and
    :meth:`reset` to reuse it for another buffer.
    """

    def __init__(self, data: Union[bytes, str] = b"") -> None:
        self._cursor = LineCursor(_as_bytes(data))
        self._key_offset = 0

    def reset(self, data: Union[bytes, str]) -> None:
        self._cursor.reset(_as_bytes(data))

    @property
    def offset(self) -> int:
        return self._cursor.offset

    def decode(self, target: Any, *, into: Any = None) -> Any:
        """Decode the whole buffer as ``target`` (a type or a shape).

        When ``into`` is given the decoded content is merged into that
        existing list, dict or record instead of a fresh value: lists are
        emptied first, dicts keep unrelated keys and records keep fields the
        document does not mention.
        """

        shape = shape_of(target)
        _check_destination(shape, into)
        value = self.decode_value(shape, 0, LineState.FRESH, "", into)
        self._expect_end()
        return value

    def decode_value(
        self,
        shape: Shape,
        indent: int,
        state: LineState,
        name: str = "",
        current: Any = None,
    ) -> Any:
        if isinstance(shape, ScalarShape):
            return self._scalar(shape, indent, state, name)
        if isinstance(shape, SequenceShape):
            return self._sequence(shape, indent, state, name, current)
        if isinstance(shape, MappingShape):
            return self._mapping(shape, indent, state, name, current)
        if isinstance(shape, RecordShape):
            return self._record(shape, indent, state, name, current)
        raise UnsupportedShapeError(
            f"unsupported shape {shape!r}", offset=self._cursor.offset, name=name
        )

    # -- scalars -----------------------------------------------------------

    def _scalar(self, shape: ScalarShape, indent: int, state: LineState, name: str) -> Any:
        cursor = self._cursor
        text_kind = shape.kind is ScalarKind.TEXT
        if state is LineState.FRESH and self._only_blank_left(keep_comments=text_kind):
            return zero_value(shape)
        start = cursor.offset
        text = self._string(indent, name)
        if shape.kind is ScalarKind.TEXT:
            return text
        if shape.kind is ScalarKind.INT:
            if not _INTEGER.fullmatch(text):
                raise MalformedScalarError("invalid integer syntax", offset=start, name=name)
            number = int(text)
            limit = 1 << (shape.bits - 1)
            if not -limit <= number < limit:
                raise MalformedScalarError(
                    f"integer out of range for int{shape.bits}", offset=start, name=name
                )
            return number
        if shape.kind is ScalarKind.FLOAT:
            if not text or "_" in text:
                raise MalformedScalarError("invalid float syntax", offset=start, name=name)
            try:
                return float(text)
            except ValueError as exc:
                raise MalformedScalarError("invalid float syntax", offset=start, name=name) from exc
        if text == "true":
            return True
        if text == "false":
            return False
        raise MalformedScalarError("invalid boolean, expected true or false", offset=start, name=name)

    def _string(self, indent: int, name: str) -> str:
        cursor = self._cursor
        line, end = cursor.peek_logical_line()
        line = line.strip()
        cursor.offset = end
        if not line:
            return self._block(indent, BlockMode.DEFAULT, name)
        if line == b">":
            return self._block(indent, BlockMode.FOLDED, name)
        if line == b"|":
            return self._block(indent, BlockMode.LITERAL, name)
        return self._text(line, name)

    def _block(self, indent: int, mode: BlockMode, name: str) -> str:
        buf = bytearray()
        need_space = False
        blanks = 0
        line = self._block_line(indent)
        while line is not None:
            if not line.strip():
                blanks += 1
            else:
                if blanks:
                    buf += b"\n" * blanks
                    need_space = False
                    blanks = 0
                if mode is BlockMode.LITERAL:
                    buf += line
                    buf += b"\n"
                else:
                    if need_space:
                        buf += b" "
                    buf += line.strip()
                    need_space = True
            line = self._block_line(indent)
        if mode is BlockMode.FOLDED and buf:
            buf += b"\n"
        return self._text(bytes(buf), name)

    def _block_line(self, indent: int) -> Optional[bytes]:
        # Raw read: "#" is content inside a block body.
        cursor = self._cursor
        if cursor.at_eof:
            return None
        line, end = cursor.peek_raw_line()
        width = min(indent, len(line))
        if line[:width] != b" " * width:
            return None
        cursor.offset = end
        return line[width:]

    def _only_blank_left(self, keep_comments: bool) -> bool:
        """True when only blank lines remain; never moves the cursor.

        With ``keep_comments`` a ``#`` line counts as content, as it does in a
        text block body.
        """

        cursor = self._cursor
        mark = cursor.offset
        try:
            while not cursor.at_eof:
                if keep_comments:
                    line, end = cursor.peek_raw_line()
                else:
                    line, end = cursor.peek_logical_line()
                if line.strip():
                    return False
                cursor.offset = end
            return True
        finally:
            cursor.offset = mark

    def _text(self, raw: bytes, name: str) -> str:
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedScalarError(
                "invalid utf-8 text", offset=self._cursor.offset, name=name
            ) from exc

    # -- structure ---------------------------------------------------------

    def _try_line(self, indent: int, state: LineState) -> bool:
        """Position the cursor on the next content line at ``indent``.

        Blank and comment-only lines are skipped. After a ``-`` the rest of the
        dash line counts as already indented.
        """

        cursor = self._cursor
        if state is LineState.LIST_ELEMENT:
            line, end = cursor.peek_logical_line()
            if line.strip():
                return True
            cursor.offset = end
        while True:
            if cursor.at_eof:
                return False
            line, end = cursor.peek_logical_line()
            if line.strip():
                break
            cursor.offset = end
        if cursor.has_indent(line, indent):
            cursor.offset += indent
            return True
        return False

    def _discard_rest(self) -> None:
        # A composite after "key:" starts on the next line; the remainder is ignored.
        self._cursor.advance_past_line()

    def _dash(self, indent: int, state: LineState) -> bool:
        cursor = self._cursor
        mark = cursor.offset
        if not self._try_line(indent, state) or cursor.current_byte() != DASH:
            cursor.offset = mark
            return False
        cursor.offset += 1
        if cursor.current_byte() == SPACE:
            cursor.offset += 1
        return True

    def _sequence(
        self,
        shape: SequenceShape,
        indent: int,
        state: LineState,
        name: str,
        current: Optional[List[Any]],
    ) -> List[Any]:
        if state is LineState.AFTER_MAPPING_COLON:
            self._discard_rest()
        items: List[Any] = current if current is not None else []
        items.clear()
        while self._dash(indent, state):
            items.append(self.decode_value(shape.element, indent + 2, LineState.LIST_ELEMENT, name))
            state = LineState.FRESH
        return items

    def _key(self, indent: int, state: LineState, name: str) -> Optional[str]:
        if not self._try_line(indent, state):
            return None
        cursor = self._cursor
        self._key_offset = cursor.offset
        if cursor.current_byte() == QUOTE:
            return self._quoted_key(name)
        line, _ = cursor.peek_logical_line()
        colon = line.find(b":")
        if colon == -1:
            raise ShapeMismatchError("expect key", offset=cursor.offset, name=name)
        key = self._text(line[:colon].strip(), name)
        cursor.offset += colon + 1
        return key

    def _quoted_key(self, name: str) -> str:
        cursor = self._cursor
        start = cursor.offset
        line, _ = cursor.peek_raw_line()
        index = 1
        while index < len(line):
            byte = line[index]
            if byte == BACKSLASH:
                index += 2
                continue
            if byte == QUOTE:
                break
            index += 1
        else:
            raise MalformedQuotedKeyError("unterminated quoted key", offset=start, name=name)
        try:
            key = unquote_key(self._text(line[1:index], name))
        except ValueError as exc:
            raise MalformedQuotedKeyError(str(exc), offset=start, name=name) from exc
        index += 1
        while index < len(line) and line[index] in (SPACE, TAB):
            index += 1
        if index >= len(line) or line[index] != COLON:
            raise MalformedQuotedKeyError(
                "expect ':' after quoted key", offset=start + index, name=name
            )
        cursor.offset = start + index + 1
        return key

    def _mapping(
        self,
        shape: MappingShape,
        indent: int,
        state: LineState,
        name: str,
        current: Optional[Dict[str, Any]],
    ) -> Dict[str, Any]:
        if state is LineState.AFTER_MAPPING_COLON:
            self._discard_rest()
        result: Dict[str, Any] = current if current is not None else {}
        key = self._key(indent, state, name)
        while key is not None:
            result[key] = self.decode_value(
                shape.element, indent + 2, LineState.AFTER_MAPPING_COLON, key
            )
            key = self._key(indent, LineState.FRESH, name)
        return result

    def _record(
        self,
        shape: RecordShape,
        indent: int,
        state: LineState,
        name: str,
        current: Any,
    ) -> Any:
        if state is LineState.AFTER_MAPPING_COLON:
            self._discard_rest()
        start = self._cursor.offset
        values: Dict[str, Any] = {}
        key = self._key(indent, state, name)
        while key is not None:
            spec = shape.lookup(key)
            if spec is None:
                raise UnknownFieldError(
                    f"undefined field {key}", offset=self._key_offset, name=name or shape.name
                )
            existing = None
            if current is not None and not isinstance(spec.shape, ScalarShape):
                existing = getattr(current, spec.attr, None)
            values[spec.attr] = self.decode_value(
                spec.shape, indent + 2, LineState.AFTER_MAPPING_COLON, key, existing
            )
            key = self._key(indent, LineState.FRESH, name)
        if current is not None:
            for attr, value in values.items():
                setattr(current, attr, value)
            return current
        try:
            return shape.build(values)
        except ValueError as exc:
            raise ShapeMismatchError(
                f"invalid {shape.name}: {_describe_failure(exc)}", offset=start, name=name
            ) from exc

    def _expect_end(self) -> None:
        cursor = self._cursor
        while not cursor.at_eof:
            line, end = cursor.peek_logical_line()
            if line.strip():
                raise ShapeMismatchError("unexpected content", offset=cursor.offset)
            cursor.offset = end


def _as_bytes(data: Union[bytes, str]) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def _describe_failure(exc: ValueError) -> str:
    if isinstance(exc, _PydanticValidationError):
        # Locations and messages only; pydantic's str() echoes input values.
        return "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        )
    return str(exc)


def _check_destination(shape: Shape, into: Any) -> None:
    if into is None:
        return
    expected: Any = None
    if isinstance(shape, SequenceShape):
        expected = list
    elif isinstance(shape, MappingShape):
        expected = dict
    elif isinstance(shape, RecordShape):
        expected = shape.type_
    if expected is None or not isinstance(into, expected):
        raise UnsupportedShapeError(f"cannot decode {shape!r} into {type(into).__name__}")
