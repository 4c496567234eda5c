"""Byte-offset line cursor shared by the decode engine.

The cursor never copies the buffer: every peek returns a slice plus the
offset just past the line terminator, and the caller decides whether to
commit that offset.
"""
from __future__ import annotations

from typing import Tuple


class LineCursor:
    """Tracks a byte offset into an immutable input buffer."""

    def __init__(self, data: bytes = b"") -> None:
        self.data = bytes(data)
        self.offset = 0

    def reset(self, data: bytes) -> None:
        self.data = bytes(data)
        self.offset = 0

    @property
    def at_eof(self) -> bool:
        return self.offset >= len(self.data)

    def current_byte(self) -> int:
        """Return the byte under the cursor, or ``-1`` at end of input."""

        if self.offset < len(self.data):
            return self.data[self.offset]
        return -1

    def peek_logical_line(self) -> Tuple[bytes, int]:
        """Return the rest of the current line without its comment.

        The line is cut at the first ``#``. The second element is the offset
        after the ``\\n`` (or the buffer length on the last line).
        """

        line, end = self.peek_raw_line()
        mark = line.find(b"#")
        if mark != -1:
            line = line[:mark]
        return line, end

    def peek_raw_line(self) -> Tuple[bytes, int]:
        """Return the rest of the current line verbatim (block-scalar bodies)."""

        stop = self.data.find(b"\n", self.offset)
        if stop == -1:
            return self.data[self.offset:], len(self.data)
        return self.data[self.offset:stop], stop + 1

    def advance_past_line(self) -> None:
        stop = self.data.find(b"\n", self.offset)
        self.offset = len(self.data) if stop == -1 else stop + 1

    @staticmethod
    def has_indent(line: bytes, indent: int) -> bool:
        """True when ``line`` is longer than ``indent`` and starts with that many spaces.

        Tabs never count as indentation.
        """

        if len(line) <= indent:
            return False
        return line[:indent] == b" " * indent
