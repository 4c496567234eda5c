"""JSON-lines logging for cfgyaml tools with document-content redaction.

What:
  Offer a small logger that writes one JSON object per line with a fixed set
  of fields, used by the command-line interface and the settings loader.

Why:
  Configuration files frequently hold credentials. Diagnostics must point at
  the file, key and offset of a problem without copying the offending line or
  value into logs that end up in CI output or shared terminals.

How:
  :class:`JsonLogger` keeps a target stream and a component label. Every
  entry merges the canonical fields with a redacted copy of the caller's
  keyword context and is flushed immediately.

Interfaces:
  :class:`JsonLogger`, :func:`get_logger`.

Invariants & Safety:
  - Each entry carries ``ts`` (ISO8601, UTC), ``lvl``, ``msg`` and
    ``component``.
  - The keys ``line``, ``value`` and ``text`` are replaced with
    ``[redacted]``, including inside nested dictionaries.
  - Streams are flushed after every write.
"""
from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, TextIO


REDACTED = "[redacted]"
SENSITIVE_KEYS = frozenset({"line", "value", "text"})


@dataclass
class JsonLogger:
    """Structured JSON logger with automatic redaction.

    What:
      Emit single-line JSON entries with timestamp, severity, component and
      supplemental fields.

    Why:
      A uniform schema keeps CI log scraping and test assertions trivial.

    How:
      :meth:`log` builds the payload and serialises it with :mod:`json`; the
      severity helpers forward to it.
    """

    stream: TextIO = field(default_factory=lambda: sys.stdout)
    component: str = "cfgyaml"

    def log(self, level: str, message: str, *, extra: Optional[Dict[str, Any]] = None) -> None:
        """Write one entry.

        Args:
          level: Severity name; stored upper-cased.
          message: Human readable summary.
          extra: Context fields, redacted recursively before serialisation.
        """

        payload: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "lvl": level.upper(),
            "msg": message,
            "component": self.component,
        }
        if extra:
            payload.update(self._redact(extra))
        json.dump(payload, self.stream, separators=(",", ":"), default=str)
        self.stream.write("\n")
        self.stream.flush()

    def info(self, message: str, **kwargs: Any) -> None:
        self.log("INFO", message, extra=kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self.log("WARN", message, extra=kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self.log("ERROR", message, extra=kwargs)

    @staticmethod
    def _redact(data: Dict[str, Any]) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        for key, value in data.items():
            if key in SENSITIVE_KEYS:
                result[key] = REDACTED
            elif isinstance(value, dict):
                result[key] = JsonLogger._redact(value)
            else:
                result[key] = value
        return result


def get_logger(component: str, stream: Optional[TextIO] = None) -> JsonLogger:
    """Return a :class:`JsonLogger` bound to ``component``.

    Args:
      component: Subsystem label written into every entry.
      stream: Destination; defaults to ``stdout``. The CLI passes ``stderr``
        so standard output stays reserved for documents.

    Returns:
      Configured logger.
    """

    if stream is None:
        return JsonLogger(component=component)
    return JsonLogger(stream=stream, component=component)
