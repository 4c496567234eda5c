"""Top-level conversion helpers and file wrappers.

What:
  Provide the one-call entry points most code needs: decode a buffer, encode
  a value, and the same two operations against files on disk.

Why:
  The engines deliberately perform no I/O. Callers still want ``read_file``
  and ``write_file`` with errors that name the offending path, so the
  translation from :class:`OSError` lives here instead of in every caller.

How:
  Instantiate a fresh :class:`~cfgyaml.core.Decoder` or
  :class:`~cfgyaml.core.Encoder` per call and wrap filesystem failures in
  :class:`~cfgyaml.errors.IOFailureError` chained to the original exception.

Interfaces:
  :func:`decode_bytes`, :func:`encode_value`, :func:`read_file`,
  :func:`write_file`.

Invariants & Safety:
  - No state is shared between calls; the helpers are safe to use from
    several threads at once.
  - ``write_file`` replaces the target atomically via a sibling temporary
    file so readers never observe a truncated document.
"""
from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Any, Union

from .core import Decoder, Encoder
from .errors import IOFailureError

PathLike = Union[str, Path]
DEFAULT_FILE_MODE = 0o644


def decode_bytes(data: Union[bytes, str], target: Any, *, into: Any = None) -> Any:
    """Decode ``data`` into a value of ``target`` type (or shape).

    Args:
      data: UTF-8 document; ``str`` input is encoded first.
      target: A type such as ``Config`` or ``list[int]``, or a shape.
      into: Optional existing list, dict or record to merge into.

    Returns:
      The decoded value (``into`` itself when provided).

    Raises:
      YamlError: Any decode failure, with offset and key context.
    """

    return Decoder(data).decode(target, into=into)


def encode_value(value: Any) -> bytes:
    """Encode ``value`` to UTF-8 document bytes."""

    return Encoder().encode(value)


def read_file(path: PathLike, target: Any, *, into: Any = None) -> Any:
    """Load ``path`` and decode it as ``target``.

    Raises:
      IOFailureError: If the file cannot be read.
      YamlError: If the content does not decode.
    """

    source = Path(path)
    try:
        data = source.read_bytes()
    except OSError as exc:
        raise IOFailureError(f"unable to read {source}: {exc.strerror or exc}") from exc
    return decode_bytes(data, target, into=into)


def write_file(path: PathLike, value: Any, *, mode: int = DEFAULT_FILE_MODE) -> None:
    """Encode ``value`` and store it at ``path`` with permissions ``mode``.

    Raises:
      IOFailureError: If the file cannot be written.
      YamlError: If the value cannot be encoded.
    """

    data = encode_value(value)
    target = Path(path)
    try:
        fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            os.chmod(tmp_name, mode)
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
    except OSError as exc:
        raise IOFailureError(f"unable to write {target}: {exc.strerror or exc}") from exc
