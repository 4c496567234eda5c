"""
Module: cfgyaml.__init__

What:
  Public surface of cfgyaml, a converter between typed Python values and a
  small, indentation-based YAML subset for hand-edited configuration files.

Why:
  Applications should only need ``decode_bytes``/``encode_value`` (or their
  file counterparts), a way to describe records, and the error types. The
  engine internals stay importable from :mod:`cfgyaml.core` for callers that
  reuse decoder and encoder instances.

How:
  Re-export the helpers from :mod:`cfgyaml.api`, the shape tools from
  :mod:`cfgyaml.shape` and the exception hierarchy from
  :mod:`cfgyaml.errors`, with an explicit ``__all__``.

Interfaces:
  - decode_bytes / encode_value / read_file / write_file
  - Decoder / Encoder / LineState
  - shape_of / yaml_field / parse_tag / Int32 / Int64 / Bits
  - YamlError and its subclasses

Invariants:
  - Importing the package has no side effects beyond defining names.
"""

from .api import decode_bytes, encode_value, read_file, write_file
from .core import Decoder, Encoder, LineState
from .errors import (
    IOFailureError,
    MalformedQuotedKeyError,
    MalformedScalarError,
    ShapeMismatchError,
    UnknownFieldError,
    UnsupportedShapeError,
    YamlError,
)
from .shape import Bits, Int32, Int64, parse_tag, shape_of, yaml_field

__version__ = "0.1.0"

__all__ = [
    "decode_bytes",
    "encode_value",
    "read_file",
    "write_file",
    "Decoder",
    "Encoder",
    "LineState",
    "shape_of",
    "yaml_field",
    "parse_tag",
    "Bits",
    "Int32",
    "Int64",
    "YamlError",
    "ShapeMismatchError",
    "UnknownFieldError",
    "MalformedScalarError",
    "MalformedQuotedKeyError",
    "UnsupportedShapeError",
    "IOFailureError",
]
