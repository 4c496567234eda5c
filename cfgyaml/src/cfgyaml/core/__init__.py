"""Conversion engines: the line cursor, the decoder and the encoder.

What:
  Group the three modules that hold all parsing and emitting logic.

Why:
  The engines are pure text/value transforms; keeping them apart from file
  access, settings and the CLI keeps them importable without side effects.

How:
  Re-export the engine classes and the line-state enum shared by both
  directions.

Interfaces:
  :class:`LineCursor`, :class:`Decoder`, :class:`Encoder`,
  :class:`LineState`, :class:`BlockMode`.
"""

from .cursor import LineCursor
from .decoder import BlockMode, Decoder, LineState
from .encoder import Encoder

__all__ = [
    "LineCursor",
    "Decoder",
    "Encoder",
    "LineState",
    "BlockMode",
]
