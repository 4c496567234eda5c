"""Shape descriptors describing the Python values cfgyaml can convert.

What:
  Model the four value variants (scalar, sequence, mapping, record) as small
  descriptor objects and derive them from ordinary Python type hints.

Why:
  The decode engine needs to know, before reading a line, whether it expects
  a scalar, a ``-`` list, a ``key:`` mapping or a closed set of record
  fields. Deriving that once per type keeps the engines free of ad-hoc
  ``isinstance`` probing of annotations.

How:
  :func:`shape_of` walks ``int``/``float``/``bool``/``str``, ``list[T]``,
  ``dict[str, T]``, ``Annotated[int, Bits(n)]``, dataclasses and pydantic
  models. Record shapes are cached per class and registered before their
  fields are resolved, which makes self-referencing types such as
  ``children: list["Node"]`` work.

Interfaces:
  :class:`ScalarKind`, :class:`Bits`, :data:`Int32`, :data:`Int64`,
  :class:`ScalarShape`, :class:`SequenceShape`, :class:`MappingShape`,
  :class:`FieldSpec`, :class:`RecordShape`, :class:`FieldTag`,
  :func:`parse_tag`, :func:`yaml_field`, :func:`shape_of`,
  :func:`zero_value`, :func:`describe_shape`.

Invariants & Safety:
  - Mapping keys are always text; any other key type is rejected up front.
  - Integer widths are limited to 32 and 64 bits.
  - ``None``/``Optional`` and unions have no representation in the notation
    and raise :class:`~cfgyaml.errors.UnsupportedShapeError`.
"""
from __future__ import annotations

import dataclasses
import functools
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Any, Callable, Dict, Iterator, List, Optional, Set, Union
from typing import get_args, get_origin, get_type_hints

from pydantic import BaseModel

from .errors import UnsupportedShapeError


TAG_KEY = "yaml"
OMIT_EMPTY = "omitempty"


class ScalarKind(str, Enum):
    """Scalar variants understood by the engines."""

    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    TEXT = "text"


@dataclass(frozen=True)
class Bits:
    """``Annotated`` marker narrowing an ``int`` to a signed bit width."""

    width: int

    def __post_init__(self) -> None:
        if self.width not in (32, 64):
            raise UnsupportedShapeError(f"unsupported integer width {self.width}")


Int32 = Annotated[int, Bits(32)]
Int64 = Annotated[int, Bits(64)]


@dataclass(frozen=True)
class ScalarShape:
    kind: ScalarKind
    bits: int = 64


@dataclass(frozen=True)
class SequenceShape:
    element: "Shape"


@dataclass(frozen=True)
class MappingShape:
    element: "Shape"


@dataclass(eq=False)
class FieldSpec:
    """One record field as seen on the wire.

    ``attr`` is the Python attribute, ``wire_name`` the key used in documents
    and ``init_key`` the keyword the record constructor expects (the pydantic
    alias when one is declared).
    """

    attr: str
    wire_name: str
    shape: "Shape"
    omit_empty: bool = False
    init_key: str = ""
    default: Optional[Callable[[], Any]] = None

    def __post_init__(self) -> None:
        if not self.init_key:
            self.init_key = self.attr

    def zero(self) -> Any:
        if self.default is not None:
            return self.default()
        return zero_value(self.shape)

    def can_omit(self, value: Any) -> bool:
        if not self.omit_empty:
            return False
        if isinstance(self.shape, (SequenceShape, MappingShape)):
            return len(value) == 0
        if isinstance(self.shape, ScalarShape) and self.shape.kind is ScalarKind.TEXT:
            return len(value) == 0
        return False


@dataclass(eq=False, repr=False)
class RecordShape:
    """Closed, ordered field table for a dataclass or pydantic model."""

    type_: type
    fields: List[FieldSpec] = field(default_factory=list)
    _index: Dict[str, FieldSpec] = field(default_factory=dict)

    def __repr__(self) -> str:
        return f"RecordShape({self.name})"

    @property
    def name(self) -> str:
        return self.type_.__name__

    @property
    def is_model(self) -> bool:
        return issubclass(self.type_, BaseModel)

    def add_field(self, spec: FieldSpec) -> None:
        if spec.wire_name in self._index:
            raise UnsupportedShapeError(
                f"duplicate wire name {spec.wire_name!r}", name=self.name
            )
        self.fields.append(spec)
        self._index[spec.wire_name] = spec

    def lookup(self, wire_name: str) -> Optional[FieldSpec]:
        return self._index.get(wire_name)

    def build(self, values: Dict[str, Any]) -> Any:
        """Instantiate the record from decoded attribute values.

        Missing attributes take the declared default or the zero value of
        their shape. Pydantic models go through ``model_validate`` so their
        validators run; a failure surfaces as :class:`ValueError`.
        """

        kwargs: Dict[str, Any] = {}
        for spec in self.fields:
            kwargs[spec.init_key] = values[spec.attr] if spec.attr in values else spec.zero()
        if self.is_model:
            return self.type_.model_validate(kwargs)
        return self.type_(**kwargs)


Shape = Union[ScalarShape, SequenceShape, MappingShape, RecordShape]
_SHAPE_TYPES = (ScalarShape, SequenceShape, MappingShape, RecordShape)


@dataclass(frozen=True)
class FieldTag:
    name: str
    omit_empty: bool = False


def parse_tag(tag: str, default_name: str) -> FieldTag:
    """Parse a ``wireName[,omitempty]`` field directive.

    An empty name part falls back to ``default_name``; unknown options are
    ignored.
    """

    name, _, options = (tag or "").partition(",")
    name = name.strip() or default_name
    flags = {option.strip() for option in options.split(",")} if options else set()
    return FieldTag(name=name, omit_empty=OMIT_EMPTY in flags)


def yaml_field(tag: str, **kwargs: Any) -> Any:
    """Return a :func:`dataclasses.field` carrying a cfgyaml tag.

    Example::

        @dataclass
        class Service:
            name: str = yaml_field("name")
            ports: list[int] = yaml_field("ports,omitempty", default_factory=list)
    """

    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[TAG_KEY] = tag
    return dataclasses.field(metadata=metadata, **kwargs)


_RECORDS: Dict[type, RecordShape] = {}
_LOCK = threading.RLock()

_SCALARS = {
    bool: ScalarShape(ScalarKind.BOOL),
    int: ScalarShape(ScalarKind.INT),
    float: ScalarShape(ScalarKind.FLOAT),
    str: ScalarShape(ScalarKind.TEXT),
}


def shape_of(target: Any) -> Shape:
    """Return the :data:`Shape` describing ``target``.

    What:
      Accept either a ready-made shape (returned unchanged) or a Python type
      annotation and derive its descriptor.

    Why:
      Callers usually hold a type (``Config``, ``list[int]``); tests and
      dynamic schemas sometimes build shapes by hand. Both paths must reach
      the engines through one entry point.

    How:
      Dispatch on the annotation's origin. Record shapes are memoised per
      class under a re-entrant lock so recursive types resolve to the same
      descriptor object.

    Args:
      target: A type annotation or an existing shape.

    Returns:
      The descriptor for ``target``.

    Raises:
      UnsupportedShapeError: If ``target`` has no cfgyaml representation.
    """

    if isinstance(target, _SHAPE_TYPES):
        return target
    with _LOCK:
        return _derive(target)


def _derive(tp: Any) -> Shape:
    origin = get_origin(tp)
    if origin is Annotated:
        base, *extras = get_args(tp)
        shape = _derive(base)
        widths = [extra.width for extra in extras if isinstance(extra, Bits)]
        if not widths:
            return shape
        if not (isinstance(shape, ScalarShape) and shape.kind is ScalarKind.INT):
            raise UnsupportedShapeError(f"bit width on non-integer type {base!r}")
        return ScalarShape(ScalarKind.INT, widths[-1])
    if origin is list:
        args = get_args(tp)
        if len(args) != 1:
            raise UnsupportedShapeError(f"list needs one element type: {tp!r}")
        return SequenceShape(_derive(args[0]))
    if origin is dict:
        args = get_args(tp)
        if len(args) != 2:
            raise UnsupportedShapeError(f"dict needs key and value types: {tp!r}")
        if args[0] is not str:
            raise UnsupportedShapeError(f"mapping keys must be str: {tp!r}")
        return MappingShape(_derive(args[1]))
    if origin is not None:
        raise UnsupportedShapeError(f"unsupported type {tp!r}")
    if tp in (list, dict):
        raise UnsupportedShapeError(f"unparameterised {tp.__name__} has no element type")
    if isinstance(tp, type):
        scalar = _SCALARS.get(tp)
        if scalar is not None:
            return scalar
        if dataclasses.is_dataclass(tp) or issubclass(tp, BaseModel):
            return _record(tp)
    raise UnsupportedShapeError(f"unsupported type {tp!r}")


def _record(cls: type) -> RecordShape:
    cached = _RECORDS.get(cls)
    if cached is not None:
        return cached
    shape = RecordShape(cls)
    _RECORDS[cls] = shape
    try:
        specs = _model_fields(cls) if issubclass(cls, BaseModel) else _dataclass_fields(cls)
        for spec in specs:
            shape.add_field(spec)
    except Exception:
        del _RECORDS[cls]
        raise
    return shape


def _constant(value: Any) -> Callable[[], Any]:
    return lambda: value


def _dataclass_fields(cls: type) -> Iterator[FieldSpec]:
    hints = get_type_hints(cls, include_extras=True)
    for item in dataclasses.fields(cls):
        if not item.init or item.name.startswith("_"):
            continue
        tag = parse_tag(item.metadata.get(TAG_KEY, ""), item.name)
        default: Optional[Callable[[], Any]] = None
        if item.default is not dataclasses.MISSING:
            default = _constant(item.default)
        elif item.default_factory is not dataclasses.MISSING:
            default = item.default_factory
        yield FieldSpec(
            attr=item.name,
            wire_name=tag.name,
            shape=_derive(hints[item.name]),
            omit_empty=tag.omit_empty,
            default=default,
        )


def _model_fields(cls: type) -> Iterator[FieldSpec]:
    for attr, info in cls.model_fields.items():
        if attr.startswith("_") or info.exclude:
            continue
        extra = info.json_schema_extra if isinstance(info.json_schema_extra, dict) else {}
        init_key = info.alias or attr
        tag = parse_tag(str(extra.get(TAG_KEY, "")), init_key)
        annotation: Any = info.annotation
        if info.metadata:
            annotation = Annotated[(annotation, *info.metadata)]
        default: Optional[Callable[[], Any]] = None
        if not info.is_required():
            default = functools.partial(info.get_default, call_default_factory=True)
        yield FieldSpec(
            attr=attr,
            wire_name=tag.name,
            shape=_derive(annotation),
            omit_empty=tag.omit_empty,
            init_key=init_key,
            default=default,
        )


def zero_value(shape: Shape) -> Any:
    """Return the value a field takes when its key is absent."""

    if isinstance(shape, ScalarShape):
        return {
            ScalarKind.INT: 0,
            ScalarKind.FLOAT: 0.0,
            ScalarKind.BOOL: False,
            ScalarKind.TEXT: "",
        }[shape.kind]
    if isinstance(shape, SequenceShape):
        return []
    if isinstance(shape, MappingShape):
        return {}
    return shape.build({})


def describe_shape(shape: Shape, indent: int = 0) -> List[str]:
    """Render ``shape`` as an indented outline, one line per node.

    Recursive records are expanded once; later references print
    ``<Name> (recursive)``.
    """

    return list(_describe(shape, indent, set()))


def _describe(shape: Shape, indent: int, seen: Set[int]) -> Iterator[str]:
    pad = " " * indent
    if isinstance(shape, ScalarShape):
        label = shape.kind.value
        if shape.kind is ScalarKind.INT and shape.bits != 64:
            label = f"{label}{shape.bits}"
        yield f"{pad}{label}"
    elif isinstance(shape, SequenceShape):
        yield f"{pad}sequence of"
        yield from _describe(shape.element, indent + 2, seen)
    elif isinstance(shape, MappingShape):
        yield f"{pad}mapping of"
        yield from _describe(shape.element, indent + 2, seen)
    elif id(shape) in seen:
        yield f"{pad}{shape.name} (recursive)"
    else:
        yield f"{pad}record {shape.name}"
        seen = seen | {id(shape)}
        for spec in shape.fields:
            flags = ", omitempty" if spec.omit_empty else ""
            yield f"{pad}  {spec.wire_name} ({spec.attr}{flags}):"
            yield from _describe(spec.shape, indent + 4, seen)
