"""
Module: tests/unit/test_decoder.py

What:
    Validate the decode engine against the documented notation: plain and
    quoted keys, sequences, block scalars, scalar parsing, error taxonomy and
    decoding into existing destinations.

Why:
    The decoder is the trust boundary for hand-edited configuration. Silent
    misreads (a ``#`` eaten inside a block, an unknown key ignored) would turn
    into runtime misconfiguration instead of a clear failure.

How:
    Decode literal documents into dataclasses, pydantic models and builtin
    containers, asserting on values and on the raised error types, offsets
    and key names.

Invariants & Safety Rules:
    - Unknown record keys always fail with ``UnknownFieldError``.
    - ``#`` inside block-scalar bodies is content, not a comment.
"""

from dataclasses import dataclass, field
from typing import Dict, List

import pytest
from pydantic import BaseModel, ConfigDict, Field

from cfgyaml import (
    Decoder,
    Int32,
    MalformedQuotedKeyError,
    MalformedScalarError,
    ShapeMismatchError,
    UnknownFieldError,
    UnsupportedShapeError,
    decode_bytes,
    yaml_field,
)
from sample_schema import Listener, Node, ServiceConfig


@dataclass
class Simple:
    a: int = yaml_field("a", default=0)
    b: str = yaml_field("b", default="")
    c: str = yaml_field("c", default="")
    D: str = ""
    E: List[int] = field(default_factory=list)


@dataclass
class Narrow:
    small: Int32 = 0
    ratio: float = 0.0
    flag: bool = False


@dataclass
class Texts:
    text: str = ""
    other: str = ""


class Limits(BaseModel):
    model_config = ConfigDict(extra="forbid")

    soft: int = Field(default=0, ge=0)
    hard: int = Field(default=1, gt=0)
    tags: List[str] = Field(default_factory=list, json_schema_extra={"yaml": "tags,omitempty"})


REFERENCE_DOCUMENT = b"""
a: 1

b : abc

# comment
c: >
  abc
  def

D :

E :
  # comment
  - 1
  - 2
  - 3 #comment


"""


def test_decode_simple_document():
    """
    What:
        Decode the reference document mixing inline scalars, a folded block,
        an empty value and a commented list.

    Why:
        It covers the interplay of blank lines, comment-only lines, spaces
        before colons and block folding in one pass.

    How:
        Decode into :class:`Simple` and compare every field.
    """
    value = decode_bytes(REFERENCE_DOCUMENT, Simple)
    assert value.a == 1
    assert value.b == "abc"
    assert value.c == "abc def\n"
    assert value.D == ""
    assert value.E == [1, 2, 3]


def test_folded_block_scenario():
    value = decode_bytes(b"a: 1\nb: abc\nc: >\n  abc\n  def\n", Simple)
    assert (value.a, value.b, value.c) == (1, "abc", "abc def\n")


def test_commented_sequence_scenario():
    value = decode_bytes(b"E:\n  - 1\n  - 2\n  - 3 #comment\n", Simple)
    assert value.E == [1, 2, 3]


def test_literal_block_keeps_lines_and_hashes():
    document = b"text: |\n  line one\n    indented # not a comment\n\n  line three\nother: x\n"
    value = decode_bytes(document, Texts)
    assert value.text == "line one\n  indented # not a comment\n\nline three\n"
    assert value.other == "x"


def test_folded_block_keeps_hash_and_blank_runs():
    document = b"text: >\n  a # b\n  c\n\n\n  d\n"
    value = decode_bytes(document, Texts)
    assert value.text == "a # b c\n\nd\n"


def test_default_multiline_has_no_trailing_newline():
    value = decode_bytes(b"text:\n  first\n  second\n\n  third\nother: y\n", Texts)
    assert value.text == "first second\nthird"
    assert value.other == "y"


def test_empty_block_at_end_of_document():
    value = decode_bytes(b"other: y\ntext: >\n", Texts)
    assert value.text == ""


def test_quoted_keys_are_unescaped():
    document = b'"a b": 1\n"x\\ty" : 2\n"c#d": 3\n"": 4\nplain: 5\n'
    value = decode_bytes(document, Dict[str, int])
    assert value == {"a b": 1, "x\ty": 2, "c#d": 3, "": 4, "plain": 5}
    assert list(value) == ["a b", "x\ty", "c#d", "", "plain"]


def test_quoted_key_unicode_escapes():
    value = decode_bytes(b'"caf\\u00e9\\x21": ok\n', Dict[str, str])
    assert value == {"caf\u00e9!": "ok"}


@pytest.mark.parametrize(
    "document",
    [
        b'"abc: 1\n',
        b'"abc" x: 1\n',
        b'"abc"\n',
        b'"a\\qb": 1\n',
    ],
)
def test_malformed_quoted_keys(document):
    with pytest.raises(MalformedQuotedKeyError):
        decode_bytes(document, Dict[str, int])


def test_unknown_field_is_rejected():
    with pytest.raises(UnknownFieldError) as excinfo:
        decode_bytes(b"a: 1\nzzz: 2\n", Simple)
    assert excinfo.value.offset == 5
    assert "zzz" in excinfo.value.reason
    assert excinfo.value.name == "Simple"


def test_nested_records_in_sequence():
    document = b"listeners:\n  - host: a\n    port: 1\n  - port: 2\n    host: b\nname: svc\n"
    value = decode_bytes(document, ServiceConfig)
    assert value.listeners == [Listener(host="a", port=1), Listener(host="b", port=2)]
    assert value.name == "svc"
    assert value.replicas == 1
    assert value.labels == {}


def test_sequence_of_sequences():
    value = decode_bytes(b"- - 1\n  - 2\n- - 3\n-\n", List[List[int]])
    assert value == [[1, 2], [3], []]


def test_mapping_of_records():
    document = b"web:\n  host: h1\n  port: 80\ndb:\n  host: h2\n"
    value = decode_bytes(document, Dict[str, Listener])
    assert value == {"web": Listener("h1", 80), "db": Listener("h2", 0)}


def test_recursive_record():
    document = b"name: root\nchildren:\n  - name: leaf\n  - name: mid\n    children:\n      - name: deep\n"
    value = decode_bytes(document, Node)
    assert value.children[1].children[0].name == "deep"
    assert value.children[0].children == []


def test_scalar_parsing():
    value = decode_bytes(b"small: -2147483648\nratio: 1e3\nflag: true\n", Narrow)
    assert value.small == -2147483648
    assert value.ratio == 1000.0
    assert value.flag is True


@pytest.mark.parametrize(
    "document",
    [
        b"small: 2147483648\n",
        b"small: 1.5\n",
        b"small: x1\n",
        b"small:\n",
        b"ratio: 1_0\n",
        b"ratio: abc\n",
        b"flag: yes\n",
        b"flag: True\n",
    ],
)
def test_malformed_scalars(document):
    with pytest.raises(MalformedScalarError) as excinfo:
        decode_bytes(document, Narrow)
    assert excinfo.value.name in {"small", "ratio", "flag"}
    assert excinfo.value.offset is not None


def test_rest_of_key_line_is_ignored_for_composites():
    assert decode_bytes(b"E: junk\n  - 1\n", Simple).E == [1]
    assert decode_bytes(b"E: 5\n", Simple).E == []
    nested = decode_bytes(b"m: ignored\n  a: 1\n", Dict[str, Dict[str, int]])
    assert nested == {"m": {"a": 1}}


def test_missing_colon_is_shape_mismatch():
    with pytest.raises(ShapeMismatchError) as excinfo:
        decode_bytes(b"- 1\n", Dict[str, int])
    assert "expect key" in str(excinfo.value)


def test_tab_indentation_ends_block():
    with pytest.raises(ShapeMismatchError):
        decode_bytes(b"E:\n\t- 1\n", Simple)


def test_trailing_content_is_rejected():
    with pytest.raises(ShapeMismatchError) as excinfo:
        decode_bytes(b"- 1\nfoo: 2\n", List[int])
    assert excinfo.value.offset == 4


def test_duplicate_key_last_write_wins():
    assert decode_bytes(b"a: 1\na: 2\n", Dict[str, int]) == {"a": 2}


def test_top_level_scalars():
    assert decode_bytes(b"42\n", int) == 42
    assert decode_bytes(b"", int) == 0
    assert decode_bytes("héllo\n", str) == "héllo"


def test_blank_or_comment_only_document_yields_zero_value():
    assert decode_bytes(b"\n", int) == 0
    assert decode_bytes(b"# nothing here\n\n", int) == 0
    assert decode_bytes(b"\n \n", str) == ""
    assert decode_bytes(b"\n#x\n", str) == "#x"
    assert decode_bytes(b"  \n", float) == 0.0


def test_pydantic_model_validation_errors_are_wrapped():
    assert decode_bytes(b"soft: 2\nhard: 5\n", Limits) == Limits(soft=2, hard=5)
    with pytest.raises(ShapeMismatchError) as excinfo:
        decode_bytes(b"soft: -1\n", Limits)
    assert "soft" in excinfo.value.reason
    assert "-1" not in excinfo.value.reason


def test_decode_into_existing_destinations():
    """Lists are emptied, dicts merged and records updated in place."""

    items = [9, 9, 9]
    assert decode_bytes(b"- 1\n- 2\n", List[int], into=items) is items
    assert items == [1, 2]

    mapping = {"keep": 1}
    decode_bytes(b"new: 2\n", Dict[str, int], into=mapping)
    assert mapping == {"keep": 1, "new": 2}

    record = Simple(a=5, b="old", E=[7])
    result = decode_bytes(b"b: new\nE:\n  - 8\n", Simple, into=record)
    assert result is record
    assert (record.a, record.b, record.E) == (5, "new", [8])


def test_decode_into_wrong_destination_type():
    with pytest.raises(UnsupportedShapeError):
        decode_bytes(b"- 1\n", List[int], into={})


def test_unsupported_target_type():
    with pytest.raises(UnsupportedShapeError):
        decode_bytes(b"a: 1\n", Dict[int, int])


def test_decoder_reset_reuses_instance():
    decoder = Decoder(b"- 1\n")
    assert decoder.decode(List[int]) == [1]
    decoder.reset(b"- 2\n- 3\n")
    assert decoder.decode(List[int]) == [2, 3]
