"""
Module: tests/unit/test_roundtrip.py

What:
    Assert that encoding then decoding reproduces the original value, and
    that canonical documents are also read identically by a full YAML parser.

Why:
    ``fmt --write`` rewrites files in place; a value that does not survive the
    trip would silently change configuration. Agreement with PyYAML on the
    fixture keeps the notation a genuine YAML subset.

How:
    Encode representative values, decode with the same type and compare.
    Parse canonical output with :func:`yaml.safe_load` and compare with
    :func:`dataclasses.asdict`.
"""

import dataclasses
from pathlib import Path
from typing import Dict, List

import pytest
import yaml
from pydantic import BaseModel, Field

from cfgyaml import decode_bytes, encode_value
from sample_schema import Listener, Node, ServiceConfig

DATA_DIR = Path(__file__).resolve().parents[1] / "data"


class Quota(BaseModel):
    owner: str = Field(default="", alias="Owner")
    limits: Dict[str, int] = Field(default_factory=dict)
    paths: List[str] = Field(default_factory=list, json_schema_extra={"yaml": "paths,omitempty"})


def _service() -> ServiceConfig:
    return ServiceConfig(
        name="billing",
        replicas=3,
        debug=True,
        ratio=0.5,
        listeners=[Listener("0.0.0.0", 8080), Listener("localhost", 9090)],
        labels={"team": "payments", "cost center": "finance"},
        motd="Welcome to billing\nMaintenance on Sundays\n",
    )


@pytest.mark.parametrize(
    "value, target",
    [
        ({"k": "a # b", "m": "x\ny", "f": "one\n\ntwo\n"}, Dict[str, str]),
        ([[1, 2], [], [3]], List[List[int]]),
        ([{"a": 1}, {}, {"b": 2, "c": 3}], List[Dict[str, int]]),
        ({"a b": [1.5, -2.0], "": [], "x:y": [1e20]}, Dict[str, List[float]]),
        ([True, False], List[bool]),
        ({"k": ">", "l": "|"}, Dict[str, str]),
        ([">", "|", "x"], List[str]),
        (">", str),
        ("#x", str),
    ],
)
def test_builtin_values_roundtrip(value, target):
    assert decode_bytes(encode_value(value), target) == value


def test_whitespace_only_line_reads_back_as_one_blank_line():
    assert decode_bytes(encode_value({"m": "a\n \nb"}), Dict[str, str]) == {"m": "a\n\nb"}


def test_records_roundtrip():
    service = _service()
    assert decode_bytes(encode_value(service), ServiceConfig) == service

    tree = Node("root", [Node("a"), Node("b", [Node("c")])])
    assert decode_bytes(encode_value(tree), Node) == tree

    quota = Quota(Owner="ops", limits={"cpu": 4, "mem": 16})
    assert decode_bytes(encode_value(quota), Quota) == quota


def test_fixture_is_canonical():
    data = (DATA_DIR / "service.yaml").read_bytes()
    assert encode_value(decode_bytes(data, ServiceConfig)) == data


def test_canonical_output_agrees_with_pyyaml():
    service = _service()
    assert yaml.safe_load(encode_value(service)) == dataclasses.asdict(service)


def test_indentation_is_two_spaces_per_level():
    tree = Node("root", [Node("a", [Node("b", [Node("c")])])])
    for line in encode_value(tree).decode("utf-8").splitlines():
        if line.strip():
            width = len(line) - len(line.lstrip(" "))
            assert width % 2 == 0
