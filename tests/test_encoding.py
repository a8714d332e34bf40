# tests/test_encoding.py

import pytest

from flowhub.canonical.encoding import encode, encode_bytes, normalize


def test_keys_sorted_and_compact():
    assert encode({"b": 1, "a": [1, 2], "c": {"z": None, "y": True}}) == '{"a":[1,2],"b":1,"c":{"y":true,"z":null}}'


def test_insertion_order_does_not_matter():
    assert encode({"x": 1, "y": 2}) == encode({"y": 2, "x": 1})


def test_integral_floats_become_integers():
    assert encode({"n": 1.0, "m": -0.0, "big": 1e3}) == '{"big":1000,"m":0,"n":1}'
    assert encode(1.0) == encode(1)


def test_fractional_floats_keep_shortest_form():
    assert encode(0.1) == "0.1"
    assert encode(2.5e-7) == "2.5e-07"


def test_bool_is_not_turned_into_int():
    assert encode([True, False, 1, 0]) == "[true,false,1,0]"


def test_non_ascii_written_as_utf8():
    assert encode({"name": "工作流"}) == '{"name":"工作流"}'
    assert encode_bytes("é") == '"é"'.encode("utf-8")


def test_tuples_encode_as_arrays():
    assert encode((1, "a")) == '[1,"a"]'


@pytest.mark.parametrize("value", [float("nan"), float("inf"), [float("-inf")]])
def test_non_finite_rejected(value):
    with pytest.raises(ValueError):
        encode(value)


@pytest.mark.parametrize("value", [{1: "a"}, {"s": {1, 2}}, object()])
def test_unencodable_rejected(value):
    with pytest.raises(TypeError):
        normalize(value)


def test_normalize_returns_new_containers():
    src = {"a": [1.0, {"b": 2.0}]}
    out = normalize(src)
    assert out == {"a": [1, {"b": 2}]}
    assert src == {"a": [1.0, {"b": 2.0}]}
    assert out is not src and out["a"] is not src["a"]
