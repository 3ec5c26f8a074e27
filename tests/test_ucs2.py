import pytest

from smstool.ucs2 import Ucs2Error, ucs2_bytes_to_utf8, ucs2_to_utf8


@pytest.mark.parametrize(
    "code_point",
    [0x00, 0x41, 0x7F, 0x80, 0x7FF, 0x800, 0x4E2D, 0xD7FF, 0xE000, 0xFFFE,
     0x10000, 0x1F600, 0x10FFFE],
)
def test_matches_standard_utf8(code_point):
    assert ucs2_to_utf8(code_point) == chr(code_point).encode("utf-8", "surrogatepass")


@pytest.mark.parametrize(
    "code_point, length",
    [(0x7F, 1), (0x80, 2), (0x7FF, 2), (0x800, 3), (0xFFFE, 3), (0x10000, 4)],
)
def test_encoded_length_at_boundaries(code_point, length):
    assert len(ucs2_to_utf8(code_point)) == length


@pytest.mark.parametrize("code_point", [0xD800, 0xDBFF, 0xDC00, 0xDFFF])
def test_surrogates_rejected(code_point):
    with pytest.raises(Ucs2Error):
        ucs2_to_utf8(code_point)


@pytest.mark.parametrize("code_point", [-1, 0xFFFF, 0x10FFFF, 0x110000])
def test_out_of_range_rejected(code_point):
    with pytest.raises(Ucs2Error):
        ucs2_to_utf8(code_point)


def test_error_is_value_error():
    with pytest.raises(ValueError):
        ucs2_to_utf8(0xD800)


def test_bytes_conversion_of_text():
    text = "Zażółć 中文 ok"
    assert ucs2_bytes_to_utf8(text.encode("utf-16-be")) == text.encode("utf-8")


def test_bytes_conversion_drops_surrogates():
    data = "a".encode("utf-16-be") + bytes([0xD8, 0x3D, 0xDE, 0x00]) + "b".encode("utf-16-be")
    assert ucs2_bytes_to_utf8(data) == b"ab"


def test_bytes_conversion_ignores_odd_trailing_byte():
    data = "xy".encode("utf-16-be") + b"\x00"
    assert ucs2_bytes_to_utf8(data) == b"xy"


def test_bytes_conversion_of_empty_input():
    assert ucs2_bytes_to_utf8(b"") == b""