"""Tests for hex colour helpers."""

import pytest

from offlinecards.colors import (
    is_light,
    normalize_hex_color,
    parse_hex_color,
    text_color,
    to_hex,
)


def test_parse_hex_color():
    assert parse_hex_color("#FF5733") == (255, 87, 51)
    assert parse_hex_color("007aff") == (0, 122, 255)
    assert parse_hex_color("  #000000\n") == (0, 0, 0)


@pytest.mark.parametrize("text", ["", "#FFF", "#GGGGGG", "#1234567", "blue"])
def test_parse_hex_color_invalid(text):
    assert parse_hex_color(text) is None


def test_to_hex_round_trip():
    assert to_hex((255, 87, 51)) == "#FF5733"
    assert normalize_hex_color("ff5733") == "#FF5733"
    assert normalize_hex_color("nope") is None


def test_is_light():
    assert is_light((255, 255, 255)) is True
    assert is_light((255, 255, 0)) is True
    assert is_light((0, 0, 0)) is False
    assert is_light((0, 122, 255)) is False


def test_text_color():
    assert text_color("#FFFFFF") == "#000000"
    assert text_color("#007AFF") == "#FFFFFF"
    # Unparseable colours fall back to the default card colour
    assert text_color("garbage") == "#FFFFFF"
