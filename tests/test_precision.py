import pytest
import mpmath as mp

from deepzoom.core.errors import ConfigurationError, PrecisionRangeError
from deepzoom.core.precision import (
    BOUNDS_MODE,
    MAX_PRECISION,
    ZOOM_MODE,
    ViewSpec,
    count_significant_digits,
    digits_to_bits,
    input_precision_of,
    parse_pair,
    parse_real,
    parse_resolution,
    plan_precision,
    resolution_precision,
)


@pytest.mark.parametrize("size, expected", [
    ((1, 1), 1),
    ((4, 4), 3),
    ((5, 2), 4),
    ((1024, 1), 11),
    ((2560, 1440), 13),
])
def test_resolution_precision(size, expected):
    assert resolution_precision(*size) == expected


@pytest.mark.parametrize("literal, expected", [
    ("1", 1),
    ("-0.5575", 6),
    (".5", 1),
    ("1e-5", 6),
    ("1.5E3", 5),
    ("+12.25", 4),
])
def test_count_significant_digits(literal, expected):
    assert count_significant_digits(literal) == expected


@pytest.mark.parametrize("literal", ["", "abc", "1.2.3", "--1", "1e", "nan", "inf"])
def test_malformed_literal_is_rejected(literal):
    with pytest.raises(ConfigurationError):
        count_significant_digits(literal)


def test_digits_to_bits_keeps_safety_margin():
    assert digits_to_bits(0) == 4
    assert digits_to_bits(1) == 8
    assert digits_to_bits(2) == 11
    assert input_precision_of(("-1", "1")) == 11


def test_bounds_precision():
    spec = ViewSpec(4, 4, domain=("-1", "1"), range_bounds=("-1", "1"))
    assert spec.mode == BOUNDS_MODE
    assert plan_precision(spec) == 3 + 11 + 4


def test_bounds_precision_uses_longest_literal():
    short = ViewSpec(4, 4, domain=("-1", "1"), range_bounds=("-1", "1"))
    long = ViewSpec(4, 4, domain=("-1", "1"), range_bounds=("-0.555", "-0.5525"))
    assert plan_precision(long) > plan_precision(short)


@pytest.mark.parametrize("zoom, expected", [(0, 6), (1, 10), (10, 40)])
def test_zoom_precision(zoom, expected):
    spec = ViewSpec(4, 4, center=("0", "0"), zoom=zoom)
    assert spec.mode == ZOOM_MODE
    assert plan_precision(spec) == expected


def test_precision_grows_with_zoom():
    previous = None
    for zoom in range(0, 60):
        bits = plan_precision(ViewSpec(640, 480, center=("-0.75", "0.1"), zoom=zoom))
        if previous is not None:
            assert bits > previous
        previous = bits


@pytest.mark.parametrize("kwargs", [
    {},
    {"domain": ("-1", "1")},
    {"range_bounds": ("-1", "1")},
    {"center": ("0", "0")},
    {"zoom": 3},
    {"domain": ("-1", "1"), "range_bounds": ("-1", "1"), "zoom": 3},
    {"domain": ("-1", "1"), "range_bounds": ("-1", "1"), "center": ("0", "0"), "zoom": 3},
])
def test_coordinate_mode_must_be_exactly_one(kwargs):
    with pytest.raises(ConfigurationError):
        plan_precision(ViewSpec(4, 4, **kwargs))


def test_malformed_bound_is_configuration_error():
    with pytest.raises(ConfigurationError):
        plan_precision(ViewSpec(4, 4, domain=("-1", "x"), range_bounds=("-1", "1")))


def test_non_positive_resolution_is_rejected():
    with pytest.raises(ConfigurationError):
        plan_precision(ViewSpec(0, 4, center=("0", "0"), zoom=1))


def test_oversized_zoom_is_range_error():
    with pytest.raises(PrecisionRangeError):
        plan_precision(ViewSpec(4, 4, center=("0", "0"), zoom=MAX_PRECISION + 1))


def test_oversized_literal_is_range_error():
    spec = ViewSpec(4, 4, domain=("1e-9999999999", "1"), range_bounds=("-1", "1"))
    with pytest.raises(PrecisionRangeError):
        plan_precision(spec)


def test_oversized_center_literal_is_range_error():
    spec = ViewSpec(4, 4, center=("1e-9999999999", "0"), zoom=1)
    with pytest.raises(PrecisionRangeError):
        plan_precision(spec)


def test_parse_real_rejects_oversized_literal(monkeypatch):
    def fail(bits):
        raise AssertionError(f"workprec({bits}) requested")

    monkeypatch.setattr(mp, "workprec", fail)
    with pytest.raises(PrecisionRangeError):
        parse_real("1e-9999999999", 10)


def test_parse_resolution():
    assert parse_resolution("2560x1440") == (2560, 1440)
    assert parse_resolution(" 4X3 ") == (4, 3)


@pytest.mark.parametrize("text", ["4by4", "12x", "x12", "1x2x3", "0x5", "-4x4", ""])
def test_parse_resolution_rejects_bad_input(text):
    with pytest.raises(ConfigurationError):
        parse_resolution(text)


def test_parse_pair():
    assert parse_pair("-1, 1") == ("-1", "1")
    with pytest.raises(ConfigurationError):
        parse_pair("1")
    with pytest.raises(ConfigurationError):
        parse_pair("a,b")


def test_parse_real_keeps_literal_digits():
    literal = "0.1234567890123456789012345"
    value = parse_real(literal, 10)
    with mp.workprec(200):
        assert abs(value - mp.mpf(literal)) < mp.mpf("1e-24")
    assert value != mp.mpf(float(literal))
