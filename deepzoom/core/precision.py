"""
Precision planning for deep fractal zooms.

A render uses one binary precision for every coordinate and iterate. The
planner derives it from the pixel resolution and from either the digits of
the user's bounds or the zoom depth, and this module also parses the user's
decimal literals into mpmath values at that precision.
"""

from dataclasses import dataclass
from typing import Optional, Tuple
import logging
import math
import re

import mpmath as mp

from .errors import ConfigurationError, PrecisionRangeError
from .math_functions import ComplexPoint

logger = logging.getLogger(__name__)

LOG2_10 = math.log2(10)

# Largest precision (and zoom exponent) accepted, the range of an unsigned
# 32-bit integer
MAX_PRECISION = 2 ** 32 - 1

# Margin added to the bits a decimal literal needs
LITERAL_MARGIN_BITS = 4

# Margin added on top of the resolution and input bits in bounds mode
BOUNDS_MARGIN_BITS = 4

# Margin added on top of the resolution and zoom bits in zoom mode
ZOOM_MARGIN_BITS = 3

BOUNDS_MODE = 'bounds'
ZOOM_MODE = 'zoom'

_DECIMAL_LITERAL = re.compile(r'^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$')


def count_significant_digits(literal: str) -> int:
    """
    Count the decimal digits a literal asks to be represented.

    Digit characters of the mantissa count once each, a minus sign counts as
    one, and an exponent adds its absolute value.
    """
    text = literal.strip()
    if not _DECIMAL_LITERAL.match(text):
        raise ConfigurationError(f"Malformed numeric literal: {literal!r}")

    mantissa, _, exponent = text.lower().partition('e')
    digits = sum(1 for ch in mantissa if ch.isdigit())
    if mantissa.startswith('-'):
        digits += 1
    if exponent:
        digits += abs(int(exponent))
    return digits


def _ceil_bits(decimal_digits: int) -> int:
    """ceil(decimal_digits * log2(10)), clamped to MAX_PRECISION."""
    if decimal_digits >= MAX_PRECISION:
        return MAX_PRECISION
    return min(math.ceil(decimal_digits * LOG2_10), MAX_PRECISION)


def digits_to_bits(digits: int) -> int:
    """Bits needed to hold a literal with the given decimal digit count."""
    return LITERAL_MARGIN_BITS + _ceil_bits(digits)


def input_precision_of(literals: Tuple[str, ...]) -> int:
    """Bits needed for the most demanding literal of one axis."""
    return digits_to_bits(max(count_significant_digits(s) for s in literals))


def resolution_precision(width: int, height: int) -> int:
    """ceil(log2(max(width, height))) + 1, enough to index every pixel."""
    if width <= 0 or height <= 0:
        raise ConfigurationError(f"Resolution must be positive, got {width}x{height}")
    return (max(width, height) - 1).bit_length() + 1


def zoom_precision(zoom: int) -> int:
    """Bits contributed by a zoom level, ceil(zoom * log2(10))."""
    if zoom < 0:
        raise ConfigurationError(f"Zoom level must be non-negative, got {zoom}")
    if zoom > MAX_PRECISION:
        raise PrecisionRangeError(f"Zoom level {zoom} exceeds the supported range")
    return _ceil_bits(zoom)


def check_precision(bits: int) -> int:
    """Reject non-positive or oversized precisions."""
    if bits <= 0:
        raise ConfigurationError(f"Precision must be positive, got {bits} bits")
    if bits > MAX_PRECISION:
        raise PrecisionRangeError(
            f"Precision of {bits} bits exceeds the maximum of {MAX_PRECISION}")
    return bits


def literal_precision(literal: str) -> int:
    """Bits a decimal literal needs to be parsed without losing digits."""
    return digits_to_bits(count_significant_digits(literal))


def parse_resolution(text: str) -> Tuple[int, int]:
    """Parse a WIDTHxHEIGHT resolution string."""
    parts = text.strip().lower().split('x')
    if len(parts) != 2:
        raise ConfigurationError(
            f"Resolution must be in the format 9999x9999, got {text!r}")
    try:
        width, height = (int(p) for p in parts)
    except ValueError:
        raise ConfigurationError(f"Invalid resolution: {text!r}") from None
    if width <= 0 or height <= 0:
        raise ConfigurationError(f"Resolution must be positive, got {text!r}")
    return width, height


def parse_pair(text: str, what: str = 'pair') -> Tuple[str, str]:
    """
    Split "a,b" into two validated decimal literals.

    The literals are kept as strings so the planner can count their digits.
    """
    parts = [p.strip() for p in text.split(',')]
    if len(parts) != 2:
        raise ConfigurationError(f"Expected {what} as 'a,b', got {text!r}")
    for part in parts:
        count_significant_digits(part)
    return parts[0], parts[1]


def parse_real(literal: str, precision: int) -> mp.mpf:
    """
    Parse a decimal literal into an mpf.

    The value is rounded to the larger of `precision` and the bits the
    literal itself needs.
    """
    bits = check_precision(max(precision, literal_precision(literal)))
    with mp.workprec(bits):
        return mp.mpf(literal.strip())


def parse_point(literals: Tuple[str, str], precision: int) -> ComplexPoint:
    """Parse (real, imag) literals into a ComplexPoint."""
    real, imag = literals
    return ComplexPoint(parse_real(real, precision), parse_real(imag, precision), precision)


@dataclass(frozen=True)
class ViewSpec:
    """
    User-facing description of the region to render.

    Exactly one coordinate mode must be given: `domain` and `range_bounds`
    (real and imaginary axis bounds), or `center` and `zoom`. Bounds and
    center are the user's literals as strings.
    """

    width: int
    height: int
    domain: Optional[Tuple[str, str]] = None
    range_bounds: Optional[Tuple[str, str]] = None
    center: Optional[Tuple[str, str]] = None
    zoom: Optional[int] = None

    def validate(self) -> None:
        """Validate resolution, coordinate mode and literals."""
        resolution_precision(self.width, self.height)

        has_bounds = self.domain is not None or self.range_bounds is not None
        has_zoom = self.center is not None or self.zoom is not None

        if has_bounds and has_zoom:
            raise ConfigurationError(
                "Domain/range and center/zoom are mutually exclusive; supply only one")
        if not has_bounds and not has_zoom:
            raise ConfigurationError(
                "Either domain and range, or center and zoom, are required")

        if has_bounds:
            if self.domain is None or self.range_bounds is None:
                raise ConfigurationError("Domain and range are both required")
            for pair in (self.domain, self.range_bounds):
                if len(pair) != 2:
                    raise ConfigurationError(f"Bounds must be a pair, got {pair!r}")
                for literal in pair:
                    count_significant_digits(literal)
        else:
            if self.center is None or self.zoom is None:
                raise ConfigurationError("Center point and zoom level are both required")
            if len(self.center) != 2:
                raise ConfigurationError(f"Center must be a pair, got {self.center!r}")
            for literal in self.center:
                check_precision(literal_precision(literal))
            zoom_precision(self.zoom)

    @property
    def mode(self) -> str:
        """Coordinate mode, BOUNDS_MODE or ZOOM_MODE."""
        self.validate()
        return BOUNDS_MODE if self.domain is not None else ZOOM_MODE

    def describe(self) -> str:
        """Short human-readable description of the coordinates."""
        if self.mode == BOUNDS_MODE:
            return (f"domain [{self.domain[0]}, {self.domain[1]}], "
                    f"range [{self.range_bounds[0]}, {self.range_bounds[1]}]")
        return f"center ({self.center[0]}, {self.center[1]}), zoom {self.zoom}"


def plan_precision(spec: ViewSpec) -> int:
    """
    Compute the working precision in bits for a render.

    Args:
        spec: Resolution and coordinate specification

    Returns:
        Number of significant bits shared by every value in the render
    """
    mode = spec.mode
    base = resolution_precision(spec.width, spec.height)

    if mode == BOUNDS_MODE:
        input_bits = max(input_precision_of(spec.domain),
                         input_precision_of(spec.range_bounds))
        bits = base + input_bits + BOUNDS_MARGIN_BITS
    else:
        bits = base + zoom_precision(spec.zoom) + ZOOM_MARGIN_BITS

    bits = check_precision(bits)
    logger.info(f"Planned precision: {bits} bits ({spec.describe()}, "
                f"{spec.width}x{spec.height})")
    return bits


def format_number(value: mp.mpf, digits: int = 10) -> str:
    """Format an mpf for display."""
    return mp.nstr(value, n=digits)
