"""
Pixel to complex-plane mapping at the working precision.
"""

from dataclasses import dataclass
from typing import Any, Dict, Tuple
import logging

import mpmath as mp

from .math_functions import ComplexPoint
from .precision import BOUNDS_MODE, ViewSpec, parse_point, parse_real

logger = logging.getLogger(__name__)

_MPF_FIELDS = ('origin_real', 'origin_imag', 'step_real', 'step_imag')


@dataclass(frozen=True)
class Viewport:
    """
    Immutable mapping from pixel indices to plane coordinates.

    Pixel (x, y) maps to origin + (x * step_real, y * step_imag), each part
    rounded to `precision` bits.
    """

    width: int
    height: int
    precision: int
    origin_real: mp.mpf
    origin_imag: mp.mpf
    step_real: mp.mpf
    step_imag: mp.mpf

    def real_at(self, x: int) -> mp.mpf:
        """Real coordinate of pixel column x."""
        offset = mp.fmul(self.step_real, x, prec=self.precision)
        return mp.fadd(self.origin_real, offset, prec=self.precision)

    def imag_at(self, y: int) -> mp.mpf:
        """Imaginary coordinate of pixel row y."""
        offset = mp.fmul(self.step_imag, y, prec=self.precision)
        return mp.fadd(self.origin_imag, offset, prec=self.precision)

    def point(self, x: int, y: int) -> ComplexPoint:
        """Convert pixel coordinates to a plane coordinate."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} viewport")
        return ComplexPoint(self.real_at(x), self.imag_at(y), self.precision)

    def describe(self) -> str:
        return (f"origin ({mp.nstr(self.origin_real, 15)}, {mp.nstr(self.origin_imag, 15)}), "
                f"step ({mp.nstr(self.step_real, 5)}, {mp.nstr(self.step_imag, 5)})")

    # mpf values are sent to worker processes as raw (sign, man, exp, bc)
    # tuples and rebuilt on the other side
    def __getstate__(self) -> Dict[str, Any]:
        state = dict(self.__dict__)
        for name in _MPF_FIELDS:
            state[name] = state[name]._mpf_
        return state

    def __setstate__(self, state: Dict[str, Any]) -> None:
        state = dict(state)
        for name in _MPF_FIELDS:
            state[name] = mp.mp.make_mpf(state[name])
        self.__dict__.update(state)


def viewport_from_bounds(width: int, height: int, precision: int,
                         domain: Tuple[str, str],
                         range_bounds: Tuple[str, str]) -> Viewport:
    """
    Build a viewport covering [domain] x [range_bounds].

    Args:
        width, height: Resolution in pixels
        precision: Working precision in bits
        domain: Real axis bounds (start, end) as decimal literals
        range_bounds: Imaginary axis bounds (start, end) as decimal literals

    Returns:
        Viewport with origin at (domain start, range start)
    """
    real_start, real_end = (parse_real(s, precision) for s in domain)
    imag_start, imag_end = (parse_real(s, precision) for s in range_bounds)

    step_real = mp.fdiv(mp.fsub(real_end, real_start, prec=precision), width, prec=precision)
    step_imag = mp.fdiv(mp.fsub(imag_end, imag_start, prec=precision), height, prec=precision)

    return Viewport(
        width=width,
        height=height,
        precision=precision,
        origin_real=mp.fadd(real_start, 0, prec=precision),
        origin_imag=mp.fadd(imag_start, 0, prec=precision),
        step_real=step_real,
        step_imag=step_imag,
    )


def viewport_from_zoom(width: int, height: int, precision: int,
                       center: Tuple[str, str], zoom: int) -> Viewport:
    """
    Build a viewport centered on a point, spanning 1 / 2^zoom on each axis.

    Args:
        width, height: Resolution in pixels
        precision: Working precision in bits
        center: (real, imag) decimal literals
        zoom: Zoom level

    Returns:
        Viewport whose middle pixel sits on the center point
    """
    c = parse_point(center, precision)
    span = mp.ldexp(1, -zoom)

    step_real = mp.fdiv(span, width, prec=precision)
    step_imag = mp.fdiv(span, height, prec=precision)

    origin_real = mp.fsub(c.real, mp.fmul(step_real, width // 2, prec=precision), prec=precision)
    origin_imag = mp.fsub(c.imag, mp.fmul(step_imag, height // 2, prec=precision), prec=precision)

    return Viewport(
        width=width,
        height=height,
        precision=precision,
        origin_real=origin_real,
        origin_imag=origin_imag,
        step_real=step_real,
        step_imag=step_imag,
    )


def build_viewport(spec: ViewSpec, precision: int) -> Viewport:
    """Build the viewport for a view specification at a planned precision."""
    if spec.mode == BOUNDS_MODE:
        viewport = viewport_from_bounds(spec.width, spec.height, precision,
                                        spec.domain, spec.range_bounds)
    else:
        viewport = viewport_from_zoom(spec.width, spec.height, precision,
                                      spec.center, spec.zoom)

    logger.debug(f"Viewport: {viewport.describe()}")
    return viewport
