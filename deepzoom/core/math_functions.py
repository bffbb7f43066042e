"""
Core mathematical functions for escape-time iteration.

This module provides the arbitrary-precision complex point type and the
escape-time evaluator for the quadratic recurrence z -> z^2 + c. Every
operation on the iterate is rounded to the render's working precision; only
the escape test runs at a reduced precision.
"""

from dataclasses import dataclass
import logging

import mpmath as mp

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

# Bits used for the magnitude test. The comparison only has to tell values
# above the escape threshold from values below it.
MAGNITUDE_PRECISION = 5

# |z| > 2, compared on the squared magnitude
ESCAPE_NORM = 4


@dataclass(frozen=True)
class ComplexPoint:
    """A complex value whose parts share one binary precision."""

    real: mp.mpf
    imag: mp.mpf
    precision: int

    @classmethod
    def zero(cls, precision: int) -> 'ComplexPoint':
        """Return 0+0i at the given precision."""
        return cls(mp.mpf(0), mp.mpf(0), precision)

    def square_plus(self, c: 'ComplexPoint') -> 'ComplexPoint':
        """
        Compute self^2 + c at this point's precision.

        The products and the difference are exact; each part is rounded once
        when c is added. The imaginary part uses the current real part, never
        the freshly computed one.
        """
        re, im = self.real, self.imag
        sq_diff = mp.fsub(mp.fmul(re, re, exact=True),
                          mp.fmul(im, im, exact=True), exact=True)
        cross = mp.ldexp(mp.fmul(re, im, exact=True), 1)
        return ComplexPoint(
            mp.fadd(sq_diff, c.real, prec=self.precision),
            mp.fadd(cross, c.imag, prec=self.precision),
            self.precision,
        )

    def norm_exceeds(self, threshold: int = ESCAPE_NORM,
                     prec: int = MAGNITUDE_PRECISION) -> bool:
        """Check re^2 + im^2 > threshold using a reduced precision."""
        norm = mp.fadd(mp.fmul(self.real, self.real, prec=prec),
                       mp.fmul(self.imag, self.imag, prec=prec), prec=prec)
        return norm > threshold

    def to_complex(self) -> complex:
        """Convert to standard Python complex (may lose precision)."""
        return complex(float(self.real), float(self.imag))


@dataclass(frozen=True)
class IterationResult:
    """Outcome of iterating a single point."""

    count: int
    escaped: bool


def evaluate(c: ComplexPoint, take: int) -> IterationResult:
    """
    Iterate z_{n+1} = z_n^2 + c from z_0 = 0.

    Args:
        c: Plane coordinate, at the render's working precision
        take: Iteration cap

    Returns:
        IterationResult(k, True) if |z_k| > 2 for some k < take,
        otherwise IterationResult(take, False)
    """
    if take < 1:
        raise ConfigurationError(f"Iteration cap must be positive, got {take}")

    z = ComplexPoint.zero(c.precision)
    for count in range(1, take):
        z = z.square_plus(c)
        if z.norm_exceeds():
            return IterationResult(count, True)

    return IterationResult(take, False)
