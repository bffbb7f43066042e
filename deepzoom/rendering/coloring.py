"""
Gradient coloring for escape-time results.

This module provides linear-RGB gradients built from positioned color stops
and the mapper that turns an iteration count into an 8-bit color, either
cycling through the gradient on a fixed interval or spreading it over the
whole iteration range.
"""

import numpy as np
from typing import List, Optional, Sequence, Tuple, Union
from dataclasses import dataclass
from enum import Enum
import logging

from ..core.errors import ConfigurationError
from ..core.math_functions import IterationResult

logger = logging.getLogger(__name__)

RGB8 = Tuple[int, int, int]


@dataclass(frozen=True)
class ColorRGB:
    """Linear RGB color with components in [0, 1]."""
    r: float
    g: float
    b: float

    def __post_init__(self):
        """Validate RGB values."""
        for component in (self.r, self.g, self.b):
            if not 0 <= component <= 1:
                raise ValueError("RGB components must be between 0 and 1")

    def to_tuple(self) -> Tuple[float, float, float]:
        """Convert to RGB tuple."""
        return (self.r, self.g, self.b)

    def to_uint8_tuple(self) -> RGB8:
        """Convert to 8-bit RGB, scaling by 255 and truncating."""
        return (int(self.r * 255), int(self.g * 255), int(self.b * 255))


class GradientMode(Enum):
    """How iteration counts are spread over a gradient."""
    LINEAR = 'linear'
    EXPONENTIAL = 'exponential'


class InsideMode(Enum):
    """Treatment of points that never escaped."""
    SENTINEL = 'sentinel'
    OMIT = 'omit'


class Gradient:
    """Ordered color stops with per-channel linear interpolation."""

    def __init__(self, stops: Sequence[Tuple[float, Union[ColorRGB, Tuple[float, float, float]]]],
                 name: str = "Custom"):
        """
        Initialize gradient.

        Args:
            stops: (position, color) pairs with strictly increasing positions
            name: Human-readable name for the gradient
        """
        self.name = name

        positions: List[float] = []
        colors: List[ColorRGB] = []
        for position, color in stops:
            if isinstance(color, ColorRGB):
                colors.append(color)
            elif isinstance(color, (tuple, list)) and len(color) == 3:
                colors.append(ColorRGB(*color))
            else:
                raise ValueError(f"Invalid color format: {color}")
            positions.append(float(position))

        if len(colors) < 2:
            raise ValueError("Gradient must contain at least 2 stops")
        if any(b <= a for a, b in zip(positions, positions[1:])):
            raise ValueError("Gradient stop positions must be strictly increasing")

        self.colors = tuple(colors)
        self._positions = np.array(positions, dtype=np.float64)
        self._channels = np.array([c.to_tuple() for c in colors], dtype=np.float64)

    @property
    def positions(self) -> Tuple[float, ...]:
        return tuple(float(p) for p in self._positions)

    @property
    def domain(self) -> Tuple[float, float]:
        """First and last stop positions."""
        return float(self._positions[0]), float(self._positions[-1])

    def sample(self, position: float) -> ColorRGB:
        """
        Interpolate the color at a position.

        Positions outside the stop range clamp to the end stops.
        """
        values = [np.interp(position, self._positions, self._channels[:, i]) for i in range(3)]
        r, g, b = np.clip(values, 0.0, 1.0)
        return ColorRGB(float(r), float(g), float(b))

    def __repr__(self) -> str:
        return f"Gradient({self.name!r}, {len(self.colors)} stops, domain={self.domain})"


def periodic_gradient() -> Gradient:
    """Gradient over [0, 8] used for the repeating linear mode."""
    return Gradient([
        (0.0, (1.0, 1.0, 1.0)),
        (0.5, (0.5, 0.0, 0.0)),
        (1.5, (1.0, 0.0, 0.0)),
        (2.5, (1.0, 0.5, 0.0)),
        (3.5, (0.5, 1.0, 0.5)),
        (4.5, (0.0, 1.0, 1.0)),
        (5.5, (0.0, 0.5, 1.0)),
        (6.5, (0.0, 0.0, 1.0)),
        (7.5, (0.25, 0.0, 1.0)),
        (8.0, (1.0, 1.0, 1.0)),
    ], name="Periodic")


def exponential_gradient() -> Gradient:
    """Gradient over [0, 128] with stops doubling in position."""
    return Gradient([
        (0.0, (1.0, 1.0, 1.0)),
        (0.5, (0.5, 0.0, 0.0)),
        (1.0, (1.0, 0.0, 0.0)),
        (2.0, (1.0, 0.5, 0.0)),
        (4.0, (0.5, 1.0, 0.5)),
        (8.0, (0.0, 1.0, 1.0)),
        (16.0, (0.0, 0.5, 1.0)),
        (32.0, (0.0, 0.0, 1.0)),
        (64.0, (0.25, 0.0, 1.0)),
        (128.0, (1.0, 1.0, 1.0)),
    ], name="Exponential")


def default_gradient(mode: GradientMode) -> Gradient:
    """Built-in gradient for a mode."""
    if mode is GradientMode.EXPONENTIAL:
        return exponential_gradient()
    return periodic_gradient()


@dataclass(frozen=True)
class GradientMapper:
    """
    Map iteration results to 8-bit colors.

    In LINEAR mode the count cycles through the gradient every `interval`
    iterations. In EXPONENTIAL mode the count is normalized by `take`, so
    with the doubling exponential gradient most of the color change happens
    at low counts.
    """

    gradient: Gradient
    take: int
    interval: int = 300
    mode: GradientMode = GradientMode.LINEAR
    inside_mode: InsideMode = InsideMode.SENTINEL
    inside_color: ColorRGB = ColorRGB(0.0, 0.0, 0.0)

    def __post_init__(self):
        if self.take < 1:
            raise ConfigurationError(f"Iteration cap must be positive, got {self.take}")
        if self.mode is GradientMode.LINEAR and self.interval < 1:
            raise ConfigurationError(
                f"Gradient interval must be positive, got {self.interval}")

    def position(self, count: int) -> float:
        """Gradient position for an iteration count."""
        if self.mode is GradientMode.EXPONENTIAL:
            pos = count / self.take
        else:
            pos = (count % self.interval) / self.interval
        start, end = self.gradient.domain
        return start + pos * (end - start)

    def color(self, result: IterationResult) -> Optional[RGB8]:
        """
        Color for one pixel.

        Returns:
            8-bit RGB triple, or None for a non-escaping point in OMIT mode
        """
        if not result.escaped:
            if self.inside_mode is InsideMode.OMIT:
                return None
            return self.inside_color.to_uint8_tuple()
        return self.gradient.sample(self.position(result.count)).to_uint8_tuple()
