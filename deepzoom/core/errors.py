"""
Error taxonomy for deep-zoom rendering.

Configuration and precision errors are raised while a render is being
planned, before any worker starts. Render errors wrap a failure inside the
parallel evaluation; a render never produces partial output.
"""


class FractalError(Exception):
    """Base class for all deepzoom errors."""


class ConfigurationError(FractalError, ValueError):
    """Missing, malformed or conflicting user input."""


class PrecisionRangeError(FractalError, OverflowError):
    """A planned precision or exponent does not fit the supported range."""


class RenderError(FractalError, RuntimeError):
    """A pixel evaluation failed during a render."""
