"""
Arbitrary-precision Mandelbrot rendering.

This library renders escape-time images of the Mandelbrot set at whatever
numeric precision the requested view needs, evaluating pixels in parallel
and coloring them through a linear-RGB gradient.

Key Features:
- Precision planned from the resolution and the digits of the bounds or zoom depth
- mpmath arithmetic at the planned precision for every pixel
- Repeating or exponential gradient coloring
- Row-parallel rendering across worker processes
- PNG/TIFF/JPEG/BMP export with embedded render metadata

Example usage:
    >>> from deepzoom import FractalRenderer, RenderConfig
    >>> config = RenderConfig(width=640, height=480, center=('-0.75', '0.1'), zoom=3)
    >>> output = FractalRenderer(config).render('mandelbrot.png')
"""

__version__ = "1.0.0"
__author__ = "deepzoom developers"

from deepzoom.core.errors import ConfigurationError, FractalError, PrecisionRangeError, RenderError
from deepzoom.core.math_functions import ComplexPoint, IterationResult, evaluate
from deepzoom.core.precision import ViewSpec, plan_precision
from deepzoom.core.viewport import Viewport, build_viewport
from deepzoom.rendering.coloring import ColorRGB, Gradient, GradientMapper, GradientMode, InsideMode
from deepzoom.rendering.image_output import ImageExporter, PixelBuffer
from deepzoom.acceleration.multiprocessing import MultiprocessingRenderer

# Main API classes
from deepzoom.api import FractalRenderer, RenderConfig, RenderOutput

__all__ = [
    "FractalRenderer",
    "RenderConfig",
    "RenderOutput",
    "ViewSpec",
    "plan_precision",
    "Viewport",
    "build_viewport",
    "ComplexPoint",
    "IterationResult",
    "evaluate",
    "ColorRGB",
    "Gradient",
    "GradientMapper",
    "GradientMode",
    "InsideMode",
    "PixelBuffer",
    "ImageExporter",
    "MultiprocessingRenderer",
    "FractalError",
    "ConfigurationError",
    "PrecisionRangeError",
    "RenderError",
]
