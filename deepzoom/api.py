"""
Main API classes for deep-zoom rendering.

This module provides the high-level interface, combining the precision
planner, viewport mapper, parallel renderer and image exporter into one
configurable renderer.
"""

import numpy as np
from typing import Optional, Tuple
from dataclasses import dataclass
from pathlib import Path
import logging
import time

from .core.errors import ConfigurationError
from .core.precision import ViewSpec, plan_precision
from .core.viewport import Viewport, build_viewport
from .rendering.coloring import (ColorRGB, GradientMapper, GradientMode, InsideMode,
                                 default_gradient)
from .rendering.image_output import ImageExporter, PixelBuffer, RenderMetadata
from .acceleration.multiprocessing import MultiprocessingRenderer

logger = logging.getLogger(__name__)


@dataclass
class RenderConfig:
    """Configuration for a deep-zoom render."""

    # Image parameters
    width: int = 2560
    height: int = 1440

    # Coordinates: domain + range_bounds, or center + zoom
    domain: Optional[Tuple[str, str]] = None
    range_bounds: Optional[Tuple[str, str]] = None
    center: Optional[Tuple[str, str]] = None
    zoom: Optional[int] = None

    # Iteration cap
    take: int = 500

    # Coloring
    gradient_interval: int = 300
    exponential_gradient: bool = False
    inside_mode: str = 'sentinel'
    inside_color: Tuple[float, float, float] = (0.0, 0.0, 0.0)

    # Performance
    num_processes: Optional[int] = None

    # Output
    save_metadata: bool = True
    transparent_inside: bool = False
    jpeg_quality: int = 95

    def validate(self):
        """Validate configuration parameters."""
        self.view_spec().validate()

        if self.take <= 0:
            raise ConfigurationError("take must be positive")

        if not self.exponential_gradient and self.gradient_interval <= 0:
            raise ConfigurationError("gradient_interval must be positive")

        if self.inside_mode not in [m.value for m in InsideMode]:
            raise ConfigurationError(f"Unknown inside mode: {self.inside_mode}")

        if len(self.inside_color) != 3 or not all(0 <= c <= 1 for c in self.inside_color):
            raise ConfigurationError("inside_color must be three components in [0, 1]")

        if self.num_processes is not None and self.num_processes < 1:
            raise ConfigurationError("num_processes must be >= 1")

        if self.transparent_inside and self.inside_mode != InsideMode.OMIT.value:
            raise ConfigurationError("transparent_inside requires inside_mode 'omit'")

    def view_spec(self) -> ViewSpec:
        """The coordinate part of the configuration."""
        return ViewSpec(
            width=self.width,
            height=self.height,
            domain=self.domain,
            range_bounds=self.range_bounds,
            center=self.center,
            zoom=self.zoom,
        )

    @property
    def gradient_mode(self) -> GradientMode:
        return GradientMode.EXPONENTIAL if self.exponential_gradient else GradientMode.LINEAR

    def gradient_mapper(self) -> GradientMapper:
        """Build the mapper for this configuration's coloring options."""
        mode = self.gradient_mode
        return GradientMapper(
            gradient=default_gradient(mode),
            take=self.take,
            interval=self.gradient_interval,
            mode=mode,
            inside_mode=InsideMode(self.inside_mode),
            inside_color=ColorRGB(*self.inside_color),
        )


@dataclass
class RenderOutput:
    """Everything produced by one render."""

    buffer: PixelBuffer
    iterations: np.ndarray
    escaped: np.ndarray
    precision: int
    viewport: Viewport
    render_time: float
    output_path: Optional[Path] = None


class FractalRenderer:
    """Main deep-zoom rendering engine."""

    def __init__(self, config: Optional[RenderConfig] = None):
        """
        Initialize fractal renderer.

        Args:
            config: Rendering configuration (uses defaults if None)
        """
        self.config = config or RenderConfig()
        self.config.validate()

        self.image_exporter = ImageExporter()
        self.backend = MultiprocessingRenderer(self.config.num_processes)

        logger.info(f"FractalRenderer initialized: {self.config.width}x{self.config.height}, "
                    f"take={self.config.take}")

    def plan(self) -> Tuple[int, Viewport]:
        """Plan the working precision and build the viewport."""
        spec = self.config.view_spec()
        precision = plan_precision(spec)
        return precision, build_viewport(spec, precision)

    def render(self, output_path: Optional[Path] = None,
               plan: Optional[Tuple[int, Viewport]] = None) -> RenderOutput:
        """
        Render the configured view.

        Args:
            output_path: Optional output file path
            plan: (precision, viewport) from an earlier plan() call

        Returns:
            RenderOutput with the filled buffer and iteration data
        """
        start_time = time.time()

        if output_path is not None:
            output_path = self.image_exporter.check_path(output_path,
                                                         self.config.transparent_inside)

        precision, viewport = plan if plan is not None else self.plan()
        mapper = self.config.gradient_mapper()

        logger.info(f"Starting render: {self.config.view_spec().describe()}, {precision} bits")
        result = self.backend.render(viewport, mapper)

        render_time = time.time() - start_time
        output = RenderOutput(
            buffer=result.buffer,
            iterations=result.iterations,
            escaped=result.escaped,
            precision=precision,
            viewport=viewport,
            render_time=render_time,
        )

        if output_path is not None:
            output.output_path = self._save_image(output, output_path)

        logger.info(f"Render complete in {render_time:.2f}s")
        return output

    def metadata_for(self, output: RenderOutput) -> RenderMetadata:
        return RenderMetadata(
            resolution=(self.config.width, self.config.height),
            coordinates=self.config.view_spec().describe(),
            precision_bits=output.precision,
            take=self.config.take,
            gradient_mode=self.config.gradient_mode.value,
            gradient_interval=self.config.gradient_interval,
            render_time_seconds=output.render_time,
            num_processes=self.backend.num_processes,
        )

    def _save_image(self, output: RenderOutput, output_path: Path) -> Path:
        metadata = self.metadata_for(output) if self.config.save_metadata else None
        return self.image_exporter.save_image(
            output.buffer,
            output_path,
            metadata=metadata,
            transparent_inside=self.config.transparent_inside,
            quality=self.config.jpeg_quality,
        )


def render(config: RenderConfig, output_path: Optional[Path] = None) -> RenderOutput:
    """Quick render with a configuration."""
    return FractalRenderer(config).render(output_path)
