"""
Multiprocessing backend for parallel escape-time rendering.

This module splits the pixel grid into row tasks and evaluates them across
worker processes with concurrent.futures. Every task reads only immutable
inputs (viewport, gradient mapper) and returns its results; the buffer is
filled from the calling process once a row comes back, so the output does
not depend on scheduling or worker count.
"""

import numpy as np
from typing import List, Optional
import multiprocessing as mp
import logging
import time
from dataclasses import dataclass
from concurrent.futures import ProcessPoolExecutor, as_completed

from ..core.errors import ConfigurationError, RenderError
from ..core.math_functions import evaluate
from ..core.viewport import Viewport
from ..rendering.coloring import GradientMapper, RGB8
from ..rendering.image_output import PixelBuffer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RowTask:
    """Specification for one pixel row."""
    y: int
    viewport: Viewport
    mapper: GradientMapper


@dataclass
class RowResult:
    """Result from processing a single row."""
    y: int
    counts: List[int]
    escaped: List[bool]
    colors: List[Optional[RGB8]]
    processing_time: float


@dataclass
class RenderResult:
    """Filled buffer plus the per-pixel iteration data behind it."""
    buffer: PixelBuffer
    iterations: np.ndarray
    escaped: np.ndarray
    processing_time: float


def process_row(task: RowTask) -> RowResult:
    """
    Evaluate and color every pixel of one row.

    Args:
        task: Row index with the shared viewport and mapper

    Returns:
        RowResult with one entry per column
    """
    start_time = time.time()

    viewport = task.viewport
    take = task.mapper.take
    counts, escaped, colors = [], [], []

    for x in range(viewport.width):
        result = evaluate(viewport.point(x, task.y), take)
        counts.append(result.count)
        escaped.append(result.escaped)
        colors.append(task.mapper.color(result))

    return RowResult(
        y=task.y,
        counts=counts,
        escaped=escaped,
        colors=colors,
        processing_time=time.time() - start_time,
    )


def create_row_tasks(viewport: Viewport, mapper: GradientMapper) -> List[RowTask]:
    """One task per pixel row."""
    return [RowTask(y, viewport, mapper) for y in range(viewport.height)]


def assemble_rows(row_results: List[RowResult], width: int, height: int) -> RenderResult:
    """
    Assemble row results into a complete render.

    Args:
        row_results: One RowResult per row, in any order
        width, height: Resolution in pixels

    Returns:
        RenderResult with the buffer and iteration arrays
    """
    buffer = PixelBuffer(width, height)
    iterations = np.zeros((height, width), dtype=np.int64)
    escaped = np.zeros((height, width), dtype=bool)

    for row in row_results:
        iterations[row.y, :] = row.counts
        escaped[row.y, :] = row.escaped
        for x, color in enumerate(row.colors):
            if color is not None:
                buffer.put(x, row.y, color)

    total = sum(row.processing_time for row in row_results)
    return RenderResult(buffer, iterations, escaped, total)


class MultiprocessingRenderer:
    """Row-parallel escape-time renderer."""

    def __init__(self, num_processes: Optional[int] = None):
        """
        Initialize multiprocessing renderer.

        Args:
            num_processes: Number of worker processes (None for CPU count).
                One process evaluates in the calling process.
        """
        if num_processes is None:
            self.num_processes = get_optimal_process_count()
        elif num_processes < 1:
            raise ConfigurationError(f"num_processes must be positive, got {num_processes}")
        else:
            self.num_processes = num_processes

        logger.info(f"Multiprocessing renderer: {self.num_processes} processes")

    def render(self, viewport: Viewport, mapper: GradientMapper) -> RenderResult:
        """
        Render every pixel of the viewport.

        Args:
            viewport: Pixel to plane mapping
            mapper: Iteration cap and coloring

        Returns:
            Complete render result

        Raises:
            RenderError: A row failed; no partial result is returned
        """
        start_time = time.time()
        tasks = create_row_tasks(viewport, mapper)

        if self.num_processes == 1:
            row_results = self._render_sequential(tasks)
        else:
            row_results = self._render_parallel(tasks)

        logger.info("Assembling row results")
        result = assemble_rows(row_results, viewport.width, viewport.height)

        total_time = time.time() - start_time
        logger.info(f"Rendering complete: {total_time:.2f}s total, "
                    f"{result.processing_time:.2f}s processing time")
        return result

    def _render_sequential(self, tasks: List[RowTask]) -> List[RowResult]:
        row_results = []
        for task in tasks:
            try:
                row_results.append(process_row(task))
            except Exception as e:
                raise RenderError(f"Row {task.y} failed: {e}") from e
            self._log_progress(len(row_results), len(tasks))
        return row_results

    def _render_parallel(self, tasks: List[RowTask]) -> List[RowResult]:
        logger.info(f"Processing {len(tasks)} rows with {self.num_processes} processes")

        row_results = []
        with ProcessPoolExecutor(max_workers=self.num_processes) as executor:
            future_to_row = {executor.submit(process_row, task): task.y for task in tasks}

            for future in as_completed(future_to_row):
                y = future_to_row[future]
                try:
                    row_results.append(future.result())
                except Exception as e:
                    for pending in future_to_row:
                        pending.cancel()
                    raise RenderError(f"Row {y} failed: {e}") from e
                self._log_progress(len(row_results), len(tasks))

        return row_results

    @staticmethod
    def _log_progress(completed: int, total: int) -> None:
        if completed % max(1, total // 10) == 0:
            progress = (completed / total) * 100
            logger.info(f"Completed {completed}/{total} rows ({progress:.1f}%)")


def get_optimal_process_count() -> int:
    """Number of worker processes matching the available cores."""
    return max(1, mp.cpu_count())
