import numpy as np
import pytest

from deepzoom.acceleration import multiprocessing as backend
from deepzoom.acceleration.multiprocessing import (
    MultiprocessingRenderer,
    RowTask,
    assemble_rows,
    process_row,
)
from deepzoom.core.errors import ConfigurationError, RenderError
from deepzoom.core.precision import ViewSpec, plan_precision
from deepzoom.core.viewport import build_viewport
from deepzoom.rendering.coloring import GradientMapper, InsideMode, periodic_gradient


@pytest.fixture
def viewport():
    spec = ViewSpec(9, 6, domain=("-2", "0.7"), range_bounds=("-1.2", "1.2"))
    return build_viewport(spec, plan_precision(spec))


@pytest.fixture
def mapper():
    return GradientMapper(periodic_gradient(), take=30, interval=7)


def test_process_row(viewport, mapper):
    row = process_row(RowTask(2, viewport, mapper))
    assert row.y == 2
    assert len(row.counts) == len(row.escaped) == len(row.colors) == viewport.width


def test_assembly_ignores_row_order(viewport, mapper):
    rows = [process_row(RowTask(y, viewport, mapper)) for y in range(viewport.height)]
    forward = assemble_rows(rows, viewport.width, viewport.height)
    backward = assemble_rows(rows[::-1], viewport.width, viewport.height)
    assert forward.buffer.tobytes() == backward.buffer.tobytes()
    assert np.array_equal(forward.iterations, backward.iterations)


def test_worker_count_does_not_change_output(viewport, mapper):
    reference = MultiprocessingRenderer(1).render(viewport, mapper)
    for workers in (2, 3):
        result = MultiprocessingRenderer(workers).render(viewport, mapper)
        assert result.buffer.tobytes() == reference.buffer.tobytes()
        assert np.array_equal(result.iterations, reference.iterations)
        assert np.array_equal(result.escaped, reference.escaped)


def test_every_pixel_is_written(viewport, mapper):
    result = MultiprocessingRenderer(1).render(viewport, mapper)
    assert result.buffer.coverage.all()
    assert result.escaped.any()
    assert not result.escaped.all()


def test_omitted_inside_pixels_stay_unwritten(viewport):
    mapper = GradientMapper(periodic_gradient(), take=30, interval=7, inside_mode=InsideMode.OMIT)
    result = MultiprocessingRenderer(1).render(viewport, mapper)
    assert np.array_equal(result.buffer.coverage, result.escaped)


def test_pixel_failure_fails_the_render(viewport, mapper, monkeypatch):
    def broken(c, take):
        raise ArithmeticError("overflow")

    monkeypatch.setattr(backend, "evaluate", broken)
    with pytest.raises(RenderError):
        MultiprocessingRenderer(1).render(viewport, mapper)


def test_process_count_validation():
    with pytest.raises(ConfigurationError):
        MultiprocessingRenderer(0)
    assert MultiprocessingRenderer().num_processes >= 1
