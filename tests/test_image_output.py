import numpy as np
import pytest
from PIL import Image

from deepzoom.core.errors import ConfigurationError
from deepzoom.rendering.image_output import ImageExporter, PixelBuffer, RenderMetadata


def make_metadata():
    return RenderMetadata(
        resolution=(3, 2),
        coordinates="domain [-1, 1], range [-1, 1]",
        precision_bits=18,
        take=10,
        gradient_mode="linear",
        gradient_interval=10,
        render_time_seconds=0.5,
    )


def test_pixel_buffer_writes():
    buffer = PixelBuffer(3, 2)
    assert (buffer.width, buffer.height) == (3, 2)
    assert not buffer.is_written(2, 1)

    buffer.put(2, 1, (10, 20, 30))
    assert buffer.get(2, 1) == (10, 20, 30)
    assert buffer.is_written(2, 1)
    assert buffer.to_array()[1, 2].tolist() == [10, 20, 30]
    assert buffer.coverage.sum() == 1


def test_pixel_buffer_is_write_once():
    buffer = PixelBuffer(2, 2)
    buffer.put(0, 0, (1, 2, 3))
    with pytest.raises(ValueError):
        buffer.put(0, 0, (1, 2, 3))


def test_pixel_buffer_bounds():
    buffer = PixelBuffer(2, 2)
    with pytest.raises(IndexError):
        buffer.put(2, 0, (0, 0, 0))
    with pytest.raises(ValueError):
        PixelBuffer(0, 2)


def test_metadata_json_round_trip():
    metadata = make_metadata()
    assert RenderMetadata.from_json(metadata.to_json()) == metadata


def test_save_png_with_metadata(tmp_path):
    buffer = PixelBuffer(3, 2)
    buffer.put(0, 0, (255, 0, 0))

    path = ImageExporter().save_image(buffer, tmp_path / "out.png", metadata=make_metadata())

    with Image.open(path) as image:
        assert image.size == (3, 2)
        assert image.mode == "RGB"
        assert image.getpixel((0, 0)) == (255, 0, 0)
        assert image.getpixel((1, 1)) == (0, 0, 0)
        stored = RenderMetadata.from_json(image.text["FractalMetadata"])
    assert stored.precision_bits == 18


def test_transparent_inside(tmp_path):
    buffer = PixelBuffer(2, 1)
    buffer.put(1, 0, (9, 9, 9))

    path = ImageExporter().save_image(buffer, tmp_path / "out.png", transparent_inside=True)

    with Image.open(path) as image:
        assert image.mode == "RGBA"
        pixels = np.asarray(image)
    assert pixels[0, 0, 3] == 0
    assert pixels[0, 1].tolist() == [9, 9, 9, 255]


@pytest.mark.parametrize("suffix", [".tiff", ".bmp", ".jpg"])
def test_other_formats(tmp_path, suffix):
    buffer = PixelBuffer(4, 4)
    path = ImageExporter().save_image(buffer, tmp_path / f"out{suffix}", metadata=make_metadata())
    with Image.open(path) as image:
        assert image.size == (4, 4)


def test_unsupported_output(tmp_path):
    exporter = ImageExporter()
    with pytest.raises(ConfigurationError):
        exporter.check_path(tmp_path / "out.gif")
    with pytest.raises(ConfigurationError):
        exporter.check_path(tmp_path / "out.jpg", transparent_inside=True)
