from __future__ import annotations

from io import BytesIO
from typing import Callable

import pytest
from PIL import Image

from starextract.core.exceptions import ImageDecodeError
from starextract.extraction.preprocess import (
    binarize,
    decode_image,
    preprocess_image,
    to_grayscale,
)


def _rgba(pixels: list[tuple[int, int, int, int]]) -> Image.Image:
    image = Image.new("RGBA", (len(pixels), 1))
    image.putdata(pixels)
    return image


def test_binarize_threshold_boundary() -> None:
    """128 maps to black, 129 to white; the comparison is strictly greater-than."""
    image = _rgba([(128, 128, 128, 255), (129, 129, 129, 255)])

    result = list(binarize(image).getdata())

    assert result == [(0, 0, 0, 255), (255, 255, 255, 255)]


def test_binarize_thresholds_channels_independently() -> None:
    image = _rgba([(200, 10, 129, 255), (0, 255, 128, 255)])

    result = list(binarize(image).getdata())

    assert result == [(255, 0, 255, 255), (0, 255, 0, 255)]


def test_binarize_leaves_alpha_untouched() -> None:
    image = _rgba([(50, 50, 50, 0), (200, 200, 200, 17), (128, 129, 130, 128)])

    result = list(binarize(image).getdata())

    assert [pixel[3] for pixel in result] == [0, 17, 128]


def test_grayscale_keeps_gray_values_and_alpha() -> None:
    image = _rgba([(128, 128, 128, 40), (129, 129, 129, 255)])

    result = list(to_grayscale(image).getdata())

    assert result == [(128, 128, 128, 40), (129, 129, 129, 255)]


def test_grayscale_uses_luminance() -> None:
    """Pure green is much brighter than pure blue after luminance reduction."""
    image = _rgba([(0, 255, 0, 255), (0, 0, 255, 255)])

    green, blue = list(to_grayscale(image).getdata())

    assert green[0] == green[1] == green[2]
    assert blue[0] == blue[1] == blue[2]
    assert green[0] > 128 > blue[0]


def test_decode_image_rejects_garbage() -> None:
    with pytest.raises(ImageDecodeError):
        decode_image(b"definitely not an image")


def test_decode_image_converts_to_rgba() -> None:
    buffer = BytesIO()
    Image.new("L", (3, 2), color=77).save(buffer, format="JPEG")

    image = decode_image(buffer.getvalue())

    assert image.mode == "RGBA"
    assert image.size == (3, 2)


@pytest.mark.asyncio
async def test_preprocess_image_outputs_binary_png(
    png_factory: Callable[..., bytes],
) -> None:
    pixels = [
        (10, 20, 30, 255),
        (240, 230, 220, 200),
        (128, 128, 128, 90),
        (129, 129, 129, 0),
        (90, 180, 60, 255),
        (255, 0, 0, 255),
    ]
    source = png_factory(pixels, width=3)

    output = await preprocess_image(source)

    with Image.open(BytesIO(output)) as img:
        assert img.format == "PNG"
        assert img.size == (3, 2)
        result = list(img.convert("RGBA").getdata())

    for pixel in result:
        assert all(channel in (0, 255) for channel in pixel[:3])
    assert [pixel[3] for pixel in result] == [pixel[3] for pixel in pixels]
    assert result[2][:3] == (0, 0, 0)
    assert result[3][:3] == (255, 255, 255)


@pytest.mark.asyncio
async def test_preprocess_image_propagates_decode_error() -> None:
    with pytest.raises(ImageDecodeError):
        await preprocess_image(b"\x89PNG\r\n\x1a\n truncated")
