"""starextract/extraction/preprocess.py
###############################################################################
Image binarization ahead of OCR
###############################################################################
Turns an arbitrary raster upload into a hard black/white PNG. Tesseract reads
hard-edged glyphs far more reliably than anti-aliased grayscale, so every
image goes through the same three steps before recognition:

1. **Decode** – Pillow opens the bytes, applies the EXIF orientation and
   converts to *RGBA* at the natural size.
2. **Grayscale** – R, G and B are replaced by the Rec. 709 luminance
   (``0.2126 R + 0.7152 G + 0.0722 B``); alpha is kept.
3. **Threshold** – each of R, G, B is set to 255 when strictly greater than
   128, otherwise 0.  Alpha is never touched.

Limitations
-----------
The threshold is global and fixed.  Scans with uneven lighting lose text in
the dark or bright regions; there is no histogram analysis and no adaptive
(per-block) thresholding.
"""

from __future__ import annotations

# stdlib
import asyncio
from io import BytesIO
from typing import Final, List

# third-party
import structlog
from PIL import Image, ImageOps

# local
from starextract.core.exceptions import ImageDecodeError

__all__: list[str] = [
    "BINARIZE_THRESHOLD",
    "decode_image",
    "to_grayscale",
    "binarize",
    "encode_png",
    "preprocess_image",
]

logger = structlog.get_logger(__name__)

BINARIZE_THRESHOLD: Final[int] = 128

_LUMA_MATRIX: Final = (0.2126, 0.7152, 0.0722, 0)

_THRESHOLD_LUT: Final[List[int]] = [
    255 if value > BINARIZE_THRESHOLD else 0 for value in range(256)
]


def decode_image(content: bytes) -> Image.Image:
    """Decode **content** into an *RGBA* bitmap.

    Raises:
        ImageDecodeError: On malformed, truncated or oversized input.
    """
    try:
        with Image.open(BytesIO(content)) as img:
            img.load()
            oriented = ImageOps.exif_transpose(img)
            return oriented.convert("RGBA")
    except Image.DecompressionBombError as e:
        raise ImageDecodeError(f"Image exceeds the decoder pixel limit: {e}") from e
    except (OSError, SyntaxError, ValueError) as e:
        # UnidentifiedImageError is an OSError subclass.
        raise ImageDecodeError(f"Cannot decode image: {e}") from e


def to_grayscale(image: Image.Image) -> Image.Image:
    """Replace R, G and B with the pixel luminance; alpha is preserved."""
    rgba = image.convert("RGBA")
    luma = rgba.convert("RGB").convert("L", matrix=_LUMA_MATRIX)
    return Image.merge("RGBA", (luma, luma, luma, rgba.getchannel("A")))


def binarize(image: Image.Image) -> Image.Image:
    """Apply the hard ``> 128`` threshold to each colour channel independently."""
    red, green, blue, alpha = image.convert("RGBA").split()
    return Image.merge(
        "RGBA",
        (
            red.point(_THRESHOLD_LUT),
            green.point(_THRESHOLD_LUT),
            blue.point(_THRESHOLD_LUT),
            alpha,
        ),
    )


def encode_png(image: Image.Image) -> bytes:
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


async def preprocess_image(content: bytes) -> bytes:
    """
    Binarize an uploaded image for OCR.

    Args:
        content: Raw image bytes in any format Pillow can decode

    Returns:
        PNG bytes of the binarized image, same width and height as the input

    Raises:
        ImageDecodeError: If the bytes cannot be decoded as an image
    """

    def _worker(image_content: bytes) -> bytes:
        bitmap = decode_image(image_content)
        binarized = binarize(to_grayscale(bitmap))
        logger.debug(
            "image_binarized",
            width=binarized.width,
            height=binarized.height,
            threshold=BINARIZE_THRESHOLD,
        )
        return encode_png(binarized)

    # Pillow work is CPU-bound; keep the event-loop free.
    return await asyncio.to_thread(_worker, content)
