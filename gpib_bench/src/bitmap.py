"""
Decoder for the indexed bitmaps instruments return from screen-capture
queries.

Tektronix instruments of the AWG2021 generation answer HCOPY with a
16-color Windows BMP, which Pillow reads directly. Some firmware sends the
bare raster with no header at all; decode_packed() handles that case with
a fixed 640x480 geometry.
"""

import io
from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

SCREEN_WIDTH = 640
SCREEN_HEIGHT = 480
PACKED_SCREEN_SIZE = SCREEN_WIDTH * SCREEN_HEIGHT // 2


class BitmapFormatError(ValueError):
    """Raised when a capture does not hold a bitmap we can decode."""


def _is_gray(palette):
    return all(r == g == b for r, g, b in zip(palette[0::3], palette[1::3], palette[2::3]))


def decode_bmp(data):
    """
    Decodes a Windows BMP screen capture.

    Returns:
        PIL.Image.Image: mode "L" for gray palettes, otherwise mode "P"
            (or "RGB" for true color bitmaps).

    Raises:
        BitmapFormatError: If the data is not a BMP or is truncated.
    """
    try:
        image = Image.open(io.BytesIO(bytes(data)), formats=["BMP"])
        image.load()
    except UnidentifiedImageError as e:
        raise BitmapFormatError(f"Not a BMP image: {e}") from e
    except OSError as e:
        raise BitmapFormatError(f"Bitmap data truncated or corrupt: {e}") from e

    # Pillow only drops the palette when it is the identity gray ramp
    if image.mode == "1":
        return image.convert("L")
    if image.mode == "P" and _is_gray(image.getpalette() or []):
        return image.convert("L")
    return image


def _unpack_rows(raster, width, height, bits_per_pixel):
    """Expands an unpadded raster into a (height, width) array of pixel values."""
    stride = (width * bits_per_pixel + 7) // 8
    needed = stride * height
    if len(raster) < needed:
        raise BitmapFormatError(
            f"Bitmap data truncated: expected {needed} bytes, got {len(raster)}"
        )
    rows = np.frombuffer(raster, dtype=np.uint8, count=needed).reshape(height, stride)

    if bits_per_pixel == 4:
        pixels = np.empty((height, stride * 2), dtype=np.uint8)
        pixels[:, 0::2] = rows >> 4
        pixels[:, 1::2] = rows & 0x0F
    else:
        pixels = np.unpackbits(rows, axis=1)
    return pixels[:, :width]


def decode_packed(data, width=SCREEN_WIDTH, height=SCREEN_HEIGHT,
                  bits_per_pixel=4, bottom_up=True):
    """
    Decodes a headerless raster of 4-bit or 1-bit gray pixels.

    4-bit values 0..15 are scaled to 0..255; 1-bit pixels become black or
    white. Rows are not padded.
    """
    if bits_per_pixel not in (1, 4):
        raise BitmapFormatError(f"Unsupported bit depth: {bits_per_pixel}")
    pixels = _unpack_rows(bytes(data), width, height, bits_per_pixel)
    if bottom_up:
        pixels = pixels[::-1]
    scale = 17 if bits_per_pixel == 4 else 255
    return Image.fromarray(np.ascontiguousarray(pixels * scale, dtype=np.uint8))


def decode(data):
    """Decodes a screen capture, with or without a BMP header."""
    data = bytes(data)
    if data[:2] != b"BM":
        return decode_packed(data)
    try:
        return decode_bmp(data)
    except BitmapFormatError:
        # a bare raster can start with the same two bytes
        if len(data) == PACKED_SCREEN_SIZE:
            return decode_packed(data)
        raise


def strip_block_header(data):
    """
    Removes an IEEE 488.2 definite length block header ("#<n><len>").

    Data without a header is returned unchanged.
    """
    data = bytes(data)
    if len(data) < 2 or data[:1] != b"#" or not data[1:2].isdigit():
        return data
    digits = int(data[1:2])
    if digits == 0:
        return data[2:]
    length_field = data[2:2 + digits]
    if len(length_field) < digits or not length_field.isdigit():
        raise BitmapFormatError("Malformed block header")
    start = 2 + digits
    return data[start:start + int(length_field)]


def save_image(image, path):
    """
    Writes an image; the format follows the file extension.

    Raises:
        ValueError: If the path has no file name or no extension.
    """
    path = Path(path)
    if not path.stem or not path.suffix:
        raise ValueError(f"File name invalid: '{path}' (expected e.g. screen.png)")
    image.save(path)
    return path
