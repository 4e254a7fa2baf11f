"""Encoders turning rendered RGB pages into output format bytes.

Pillow covers most formats. Farbfeld, Radiance HDR and OpenEXR have no Pillow
writer, so they are produced here from the raw pixel array.
"""

from __future__ import annotations

import io
import struct
from functools import partial
from typing import TYPE_CHECKING

import numpy as np

from pdfraster.typing.enums import OutputFormat

if TYPE_CHECKING:
    from collections.abc import Callable

    from PIL import Image

_FARBFELD_MAGIC = b"farbfeld"
_EXR_MAGIC = 20000630
_EXR_VERSION = 2
_EXR_PIXEL_TYPE_FLOAT = 2
_HDR_RLE_MIN_WIDTH = 8
_HDR_RLE_MAX_WIDTH = 0x7FFF
_HDR_MAX_LITERAL = 128


def _encode_with_pillow(image: Image.Image, *, format_name: str) -> bytes:
    """Encode with a Pillow writer into an in-memory buffer."""
    buffer = io.BytesIO()
    image.save(buffer, format=format_name)
    return buffer.getvalue()


def _rgb_array(image: Image.Image) -> np.ndarray:
    """Return the page as a `(height, width, 3)` uint8 array."""
    return np.asarray(image.convert("RGB"), dtype=np.uint8)


def encode_farbfeld(image: Image.Image) -> bytes:
    """Encode as farbfeld: magic, big-endian size, then 16-bit RGBA samples.

    Returns:
        bytes: Farbfeld payload.
    """
    rgba = np.asarray(image.convert("RGBA"), dtype=np.uint16) * 257
    width, height = image.size
    header = _FARBFELD_MAGIC + struct.pack(">II", width, height)
    return header + rgba.astype(">u2").tobytes()


def _to_rgbe(rgb: np.ndarray) -> np.ndarray:
    """Convert linear float RGB to shared-exponent RGBE bytes."""
    brightest = rgb.max(axis=-1)
    mantissa, exponent = np.frexp(brightest)
    rgbe = np.zeros((*rgb.shape[:-1], 4), dtype=np.uint8)
    visible = brightest > 1e-32
    factor = np.zeros_like(brightest)
    factor[visible] = mantissa[visible] * 256.0 / brightest[visible]
    rgbe[..., :3] = np.clip(rgb * factor[..., None], 0, 255).astype(np.uint8)
    rgbe[..., 3] = np.where(visible, exponent + 128, 0).astype(np.uint8)
    return rgbe


def _hdr_rle_scanline(scanline: np.ndarray) -> bytes:
    """Encode one RGBE scanline with adaptive RLE using literal runs only."""
    width = scanline.shape[0]
    parts = [bytes((2, 2, width >> 8, width & 0xFF))]
    for component in range(4):
        values = scanline[:, component].tobytes()
        for start in range(0, width, _HDR_MAX_LITERAL):
            chunk = values[start : start + _HDR_MAX_LITERAL]
            parts.append(bytes((len(chunk),)))
            parts.append(chunk)
    return b"".join(parts)


def encode_hdr(image: Image.Image) -> bytes:
    """Encode as Radiance RGBE (`.hdr`).

    Pixel values are mapped linearly to `[0, 1]`.

    Returns:
        bytes: Radiance HDR payload.
    """
    rgbe = _to_rgbe(_rgb_array(image).astype(np.float32) / 255.0)
    height, width = rgbe.shape[:2]
    header = f"#?RADIANCE\nFORMAT=32-bit_rle_rgbe\n\n-Y {height} +X {width}\n".encode("ascii")

    if not _HDR_RLE_MIN_WIDTH <= width <= _HDR_RLE_MAX_WIDTH:
        return header + rgbe.tobytes()
    return header + b"".join(_hdr_rle_scanline(row) for row in rgbe)


def _exr_attribute(name: str, type_name: str, value: bytes) -> bytes:
    return name.encode("ascii") + b"\0" + type_name.encode("ascii") + b"\0" + struct.pack("<i", len(value)) + value


def encode_openexr(image: Image.Image) -> bytes:
    """Encode as a single-part, uncompressed scanline OpenEXR file.

    Channels are stored as 32-bit floats in `[0, 1]`, ordered B, G, R.

    Returns:
        bytes: OpenEXR payload.
    """
    rgb = _rgb_array(image).astype("<f4") / np.float32(255.0)
    height, width = rgb.shape[:2]

    channels = b"".join(
        name + b"\0" + struct.pack("<iB3xii", _EXR_PIXEL_TYPE_FLOAT, 0, 1, 1) for name in (b"B", b"G", b"R")
    )
    window = struct.pack("<iiii", 0, 0, width - 1, height - 1)
    header = b"".join(
        (
            struct.pack("<ii", _EXR_MAGIC, _EXR_VERSION),
            _exr_attribute("channels", "chlist", channels + b"\0"),
            _exr_attribute("compression", "compression", b"\0"),
            _exr_attribute("dataWindow", "box2i", window),
            _exr_attribute("displayWindow", "box2i", window),
            _exr_attribute("lineOrder", "lineOrder", b"\0"),
            _exr_attribute("pixelAspectRatio", "float", struct.pack("<f", 1.0)),
            _exr_attribute("screenWindowCenter", "v2f", struct.pack("<ff", 0.0, 0.0)),
            _exr_attribute("screenWindowWidth", "float", struct.pack("<f", 1.0)),
            b"\0",
        ),
    )

    row_size = 3 * 4 * width
    chunk_size = 8 + row_size
    first_chunk = len(header) + 8 * height
    offsets = struct.pack(f"<{height}Q", *(first_chunk + y * chunk_size for y in range(height)))

    # Planar per scanline: all B samples, then G, then R.
    planar = np.ascontiguousarray(rgb[:, :, ::-1].transpose(0, 2, 1), dtype="<f4")
    chunks = b"".join(struct.pack("<ii", y, row_size) + planar[y].tobytes() for y in range(height))
    return header + offsets + chunks


_ENCODERS: dict[OutputFormat, Callable[[Image.Image], bytes]] = {
    OutputFormat.PNG: partial(_encode_with_pillow, format_name="PNG"),
    OutputFormat.JPEG: partial(_encode_with_pillow, format_name="JPEG"),
    OutputFormat.GIF: partial(_encode_with_pillow, format_name="GIF"),
    OutputFormat.WEBP: partial(_encode_with_pillow, format_name="WEBP"),
    OutputFormat.PNM: partial(_encode_with_pillow, format_name="PPM"),
    OutputFormat.TIFF: partial(_encode_with_pillow, format_name="TIFF"),
    OutputFormat.TGA: partial(_encode_with_pillow, format_name="TGA"),
    OutputFormat.BMP: partial(_encode_with_pillow, format_name="BMP"),
    OutputFormat.ICO: partial(_encode_with_pillow, format_name="ICO"),
    OutputFormat.HDR: encode_hdr,
    OutputFormat.OPENEXR: encode_openexr,
    OutputFormat.FARBFELD: encode_farbfeld,
    OutputFormat.AVIF: partial(_encode_with_pillow, format_name="AVIF"),
    OutputFormat.QOI: partial(_encode_with_pillow, format_name="QOI"),
}


def encode_image(image: Image.Image, output_format: OutputFormat) -> bytes:
    """Encode a rendered page to `output_format`.

    Args:
        image (Image.Image): Rendered RGB page.
        output_format (OutputFormat): Target format.

    Returns:
        bytes: Encoded image.
    """
    return _ENCODERS[output_format](image)
