"""Decoding sources into pixel buffers and encoding results back to bytes."""

from __future__ import annotations

import base64
import io
from dataclasses import dataclass

import numpy as np
from PIL import Image, UnidentifiedImageError

from .errors import ImageDecodeFailure, ImageEncodeFailure, InvalidParameter
from .logging_config import get_logger

logger = get_logger("codec")

# Canonical format name -> (Pillow format, MIME type, file extension)
FORMATS: dict[str, tuple[str, str, str]] = {
    "png": ("PNG", "image/png", "png"),
    "jpeg": ("JPEG", "image/jpeg", "jpg"),
    "webp": ("WEBP", "image/webp", "webp"),
    "gif": ("GIF", "image/gif", "gif"),
    "bmp": ("BMP", "image/bmp", "bmp"),
    "tiff": ("TIFF", "image/tiff", "tiff"),
}

_ALIASES = {
    "jpg": "jpeg",
    "tif": "tiff",
    "mpo": "jpeg",
}

LOSSLESS_FORMAT = "png"


def normalize_format(fmt: str) -> str:
    """Map a format name, extension or MIME type onto a key of ``FORMATS``."""
    key = fmt.strip().lower()
    if key.startswith("image/"):
        key = key[len("image/") :]
    key = _ALIASES.get(key, key)
    if key not in FORMATS:
        raise InvalidParameter(f"Unsupported image format: {fmt!r}")
    return key


@dataclass(frozen=True)
class ImageBuffer:
    """Decoded raster owned by the caller. Pixels are read-only."""

    width: int
    height: int
    pixels: np.ndarray  # (height, width, 3|4) uint8
    source_format: str | None = None

    @classmethod
    def from_array(cls, pixels: np.ndarray, source_format: str | None = None) -> "ImageBuffer":
        arr = np.array(pixels, copy=True)
        if arr.dtype != np.uint8 or arr.ndim != 3 or arr.shape[2] not in (3, 4):
            raise ImageDecodeFailure(f"Expected HxWx3 or HxWx4 uint8 pixels, got {arr.dtype} {arr.shape}")
        if arr.shape[0] < 1 or arr.shape[1] < 1:
            raise ImageDecodeFailure(f"Image has no pixels: {arr.shape}")
        arr.setflags(write=False)
        h, w = arr.shape[:2]
        return cls(width=w, height=h, pixels=arr, source_format=source_format)

    @classmethod
    def from_pil(cls, pil_img: Image.Image, source_format: str | None = None) -> "ImageBuffer":
        fmt = source_format or pil_img.format
        if fmt is not None:
            try:
                fmt = normalize_format(fmt)
            except InvalidParameter:
                fmt = None
        has_alpha = pil_img.mode in ("RGBA", "LA", "PA") or (
            pil_img.mode == "P" and "transparency" in pil_img.info
        )
        img = pil_img.convert("RGBA" if has_alpha else "RGB")
        return cls.from_array(np.asarray(img, dtype=np.uint8), source_format=fmt)

    @property
    def has_alpha(self) -> bool:
        return self.pixels.shape[2] == 4

    def to_pil(self) -> Image.Image:
        return Image.fromarray(np.ascontiguousarray(self.pixels))


@dataclass(frozen=True)
class EncodedImage:
    data: bytes
    format: str
    width: int
    height: int
    # Format originally asked for when the encoder had to fall back.
    fallback_from: str | None = None

    @property
    def mime_type(self) -> str:
        return FORMATS[self.format][1]

    @property
    def extension(self) -> str:
        return FORMATS[self.format][2]

    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64," + base64.b64encode(self.data).decode("ascii")


def decode_image(data: bytes) -> ImageBuffer:
    if not data:
        raise ImageDecodeFailure("Source image is empty")
    try:
        with Image.open(io.BytesIO(data)) as pil_img:
            pil_img.load()
            return ImageBuffer.from_pil(pil_img)
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        raise ImageDecodeFailure(f"Could not decode source image: {e}") from e


def as_buffer(image: ImageBuffer | EncodedImage | bytes) -> ImageBuffer:
    if isinstance(image, ImageBuffer):
        return image
    if isinstance(image, EncodedImage):
        return decode_image(image.data)
    if isinstance(image, (bytes, bytearray, memoryview)):
        return decode_image(bytes(image))
    raise ImageDecodeFailure(f"Unsupported image source: {type(image).__name__}")


def _encode_once(pil_img: Image.Image, fmt: str, quality: float) -> bytes:
    pil_format = FORMATS[fmt][0]
    img = pil_img
    kwargs: dict = {}
    if fmt == "jpeg":
        # No alpha in JPEG; transparent areas come out black as on a canvas.
        if img.mode != "RGB":
            img = img.convert("RGB")
        kwargs["quality"] = int(round(quality * 100))
    elif fmt == "webp":
        kwargs["quality"] = int(round(quality * 100))
    buf = io.BytesIO()
    img.save(buf, format=pil_format, **kwargs)
    return buf.getvalue()


def encode_image(
    image: ImageBuffer,
    formats: tuple[str, ...] | list[str],
    quality: float = 0.92,
    min_bytes: int = 1,
) -> EncodedImage:
    """Encode ``image`` with the first format in ``formats`` that works.

    A format is skipped when the encoder raises or produces fewer than
    ``min_bytes`` bytes. Lossless PNG is always tried last.
    """
    candidates = list(dict.fromkeys(normalize_format(f) for f in formats))
    if not candidates:
        raise InvalidParameter("At least one output format is required")
    if LOSSLESS_FORMAT not in candidates:
        candidates.append(LOSSLESS_FORMAT)

    pil_img = image.to_pil()
    requested = candidates[0]
    last_error: Exception | None = None
    for fmt in candidates:
        try:
            data = _encode_once(pil_img, fmt, quality)
        except (OSError, ValueError, KeyError) as e:
            last_error = e
            logger.warning("Encoding as %s failed (%s), trying next format", fmt, e)
            continue
        if len(data) < min_bytes:
            logger.warning("Encoding as %s produced %d bytes, trying next format", fmt, len(data))
            continue
        fallback_from = requested if fmt != requested else None
        if fallback_from is not None:
            logger.warning("Fell back from %s to %s encoding", requested, fmt)
        return EncodedImage(
            data=data,
            format=fmt,
            width=image.width,
            height=image.height,
            fallback_from=fallback_from,
        )

    raise ImageEncodeFailure(f"Could not encode image in any of {candidates}: {last_error}")
