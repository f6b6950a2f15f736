from __future__ import annotations

from dataclasses import dataclass

from .codec import EncodedImage, ImageBuffer, as_buffer, encode_image, normalize_format
from .config import APP_CONFIG, GradingConfig
from .errors import ImageEncodeFailure
from .image_ops import Operation, build_chain, filter_string, interpolate, process_rgb8
from .logging_config import get_logger
from .params import GradeParameters

logger = get_logger("engine")

# Source formats that are re-encoded as themselves; anything else becomes PNG.
_PASSTHROUGH_FORMATS = ("jpeg", "webp")


@dataclass(frozen=True)
class GradeResult:
    image: EncodedImage
    chain: tuple[Operation, ...]
    applied: GradeParameters
    intensity: float

    @property
    def filter(self) -> str:
        return filter_string(self.chain)


def output_format_for(source: ImageBuffer, requested: str | None = None) -> str:
    if requested:
        return normalize_format(requested)
    if source.source_format in _PASSTHROUGH_FORMATS:
        return source.source_format
    return "png"


def grade(
    image: ImageBuffer | EncodedImage | bytes,
    target: GradeParameters,
    intensity: float,
    output_format: str | None = None,
    quality: float | None = None,
    config: GradingConfig = APP_CONFIG,
) -> GradeResult:
    """Grade ``image`` toward ``target`` at ``intensity`` percent (0-100).

    The full-resolution source is graded into a new buffer and encoded in
    ``output_format`` (by default the source's JPEG/WebP format, else PNG).
    If that encoding fails the result falls back to PNG and records it in
    ``image.fallback_from``.

    Raises InvalidParameter for an intensity outside [0, 100],
    ImageDecodeFailure for an unreadable source and ImageEncodeFailure when
    no encoding succeeds or the output cannot be allocated.
    """
    chain = build_chain(target, intensity, epsilon=config.epsilon)
    applied = interpolate(target, intensity)
    source = as_buffer(image)
    fmt = output_format_for(source, output_format)

    try:
        pixels = process_rgb8(source.pixels, chain)
        graded = ImageBuffer.from_array(pixels, source_format=fmt)
        encoded = encode_image(
            graded,
            (fmt, config.fallback_format),
            quality=config.output_quality if quality is None else quality,
            min_bytes=config.min_encoded_bytes,
        )
    except MemoryError as e:
        logger.error("Out of memory grading %dx%d image", source.width, source.height)
        raise ImageEncodeFailure(
            f"Not enough memory to produce a {source.width}x{source.height} output"
        ) from e

    logger.debug(
        "Graded %dx%d at %s%% with %s -> %s (%d bytes)",
        source.width,
        source.height,
        intensity,
        filter_string(chain),
        encoded.format,
        len(encoded.data),
    )
    return GradeResult(image=encoded, chain=chain, applied=applied, intensity=float(intensity))
