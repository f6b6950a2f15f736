from __future__ import annotations

from PIL import Image

from .codec import EncodedImage, ImageBuffer, as_buffer, encode_image
from .config import APP_CONFIG, GradingConfig
from .errors import InvalidParameter
from .logging_config import get_logger

logger = get_logger("preview")


def preview_size(width: int, height: int, max_dimension: int) -> tuple[int, int]:
    """Scale (width, height) so the longer side is at most ``max_dimension``.

    Never upscales; the shorter side is rounded half up to the nearest pixel.
    """
    if max_dimension < 1:
        raise InvalidParameter(f"max_dimension must be >= 1, got {max_dimension}")
    if width > height:
        if width > max_dimension:
            height = max(1, int(height * max_dimension / width + 0.5))
            width = max_dimension
    elif height > max_dimension:
        width = max(1, int(width * max_dimension / height + 0.5))
        height = max_dimension
    return width, height


def resample(
    image: ImageBuffer | EncodedImage | bytes,
    max_dimension: int | None = None,
    config: GradingConfig = APP_CONFIG,
) -> EncodedImage:
    """Downscale ``image`` for display and encode it compactly.

    Encodings are tried in ``config.preview_formats`` order (WebP, JPEG, then
    PNG by default); an encoding that fails or comes out degenerate falls
    through to the next one.
    """
    if max_dimension is None:
        max_dimension = config.preview_max_dimension
    source = as_buffer(image)
    w, h = preview_size(source.width, source.height, max_dimension)

    if (w, h) == (source.width, source.height):
        scaled = source
    else:
        pil_img = source.to_pil().resize((w, h), Image.Resampling.LANCZOS)
        scaled = ImageBuffer.from_pil(pil_img, source_format=source.source_format)

    encoded = encode_image(
        scaled,
        config.preview_formats,
        quality=config.preview_quality,
        min_bytes=config.min_encoded_bytes,
    )
    logger.debug(
        "Preview %dx%d -> %dx%d as %s",
        source.width,
        source.height,
        w,
        h,
        encoded.format,
    )
    return encoded
