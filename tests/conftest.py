import io

import numpy as np
import pytest
from PIL import Image

from analog_lens.codec import ImageBuffer


def make_pixels(width: int, height: int, alpha: bool = False) -> np.ndarray:
    x = np.linspace(0, 255, width, dtype=np.float32)
    y = np.linspace(0, 255, height, dtype=np.float32)
    r = np.tile(x, (height, 1))
    g = np.tile(y[:, None], (1, width))
    b = 255.0 - (r + g) / 2.0
    channels = [r, g, b]
    if alpha:
        channels.append(np.full((height, width), 128, dtype=np.float32))
    return np.stack(channels, axis=-1).astype(np.uint8)


def encode(pixels: np.ndarray, fmt: str = "PNG") -> bytes:
    buf = io.BytesIO()
    Image.fromarray(pixels).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def image() -> ImageBuffer:
    return ImageBuffer.from_array(make_pixels(64, 48), source_format="png")


@pytest.fixture
def png_bytes() -> bytes:
    return encode(make_pixels(120, 90))
