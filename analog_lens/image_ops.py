from __future__ import annotations

import math
import numbers
from dataclasses import dataclass, fields
from typing import Sequence

import numpy as np

from .errors import InvalidParameter
from .params import OPERATIONS, GradeParameters


ArrayF = np.ndarray


@dataclass(frozen=True)
class Operation:
    name: str
    value: float

    def css(self) -> str:
        if self.name == "hue-rotate":
            return f"hue-rotate({int(self.value)}deg)"
        return f"{self.name}({self.value:g})"


# Chain order, as (filter primitive name, GradeParameters field).
CHAIN_ORDER: tuple[tuple[str, str], ...] = (
    ("brightness", "brightness"),
    ("contrast", "contrast"),
    ("saturate", "saturation"),
    ("grayscale", "grayscale"),
    ("sepia", "sepia"),
    ("hue-rotate", "hue_rotate"),
)

DEFAULT_EPSILON = 1e-3


def _to_float01(rgb8: np.ndarray) -> ArrayF:
    if rgb8.dtype != np.uint8:
        raise TypeError(f"Expected uint8 image, got {rgb8.dtype}")
    return rgb8.astype(np.float32) / 255.0


def _to_uint8(rgb01: ArrayF) -> np.ndarray:
    rgb01 = np.clip(rgb01, 0.0, 1.0)
    return (rgb01 * 255.0 + 0.5).astype(np.uint8)


def _apply_matrix(rgb01: ArrayF, m: Sequence[Sequence[float]]) -> ArrayF:
    r = rgb01[..., 0]
    g = rgb01[..., 1]
    b = rgb01[..., 2]
    out = np.stack([r * row[0] + g * row[1] + b * row[2] for row in m], axis=-1).astype(np.float32)
    return np.clip(out, 0.0, 1.0)


def apply_brightness(rgb01: ArrayF, amount: float) -> ArrayF:
    # Linear transfer with slope = amount; 1 = no change.
    return np.clip(rgb01 * float(amount), 0.0, 1.0)


def apply_contrast(rgb01: ArrayF, amount: float) -> ArrayF:
    # Linear transfer around mid grey; 1 = no change, 0 = flat grey.
    c = float(amount)
    return np.clip((rgb01 - 0.5) * c + 0.5, 0.0, 1.0)


def apply_saturation(rgb01: ArrayF, amount: float) -> ArrayF:
    s = float(amount)
    return _apply_matrix(
        rgb01,
        [
            [0.213 + 0.787 * s, 0.715 - 0.715 * s, 0.072 - 0.072 * s],
            [0.213 - 0.213 * s, 0.715 + 0.285 * s, 0.072 - 0.072 * s],
            [0.213 - 0.213 * s, 0.715 - 0.715 * s, 0.072 + 0.928 * s],
        ],
    )


def apply_grayscale(rgb01: ArrayF, amount: float) -> ArrayF:
    a = 1.0 - min(max(float(amount), 0.0), 1.0)
    return _apply_matrix(
        rgb01,
        [
            [0.2126 + 0.7874 * a, 0.7152 - 0.7152 * a, 0.0722 - 0.0722 * a],
            [0.2126 - 0.2126 * a, 0.7152 + 0.2848 * a, 0.0722 - 0.0722 * a],
            [0.2126 - 0.2126 * a, 0.7152 - 0.7152 * a, 0.0722 + 0.9278 * a],
        ],
    )


def apply_sepia(rgb01: ArrayF, amount: float) -> ArrayF:
    a = 1.0 - min(max(float(amount), 0.0), 1.0)
    return _apply_matrix(
        rgb01,
        [
            [0.393 + 0.607 * a, 0.769 - 0.769 * a, 0.189 - 0.189 * a],
            [0.349 - 0.349 * a, 0.686 + 0.314 * a, 0.168 - 0.168 * a],
            [0.272 - 0.272 * a, 0.534 - 0.534 * a, 0.131 + 0.869 * a],
        ],
    )


def apply_hue_rotate(rgb01: ArrayF, degrees: float) -> ArrayF:
    theta = math.radians(float(degrees))
    c = math.cos(theta)
    s = math.sin(theta)
    return _apply_matrix(
        rgb01,
        [
            [0.213 + c * 0.787 - s * 0.213, 0.715 - c * 0.715 - s * 0.715, 0.072 - c * 0.072 + s * 0.928],
            [0.213 - c * 0.213 + s * 0.143, 0.715 + c * 0.285 + s * 0.140, 0.072 - c * 0.072 - s * 0.283],
            [0.213 - c * 0.213 - s * 0.787, 0.715 - c * 0.715 + s * 0.715, 0.072 + c * 0.928 + s * 0.072],
        ],
    )


_APPLIERS = {
    "brightness": apply_brightness,
    "contrast": apply_contrast,
    "saturate": apply_saturation,
    "grayscale": apply_grayscale,
    "sepia": apply_sepia,
    "hue-rotate": apply_hue_rotate,
}


def check_intensity(intensity: float) -> float:
    """Reject intensities outside [0, 100] instead of clamping them."""
    if isinstance(intensity, bool) or not isinstance(intensity, numbers.Real):
        raise InvalidParameter(f"Intensity must be a number, got {intensity!r}")
    value = float(intensity)
    if math.isnan(value) or not 0.0 <= value <= 100.0:
        raise InvalidParameter(f"Intensity must be within [0, 100], got {intensity}")
    return value


def interpolate(target: GradeParameters, intensity: float) -> GradeParameters:
    """Linearly blend every operation from neutral toward ``target``."""
    t = check_intensity(intensity) / 100.0
    values = {}
    for f in fields(target):
        neutral = OPERATIONS[f.name].neutral
        values[f.name] = neutral + (getattr(target, f.name) - neutral) * t
    return GradeParameters(**values)


def build_chain(
    target: GradeParameters,
    intensity: float,
    epsilon: float = DEFAULT_EPSILON,
) -> tuple[Operation, ...]:
    """Ordered operations to apply for ``target`` at ``intensity`` percent.

    Values are rounded to 3 decimals (hue rotation half up to whole degrees) and an
    operation is left out when it is within ``epsilon`` of neutral. A full
    grayscale target is kept at any nonzero intensity.
    """
    mixed = interpolate(target, intensity)
    chain: list[Operation] = []
    for name, field_name in CHAIN_ORDER:
        neutral = OPERATIONS[field_name].neutral
        value = getattr(mixed, field_name)
        if name == "hue-rotate":
            # Half up, like the preview size rounding: 2.5 -> 3, -7.5 -> -7.
            degrees = math.floor(value + 0.5)
            if degrees != 0:
                chain.append(Operation(name, float(degrees)))
            continue
        rounded = round(value, 3)
        keep = abs(value - neutral) > epsilon
        if name == "grayscale" and target.grayscale == 1.0 and intensity > 0:
            keep = True
        if keep:
            chain.append(Operation(name, rounded))
    return tuple(chain)


def filter_string(chain: Sequence[Operation]) -> str:
    """CSS ``filter`` property value for a chain, ``none`` when empty."""
    if not chain:
        return "none"
    return " ".join(op.css() for op in chain)


def apply_chain(rgb01: ArrayF, chain: Sequence[Operation]) -> ArrayF:
    out = rgb01
    for op in chain:
        out = _APPLIERS[op.name](out, op.value)
    return np.clip(out, 0.0, 1.0)


def process_rgb8(pixels: np.ndarray, chain: Sequence[Operation]) -> np.ndarray:
    """Run ``chain`` over an RGB or RGBA uint8 array; returns a new array.

    Alpha is carried over unchanged.
    """
    if not chain:
        return np.array(pixels, dtype=np.uint8, copy=True)

    rgb01 = _to_float01(pixels[..., :3])
    out = _to_uint8(apply_chain(rgb01, chain))
    if pixels.shape[-1] == 4:
        out = np.concatenate([out, pixels[..., 3:4]], axis=-1)
    return out
