from __future__ import annotations

import math
from dataclasses import dataclass, fields
from typing import Any, Mapping

from .errors import InvalidParameter


MULTIPLY = "multiply"
ADD = "add"


@dataclass(frozen=True)
class OperationRule:
    field: str
    neutral: float
    combine: str


# Keyed by GradeParameters field name.
OPERATIONS: dict[str, OperationRule] = {
    "contrast": OperationRule("contrast", 1.0, MULTIPLY),
    "saturation": OperationRule("saturation", 1.0, MULTIPLY),
    "brightness": OperationRule("brightness", 1.0, MULTIPLY),
    "sepia": OperationRule("sepia", 0.0, ADD),
    "grayscale": OperationRule("grayscale", 0.0, MULTIPLY),
    "hue_rotate": OperationRule("hue_rotate", 0.0, ADD),
}


@dataclass(frozen=True)
class GradeParameters:
    """Target magnitudes of the six grading operations at 100% intensity.

    Every field defaults to its neutral value, so a partially specified set is
    indistinguishable from one with the missing entries spelled out.
    """

    contrast: float = 1.0
    saturation: float = 1.0
    brightness: float = 1.0
    sepia: float = 0.0
    grayscale: float = 0.0
    hue_rotate: float = 0.0

    def defined(self) -> dict[str, float]:
        """Only the non-neutral entries, keyed by field name."""
        out: dict[str, float] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value != OPERATIONS[f.name].neutral:
                out[f.name] = value
        return out

    def is_neutral(self) -> bool:
        return not self.defined()

    @classmethod
    def from_mapping(cls, values: Mapping[str, float]) -> "GradeParameters":
        unknown = set(values) - set(OPERATIONS)
        if unknown:
            raise InvalidParameter(f"Unknown grading operations: {sorted(unknown)}")
        return cls(**{k: float(v) for k, v in values.items()})


# External service payload keys -> field names. Field names are accepted too.
_OVERRIDE_KEYS = {
    "contrast": "contrast",
    "saturate": "saturation",
    "saturation": "saturation",
    "brightness": "brightness",
    "sepia": "sepia",
    "grayscale": "grayscale",
    "hueRotate": "hue_rotate",
    "hue_rotate": "hue_rotate",
}

# Value ranges the external service promises for each operation.
_OVERRIDE_RANGES = {
    "contrast": (0.0, 3.0),
    "saturation": (0.0, 3.0),
    "brightness": (0.0, 3.0),
    "sepia": (0.0, 1.0),
    "grayscale": (0.0, 1.0),
    "hue_rotate": (-360.0, 360.0),
}


def _coerce_number(key: str, raw: Any) -> float:
    if isinstance(raw, bool):
        raise InvalidParameter(f"{key} must be a number, got {raw!r}")
    if isinstance(raw, str):
        try:
            value = float(raw.strip())
        except ValueError as e:
            raise InvalidParameter(f"{key} must be a number, got {raw!r}") from e
    elif isinstance(raw, (int, float)):
        value = float(raw)
    else:
        raise InvalidParameter(f"{key} must be a number, got {type(raw).__name__}")
    if not math.isfinite(value):
        raise InvalidParameter(f"{key} must be finite, got {value}")
    return value


def parse_override(payload: Any) -> GradeParameters:
    """Validate a mood-service payload and turn it into grading parameters.

    Unknown keys are ignored and ``None`` values count as absent.
    """
    if not isinstance(payload, Mapping):
        raise InvalidParameter(f"Override must be a mapping, got {type(payload).__name__}")

    values: dict[str, float] = {}
    for key, raw in payload.items():
        name = _OVERRIDE_KEYS.get(key)
        if name is None or raw is None:
            continue
        value = _coerce_number(key, raw)
        lo, hi = _OVERRIDE_RANGES[name]
        if not lo <= value <= hi:
            raise InvalidParameter(f"{key}={value} outside [{lo}, {hi}]")
        values[name] = value
    return GradeParameters(**values)
