from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Mapping

from PySide6 import QtCore

from .errors import InvalidParameter

SETTINGS_ORG = "AnalogLens"
SETTINGS_APP = "Analog Lens"
PRESETS_DIR_KEY = "userPresetsDir"


@dataclass(frozen=True)
class GradingConfig:
    preview_max_dimension: int = 800
    # Encoder quality in 0..1, as the browser canvas encoders take it.
    output_quality: float = 0.92
    preview_quality: float = 0.8
    epsilon: float = 1e-3
    preview_formats: tuple[str, ...] = ("webp", "jpeg", "png")
    fallback_format: str = "png"
    # Encoded payloads shorter than this are treated as a failed encode.
    min_encoded_bytes: int = 16
    user_presets_dir: str | None = None


def app_settings() -> QtCore.QSettings:
    return QtCore.QSettings(SETTINGS_ORG, SETTINGS_APP)


def stored_user_presets_dir(settings: QtCore.QSettings) -> str | None:
    folder = str(settings.value(PRESETS_DIR_KEY, "") or "")
    return folder or None


def store_user_presets_dir(folder: str | None, settings: QtCore.QSettings | None = None) -> None:
    """Remember the user presets folder; an empty folder clears it."""
    if settings is None:
        settings = app_settings()
    settings.setValue(PRESETS_DIR_KEY, folder or "")


def _read_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise InvalidParameter(f"{key} must be an integer, got {raw!r}") from e
    if value < 1:
        raise InvalidParameter(f"{key} must be >= 1, got {value}")
    return value


def _read_quality(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise InvalidParameter(f"{key} must be a number, got {raw!r}") from e
    if not 0.0 < value <= 1.0:
        raise InvalidParameter(f"{key} must be in (0, 1], got {value}")
    return value


def load_config(
    env: Mapping[str, str] | None = None,
    settings: QtCore.QSettings | None = None,
) -> GradingConfig:
    """Build a config from defaults overlaid with ``ANALOG_LENS_*`` variables.

    The user presets folder comes from ``settings`` when given, and
    ``ANALOG_LENS_USER_PRESETS_DIR`` overrides it.
    """
    if env is None:
        env = os.environ
    base = GradingConfig()
    presets_dir = env.get("ANALOG_LENS_USER_PRESETS_DIR") or None
    if presets_dir is None and settings is not None:
        presets_dir = stored_user_presets_dir(settings)
    return replace(
        base,
        preview_max_dimension=_read_int(env, "ANALOG_LENS_PREVIEW_MAX", base.preview_max_dimension),
        output_quality=_read_quality(env, "ANALOG_LENS_OUTPUT_QUALITY", base.output_quality),
        preview_quality=_read_quality(env, "ANALOG_LENS_PREVIEW_QUALITY", base.preview_quality),
        user_presets_dir=presets_dir,
    )


APP_CONFIG = load_config(settings=app_settings())
