"""One edit: resolve the grade, render it at full size and derive a preview."""

from __future__ import annotations

import re
import time
from dataclasses import dataclass

from .codec import FORMATS, EncodedImage, ImageBuffer, as_buffer, normalize_format
from .config import APP_CONFIG, GradingConfig
from .engine import grade
from .image_ops import Operation, check_intensity
from .params import GradeParameters
from .preview import resample
from .presets import StylePreset, load_user_presets, style_catalog
from .resolver import resolve


@dataclass(frozen=True)
class EditRequest:
    style: str
    scene: str
    intensity: float = 100.0
    override: GradeParameters | None = None
    output_format: str | None = None


@dataclass(frozen=True)
class EditResult:
    full: EncodedImage
    preview: EncodedImage
    parameters: GradeParameters
    chain: tuple[Operation, ...]
    request: EditRequest

    @property
    def ai_tuned(self) -> bool:
        return self.request.override is not None

    def export_name(self, timestamp_ms: int | None = None) -> str:
        return export_filename(
            self.request.style,
            self.request.scene,
            self.request.intensity,
            self.ai_tuned,
            self.full.format,
            timestamp_ms=timestamp_ms,
        )


def export_filename(
    style: str,
    scene: str,
    intensity: float,
    ai_tuned: bool,
    fmt: str,
    timestamp_ms: int | None = None,
) -> str:
    """e.g. ``AnalogLens_kodak_portra_400_portrait_75pct_ai_1700000000000.jpg``"""
    check_intensity(intensity)
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    safe_style = re.sub(r"[^a-z0-9]", "_", style, flags=re.IGNORECASE).lower()
    safe_scene = re.sub(r"[^a-z0-9]", "_", scene, flags=re.IGNORECASE).lower()
    parts = ["AnalogLens", safe_style, safe_scene, f"{int(round(intensity))}pct"]
    if ai_tuned:
        parts.append("ai")
    parts.append(str(timestamp_ms))
    ext = FORMATS[normalize_format(fmt)][2]
    return "_".join(parts) + "." + ext


def user_style_catalog(config: GradingConfig = APP_CONFIG) -> dict[str, StylePreset]:
    return style_catalog(load_user_presets(config.user_presets_dir))


def apply_edit(
    image: ImageBuffer | EncodedImage | bytes,
    request: EditRequest,
    styles: dict[str, StylePreset] | None = None,
    preview_max: int | None = None,
    config: GradingConfig = APP_CONFIG,
) -> EditResult:
    source = as_buffer(image)
    if styles is None:
        styles = user_style_catalog(config)
    params = resolve(request.style, request.scene, request.override, styles=styles)
    graded = grade(
        source,
        params,
        request.intensity,
        output_format=request.output_format,
        config=config,
    )
    preview = resample(graded.image, preview_max, config=config)
    return EditResult(
        full=graded.image,
        preview=preview,
        parameters=params,
        chain=graded.chain,
        request=request,
    )
