from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping

from .errors import InvalidParameter
from .logging_config import get_logger
from .params import GradeParameters, parse_override

logger = get_logger("presets")

NO_STYLE = "None"
GENERAL_SCENE = "general"


@dataclass(frozen=True)
class StylePreset:
    name: str
    params: GradeParameters = field(default_factory=GradeParameters)
    source_path: str | None = None


@dataclass(frozen=True)
class SceneAdjustment:
    """Factors (multiplicative ops) and deltas (additive ops) layered onto a style."""

    category: str
    params: GradeParameters = field(default_factory=GradeParameters)


STYLE_PRESETS: tuple[StylePreset, ...] = (
    StylePreset(NO_STYLE),
    StylePreset("Kodak Portra 400", GradeParameters(contrast=1.1, saturation=1.1, brightness=1.05, sepia=0.1)),
    StylePreset("Fujifilm Velvia 50", GradeParameters(saturation=1.4, contrast=1.2, brightness=0.95)),
    StylePreset("Ilford HP5 Plus 400", GradeParameters(grayscale=1.0, contrast=1.2, brightness=1.1)),
    # Tungsten balanced: cooler shadows.
    StylePreset("CineStill 800T", GradeParameters(contrast=1.15, sepia=0.1, hue_rotate=-10.0, saturation=1.1)),
    StylePreset("Agfa Vista 200", GradeParameters(contrast=1.05, saturation=1.15, sepia=0.15)),
    StylePreset("Lomography Color Negative 400", GradeParameters(saturation=1.3, contrast=1.1)),
    StylePreset("Classic Teal & Orange LUT", GradeParameters(contrast=1.1, sepia=0.2, hue_rotate=-15.0, saturation=1.2)),
    StylePreset("Vintage Sepia Tone", GradeParameters(sepia=0.7, contrast=1.05, brightness=0.95)),
    StylePreset("Cool Cinematic Look", GradeParameters(contrast=1.1, brightness=0.95, hue_rotate=-10.0, saturation=1.1)),
    StylePreset("Warm Golden Hour LUT", GradeParameters(sepia=0.25, contrast=1.05, brightness=1.1, saturation=1.1)),
)


SCENE_ADJUSTMENTS: tuple[SceneAdjustment, ...] = (
    SceneAdjustment("landscape", GradeParameters(contrast=1.1, saturation=1.1)),
    SceneAdjustment("portrait", GradeParameters(contrast=0.95, sepia=0.05)),
    SceneAdjustment("flowers", GradeParameters(saturation=1.2)),
    SceneAdjustment("waterland", GradeParameters(saturation=1.1, hue_rotate=-5.0)),
    SceneAdjustment("street", GradeParameters(contrast=1.15)),
    SceneAdjustment("architecture", GradeParameters(contrast=1.1, saturation=0.95)),
    SceneAdjustment("food", GradeParameters(saturation=1.15, brightness=1.05, sepia=0.05)),
    SceneAdjustment(GENERAL_SCENE),
)


def style_catalog(extra: Iterable[StylePreset] = ()) -> dict[str, StylePreset]:
    """Built-in styles keyed by name; ``extra`` presets replace same-named ones."""
    catalog = {p.name: p for p in STYLE_PRESETS}
    for preset in extra:
        catalog[preset.name] = preset
    return catalog


def scene_catalog() -> dict[str, SceneAdjustment]:
    return {s.category: s for s in SCENE_ADJUSTMENTS}


def style_names(catalog: Mapping[str, StylePreset] | None = None) -> list[str]:
    if catalog is None:
        catalog = style_catalog()
    return list(catalog)


def scene_names() -> list[str]:
    return [s.category for s in SCENE_ADJUSTMENTS]


def load_user_preset_file(path: str | Path) -> StylePreset | None:
    path = Path(path)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Skipping unreadable preset %s: %s", path, e)
        return None
    if not isinstance(payload, dict):
        logger.warning("Skipping preset %s: expected a JSON object", path)
        return None

    # Supports {name, params} and a bare parameter mapping.
    name = str(payload.get("name") or path.stem)
    raw_params = payload.get("params", payload)
    try:
        params = parse_override(raw_params)
    except InvalidParameter as e:
        logger.warning("Skipping invalid preset %s: %s", path, e)
        return None
    return StylePreset(name=name, params=params, source_path=str(path))


def load_user_presets(folder: str | Path | None) -> list[StylePreset]:
    if not folder:
        return []
    folder = Path(folder)
    if not folder.exists() or not folder.is_dir():
        return []

    out: list[StylePreset] = []
    for path in sorted(folder.glob("*.json")):
        preset = load_user_preset_file(path)
        if preset is None:
            continue
        out.append(preset)
    logger.debug("Loaded %d user presets from %s", len(out), folder)
    return out
