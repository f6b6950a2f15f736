from __future__ import annotations

from dataclasses import fields
from typing import Mapping

from .params import MULTIPLY, OPERATIONS, GradeParameters
from .presets import SceneAdjustment, StylePreset, scene_catalog, style_catalog

_DEFAULT_STYLES = style_catalog()
_DEFAULT_SCENES = scene_catalog()


def combine(base: GradeParameters, adjust: GradeParameters) -> GradeParameters:
    """Layer ``adjust`` onto ``base`` using each operation's combination rule.

    Operations left neutral in ``adjust`` keep the base value.
    """
    values: dict[str, float] = {}
    touched = adjust.defined()
    for f in fields(base):
        rule = OPERATIONS[f.name]
        value = getattr(base, f.name)
        if f.name in touched:
            if rule.combine == MULTIPLY:
                value = value * touched[f.name]
            else:
                value = value + touched[f.name]
        if rule.combine == MULTIPLY:
            value = max(0.0, value)
        values[f.name] = value
    values["grayscale"] = min(1.0, values["grayscale"])
    return GradeParameters(**values)


def resolve(
    style_name: str,
    scene_category: str,
    override: GradeParameters | None = None,
    styles: Mapping[str, StylePreset] | None = None,
    scenes: Mapping[str, SceneAdjustment] | None = None,
) -> GradeParameters:
    """Resolve a style, a scene and an optional external override into one grade.

    An override replaces style and scene wholesale. Unknown style or scene
    names fall back to no adjustment; this never raises.
    """
    if override is not None:
        return override

    if styles is None:
        styles = _DEFAULT_STYLES
    if scenes is None:
        scenes = _DEFAULT_SCENES

    style = styles.get(style_name)
    base = style.params if style is not None else GradeParameters()
    scene = scenes.get(scene_category)
    if scene is None:
        return combine(base, GradeParameters())
    return combine(base, scene.params)
