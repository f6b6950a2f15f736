from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from .errors import ErrorKind, InvalidParameter, user_message
from .logging_config import get_logger
from .params import GradeParameters, parse_override
from .presets import NO_STYLE

logger = get_logger("tuning")

# (base_style or None, mood description) -> partial parameter mapping
MoodTuner = Callable[[Optional[str], str], Mapping[str, Any]]


@dataclass(frozen=True)
class TuningOutcome:
    override: GradeParameters | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.override is not None

    @property
    def message(self) -> str | None:
        if self.error is None:
            return None
        return user_message(ErrorKind.TUNING_UNAVAILABLE)


def request_override(tuner: MoodTuner, style_name: str | None, mood: str | None) -> TuningOutcome:
    """Ask the mood service for parameters that replace the style and scene.

    A blank mood makes no call. Service errors and malformed payloads are
    reported in the outcome so grading can go on with style and scene alone.
    """
    if not mood or not mood.strip():
        return TuningOutcome()

    base_style = None if style_name in (None, NO_STYLE) else style_name
    try:
        payload = tuner(base_style, mood.strip())
    except Exception as e:
        logger.warning("Mood tuning failed for %r: %s", mood, e)
        return TuningOutcome(error=str(e) or type(e).__name__)

    if payload is None:
        logger.warning("Mood tuning returned no parameters for %r", mood)
        return TuningOutcome(error="Mood service returned no parameters")

    try:
        override = parse_override(payload)
    except InvalidParameter as e:
        logger.warning("Mood tuning returned malformed parameters: %s", e)
        return TuningOutcome(error=e.message)
    return TuningOutcome(override=override)
