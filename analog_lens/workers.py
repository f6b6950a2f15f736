"""Qt thread-pool tasks that run edits and mood tuning off the GUI thread."""

from __future__ import annotations

import traceback
from typing import Mapping

from PySide6 import QtCore

from .codec import EncodedImage, ImageBuffer
from .config import APP_CONFIG, GradingConfig
from .errors import AnalogLensError
from .logging_config import get_logger
from .pipeline import EditRequest, apply_edit
from .presets import StylePreset
from .tuning import MoodTuner, request_override

logger = get_logger("workers")


class _TaskSignals(QtCore.QObject):
    finished = QtCore.Signal(int, object)  # generation, result
    failed = QtCore.Signal(int, object)  # generation, AnalogLensError or traceback text


class RenderTask(QtCore.QRunnable):
    def __init__(
        self,
        generation: int,
        image: ImageBuffer | EncodedImage | bytes,
        request: EditRequest,
        preview_max: int | None = None,
        styles: Mapping[str, StylePreset] | None = None,
        config: GradingConfig = APP_CONFIG,
    ) -> None:
        super().__init__()
        self.generation = generation
        self.image = image
        self.request = request
        self.preview_max = preview_max
        self.styles = styles
        self.config = config
        self.signals = _TaskSignals()

    def run(self) -> None:
        try:
            result = apply_edit(
                self.image,
                self.request,
                styles=self.styles,
                preview_max=self.preview_max,
                config=self.config,
            )
        except AnalogLensError as e:
            logger.warning("Render %d failed: %s", self.generation, e)
            self.signals.failed.emit(self.generation, e)
            return
        except Exception:
            logger.exception("Render %d crashed", self.generation)
            self.signals.failed.emit(self.generation, traceback.format_exc())
            return
        self.signals.finished.emit(self.generation, result)


class TuningTask(QtCore.QRunnable):
    def __init__(self, generation: int, tuner: MoodTuner, style: str, mood: str) -> None:
        super().__init__()
        self.generation = generation
        self.tuner = tuner
        self.style = style
        self.mood = mood
        self.signals = _TaskSignals()

    def run(self) -> None:
        # request_override reports service failures in the outcome itself.
        outcome = request_override(self.tuner, self.style, self.mood)
        self.signals.finished.emit(self.generation, outcome)


class RenderScheduler(QtCore.QObject):
    """Submits edits to a thread pool and forwards only the newest result.

    Every submission bumps a generation counter; results from older
    submissions that finish late are dropped.
    """

    finished = QtCore.Signal(object)  # EditResult
    failed = QtCore.Signal(object)  # AnalogLensError or traceback text

    def __init__(
        self,
        thread_pool: QtCore.QThreadPool | None = None,
        parent: QtCore.QObject | None = None,
        styles: Mapping[str, StylePreset] | None = None,
        config: GradingConfig = APP_CONFIG,
    ) -> None:
        super().__init__(parent)
        self._thread_pool = thread_pool or QtCore.QThreadPool.globalInstance()
        self._generation = 0
        self._config = config
        self._styles = styles

    @property
    def generation(self) -> int:
        return self._generation

    def set_styles(self, styles: Mapping[str, StylePreset] | None) -> None:
        """Catalog for later submissions; None reloads the configured user presets per render."""
        self._styles = styles

    def make_task(
        self,
        image: ImageBuffer | EncodedImage | bytes,
        request: EditRequest,
        preview_max: int | None = None,
    ) -> RenderTask:
        self._generation += 1
        task = RenderTask(
            self._generation,
            image,
            request,
            preview_max,
            styles=self._styles,
            config=self._config,
        )
        task.signals.finished.connect(self._on_finished)
        task.signals.failed.connect(self._on_failed)
        return task

    def submit(
        self,
        image: ImageBuffer | EncodedImage | bytes,
        request: EditRequest,
        preview_max: int | None = None,
    ) -> int:
        task = self.make_task(image, request, preview_max)
        self._thread_pool.start(task)
        return task.generation

    def _on_finished(self, generation: int, result: object) -> None:
        if generation != self._generation:
            logger.debug("Dropping stale render %d (latest %d)", generation, self._generation)
            return
        self.finished.emit(result)

    def _on_failed(self, generation: int, error: object) -> None:
        if generation != self._generation:
            return
        self.failed.emit(error)
