"""Цикл скролл-захвата: снимок, сравнение, прокрутка, пауза."""

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from .capture_ports import FrameSource, ScrollInput
from .errors import (
    CaptureCancelled,
    CapturePermissionError,
    NoFramesCaptured,
    StitchAllocationError,
    TransientCaptureError,
)
from .frames import CaptureRect, CaptureResult, Frame, StopReason
from .image_stitcher import ImageStitcher
from .settings import CaptureSettings
from .termination import frames_duplicate

ProgressCallback = Callable[[int, int, str], None]


class ScrollCaptureLoop:
    """Снимает область, прокручивая содержимое, пока оно не закончится.

    Каждый снимок, прокрутка и пауза выполняются строго по очереди. Кадры
    принадлежат одному запуску ``run`` и целиком передаются склейщику после
    остановки цикла.
    """

    def __init__(
        self,
        source: FrameSource,
        scroller: ScrollInput,
        settings: Optional[CaptureSettings] = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
        is_cancelled: Optional[Callable[[], bool]] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> None:
        self.source = source
        self.scroller = scroller
        self.settings = settings or CaptureSettings()
        self._sleep = sleep
        self._is_cancelled = is_cancelled or (lambda: False)
        self._progress = progress

    def _check_cancelled(self) -> None:
        if self._is_cancelled():
            raise CaptureCancelled("Захват отменён")

    def _report(self, captured: int, message: str) -> None:
        if self._progress is not None:
            self._progress(captured, self.settings.max_frames, message)

    def collect(self, rect: CaptureRect) -> Tuple[List[Frame], StopReason, Optional[TransientCaptureError]]:
        frames: List[Frame] = []
        reason = StopReason.MAX_FRAMES
        failure: Optional[TransientCaptureError] = None
        amount = self.settings.scroll_amount(rect)

        self._report(0, "Захват первого кадра")
        for _ in range(self.settings.max_frames):
            self._check_cancelled()
            try:
                frame = self.source.capture(rect, len(frames))
            except CapturePermissionError:
                logging.error("Скролл-захват остановлен: нет доступа к записи экрана")
                raise
            except TransientCaptureError as exc:
                logging.warning("Кадр %d не снят, оставляем %d кадров: %s", len(frames), len(frames), exc)
                reason = StopReason.CAPTURE_FAILED
                failure = exc
                break
            self._check_cancelled()

            if frames and frames_duplicate(frames[-1], frame, self.settings.duplicate_strip_height):
                logging.debug("Кадр %d повторяет предыдущий, конец содержимого", len(frames))
                reason = StopReason.END_REACHED
                break

            frames.append(frame)
            self._report(len(frames), f"Кадров собрано: {len(frames)}")
            self.scroller.scroll_down(amount)
            self._sleep(self.settings.frame_delay)

        return frames, reason, failure

    def run(self, rect: CaptureRect) -> CaptureResult:
        frames, reason, failure = self.collect(rect)
        if not frames:
            raise NoFramesCaptured("Захват не вернул ни одного кадра.") from failure

        if len(frames) == 1:
            return CaptureResult(frames[0], rect, 1, False, reason, datetime.now())

        stitched = ImageStitcher(frames, self.settings).stitch()
        if stitched is None:
            raise StitchAllocationError(f"Не удалось собрать {len(frames)} кадров в одно изображение")
        return CaptureResult(stitched, rect, len(frames), True, reason, datetime.now())
