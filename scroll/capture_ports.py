"""Источник кадров и имитация прокрутки для скролл-захвата."""

from __future__ import annotations

import logging
import math
import sys
from typing import Optional, Protocol, Tuple

import cv2
import mss
import numpy as np
from mss.exception import ScreenShotError

from .errors import CapturePermissionError, TransientCaptureError
from .frames import CaptureRect, Frame

_PERMISSION_MARKERS = ("permission", "access denied", "not authorized", "not permitted")


class FrameSource(Protocol):
    def capture(self, rect: CaptureRect, index: int) -> Frame:
        ...


class ScrollInput(Protocol):
    def scroll_down(self, amount_pixels: int) -> None:
        ...


def _is_permission_message(message: str) -> bool:
    text = message.lower()
    return any(marker in text for marker in _PERMISSION_MARKERS)


class MssFrameSource:
    """Снимает прямоугольник экрана через MSS.

    Экземпляр MSS создаётся лениво, в том потоке, который вызывает ``capture``.
    """

    def __init__(self, sct_factory=mss.mss) -> None:
        self._sct_factory = sct_factory
        self._sct = None

    def capture(self, rect: CaptureRect, index: int) -> Frame:
        try:
            if self._sct is None:
                self._sct = self._sct_factory()
            shot = self._sct.grab(rect.as_monitor())
        except PermissionError as exc:
            raise CapturePermissionError(f"Нет доступа к записи экрана: {exc}") from exc
        except ScreenShotError as exc:
            if _is_permission_message(str(exc)):
                raise CapturePermissionError(f"Нет доступа к записи экрана: {exc}") from exc
            raise TransientCaptureError(f"Не удалось снять область: {exc}") from exc

        frame = np.array(shot)
        if frame.ndim != 3 or frame.shape[2] != 4:
            raise TransientCaptureError(f"Неожиданный формат снимка: {frame.shape}")
        # BGRA -> RGB, альфа из MSS ненадёжна
        frame = cv2.cvtColor(frame, cv2.COLOR_BGRA2RGB)
        if sys.platform == "darwin" and not frame.any():
            # Без разрешения macOS отдаёт полностью чёрный снимок
            raise CapturePermissionError("Нет доступа к записи экрана")
        return Frame.from_array(frame, index=index, mode="RGB")

    def close(self) -> None:
        if self._sct is not None:
            try:
                self._sct.close()
            except ScreenShotError:
                logging.exception("Ошибка закрытия MSS")
            self._sct = None


class PynputScrollInput:
    """Прокрутка колесом мыши через pynput.

    Перед первой прокруткой курсор переносится в центр области захвата,
    чтобы колесо попало в нужное окно.
    """

    def __init__(
        self,
        rect: Optional[CaptureRect] = None,
        pixels_per_tick: int = 40,
        *,
        controller=None,
    ) -> None:
        if controller is None:
            try:
                from pynput.mouse import Controller
            except Exception as exc:  # pragma: no cover - нет дисплея или бэкенда
                raise RuntimeError("pynput недоступен, прокрутка невозможна") from exc
            controller = Controller()
        self._mouse = controller
        self._focus_point: Optional[Tuple[int, int]] = rect.center if rect else None
        self._focused = False
        self.pixels_per_tick = max(1, int(pixels_per_tick))

    def ticks_for(self, amount_pixels: int) -> int:
        return max(1, math.ceil(int(amount_pixels) / self.pixels_per_tick))

    def scroll_down(self, amount_pixels: int) -> None:
        if not self._focused and self._focus_point is not None:
            self._mouse.position = self._focus_point
            self._focused = True
        self._mouse.scroll(0, -self.ticks_for(amount_pixels))
