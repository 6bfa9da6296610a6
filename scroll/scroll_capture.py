"""Поток автоматического скролл-захвата области экрана."""

from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtCore import QThread, Signal

from .capture_loop import ScrollCaptureLoop
from .capture_ports import FrameSource, MssFrameSource, PynputScrollInput, ScrollInput
from .errors import CaptureCancelled, CaptureError, CapturePermissionError
from .frames import CaptureRect
from .settings import CaptureSettings


class ScrollCaptureThread(QThread):
    """Фоновый захват длинной области через автоматический скролл."""

    progress_updated = Signal(int, int, str)
    capture_finished = Signal(object)  # CaptureResult
    permission_denied = Signal(str)
    capture_cancelled = Signal()
    error_occurred = Signal(str)

    def __init__(
        self,
        rect: CaptureRect,
        settings: Optional[CaptureSettings] = None,
        *,
        source: Optional[FrameSource] = None,
        scroller: Optional[ScrollInput] = None,
        parent=None,
    ) -> None:
        super().__init__(parent)
        self.rect = rect
        self.settings = settings or CaptureSettings()
        self._source = source
        self._scroller = scroller

    def _sleep(self, seconds: float) -> None:
        self.msleep(int(round(seconds * 1000)))

    def run(self) -> None:  # noqa: D401 - логика потока
        owned_source: Optional[MssFrameSource] = None
        try:
            source = self._source
            if source is None:
                source = owned_source = MssFrameSource()
            scroller = self._scroller
            if scroller is None:
                scroller = PynputScrollInput(self.rect, self.settings.scroll_pixels_per_tick)

            loop = ScrollCaptureLoop(
                source,
                scroller,
                self.settings,
                sleep=self._sleep,
                is_cancelled=self.isInterruptionRequested,
                progress=self.progress_updated.emit,
            )
            result = loop.run(self.rect)
        except CapturePermissionError as exc:
            self.permission_denied.emit(f"Нет доступа к записи экрана. Разрешите запись экрана в настройках системы. ({exc})")
        except CaptureCancelled:
            self.capture_cancelled.emit()
        except CaptureError as exc:
            self.error_occurred.emit(str(exc))
        except Exception as exc:  # noqa: BLE001
            logging.exception("Ошибка скролл-захвата: %s", exc)
            self.error_occurred.emit(f"Не удалось выполнить захват: {exc}")
        else:
            self.capture_finished.emit(result)
        finally:
            if owned_source is not None:
                owned_source.close()
