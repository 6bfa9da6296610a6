"""Координация скролл-захвата: запуск потока, прогресс, сохранение результата."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from PySide6.QtCore import QObject, Signal, Slot

from .capture_ports import FrameSource, ScrollInput
from .frames import CaptureRect, CaptureResult
from .scroll_capture import ScrollCaptureThread
from .settings import CaptureSettings


class ScrollCaptureManager(QObject):
    """
    Координирует процесс скролл-захвата: от готовой области до сохранения итогового изображения.
    """
    # Захват начался
    capture_started = Signal(object)  # CaptureRect
    # Обновление прогресса (в процентах)
    progress_updated = Signal(int, str)  # percent, message
    # Захват и склейка успешно завершены
    capture_completed = Signal(object, str)  # CaptureResult, путь к файлу или ""
    # Нет доступа к записи экрана, пользователю нужно выдать разрешение
    permission_required = Signal(str)
    capture_cancelled = Signal()
    # Произошла ошибка на одном из этапов
    error_occurred = Signal(str)

    def __init__(
        self,
        cfg: dict,
        parent=None,
        *,
        source: Optional[FrameSource] = None,
        scroller: Optional[ScrollInput] = None,
        output_path: Optional[Path] = None,
    ):
        super().__init__(parent)
        self.cfg = cfg
        self.settings = CaptureSettings.from_config(cfg)
        self.output_path = Path(output_path) if output_path else None
        self._source = source
        self._scroller = scroller
        self.capture_thread: Optional[ScrollCaptureThread] = None

    def is_running(self) -> bool:
        return self.capture_thread is not None and self.capture_thread.isRunning()

    @Slot(object)
    def start_capture(self, rect: CaptureRect):
        """Запускает скролл-захват заданной области."""
        if self.is_running():
            self.error_occurred.emit("Скролл-захват уже выполняется.")
            return

        self.capture_thread = ScrollCaptureThread(
            rect, self.settings, source=self._source, scroller=self._scroller
        )
        self.capture_thread.progress_updated.connect(self._on_capture_progress)
        self.capture_thread.capture_finished.connect(self._on_capture_finished)
        self.capture_thread.permission_denied.connect(self.permission_required)
        self.capture_thread.capture_cancelled.connect(self.capture_cancelled)
        self.capture_thread.error_occurred.connect(self.error_occurred)
        # Очищаем ссылку на поток после его завершения
        self.capture_thread.finished.connect(self._on_thread_finished)

        self.capture_started.emit(rect)
        self.capture_thread.start()

    @Slot()
    def cancel(self):
        """Прерывает захват после текущего снимка. Прокрутка не откатывается."""
        if self.is_running():
            self.capture_thread.requestInterruption()

    @Slot(int, int, str)
    def _on_capture_progress(self, current: int, total: int, message: str):
        """Ретранслирует прогресс захвата в процентах."""
        percent = int((current / total) * 100) if total > 0 else 100
        self.progress_updated.emit(percent, message)

    def _deliver(self, result: CaptureResult) -> str:
        saved = ""
        if self.output_path is not None or self.cfg.get("save_to_file", True):
            from logic import save_capture, store_filename_counter

            try:
                saved = str(save_capture(result, self.cfg, self.output_path))
                if self.output_path is None:
                    # cfg может содержать разовые параметры командной строки
                    store_filename_counter(self.cfg["filename_counter"])
            except OSError as exc:
                logging.exception("Ошибка сохранения скролл-захвата: %s", exc)
                self.error_occurred.emit(f"Не удалось сохранить изображение: {exc}")

        if self.cfg.get("copy_to_clipboard", True):
            from clipboard_utils import copy_frame_to_clipboard

            try:
                copy_frame_to_clipboard(result.image)
            except Exception as exc:  # noqa: BLE001
                logging.exception("Ошибка копирования в буфер обмена: %s", exc)
                self.error_occurred.emit(f"Не удалось скопировать в буфер обмена: {exc}")
        return saved

    @Slot(object)
    def _on_capture_finished(self, result: CaptureResult):
        """
        Обработчик завершения захвата. Передаёт результат в файл и буфер обмена.
        """
        if result.stitched:
            message = f"Склейка завершена: {result.frame_count} кадров, {result.image.width}x{result.image.height}."
        else:
            message = "Содержимое не прокручивается, сохранён одиночный кадр."
        self.progress_updated.emit(100, message)

        saved = self._deliver(result)
        self.capture_completed.emit(result, saved)

    @Slot()
    def _on_thread_finished(self):
        """Очистка после завершения потока захвата."""
        self.capture_thread = None
