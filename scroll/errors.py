"""Ошибки скролл-захвата."""

from __future__ import annotations


class CaptureError(RuntimeError):
    """Базовая ошибка захвата."""


class CapturePermissionError(CaptureError):
    """Нет доступа к записи экрана. Повторять бессмысленно."""


class TransientCaptureError(CaptureError):
    """Кадр не снят, но уже собранные кадры можно использовать."""


class NoFramesCaptured(CaptureError):
    """Не удалось снять ни одного кадра."""


class CaptureCancelled(CaptureError):
    """Захват отменён пользователем."""


class StitchAllocationError(CaptureError):
    """Не удалось выделить холст для склейки."""
