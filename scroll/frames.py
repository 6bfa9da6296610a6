"""Кадры, область захвата и результат скролл-захвата."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Tuple

import cv2
import numpy as np
from PIL import Image

_CHANNELS = {"RGB": 3, "RGBA": 4}


@dataclass(frozen=True)
class CaptureRect:
    """Прямоугольник захвата в физических пикселях экрана."""

    left: int
    top: int
    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Пустая область захвата: {self.width}x{self.height}")

    @classmethod
    def parse(cls, text: str) -> "CaptureRect":
        """Разбирает строку вида ``"left,top,width,height"``."""
        parts = [p.strip() for p in str(text).split(",") if p.strip()]
        if len(parts) != 4:
            raise ValueError(f"Ожидалось четыре числа, получено: {text!r}")
        left, top, width, height = (int(float(p)) for p in parts)
        return cls(left, top, width, height)

    @property
    def center(self) -> Tuple[int, int]:
        return self.left + self.width // 2, self.top + self.height // 2

    def as_monitor(self) -> dict:
        return {"left": int(self.left), "top": int(self.top), "width": int(self.width), "height": int(self.height)}

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return self.left, self.top, self.width, self.height


@dataclass(frozen=True)
class Frame:
    """Неизменяемый кадр: массив ``(h, w, c)`` uint8 и номер в серии."""

    pixels: np.ndarray
    index: int = 0
    mode: str = "RGBA"

    def __post_init__(self) -> None:
        if self.mode not in _CHANNELS:
            raise ValueError(f"Неподдерживаемый формат кадра: {self.mode}")
        arr = self.pixels
        if arr.dtype != np.uint8 or arr.ndim != 3 or arr.shape[2] != _CHANNELS[self.mode]:
            raise ValueError(f"Кадр {self.mode} не может иметь форму {arr.shape} ({arr.dtype})")
        arr.setflags(write=False)

    @classmethod
    def from_array(cls, pixels: np.ndarray, index: int = 0, mode: str = "") -> "Frame":
        """Копирует массив и создаёт кадр. Формат по умолчанию берётся из числа каналов."""
        arr = np.array(pixels, dtype=np.uint8, copy=True)
        if not mode:
            mode = "RGBA" if arr.ndim == 3 and arr.shape[2] == 4 else "RGB"
        return cls(np.ascontiguousarray(arr), index=index, mode=mode)

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def channels(self) -> int:
        return int(self.pixels.shape[2])

    def converted(self, mode: str) -> np.ndarray:
        """Пиксели в нужном формате (без изменения самого кадра)."""
        if mode == self.mode:
            return self.pixels
        if mode == "RGB":
            return cv2.cvtColor(self.pixels, cv2.COLOR_RGBA2RGB)
        if mode == "RGBA":
            return cv2.cvtColor(self.pixels, cv2.COLOR_RGB2RGBA)
        raise ValueError(f"Неподдерживаемый формат кадра: {mode}")

    def to_image(self) -> Image.Image:
        return Image.fromarray(np.array(self.pixels))


class StopReason(enum.Enum):
    END_REACHED = "end_reached"
    MAX_FRAMES = "max_frames"
    CAPTURE_FAILED = "capture_failed"


@dataclass(frozen=True)
class CaptureResult:
    """Итог скролл-захвата, который получает вызывающая сторона."""

    image: Frame
    rect: CaptureRect
    frame_count: int
    stitched: bool
    stop_reason: StopReason
    timestamp: datetime = field(default_factory=datetime.now)
