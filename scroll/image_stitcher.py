"""Сборка длинного изображения из серии кадров."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

import cv2
import numpy as np

from .frames import Frame
from .overlap import NO_OVERLAP, OverlapResult, find_overlap
from .settings import CaptureSettings

# Предел стороны холста: дальше начинаются переполнения в кодеках и Qt
MAX_CANVAS_SIDE = 1 << 20


@dataclass(frozen=True)
class StitchPlan:
    """Смещения кадров от верха холста и итоговый размер."""

    offsets: Tuple[int, ...]
    overlaps: Tuple[int, ...]
    width: int
    height: int


class ImageStitcher:
    """Склеивает кадры, убирая дублирующийся overlap.

    Зоны перекрытия не смешиваются: кадры рисуются по порядку, и более
    поздний кадр перекрывает строки предыдущего.
    """

    def __init__(self, frames: Iterable[Frame], settings: Optional[CaptureSettings] = None):
        self.frames = list(frames)
        self.settings = settings or CaptureSettings()

    def _find_overlap(self, top: Frame, bottom: Frame) -> OverlapResult:
        try:
            return find_overlap(top, bottom, **self.settings.overlap_options())
        except cv2.error as exc:
            logging.exception("Ошибка поиска перекрытия кадров %d/%d: %s", top.index, bottom.index, exc)
            return NO_OVERLAP

    @staticmethod
    def clamp_overlap(rows: int, top_height: int, bottom_height: int) -> int:
        upper = max(0, min(top_height, bottom_height) - 1)
        return max(0, min(int(rows), upper))

    def plan(self) -> StitchPlan:
        if not self.frames:
            raise ValueError("Нет кадров для склейки")

        offsets = [0]
        overlaps = []
        for idx in range(1, len(self.frames)):
            prev, frame = self.frames[idx - 1], self.frames[idx]
            result = self._find_overlap(prev, frame)
            if not result.found:
                # Кадры встанут встык, возможен видимый повтор содержимого
                logging.debug("Кадры %d и %d без перекрытия (score %.3f)", idx - 1, idx, result.confidence)
            overlap = self.clamp_overlap(result.rows, prev.height, frame.height)
            overlaps.append(overlap)
            offsets.append(offsets[-1] + prev.height - overlap)

        width = max(f.width for f in self.frames)
        height = offsets[-1] + self.frames[-1].height
        return StitchPlan(tuple(offsets), tuple(overlaps), width, height)

    def compose(self, plan: StitchPlan) -> Optional[Frame]:
        """Рисует кадры на холсте по плану. ``None`` — холст не создан."""
        mode = self.frames[0].mode or "RGBA"
        channels = 4 if mode == "RGBA" else 3
        if not (0 < plan.width <= MAX_CANVAS_SIDE and 0 < plan.height <= MAX_CANVAS_SIDE):
            logging.error("Недопустимый размер холста: %dx%d", plan.width, plan.height)
            return None
        try:
            canvas = np.zeros((plan.height, plan.width, channels), dtype=np.uint8)
        except MemoryError:
            logging.exception("Не хватает памяти на холст %dx%d", plan.width, plan.height)
            return None

        # Первый кадр рисуется первым, поздние кадры выигрывают в зоне перекрытия
        for frame, top in zip(self.frames, plan.offsets):
            canvas[top : top + frame.height, : frame.width] = frame.converted(mode)

        return Frame(canvas, index=0, mode=mode)

    def stitch(self) -> Optional[Frame]:
        if not self.frames:
            raise ValueError("Нет кадров для склейки")
        if len(self.frames) == 1:
            return self.frames[0]
        return self.compose(self.plan())
