"""Поиск вертикального перекрытия двух соседних кадров.

Каждый кадр сводится к профилю яркости по строкам (одно число на строку),
после чего нижняя полоса профиля верхнего кадра ищется в нижнем кадре
нормированной кросс-корреляцией. Профиль не зависит от ширины кадра и
нечувствителен к общему сдвигу яркости, который дают сглаживание и
субпиксельный скролл.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Tuple

import cv2
import numpy as np

from .frames import Frame

SAMPLE_WIDTH = 256
PROBE_HEIGHT = 64
MIN_PROBE_HEIGHT = 16
SEARCH_STRIDE = 2
CONFIDENCE_FLOOR = 0.88


@dataclass(frozen=True)
class RowProfile:
    """Средняя яркость каждой строки кадра."""

    values: np.ndarray

    def __len__(self) -> int:
        return int(self.values.shape[0])

    def tail(self, length: int) -> np.ndarray:
        return self.values[len(self) - length :]

    def window(self, offset: int, length: int) -> np.ndarray:
        return self.values[offset : offset + length]


@dataclass(frozen=True)
class OverlapResult:
    rows: int
    confidence: float
    probe_height: int = 0

    @property
    def found(self) -> bool:
        return self.rows > 0


NO_OVERLAP = OverlapResult(0, 0.0, 0)


def row_profile(frame: Frame, sample_width: int = SAMPLE_WIDTH) -> RowProfile:
    pixels = frame.pixels
    if frame.height == 0 or frame.width == 0:
        return RowProfile(np.zeros(0, dtype=np.float64))
    # Качество ресэмплинга не важно, нужна только относительная яркость
    small = cv2.resize(pixels, (int(sample_width), frame.height), interpolation=cv2.INTER_NEAREST)
    code = cv2.COLOR_RGBA2GRAY if frame.channels == 4 else cv2.COLOR_RGB2GRAY
    gray = cv2.cvtColor(small, code)
    return RowProfile(gray.mean(axis=1, dtype=np.float64))


def ncc(a: np.ndarray, b: np.ndarray) -> float:
    """Коэффициент корреляции Пирсона двух рядов. Ряд без разброса даёт 0."""
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    if a.shape != b.shape or a.size == 0:
        return 0.0
    da = a - a.mean()
    db = b - b.mean()
    denom = math.sqrt(float(np.dot(da, da)) * float(np.dot(db, db)))
    if denom <= 0.0:
        return 0.0
    return float(np.dot(da, db)) / denom


def _best_offset(probe: np.ndarray, profile: RowProfile, stride: int) -> Tuple[int, float]:
    length = probe.shape[0]
    best_offset = 0
    best_score = -1.0
    for offset in range(0, len(profile) - length + 1, stride):
        score = ncc(probe, profile.window(offset, length))
        # строгое сравнение: при равенстве остаётся более ранний сдвиг
        if score > best_score:
            best_offset, best_score = offset, score
    return best_offset, best_score


def find_overlap(
    top: Frame,
    bottom: Frame,
    *,
    sample_width: int = SAMPLE_WIDTH,
    probe_height: int = PROBE_HEIGHT,
    min_probe_height: int = MIN_PROBE_HEIGHT,
    stride: int = SEARCH_STRIDE,
    confidence: float = CONFIDENCE_FLOOR,
) -> OverlapResult:
    """Сколько нижних строк ``top`` повторяются в начале ``bottom``.

    Если совпадение ниже порога уверенности, полоса-образец уменьшается вдвое
    (64 -> 32 -> 16), чтобы найти перекрытие короче образца. Ничего не нашли —
    перекрытие 0.
    """
    top_profile = row_profile(top, sample_width)
    bottom_profile = row_profile(bottom, sample_width)

    max_comparable = min(len(top_profile), len(bottom_profile)) - 1
    strip = min(int(probe_height), max_comparable)
    best_score = 0.0
    while strip >= min_probe_height:
        if len(bottom_profile) - strip < 0:
            break
        offset, score = _best_offset(top_profile.tail(strip), bottom_profile, max(1, int(stride)))
        if score >= confidence:
            logging.debug("Перекрытие %d строк (образец %d, score %.3f)", offset + strip, strip, score)
            return OverlapResult(offset + strip, score, strip)
        best_score = max(best_score, score)
        strip //= 2

    logging.debug("Перекрытие не найдено (лучший score %.3f)", best_score)
    return OverlapResult(0, best_score, 0)
