"""Проверка, что скролл упёрся в конец содержимого."""

from __future__ import annotations

from typing import Optional

import cv2
import numpy as np

from .frames import Frame

DUPLICATE_STRIP_HEIGHT = 10


def _middle_strip(frame: Frame, strip_height: int) -> np.ndarray:
    start = frame.height // 2
    stop = min(frame.height, start + max(1, int(strip_height)))
    return frame.pixels[start:stop]


def frames_duplicate(
    prev: Optional[Frame], current: Optional[Frame], strip_height: int = DUPLICATE_STRIP_HEIGHT
) -> bool:
    """Сравнивает полосу из середины кадров побайтно после PNG-кодирования.

    Только точное совпадение: лишний кадр ограничен лимитом кадров, а ранняя
    остановка обрезает результат.
    """
    if prev is None or current is None:
        return False
    if prev.pixels.shape != current.pixels.shape:
        return False
    if prev.height == 0 or prev.width == 0:
        return False

    ok_prev, png_prev = cv2.imencode(".png", _middle_strip(prev, strip_height))
    ok_cur, png_cur = cv2.imencode(".png", _middle_strip(current, strip_height))
    if not (ok_prev and ok_cur):
        return False
    return png_prev.tobytes() == png_cur.tobytes()
