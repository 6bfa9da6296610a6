"""Synthetic scrolling content for stitching tests."""
from __future__ import annotations

import numpy as np

from scroll.frames import Frame


def striped_content(height: int, width: int = 120, seed: int = 7) -> np.ndarray:
    """Rows of distinct random grey levels, constant across each row."""

    rng = np.random.default_rng(seed)
    levels = rng.integers(0, 256, size=height, dtype=np.uint8)
    rows = np.repeat(levels[:, None], width, axis=1)
    return np.repeat(rows[:, :, None], 3, axis=2)


def chirp_content(height: int, width: int = 120) -> np.ndarray:
    """Smooth, non-repeating luminance: a chirp whose frequency grows with the row."""

    t = np.arange(height, dtype=np.float64)
    levels = np.clip(np.round(128 + 100 * np.sin(0.0006 * t * t + 0.3)), 0, 255).astype(np.uint8)
    rows = np.repeat(levels[:, None], width, axis=1)
    return np.repeat(rows[:, :, None], 3, axis=2)


def frame(pixels: np.ndarray, index: int = 0) -> Frame:
    return Frame.from_array(pixels, index=index)


def window(content: np.ndarray, start: int, height: int, index: int = 0) -> Frame:
    return frame(content[start : start + height], index)
