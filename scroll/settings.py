"""Параметры скролл-захвата."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields
from typing import Mapping

from .frames import CaptureRect


@dataclass(frozen=True)
class CaptureSettings:
    max_frames: int = 20
    scroll_fraction: float = 0.8
    frame_delay: float = 0.5
    duplicate_strip_height: int = 10
    overlap_confidence: float = 0.88
    overlap_sample_width: int = 256
    overlap_probe_height: int = 64
    overlap_min_probe_height: int = 16
    overlap_stride: int = 2
    scroll_pixels_per_tick: int = 40

    @classmethod
    def from_config(cls, cfg: Mapping) -> "CaptureSettings":
        """Берёт известные ключи из конфига и приводит их к допустимым значениям."""
        defaults = asdict(cls())
        values = {}
        for f in fields(cls):
            raw = cfg.get(f.name, defaults[f.name])
            if raw is None:
                raw = defaults[f.name]
            try:
                values[f.name] = type(defaults[f.name])(raw)
            except (TypeError, ValueError):
                logging.warning("Некорректное значение %s=%r в конфиге, используется %r", f.name, raw, defaults[f.name])
                values[f.name] = defaults[f.name]

        values["max_frames"] = max(1, values["max_frames"])
        fraction = values["scroll_fraction"]
        values["scroll_fraction"] = fraction if 0.0 < fraction <= 1.0 else defaults["scroll_fraction"]
        values["frame_delay"] = max(0.0, values["frame_delay"])
        values["duplicate_strip_height"] = max(1, values["duplicate_strip_height"])
        values["overlap_sample_width"] = max(1, values["overlap_sample_width"])
        values["overlap_min_probe_height"] = max(1, values["overlap_min_probe_height"])
        values["overlap_probe_height"] = max(values["overlap_min_probe_height"], values["overlap_probe_height"])
        values["overlap_stride"] = max(1, values["overlap_stride"])
        values["scroll_pixels_per_tick"] = max(1, values["scroll_pixels_per_tick"])
        return cls(**values)

    def scroll_amount(self, rect: CaptureRect) -> int:
        return max(1, int(rect.height * self.scroll_fraction))

    def overlap_options(self) -> dict:
        return {
            "sample_width": self.overlap_sample_width,
            "probe_height": self.overlap_probe_height,
            "min_probe_height": self.overlap_min_probe_height,
            "stride": self.overlap_stride,
            "confidence": self.overlap_confidence,
        }
