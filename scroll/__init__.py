"""Модули скролл-захвата для ScrollSnap."""

from .capture_loop import ScrollCaptureLoop
from .frames import CaptureRect, CaptureResult, Frame, StopReason
from .image_stitcher import ImageStitcher, StitchPlan
from .overlap import OverlapResult, find_overlap
from .settings import CaptureSettings
from .termination import frames_duplicate

__all__ = [
    "CaptureRect",
    "CaptureResult",
    "CaptureSettings",
    "Frame",
    "ImageStitcher",
    "OverlapResult",
    "ScrollCaptureLoop",
    "StitchPlan",
    "StopReason",
    "find_overlap",
    "frames_duplicate",
]
