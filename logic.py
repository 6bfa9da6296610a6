import json
import re
from datetime import datetime
from pathlib import Path
from typing import Optional

from scroll.frames import CaptureResult

APP_NAME = "ScrollSnap"
APP_VERSION = "1.0.0"
CONFIG_PATH = Path.home() / ".scrollsnap_config.json"

DEFAULT_CONFIG = {
    "max_frames": 20,
    "scroll_fraction": 0.8,
    "frame_delay": 0.5,
    "duplicate_strip_height": 10,
    "overlap_confidence": 0.88,
    "overlap_sample_width": 256,
    "overlap_probe_height": 64,
    "overlap_min_probe_height": 16,
    "overlap_stride": 2,
    "scroll_pixels_per_tick": 40,
    "copy_to_clipboard": True,
    "save_to_file": True,
    "save_directory": str(Path.home() / "Pictures"),
    "filename_pattern": "ScrollSnap {date} at {time}",
    "filename_counter": 0,
    "image_format": "png",
    "jpeg_quality": 90,
    "region": None,
}

# формат -> (имя для Pillow, расширение)
IMAGE_FORMATS = {
    "png": ("PNG", ".png"),
    "jpeg": ("JPEG", ".jpg"),
    "jpg": ("JPEG", ".jpg"),
    "tiff": ("TIFF", ".tiff"),
}

_INVALID_FILENAME_CHARS = re.compile(r'[/\\:*?"<>|]')


def load_config() -> dict:
    cfg = DEFAULT_CONFIG.copy()
    if CONFIG_PATH.exists():
        try:
            data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
            if isinstance(data, dict):
                cfg.update({k: v for k, v in data.items() if k in DEFAULT_CONFIG})
        except (OSError, ValueError):
            pass
    return cfg


def save_config(cfg: dict) -> None:
    data = DEFAULT_CONFIG.copy()
    data.update({k: v for k, v in cfg.items() if k in DEFAULT_CONFIG})
    CONFIG_PATH.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")


def store_filename_counter(counter: int) -> None:
    """Persist only ``filename_counter``; other keys keep their on-disk values."""

    stored = load_config()
    stored["filename_counter"] = int(counter)
    save_config(stored)


def generate_filename(pattern: str, when: datetime, counter: int, capture_type: str = "Scrolling") -> str:
    """Expand ``{date}``, ``{time}``, ``{counter}`` and ``{type}`` in ``pattern``."""

    name = (
        pattern.replace("{date}", when.strftime("%Y-%m-%d"))
        .replace("{time}", when.strftime("%H.%M.%S"))
        .replace("{counter}", f"{counter:04d}")
        .replace("{type}", capture_type)
    )
    return _INVALID_FILENAME_CHARS.sub("_", name)


def _resolve_format(name: str) -> tuple:
    return IMAGE_FORMATS.get(str(name).lower(), IMAGE_FORMATS["png"])


def save_capture(result: CaptureResult, cfg: dict, target: Optional[Path] = None) -> Path:
    """Write the captured image to disk and return its path.

    Without ``target`` the file goes to ``save_directory`` under a name built
    from ``filename_pattern``; ``cfg["filename_counter"]`` is advanced in place.
    """

    if target is not None:
        target = Path(target)
        suffix = target.suffix.lstrip(".").lower()
        if suffix in IMAGE_FORMATS:
            fmt, _ = IMAGE_FORMATS[suffix]
        else:
            fmt, ext = _resolve_format(cfg.get("image_format", "png"))
            target = target.with_name(target.name + ext) if not suffix else target.with_suffix(ext)
    else:
        fmt, ext = _resolve_format(cfg.get("image_format", "png"))
        directory = Path(cfg.get("save_directory") or DEFAULT_CONFIG["save_directory"]).expanduser()
        counter = int(cfg.get("filename_counter", 0)) + 1
        name = generate_filename(cfg.get("filename_pattern") or DEFAULT_CONFIG["filename_pattern"], result.timestamp, counter)
        target = directory / f"{name}{ext}"
        n = 2
        while target.exists():
            target = directory / f"{name} ({n}){ext}"
            n += 1
        cfg["filename_counter"] = counter

    target.parent.mkdir(parents=True, exist_ok=True)
    img = result.image.to_image()
    if fmt == "JPEG":
        img.convert("RGB").save(target, format="JPEG", quality=int(cfg.get("jpeg_quality", 90)))
    elif fmt == "PNG":
        img.save(target, format="PNG", optimize=True)
    else:
        img.save(target, format=fmt)
    return target
