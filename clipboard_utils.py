from __future__ import annotations

from io import BytesIO
import sys

from PIL import Image
from PySide6.QtCore import QByteArray, QMimeData
from PySide6.QtGui import QGuiApplication, QImage

from scroll.frames import Frame


WINDOWS_PNG_MIME_ALIASES = (
    "PNG",
    'application/x-qt-windows-mime;value="PNG"',
)


def frame_to_qimage(frame: Frame) -> QImage:
    """Return a deep-copied QImage for ``frame`` (RGB or RGBA)."""

    fmt = QImage.Format_RGBA8888 if frame.mode == "RGBA" else QImage.Format_RGB888
    data = frame.pixels.tobytes()
    bytes_per_line = frame.width * frame.channels
    qimg = QImage(data, frame.width, frame.height, bytes_per_line, fmt)
    # QImage references ``data`` until copied
    return qimg.copy()


def png_bytes(img: Image.Image) -> bytes:
    buffer = BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def copy_frame_to_clipboard(frame: Frame) -> QImage:
    """Put ``frame`` on the clipboard as image data plus ``image/png`` bytes."""

    qimg = frame_to_qimage(frame)
    png_qbytes = QByteArray(png_bytes(frame.to_image()))

    mime = QMimeData()
    mime.setImageData(qimg)
    mime.setData("image/png", png_qbytes)
    if sys.platform.startswith("win"):
        for alias in WINDOWS_PNG_MIME_ALIASES:  # pragma: no cover - platform specific
            mime.setData(alias, png_qbytes)

    QGuiApplication.clipboard().setMimeData(mime)
    return qimg
