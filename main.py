import argparse
import logging
import signal
import sys
from pathlib import Path

from PySide6.QtCore import QTimer
from PySide6.QtWidgets import QApplication

from logic import APP_NAME, load_config
from scroll.frames import CaptureRect
from scroll.scroll_capture_manager import ScrollCaptureManager

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_PERMISSION = 2
EXIT_CANCELLED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="scrollsnap", description="Скролл-захват области экрана в одно длинное изображение.")
    parser.add_argument("--region", help="Область захвата: left,top,width,height")
    parser.add_argument("--max-frames", type=int, help="Максимум кадров")
    parser.add_argument("--delay", type=float, help="Пауза после прокрутки, сек")
    parser.add_argument("--scroll-fraction", type=float, help="Шаг прокрутки в долях высоты области")
    parser.add_argument("--countdown", type=float, default=3.0, help="Задержка перед стартом, сек")
    parser.add_argument("--output", type=Path, help="Путь к итоговому файлу")
    parser.add_argument("--no-clipboard", action="store_true", help="Не копировать результат в буфер обмена")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def apply_args(cfg: dict, args: argparse.Namespace) -> dict:
    cfg = dict(cfg)
    if args.max_frames is not None:
        cfg["max_frames"] = args.max_frames
    if args.delay is not None:
        cfg["frame_delay"] = args.delay
    if args.scroll_fraction is not None:
        cfg["scroll_fraction"] = args.scroll_fraction
    if args.no_clipboard:
        cfg["copy_to_clipboard"] = False
    return cfg


def resolve_region(cfg: dict, args: argparse.Namespace) -> CaptureRect:
    if args.region:
        return CaptureRect.parse(args.region)
    region = cfg.get("region")
    if region:
        return CaptureRect(*(int(v) for v in region))
    raise ValueError("Область захвата не задана: используйте --region или ключ region в конфиге")


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    cfg = apply_args(load_config(), args)
    try:
        rect = resolve_region(cfg, args)
    except ValueError as exc:
        logging.error("%s", exc)
        return EXIT_ERROR

    app = QApplication.instance() or QApplication(sys.argv[:1])
    app.setApplicationName(APP_NAME)

    manager = ScrollCaptureManager(cfg, output_path=args.output)
    status = {"code": EXIT_OK}

    def finish(code: int) -> None:
        status["code"] = code
        app.quit()

    def on_completed(result, saved: str) -> None:
        logging.info("Готово: %dx%d, кадров: %d", result.image.width, result.image.height, result.frame_count)
        if saved:
            print(saved)

    def on_error(message: str) -> None:
        logging.error("%s", message)
        status["code"] = EXIT_ERROR

    def on_permission(message: str) -> None:
        logging.error("%s", message)
        status["code"] = EXIT_PERMISSION

    def on_cancelled() -> None:
        logging.info("Захват отменён")
        status["code"] = EXIT_CANCELLED

    def on_thread_done() -> None:
        QTimer.singleShot(0, lambda: finish(status["code"]))

    manager.progress_updated.connect(lambda percent, message: logging.info("[%3d%%] %s", percent, message))
    manager.capture_completed.connect(on_completed)
    manager.error_occurred.connect(on_error)
    manager.permission_required.connect(on_permission)
    manager.capture_cancelled.connect(on_cancelled)

    def on_started(_rect) -> None:
        # capture_started приходит до thread.start(), завершение не пропустим
        manager.capture_thread.finished.connect(on_thread_done)

    manager.capture_started.connect(on_started)

    def start() -> None:
        manager.start_capture(rect)
        if manager.capture_thread is None:
            finish(EXIT_ERROR)

    def on_interrupt(*_) -> None:
        if manager.is_running():
            manager.cancel()
        else:
            finish(EXIT_CANCELLED)

    # Ctrl+C прерывает захват; таймер даёт интерпретатору обработать сигнал
    signal.signal(signal.SIGINT, on_interrupt)
    heartbeat = QTimer()
    heartbeat.timeout.connect(lambda: None)
    heartbeat.start(200)

    logging.info("Захват %s начнётся через %.1f с, переключитесь на нужное окно", rect.as_tuple(), args.countdown)
    QTimer.singleShot(int(max(0.0, args.countdown) * 1000), start)
    app.exec()
    return status["code"]


if __name__ == "__main__":
    sys.exit(main())
