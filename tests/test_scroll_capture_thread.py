from __future__ import annotations

import json
import os
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import patch

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtWidgets import QApplication

import logic
from logic import DEFAULT_CONFIG
from main import apply_args, build_parser
from scroll.errors import CapturePermissionError
from scroll.frames import CaptureRect
from scroll.scroll_capture import ScrollCaptureThread
from scroll.scroll_capture_manager import ScrollCaptureManager
from scroll.settings import CaptureSettings
from synthetic import striped_content, window

RECT = CaptureRect(0, 0, 120, 100)


class _ListSource:
    def __init__(self, items):
        self.items = list(items)
        self.calls = 0

    def capture(self, rect, index):
        item = self.items[min(self.calls, len(self.items) - 1)]
        self.calls += 1
        if isinstance(item, Exception):
            raise item
        return item


class _NullScroller:
    def __init__(self):
        self.calls = 0

    def scroll_down(self, amount_pixels):
        self.calls += 1


def _overlapping_frames():
    content = striped_content(220)
    return [window(content, 0, 100, 0), window(content, 60, 100, 1), window(content, 60, 100, 2)]


class ScrollCaptureThreadTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls._app = QApplication.instance() or QApplication([])

    def _run(self, thread: ScrollCaptureThread) -> dict:
        events = {"finished": [], "permission": [], "errors": [], "cancelled": 0, "progress": []}
        thread.capture_finished.connect(lambda result: events["finished"].append(result))
        thread.permission_denied.connect(lambda message: events["permission"].append(message))
        thread.error_occurred.connect(lambda message: events["errors"].append(message))
        thread.progress_updated.connect(lambda *args: events["progress"].append(args))

        def _cancelled():
            events["cancelled"] += 1

        thread.capture_cancelled.connect(_cancelled)
        # run() в текущем потоке: сигналы доставляются синхронно
        thread.run()
        return events

    def test_emits_stitched_result(self) -> None:
        scroller = _NullScroller()
        thread = ScrollCaptureThread(
            RECT, CaptureSettings(frame_delay=0), source=_ListSource(_overlapping_frames()), scroller=scroller
        )

        events = self._run(thread)

        self.assertEqual(len(events["finished"]), 1)
        result = events["finished"][0]
        self.assertTrue(result.stitched)
        self.assertEqual(result.frame_count, 2)
        self.assertEqual(result.image.height, 160)
        self.assertEqual(scroller.calls, 2)
        self.assertEqual(events["progress"][-1][:2], (2, 20))

    def test_permission_denied_signal(self) -> None:
        source = _ListSource([_overlapping_frames()[0], CapturePermissionError("denied")])
        scroller = _NullScroller()
        thread = ScrollCaptureThread(RECT, CaptureSettings(frame_delay=0), source=source, scroller=scroller)

        events = self._run(thread)

        self.assertEqual(events["finished"], [])
        self.assertEqual(len(events["permission"]), 1)
        self.assertEqual(scroller.calls, 1)

    def test_interruption_reports_cancel(self) -> None:
        thread = ScrollCaptureThread(
            RECT, CaptureSettings(frame_delay=0), source=_ListSource(_overlapping_frames()), scroller=_NullScroller()
        )
        with patch.object(ScrollCaptureThread, "isInterruptionRequested", return_value=True):
            events = self._run(thread)
        self.assertEqual(events["cancelled"], 1)
        self.assertEqual(events["finished"], [])


class ScrollCaptureManagerTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls._app = QApplication.instance() or QApplication([])

    def setUp(self) -> None:
        self._tmp = TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        patcher = patch.object(logic, "CONFIG_PATH", Path(self._tmp.name) / "config.json")
        patcher.start()
        self.addCleanup(patcher.stop)

    def _finished_result(self):
        thread = ScrollCaptureThread(
            RECT, CaptureSettings(frame_delay=0), source=_ListSource(_overlapping_frames()), scroller=_NullScroller()
        )
        results = []
        thread.capture_finished.connect(lambda result: results.append(result))
        thread.run()
        return results[0]

    def test_completed_result_is_saved_and_reported(self) -> None:
        cfg = dict(
            DEFAULT_CONFIG,
            save_directory=self._tmp.name,
            filename_pattern="scroll {counter}",
            copy_to_clipboard=False,
        )
        manager = ScrollCaptureManager(cfg)
        completed = []
        progress = []
        manager.capture_completed.connect(lambda result, path: completed.append((result, path)))
        manager.progress_updated.connect(lambda percent, message: progress.append(percent))

        manager._on_capture_finished(self._finished_result())

        self.assertEqual(len(completed), 1)
        result, path = completed[0]
        self.assertEqual(Path(path).name, "scroll 0001.png")
        self.assertTrue(Path(path).exists())
        self.assertEqual(progress, [100])
        self.assertEqual(logic.load_config()["filename_counter"], 1)

    def test_clipboard_receives_image(self) -> None:
        cfg = dict(DEFAULT_CONFIG, save_to_file=False, copy_to_clipboard=True)
        manager = ScrollCaptureManager(cfg)
        completed = []
        manager.capture_completed.connect(lambda result, path: completed.append(path))

        with patch("clipboard_utils.copy_frame_to_clipboard") as copy:
            manager._on_capture_finished(self._finished_result())

        copy.assert_called_once()
        self.assertEqual(completed, [""])

    def test_one_off_overrides_are_not_written_back(self) -> None:
        logic.save_config(dict(DEFAULT_CONFIG, save_directory=self._tmp.name, filename_pattern="scroll {counter}"))
        args = build_parser().parse_args(["--region", "0,0,10,10", "--no-clipboard", "--max-frames", "3"])
        manager = ScrollCaptureManager(apply_args(logic.load_config(), args))

        saved = manager._deliver(self._finished_result())

        self.assertEqual(Path(saved).name, "scroll 0001.png")
        stored = json.loads(logic.CONFIG_PATH.read_text(encoding="utf-8"))
        self.assertIs(stored["copy_to_clipboard"], True)
        self.assertEqual(stored["max_frames"], DEFAULT_CONFIG["max_frames"])
        self.assertEqual(stored["filename_counter"], 1)

    def test_capture_started_precedes_thread_start(self) -> None:
        cfg = dict(DEFAULT_CONFIG, frame_delay=0, max_frames=2, save_to_file=False, copy_to_clipboard=False)
        manager = ScrollCaptureManager(cfg, source=_ListSource(_overlapping_frames()), scroller=_NullScroller())
        seen = []
        finished = []
        manager.capture_started.connect(
            lambda rect: seen.append(manager.capture_thread is not None and not manager.capture_thread.isRunning())
        )
        manager.capture_started.connect(
            lambda rect: manager.capture_thread.finished.connect(lambda: finished.append(True))
        )

        manager.start_capture(RECT)
        thread = manager.capture_thread
        self.assertTrue(thread.wait(5000))
        QApplication.processEvents()

        self.assertEqual(seen, [True])
        self.assertEqual(finished, [True])
        self.assertIsNone(manager.capture_thread)

    def test_progress_is_relayed_as_percent(self) -> None:
        manager = ScrollCaptureManager(dict(DEFAULT_CONFIG))
        seen = []
        manager.progress_updated.connect(lambda percent, message: seen.append((percent, message)))
        manager._on_capture_progress(5, 20, "Кадров собрано: 5")
        self.assertEqual(seen, [(25, "Кадров собрано: 5")])


if __name__ == "__main__":
    unittest.main()
