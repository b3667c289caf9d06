import threading
import time

import cv2
import numpy as np


class PreviewState:
    """
    Shares the latest annotated preview frame between the detection loop
    and the web server thread.
    """

    def __init__(self):
        self._frame = None
        self._frame_lock = threading.Lock()
        self._notification_visible = False
        self.system_stats = {
            "start_time": time.time(),
            "last_frame_ts": None,
        }

    def set_frame(self, frame: np.ndarray):
        """Update the current annotated frame."""
        with self._frame_lock:
            if frame is not None:
                self._frame = frame.copy()
                self.system_stats["last_frame_ts"] = time.time()

    def get_frame(self):
        """Get the current annotated frame."""
        with self._frame_lock:
            if self._frame is None:
                return None
            return self._frame.copy()

    def get_jpeg(self, quality: int = 80):
        frame = self.get_frame()
        if frame is None:
            return None
        ok, buf = cv2.imencode(".jpg", frame, [int(cv2.IMWRITE_JPEG_QUALITY), quality])
        if not ok:
            return None
        return buf.tobytes()

    def set_notification_visible(self, visible: bool):
        self._notification_visible = bool(visible)

    @property
    def notification_visible(self) -> bool:
        return self._notification_visible

    def clear(self):
        with self._frame_lock:
            self._frame = None

    def get_system_stats_copy(self):
        """Return a shallow copy of current system stats."""
        return dict(self.system_stats)
