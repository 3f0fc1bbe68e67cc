import threading
import time


class ReportingState:
    """
    Shared state between the frame driver and the reporting web server.

    The driver writes after every pass; API handlers only read copies.
    """

    def __init__(self):
        self.frame = None
        self.frame_lock = threading.Lock()
        self.report = None
        self.report_lock = threading.Lock()
        self.stats_lock = threading.Lock()
        self.system_stats = {
            "fps": 0,
            "start_time": time.time(),
            "last_frame_ts": None,
            "detection_count": 0,
        }

    def set_frame(self, frame):
        """Update the current annotated frame (None clears it)."""
        with self.frame_lock:
            self.frame = None if frame is None else frame.copy()
        if frame is not None:
            with self.stats_lock:
                self.system_stats["last_frame_ts"] = time.time()

    def get_frame(self):
        """Get the current annotated frame."""
        with self.frame_lock:
            if self.frame is None:
                return None
            return self.frame.copy()

    def set_report(self, report):
        with self.report_lock:
            self.report = report

    def get_report_dict(self):
        """Return the latest presence report as a dict, or None."""
        with self.report_lock:
            if self.report is None:
                return None
            return self.report.to_dict()

    def update_system_stats(self, stats):
        with self.stats_lock:
            self.system_stats.update(stats)

    def get_system_stats_copy(self):
        """Return a shallow copy of current system stats."""
        with self.stats_lock:
            return dict(self.system_stats)
