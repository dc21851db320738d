"""
Utility functions for asynchronous CSV writing of tracked poses.
"""

import csv
import logging
import queue
import threading

logger = logging.getLogger(__name__)

POSE_HEADER = ["FrameID", "PartID", "X", "Y", "Z", "RX", "RY", "RZ"]


class CSVWriterThread(threading.Thread):
    """
    Asynchronous CSV writer for pose trajectories.

    This thread handles CSV writing in the background so file I/O does not
    block the tracking loop. Rows are buffered in a queue and flushed before
    the file is closed.

    The pose CSV format includes:
    - FrameID: Depth frame number (0-based, in input order)
    - PartID: Object part index
    - X, Y, Z: Mean part position in the camera frame (metres)
    - RX, RY, RZ: Mean part orientation as a rotation vector (radians)
    """

    def __init__(self, path: str, header=None):
        """
        Initialize CSV writer thread.

        Args:
            path (str): Output CSV file path
            header (list, optional): Column names for CSV header
        """
        super().__init__(daemon=True)
        self.csv_path = path
        self.header = header or []
        self.queue = queue.Queue()  # Thread-safe queue for data buffering
        self._stop_requested = False  # Shutdown flag

        # Open file and write header immediately
        self.f = open(self.csv_path, "w", newline="")
        self.writer = csv.writer(self.f)
        if self.header:
            self.writer.writerow(self.header)

    def run(self) -> None:
        """
        Main thread loop for processing queued data.

        Continuously processes queued data rows until stop signal is received
        and all remaining data is flushed.
        """
        try:
            while not self._stop_requested or not self.queue.empty():
                try:
                    # Wait for data with timeout to allow periodic stop checks
                    row = self.queue.get(timeout=0.3)
                    self.writer.writerow(row)
                    self.queue.task_done()
                except queue.Empty:
                    continue  # Timeout occurred, check stop condition
        finally:
            # Ensure all data is written before closing
            self.f.flush()
            self.f.close()
            logger.debug("CSV writer closed %s", self.csv_path)

    def enqueue(self, row) -> None:
        """
        Add a data row to the write queue.

        Args:
            row (list): Data row to write to CSV
        """
        self.queue.put(row)

    def enqueue_poses(self, frame_id: int, poses) -> None:
        """
        Queue one row per object part.

        Args:
            frame_id (int): Frame number
            poses (list): (position, rotation_vector) pairs, one per part
        """
        for part_id, (position, rotvec) in enumerate(poses):
            self.enqueue(
                [int(frame_id), part_id]
                + [float(v) for v in position]
                + [float(v) for v in rotvec]
            )

    def stop(self) -> None:
        """Signal the thread to stop processing and shutdown gracefully."""
        self._stop_requested = True
