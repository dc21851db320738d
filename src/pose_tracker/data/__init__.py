"""Data I/O utilities."""

from .csv_writer import POSE_HEADER, CSVWriterThread

__all__ = ["CSVWriterThread", "POSE_HEADER"]
