"""
File Data Reader

Simülatörün dosya çıktısını (<Label>.txt) okuyup store'a ekler.
Satır formatı:
    Patient ID: 1, Timestamp: 1700000000000, Label: Saturation, Data: 97.0
"""
import logging
import os
from dataclasses import dataclass
from typing import Optional, Tuple

from shared.errors import InvalidInput
from shared.record_store import DataStorage

logger = logging.getLogger(__name__)

FIELD_NAMES = ("Patient ID", "Timestamp", "Label", "Data")


@dataclass
class ReadSummary:
    files: int = 0
    records: int = 0
    skipped: int = 0


def parse_line(line: str) -> Optional[Tuple[int, float, str, int]]:
    """
    Parses one output line into (patient_id, value, label, timestamp).

    Returns None for blank lines. Raises ValueError for malformed ones.
    """
    line = line.strip()
    if not line:
        return None

    parts = [p.strip() for p in line.split(",")]
    if len(parts) != 4:
        raise ValueError(f"Expected 4 fields, got {len(parts)}")

    values = {}
    for part, expected in zip(parts, FIELD_NAMES):
        name, sep, value = part.partition(":")
        if not sep or name.strip() != expected:
            raise ValueError(f"Expected field '{expected}', got '{part}'")
        values[expected] = value.strip()

    patient_id = int(values["Patient ID"])
    timestamp = int(values["Timestamp"])
    value = float(values["Data"].rstrip("%"))
    return patient_id, value, values["Label"], timestamp


class FileDataReader:
    def __init__(self, directory: str):
        self.directory = directory

    def read_data(self, storage: DataStorage) -> ReadSummary:
        """
        Reads every .txt file in the directory into the store.

        Raises:
            NotADirectoryError: directory missing or not a directory.
        """
        if not os.path.isdir(self.directory):
            raise NotADirectoryError(f"Invalid data directory: {self.directory}")

        summary = ReadSummary()
        for name in sorted(os.listdir(self.directory)):
            if not name.endswith(".txt"):
                continue
            self._read_file(os.path.join(self.directory, name), storage, summary)
            summary.files += 1

        logger.info(
            "Read %d records from %d files in %s (%d skipped)",
            summary.records, summary.files, self.directory, summary.skipped,
        )
        return summary

    def _read_file(self, path: str, storage: DataStorage, summary: ReadSummary) -> None:
        # undecodable bytes become U+FFFD so the line fails parsing and is skipped
        with open(path, encoding="utf-8", errors="replace") as f:
            for line_no, line in enumerate(f, start=1):
                try:
                    parsed = parse_line(line)
                    if parsed is None:
                        continue
                    storage.add_patient_data(*parsed)
                    summary.records += 1
                except InvalidInput as e:
                    summary.skipped += 1
                    logger.warning("%s:%d rejected by store: %s", path, line_no, e)
                except ValueError as e:
                    summary.skipped += 1
                    logger.warning("%s:%d malformed line: %s", path, line_no, e)
