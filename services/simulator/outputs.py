"""
Simulator output strategies.

Her strateji output(patient_id, timestamp, label, data) çağrısını alır.
"""
import logging
import os
import threading

import requests

logger = logging.getLogger(__name__)


def format_line(patient_id: int, timestamp: int, label: str, data) -> str:
    return f"Patient ID: {patient_id}, Timestamp: {timestamp}, Label: {label}, Data: {data}"


class ConsoleOutputStrategy:
    def output(self, patient_id: int, timestamp: int, label: str, data) -> None:
        print(format_line(patient_id, timestamp, label, data))


class FileOutputStrategy:
    """Appends one line per reading to <base_directory>/<label>.txt"""

    def __init__(self, base_directory: str):
        self.base_directory = base_directory
        self._lock = threading.Lock()

    def path_for(self, label: str) -> str:
        return os.path.join(self.base_directory, f"{label}.txt")

    def output(self, patient_id: int, timestamp: int, label: str, data) -> None:
        with self._lock:
            os.makedirs(self.base_directory, exist_ok=True)
            with open(self.path_for(label), "a", encoding="utf-8") as f:
                f.write(format_line(patient_id, timestamp, label, data) + "\n")


class HttpOutputStrategy:
    """Posts each reading to the ingestion service."""

    def __init__(self, url: str, session: requests.Session = None, timeout: float = 2.0):
        self.url = url
        self.session = session or requests.Session()
        self.timeout = timeout
        self.sent = 0
        self.failed = 0

    def output(self, patient_id: int, timestamp: int, label: str, data) -> None:
        payload = {
            "patient_id": patient_id,
            "value": float(data),
            "record_type": label,
            "timestamp": timestamp,
        }
        try:
            resp = self.session.post(self.url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            self.failed += 1
            logger.warning("Connection Error: %s", e)
            return

        if resp.status_code == 200:
            self.sent += 1
            print(".", end="", flush=True)
        else:
            self.failed += 1
            print(f"X({resp.status_code})", end="", flush=True)
