"""
Record Store

Hasta başına append-only ölçüm zaman serisi. Ingestion tarafı kayıt ekler,
alert servisi [start, end) aralığında sorgular.
"""
import logging
import threading
from typing import Dict, List, Optional

from shared.errors import InvalidInput
from shared.models import MeasurementRecord, RecordType

logger = logging.getLogger(__name__)


def parse_record_type(label) -> RecordType:
    """Returns the RecordType for a label, raising InvalidInput when unknown."""
    if isinstance(label, RecordType):
        return label
    try:
        return RecordType(str(label).strip())
    except ValueError:
        raise InvalidInput(f"Unknown record type: {label!r}") from None


class PatientTimeline:
    """Records of a single patient, kept in arrival order."""

    def __init__(self, patient_id: int):
        self.patient_id = patient_id
        self._records: List[MeasurementRecord] = []
        self._lock = threading.Lock()

    def append(self, record: MeasurementRecord) -> None:
        with self._lock:
            self._records.append(record)

    def snapshot(self) -> List[MeasurementRecord]:
        with self._lock:
            return list(self._records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class DataStorage:
    """
    In-memory record store.

    Her hasta kendi kilidine sahiptir; append ve sorgu yalnızca liste
    ekleme/kopyalama süresince kilidi tutar. Filtreleme kilit dışında yapılır.
    """

    def __init__(self):
        self._timelines: Dict[int, PatientTimeline] = {}
        self._registry_lock = threading.Lock()

    def add_patient_data(self, patient_id: int, value: float, record_type, timestamp: int) -> MeasurementRecord:
        """
        Validates the raw tuple and appends it to the patient's timeline.

        Args:
            patient_id: Numeric patient identifier.
            value: Measurement value.
            record_type: RecordType or its label, e.g. "Saturation".
            timestamp: Milliseconds since epoch.

        Returns:
            The stored MeasurementRecord.

        Raises:
            InvalidInput: unknown record type or a non-numeric field.
        """
        if isinstance(patient_id, bool) or not isinstance(patient_id, int):
            raise InvalidInput(f"Patient id must be an integer, got {patient_id!r}")
        if isinstance(timestamp, bool) or not isinstance(timestamp, int):
            raise InvalidInput(f"Timestamp must be integer milliseconds, got {timestamp!r}")
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidInput(f"Measurement value must be numeric, got {value!r}")
        try:
            value = float(value)
        except OverflowError:
            raise InvalidInput(f"Measurement value out of range, got {value!r}") from None

        record = MeasurementRecord(
            patient_id=patient_id,
            value=value,
            record_type=parse_record_type(record_type),
            timestamp=timestamp,
        )
        self.append(record)
        return record

    def append(self, record: MeasurementRecord) -> None:
        self._timeline(record.patient_id, create=True).append(record)

    def get_records(
        self,
        patient_id: int,
        start_time: int,
        end_time: int,
        record_type: Optional[RecordType] = None,
    ) -> List[MeasurementRecord]:
        """
        Returns records with start_time <= timestamp < end_time.

        Order is not guaranteed; callers sort by timestamp themselves.
        Unknown patients and empty ranges give an empty list.
        """
        timeline = self._timeline(patient_id)
        if timeline is None or end_time <= start_time:
            return []

        wanted = parse_record_type(record_type) if record_type is not None else None
        return [
            r for r in timeline.snapshot()
            if start_time <= r.timestamp < end_time
            and (wanted is None or r.record_type == wanted)
        ]

    def get_patient_ids(self) -> List[int]:
        with self._registry_lock:
            return sorted(self._timelines)

    def record_count(self, patient_id: int) -> int:
        timeline = self._timeline(patient_id)
        return len(timeline) if timeline else 0

    def _timeline(self, patient_id: int, create: bool = False) -> Optional[PatientTimeline]:
        with self._registry_lock:
            timeline = self._timelines.get(patient_id)
            if timeline is None and create:
                timeline = PatientTimeline(patient_id)
                self._timelines[patient_id] = timeline
                logger.debug("Created timeline for patient %s", patient_id)
            return timeline
