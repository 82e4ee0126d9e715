import pytest

from shared.alert_service import AlertEvaluationService
from shared.models import MeasurementRecord, RecordType
from shared.record_store import DataStorage

NOW = 1_700_000_000_000
SECOND = 1000
MINUTE = 60 * SECOND
HOUR = 60 * MINUTE


@pytest.fixture
def storage() -> DataStorage:
    return DataStorage()


@pytest.fixture
def service(storage: DataStorage) -> AlertEvaluationService:
    """
    Alert service with a frozen clock at NOW.
    """
    return AlertEvaluationService(storage, clock=lambda: NOW)


@pytest.fixture
def make_record():
    def _make(value, record_type: RecordType, timestamp: int, patient_id: int = 1) -> MeasurementRecord:
        return MeasurementRecord(
            patient_id=patient_id,
            value=float(value),
            record_type=record_type,
            timestamp=timestamp,
        )
    return _make


@pytest.fixture
def make_series(make_record):
    """
    Builds records of one type from values, one per `step` ms, oldest first,
    the last one ending `end_offset` ms before NOW.
    """
    def _series(values, record_type: RecordType, step: int = MINUTE, end_offset: int = SECOND, patient_id: int = 1):
        start = NOW - end_offset - step * (len(values) - 1)
        return [
            make_record(v, record_type, start + i * step, patient_id)
            for i, v in enumerate(values)
        ]
    return _series
