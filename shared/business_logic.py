"""
Clinical Alert Rules

Her kural, bir kayıt penceresinden (window) sıfır veya daha fazla Alert üreten
saf bir fonksiyondur. Kurallar kendi sıralamalarını yapar; store'un döndürdüğü
sıraya güvenmez.
"""
from dataclasses import dataclass
from typing import Callable, List, Sequence, Tuple

from shared.models import (
    PRESSURE_TYPES,
    Alert,
    AlertCondition,
    MeasurementRecord,
    RecordType,
)

MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS

PRESSURE_LOOKBACK_MS = 24 * HOUR_MS
SATURATION_LOOKBACK_MS = 10 * MINUTE_MS
ECG_LOOKBACK_MS = HOUR_MS
HYPOXEMIA_LOOKBACK_MS = 10 * MINUTE_MS

# (upper, lower) critical bounds, exclusive
CRITICAL_PRESSURE_LIMITS = {
    RecordType.SYSTOLIC_PRESSURE: (180, 90),
    RecordType.DIASTOLIC_PRESSURE: (120, 60),
}
CRITICAL_CONDITIONS = {
    RecordType.SYSTOLIC_PRESSURE: AlertCondition.CRITICAL_SYSTOLIC,
    RecordType.DIASTOLIC_PRESSURE: AlertCondition.CRITICAL_DIASTOLIC,
}
TREND_CONDITIONS = {
    RecordType.SYSTOLIC_PRESSURE: (
        AlertCondition.SYSTOLIC_INCREASING_TREND,
        AlertCondition.SYSTOLIC_DECREASING_TREND,
    ),
    RecordType.DIASTOLIC_PRESSURE: (
        AlertCondition.DIASTOLIC_INCREASING_TREND,
        AlertCondition.DIASTOLIC_DECREASING_TREND,
    ),
}

TREND_MIN_RECORDS = 3
TREND_STEP = 10
LOW_SATURATION = 92
RAPID_DROP_PERCENT = 5
HEART_RATE_LOWER = 50
HEART_RATE_UPPER = 100
BEAT_INTERVAL_TOLERANCE = 0.1
HYPOTENSION_SYSTOLIC = 90

RuleFunction = Callable[[Sequence[MeasurementRecord], str, int], List[Alert]]


def _of_type(window: Sequence[MeasurementRecord], record_type: RecordType) -> List[MeasurementRecord]:
    return [r for r in window if r.record_type == record_type]


def newest_first(records: Sequence[MeasurementRecord]) -> List[MeasurementRecord]:
    return sorted(records, key=lambda r: r.timestamp, reverse=True)


def oldest_first(records: Sequence[MeasurementRecord]) -> List[MeasurementRecord]:
    return sorted(records, key=lambda r: r.timestamp)


def is_critical_pressure(record: MeasurementRecord) -> bool:
    limits = CRITICAL_PRESSURE_LIMITS.get(record.record_type)
    if limits is None:
        return False
    upper, lower = limits
    return record.value > upper or record.value < lower


def has_pressure_trend(records: Sequence[MeasurementRecord], increasing: bool) -> bool:
    """
    Checks a newest-first pressure sequence for a monotonic trend.

    Every consecutive (current, older) pair must differ by more than
    TREND_STEP in the trend's direction.
    """
    for current, older in zip(records, records[1:]):
        step = current.value - older.value if increasing else older.value - current.value
        if step <= TREND_STEP:
            return False
    return True


def check_critical_pressure(window: Sequence[MeasurementRecord], patient_id: str, now: int) -> List[Alert]:
    """Critical Systolic/Diastolic alert for every out-of-range reading, newest first."""
    alerts = []
    for record_type in PRESSURE_TYPES:
        for record in newest_first(_of_type(window, record_type)):
            if is_critical_pressure(record):
                alerts.append(Alert(
                    patient_id=patient_id,
                    condition=CRITICAL_CONDITIONS[record_type],
                    timestamp=record.timestamp,
                ))
    return alerts


def check_pressure_trend(window: Sequence[MeasurementRecord], patient_id: str, now: int) -> List[Alert]:
    alerts = []
    for record_type in PRESSURE_TYPES:
        records = newest_first(_of_type(window, record_type))
        if len(records) < TREND_MIN_RECORDS:
            continue

        increasing_condition, decreasing_condition = TREND_CONDITIONS[record_type]
        if has_pressure_trend(records, increasing=True):
            alerts.append(Alert(patient_id=patient_id, condition=increasing_condition, timestamp=now))
        elif has_pressure_trend(records, increasing=False):
            alerts.append(Alert(patient_id=patient_id, condition=decreasing_condition, timestamp=now))
    return alerts


def check_low_saturation(window: Sequence[MeasurementRecord], patient_id: str, now: int) -> List[Alert]:
    """Fires once, at the most recent reading below LOW_SATURATION."""
    for record in newest_first(_of_type(window, RecordType.SATURATION)):
        if record.value < LOW_SATURATION:
            return [Alert(patient_id=patient_id, condition=AlertCondition.LOW_SATURATION, timestamp=record.timestamp)]
    return []


def check_rapid_oxygen_drop(window: Sequence[MeasurementRecord], patient_id: str, now: int) -> List[Alert]:
    """
    Scans consecutive saturation readings oldest first and fires at the
    later reading of the first pair that dropped by RAPID_DROP_PERCENT or more.
    """
    records = oldest_first(_of_type(window, RecordType.SATURATION))
    for previous, current in zip(records, records[1:]):
        if previous.value == 0:
            continue
        drop_percent = 100.0 * (previous.value - current.value) / previous.value
        if drop_percent >= RAPID_DROP_PERCENT:
            return [Alert(patient_id=patient_id, condition=AlertCondition.RAPID_OXYGEN_DROP, timestamp=current.timestamp)]
    return []


def check_abnormal_heart_rate(window: Sequence[MeasurementRecord], patient_id: str, now: int) -> List[Alert]:
    for record in newest_first(_of_type(window, RecordType.ECG)):
        if record.value < HEART_RATE_LOWER or record.value > HEART_RATE_UPPER:
            return [Alert(patient_id=patient_id, condition=AlertCondition.ABNORMAL_HEART_RATE, timestamp=record.timestamp)]
    return []


def average_interval(records: Sequence[MeasurementRecord]) -> float:
    """Mean gap between consecutive, oldest-first records. Needs at least 2."""
    return (records[-1].timestamp - records[0].timestamp) / (len(records) - 1)


def check_irregular_beat(window: Sequence[MeasurementRecord], patient_id: str, now: int) -> List[Alert]:
    """
    Irregular beat detection.

    Ortalama örnek aralığı hesaplanır; ortalamadan %10'dan fazla sapan ilk
    ardışık çiftte alert üretilir. 2'den az kayıt varsa hesaplama yapılmaz.
    """
    records = oldest_first(_of_type(window, RecordType.ECG))
    if len(records) < 2:
        return []

    mean = average_interval(records)
    allowance = mean * BEAT_INTERVAL_TOLERANCE
    for previous, current in zip(records, records[1:]):
        interval = current.timestamp - previous.timestamp
        if abs(interval - mean) > allowance:
            return [Alert(patient_id=patient_id, condition=AlertCondition.IRREGULAR_BEAT, timestamp=current.timestamp)]
    return []


def check_hypotensive_hypoxemia(window: Sequence[MeasurementRecord], patient_id: str, now: int) -> List[Alert]:
    """Low systolic pressure and low saturation inside the same window."""
    low_pressure = any(
        r.record_type == RecordType.SYSTOLIC_PRESSURE and r.value < HYPOTENSION_SYSTOLIC for r in window
    )
    low_oxygen = any(
        r.record_type == RecordType.SATURATION and r.value < LOW_SATURATION for r in window
    )
    if low_pressure and low_oxygen:
        return [Alert(patient_id=patient_id, condition=AlertCondition.HYPOTENSIVE_HYPOXEMIA, timestamp=now)]
    return []


@dataclass(frozen=True)
class AlertRule:
    name: str
    lookback_ms: int
    record_types: Tuple[RecordType, ...]
    evaluate: RuleFunction


ALERT_RULES: Tuple[AlertRule, ...] = (
    AlertRule("critical_pressure", PRESSURE_LOOKBACK_MS, PRESSURE_TYPES, check_critical_pressure),
    AlertRule("pressure_trend", PRESSURE_LOOKBACK_MS, PRESSURE_TYPES, check_pressure_trend),
    AlertRule("low_saturation", SATURATION_LOOKBACK_MS, (RecordType.SATURATION,), check_low_saturation),
    AlertRule("rapid_oxygen_drop", SATURATION_LOOKBACK_MS, (RecordType.SATURATION,), check_rapid_oxygen_drop),
    AlertRule("abnormal_heart_rate", ECG_LOOKBACK_MS, (RecordType.ECG,), check_abnormal_heart_rate),
    AlertRule("irregular_beat", ECG_LOOKBACK_MS, (RecordType.ECG,), check_irregular_beat),
    AlertRule(
        "hypotensive_hypoxemia",
        HYPOXEMIA_LOOKBACK_MS,
        (RecordType.SYSTOLIC_PRESSURE, RecordType.SATURATION),
        check_hypotensive_hypoxemia,
    ),
)
