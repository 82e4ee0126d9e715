from enum import Enum

from pydantic import BaseModel, ConfigDict


class RecordType(str, Enum):
    SYSTOLIC_PRESSURE = "SystolicPressure"
    DIASTOLIC_PRESSURE = "DiastolicPressure"
    SATURATION = "Saturation"
    ECG = "ECG"


PRESSURE_TYPES = (RecordType.SYSTOLIC_PRESSURE, RecordType.DIASTOLIC_PRESSURE)


class AlertCondition(str, Enum):
    CRITICAL_SYSTOLIC = "Critical Systolic Pressure Alert"
    CRITICAL_DIASTOLIC = "Critical Diastolic Pressure Alert"
    SYSTOLIC_INCREASING_TREND = "Systolic Pressure Increasing Trend Alert"
    SYSTOLIC_DECREASING_TREND = "Systolic Pressure Decreasing Trend Alert"
    DIASTOLIC_INCREASING_TREND = "Diastolic Pressure Increasing Trend Alert"
    DIASTOLIC_DECREASING_TREND = "Diastolic Pressure Decreasing Trend Alert"
    LOW_SATURATION = "Low Saturation Alert"
    RAPID_OXYGEN_DROP = "Rapid Oxygen Drop Alert"
    ABNORMAL_HEART_RATE = "Abnormal Heart Rate Alert"
    IRREGULAR_BEAT = "Irregular Beat Alert"
    HYPOTENSIVE_HYPOXEMIA = "Hypotensive Hypoxemia Alert"


class MeasurementRecord(BaseModel):
    """Tek bir ölçüm. Store'a eklendikten sonra değişmez."""
    model_config = ConfigDict(frozen=True)

    patient_id: int
    value: float
    record_type: RecordType
    timestamp: int  # ms since epoch

    def to_message(self) -> str:
        """Socket.IO `record` event formatı: patient_id,value,type,timestamp"""
        return f"{self.patient_id},{self.value},{self.record_type.value},{self.timestamp}"


class Alert(BaseModel):
    model_config = ConfigDict(frozen=True)

    patient_id: str
    condition: AlertCondition
    timestamp: int

