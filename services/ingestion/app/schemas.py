from pydantic import BaseModel, Field
from typing import List


class RecordCreate(BaseModel):
    """
    Reader/simulator tarafından gönderilen ham ölçüm.
    record_type: SystolicPressure, DiastolicPressure, Saturation veya ECG
    """
    patient_id: int
    value: float
    record_type: str
    timestamp: int = Field(..., ge=0)  # ms since epoch


class RecordOut(BaseModel):
    patient_id: int
    value: float
    record_type: str
    timestamp: int


class AlertOut(BaseModel):
    patient_id: str
    condition: str
    timestamp: int


class PatientList(BaseModel):
    patients: List[int]
