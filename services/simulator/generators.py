"""
Sentetik hasta verisi üreticileri.

Her simülatör kendi random kaynağına sahiptir (random.Random(seed)); modül
seviyesindeki global generator kullanılmaz.
"""
import math
import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from shared.models import RecordType

NORMAL = "NORMAL"
TACHYCARDIA = "TACHYCARDIA"
BRADYCARDIA = "BRADYCARDIA"
HYPOXEMIA = "HYPOXEMIA"
HYPOTENSION = "HYPOTENSION"
HYPERTENSION = "HYPERTENSION"

CYCLE_LENGTH = 200


def mode_for_cycle(cycle: int) -> str:
    """Senaryo durum makinesi: döngünün belli aralıklarında anormal mod."""
    if 150 < cycle < 160:
        return TACHYCARDIA
    if 160 <= cycle < 165:
        return BRADYCARDIA
    if 170 < cycle < 180:
        return HYPERTENSION
    if 180 < cycle < 190:
        return HYPOXEMIA
    if 190 <= cycle < 195:
        return HYPOTENSION
    return NORMAL


@dataclass
class PatientBaseline:
    heart_rate: float
    systolic: float
    diastolic: float
    saturation: float


class VitalSignsGenerator:
    """Generates ECG heart rate, blood pressure and saturation readings."""

    def __init__(self, seed: int = 42):
        self.rng = random.Random(seed)
        self.baselines: Dict[int, PatientBaseline] = {}

    def baseline(self, patient_id: int) -> PatientBaseline:
        if patient_id not in self.baselines:
            self.baselines[patient_id] = PatientBaseline(
                heart_rate=self.rng.uniform(60, 85),
                systolic=self.rng.uniform(110, 130),
                diastolic=self.rng.uniform(70, 85),
                saturation=self.rng.uniform(96, 99),
            )
        return self.baselines[patient_id]

    def mode_for(self, patient_id: int, counter: int) -> str:
        # hastalar aynı anda krize girmesin
        return mode_for_cycle((counter + patient_id * 37) % CYCLE_LENGTH)

    def generate_heart_rate(self, patient_id: int, mode: str) -> float:
        base = self.baseline(patient_id).heart_rate
        if mode == TACHYCARDIA:
            base += self.rng.uniform(40, 60)
        elif mode == BRADYCARDIA:
            base -= self.rng.uniform(20, 30)
        return round(base + self.rng.gauss(0, 2), 1)

    def generate_pressure(self, patient_id: int, mode: str, step: int = 0) -> Tuple[float, float]:
        b = self.baseline(patient_id)
        systolic, diastolic = b.systolic, b.diastolic
        if mode == HYPERTENSION:
            # her adımda >10 mmHg artış -> trend
            systolic += 12 * (step + 1) + self.rng.uniform(0, 3)
            diastolic += 8 * (step + 1) + self.rng.uniform(0, 3)
        elif mode == HYPOTENSION:
            systolic = self.rng.uniform(75, 88)
            diastolic = self.rng.uniform(45, 58)
        return (
            round(systolic + self.rng.gauss(0, 3), 1),
            round(diastolic + self.rng.gauss(0, 2), 1),
        )

    def generate_saturation(self, patient_id: int, mode: str) -> float:
        base = self.baseline(patient_id).saturation
        if mode in (HYPOXEMIA, HYPOTENSION):
            base = self.rng.uniform(85, 91)
        return round(min(100.0, base + self.rng.gauss(0, 0.5)), 1)

    def readings(self, patient_id: int, counter: int) -> List[Tuple[RecordType, float]]:
        mode = self.mode_for(patient_id, counter)
        step = (counter + patient_id * 37) % CYCLE_LENGTH - 171 if mode == HYPERTENSION else 0
        systolic, diastolic = self.generate_pressure(patient_id, mode, step)
        return [
            (RecordType.ECG, self.generate_heart_rate(patient_id, mode)),
            (RecordType.SYSTOLIC_PRESSURE, systolic),
            (RecordType.DIASTOLIC_PRESSURE, diastolic),
            (RecordType.SATURATION, self.generate_saturation(patient_id, mode)),
        ]


ALERT_LABEL = "Alert"
ALERT_TRIGGERED = "triggered"
ALERT_RESOLVED = "resolved"

ALERT_RATE = 0.1  # ortalama alert sayısı / periyot
ALERT_RESOLVE_PROBABILITY = 0.9


class AlertStateGenerator:
    """
    Hemşire çağrı butonunu simüle eder.

    Hasta başına triggered/resolved durumu tutulur. Açık alert her periyotta
    %90 olasılıkla kapanır; kapalıyken Poisson(λ=0.1) ile en az bir olay
    olasılığı kadar tetiklenir.
    """

    def __init__(self, seed: int = 42):
        self.rng = random.Random(seed)
        self.trigger_probability = -math.expm1(-ALERT_RATE)
        self.active: Dict[int, bool] = {}

    def next_event(self, patient_id: int) -> Optional[str]:
        """Returns "triggered", "resolved" or None when the state is unchanged."""
        if self.active.get(patient_id, False):
            if self.rng.random() < ALERT_RESOLVE_PROBABILITY:
                self.active[patient_id] = False
                return ALERT_RESOLVED
        elif self.rng.random() < self.trigger_probability:
            self.active[patient_id] = True
            return ALERT_TRIGGERED
        return None
