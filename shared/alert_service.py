import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from shared.business_logic import ALERT_RULES, AlertRule
from shared.errors import InvalidInput
from shared.models import Alert, MeasurementRecord
from shared.record_store import DataStorage

logger = logging.getLogger(__name__)

AlertListener = Callable[[Alert], None]


def current_time_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class EvaluationReport:
    patient_id: str
    evaluated_at: int
    alerts: List[Alert] = field(default_factory=list)
    failures: List[Tuple[str, Exception]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


class AlertEvaluationService:
    """
    Runs every alert rule against a patient's recent records.

    Servis hastalar arası durum tutmaz; her çağrı store'dan taze pencereleri
    okur. Bildirim (console, DB, socket) listener'lara bırakılır.
    """

    def __init__(
        self,
        storage: DataStorage,
        rules: Sequence[AlertRule] = ALERT_RULES,
        clock: Callable[[], int] = current_time_ms,
        listeners: Optional[Iterable[AlertListener]] = None,
    ):
        self.storage = storage
        self.rules = tuple(rules)
        self.clock = clock
        self.listeners: List[AlertListener] = list(listeners or [])

    def add_listener(self, listener: AlertListener) -> None:
        self.listeners.append(listener)

    def evaluate(self, patient_id: Optional[int]) -> List[Alert]:
        """
        Full pipeline: Fetch windows -> Run rules -> Notify.

        Raises:
            InvalidInput: patient_id is None or not an integer.
            StorageUnavailable: propagated from the store.
        """
        return self.evaluate_with_report(patient_id).alerts

    def evaluate_with_report(self, patient_id: Optional[int]) -> EvaluationReport:
        if patient_id is None:
            raise InvalidInput("No patient data available.")
        if isinstance(patient_id, bool) or not isinstance(patient_id, int):
            raise InvalidInput(f"Patient id must be an integer, got {patient_id!r}")

        # evaluation time is shared by every rule in this call
        now = self.clock()
        windows = self._fetch_windows(patient_id, now)

        report = EvaluationReport(patient_id=str(patient_id), evaluated_at=now)
        for rule in self.rules:
            window = [r for r in windows[rule.lookback_ms] if r.record_type in rule.record_types]
            try:
                report.alerts.extend(rule.evaluate(window, report.patient_id, now))
            except Exception as e:
                logger.exception("Rule %s failed for patient %s", rule.name, patient_id)
                report.failures.append((rule.name, e))

        self._notify(report.alerts)
        return report

    def evaluate_all(self) -> Dict[int, List[Alert]]:
        return {pid: self.evaluate(pid) for pid in self.storage.get_patient_ids()}

    def _fetch_windows(self, patient_id: int, now: int) -> Dict[int, List[MeasurementRecord]]:
        windows = {}
        for lookback in sorted({rule.lookback_ms for rule in self.rules}):
            windows[lookback] = self.storage.get_records(patient_id, now - lookback, now)
        return windows

    def _notify(self, alerts: List[Alert]) -> None:
        for alert in alerts:
            logger.info(
                "Alert triggered: %s for patient %s at %s",
                alert.condition.value, alert.patient_id, alert.timestamp,
            )
            for listener in self.listeners:
                try:
                    listener(alert)
                except Exception:
                    logger.exception("Alert listener %r failed", listener)
