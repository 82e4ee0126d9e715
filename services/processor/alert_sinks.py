from datetime import datetime, timezone
from typing import Dict, Tuple

from shared.models import Alert, AlertCondition

CRITICAL_CONDITIONS = {
    AlertCondition.CRITICAL_SYSTOLIC,
    AlertCondition.CRITICAL_DIASTOLIC,
    AlertCondition.HYPOTENSIVE_HYPOXEMIA,
    AlertCondition.RAPID_OXYGEN_DROP,
}


class ConsoleAlertSink:
    async def handle(self, alert: Alert) -> bool:
        emoji = "🔴" if alert.condition in CRITICAL_CONDITIONS else "🟡"
        at = datetime.fromtimestamp(alert.timestamp / 1000, tz=timezone.utc).isoformat()
        print(f"{emoji} {alert.condition.value} | Patient: {alert.patient_id} | At: {at}")
        return True


class CooldownFilter:
    """
    Aynı hasta/koşul için cooldown süresi içinde tekrar eden alert'leri bastırır.
    Periyodik değerlendirme aynı bulguyu her turda yeniden üretir.
    """

    def __init__(self, cooldown_ms: int):
        self.cooldown_ms = cooldown_ms
        self._last_emit: Dict[Tuple[str, AlertCondition], int] = {}

    def admit(self, alert: Alert, now_ms: int) -> bool:
        key = (alert.patient_id, alert.condition)
        last = self._last_emit.get(key)
        if last is not None and now_ms - last < self.cooldown_ms:
            return False
        self._last_emit[key] = now_ms
        return True
