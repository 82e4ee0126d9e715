"""
Processor Service

Ölçümleri reader'dan (dosya veya Socket.IO) alır, hastaları periyodik olarak
değerlendirir ve alert'leri sink'lere (console, PostgreSQL) iletir.
"""
import asyncio
import logging
from typing import List, Optional, Sequence

from services.processor.alert_sinks import ConsoleAlertSink, CooldownFilter
from services.processor.database_writer import DatabaseWriter
from services.reader.file_reader import FileDataReader
from services.reader.websocket_reader import WebSocketDataReader
from shared import config
from shared.alert_service import AlertEvaluationService
from shared.errors import StorageUnavailable
from shared.models import Alert
from shared.record_store import DataStorage

logger = logging.getLogger(__name__)


def build_sinks(kind: str) -> list:
    sinks = [ConsoleAlertSink()]
    if kind == "postgres":
        sinks.append(DatabaseWriter(config.DATABASE_URL))
    elif kind != "console":
        raise ValueError(f"Unknown ALERT_SINK: {kind}")
    return sinks


async def dispatch(alerts: Sequence[Alert], sinks: Sequence, cooldown: Optional[CooldownFilter], now_ms: int) -> List[Alert]:
    delivered = []
    for alert in alerts:
        if cooldown is not None and not cooldown.admit(alert, now_ms):
            continue
        for sink in sinks:
            await sink.handle(alert)
        delivered.append(alert)
    return delivered


async def evaluate_once(service: AlertEvaluationService, sinks: Sequence, cooldown: Optional[CooldownFilter] = None) -> List[Alert]:
    """Evaluates every known patient and dispatches the alerts."""
    delivered = []
    for patient_id in service.storage.get_patient_ids():
        report = service.evaluate_with_report(patient_id)
        for rule_name, error in report.failures:
            logger.error("Patient %s: rule %s failed: %s", patient_id, rule_name, error)
        delivered.extend(await dispatch(report.alerts, sinks, cooldown, report.evaluated_at))
    return delivered


async def evaluate_periodic(service: AlertEvaluationService, sinks: Sequence, cooldown: CooldownFilter,
                            interval: float, stop: Optional[asyncio.Event] = None):
    """
    Periyodik değerlendirme.
    Her `interval` saniyede bir tüm hastaları kontrol eder.
    """
    stop = stop or asyncio.Event()
    while not stop.is_set():
        try:
            await evaluate_once(service, sinks, cooldown)
        except StorageUnavailable as e:
            logger.error("Evaluation skipped, storage unavailable: %s", e)
        try:
            await asyncio.wait_for(stop.wait(), timeout=interval)
        except asyncio.TimeoutError:
            pass


async def run_file_mode(directory: str, service: AlertEvaluationService, sinks: Sequence) -> List[Alert]:
    summary = FileDataReader(directory).read_data(service.storage)
    print(f"Loaded {summary.records} records from {summary.files} files ({summary.skipped} skipped)")
    return await evaluate_once(service, sinks)


async def run_stream_mode(url: str, service: AlertEvaluationService, sinks: Sequence):
    reader = WebSocketDataReader(url, service.storage)
    cooldown = CooldownFilter(int(config.ALERT_COOLDOWN_SECONDS * 1000))
    await asyncio.gather(
        reader.read_data(),
        evaluate_periodic(service, sinks, cooldown, config.EVALUATION_INTERVAL_SECONDS),
    )


async def main():
    logging.basicConfig(level=config.LOG_LEVEL)
    print("Processor Service Starting...")

    service = AlertEvaluationService(DataStorage())
    sinks = build_sinks(config.ALERT_SINK)
    try:
        if config.PROCESSOR_SOURCE == "file":
            await run_file_mode(config.DATA_DIR, service, sinks)
        elif config.PROCESSOR_SOURCE == "websocket":
            await run_stream_mode(config.SOCKET_URL, service, sinks)
        else:
            raise ValueError(f"Unknown PROCESSOR_SOURCE: {config.PROCESSOR_SOURCE}")
    finally:
        for sink in sinks:
            if isinstance(sink, DatabaseWriter):
                await sink.close()


if __name__ == "__main__":
    asyncio.run(main())
