"""
Vital Signs Simulator

Hasta monitörlerini simüle eder. ECG nabzı, kan basıncı ve oksijen
satürasyonu üretir ve seçilen output stratejisine gönderir.
"""
import logging
import signal
import sys
import time

from services.simulator.generators import ALERT_LABEL, NORMAL, AlertStateGenerator, VitalSignsGenerator
from services.simulator.outputs import ConsoleOutputStrategy, FileOutputStrategy, HttpOutputStrategy
from shared import config

logger = logging.getLogger(__name__)


def handle_sigterm(*args):
    print("Simulator stopping...")
    sys.exit(0)


def build_output(kind: str):
    if kind == "console":
        return ConsoleOutputStrategy()
    if kind == "file":
        return FileOutputStrategy(config.OUTPUT_DIR)
    if kind == "http":
        return HttpOutputStrategy(config.INGESTION_URL)
    raise ValueError(f"Unknown SIMULATOR_OUTPUT: {kind}")


class HealthDataSimulator:
    def __init__(self, patient_count: int, output, seed: int = 42, frequency_hz: float = 1.0,
                 emit_alerts: bool = False):
        self.patient_ids = list(range(1, patient_count + 1))
        self.output = output
        self.generator = VitalSignsGenerator(seed)
        self.frequency_hz = frequency_hz
        self.alerts = AlertStateGenerator(seed) if emit_alerts else None
        self.counter = 0

    def tick(self, timestamp_ms: int = None) -> int:
        """
        Emits one reading of every type for every patient, plus call-button
        events when enabled. Returns the count sent.
        """
        self.counter += 1
        timestamp_ms = timestamp_ms if timestamp_ms is not None else int(time.time() * 1000)
        sent = 0
        for patient_id in self.patient_ids:
            mode = self.generator.mode_for(patient_id, self.counter)
            if mode != NORMAL:
                logger.info("Patient %s in %s scenario", patient_id, mode)
            for record_type, value in self.generator.readings(patient_id, self.counter):
                self.output.output(patient_id, timestamp_ms, record_type.value, value)
                sent += 1
            if self.alerts is not None:
                event = self.alerts.next_event(patient_id)
                if event:
                    self.output.output(patient_id, timestamp_ms, ALERT_LABEL, event)
                    sent += 1
        return sent

    def run(self, max_ticks: int = None) -> None:
        while max_ticks is None or self.counter < max_ticks:
            self.tick()
            time.sleep(1.0 / self.frequency_hz)


def run_simulation():
    logging.basicConfig(level=config.LOG_LEVEL)
    signal.signal(signal.SIGTERM, handle_sigterm)
    signal.signal(signal.SIGINT, handle_sigterm)

    print(f"Starting Vital Signs Simulation for {config.PATIENT_COUNT} patients")
    print(f"Output: {config.SIMULATOR_OUTPUT}")

    simulator = HealthDataSimulator(
        config.PATIENT_COUNT,
        build_output(config.SIMULATOR_OUTPUT),
        seed=config.SIMULATOR_SEED,
        frequency_hz=config.FREQUENCY_HZ,
        # ingestion accepts vital sign types only
        emit_alerts=config.SIMULATOR_OUTPUT != "http",
    )
    simulator.run()


if __name__ == "__main__":
    run_simulation()
