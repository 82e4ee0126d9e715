import asyncio

import pytest

from services.processor.alert_sinks import ConsoleAlertSink, CooldownFilter
from services.processor.database_writer import DatabaseWriter
from services.processor.main import build_sinks, dispatch, evaluate_once, evaluate_periodic, run_file_mode
from services.simulator.outputs import format_line
from shared.models import Alert, AlertCondition

from conftest import MINUTE, NOW, SECOND


def _alert(condition=AlertCondition.LOW_SATURATION, patient_id="1", timestamp=NOW):
    return Alert(patient_id=patient_id, condition=condition, timestamp=timestamp)


class FakeConnection:
    def __init__(self, fail=False):
        self.fail = fail
        self.executed = []

    async def execute(self, query, *args):
        if self.fail:
            raise OSError("connection reset")
        self.executed.append((query, args))


class FakeAcquire:
    def __init__(self, connection):
        self.connection = connection

    async def __aenter__(self):
        return self.connection

    async def __aexit__(self, *exc):
        return False


class FakePool:
    def __init__(self, connection):
        self.connection = connection
        self.closed = False

    def acquire(self):
        return FakeAcquire(self.connection)

    async def close(self):
        self.closed = True


class RecordingSink:
    def __init__(self, stop=None):
        self.stop = stop
        self.history = []

    async def handle(self, alert):
        self.history.append(alert)
        if self.stop is not None:
            self.stop.set()
        return True


def test_cooldown_suppresses_repeats_per_patient_and_condition():
    cooldown = CooldownFilter(cooldown_ms=MINUTE)

    assert cooldown.admit(_alert(), NOW)
    assert not cooldown.admit(_alert(), NOW + 30 * SECOND)
    assert cooldown.admit(_alert(patient_id="2"), NOW + 30 * SECOND)
    assert cooldown.admit(_alert(AlertCondition.RAPID_OXYGEN_DROP), NOW + 30 * SECOND)
    assert cooldown.admit(_alert(), NOW + MINUTE)


def test_dispatch_sends_to_every_sink():
    first, second = RecordingSink(), RecordingSink()
    alerts = [_alert(), _alert(AlertCondition.CRITICAL_SYSTOLIC)]

    delivered = asyncio.run(dispatch(alerts, [first, second], None, NOW))

    assert delivered == alerts
    assert first.history == alerts
    assert second.history == alerts


def test_console_sink_prints_alert(capsys):
    asyncio.run(ConsoleAlertSink().handle(_alert(AlertCondition.HYPOTENSIVE_HYPOXEMIA, patient_id="7")))

    out = capsys.readouterr().out
    assert "Hypotensive Hypoxemia Alert" in out
    assert "Patient: 7" in out


def test_console_sink_keeps_no_alert_state(capsys):
    sink = ConsoleAlertSink()

    async def flood():
        for i in range(1000):
            await sink.handle(_alert(timestamp=NOW + i))

    asyncio.run(flood())

    assert len(capsys.readouterr().out.splitlines()) == 1000
    assert vars(sink) == {}


def test_evaluate_once_applies_cooldown(storage, service):
    storage.add_patient_data(1, 85, "SystolicPressure", NOW - 5 * MINUTE)
    storage.add_patient_data(1, 90, "Saturation", NOW - 2 * MINUTE)
    sink = RecordingSink()
    cooldown = CooldownFilter(cooldown_ms=MINUTE)

    first = asyncio.run(evaluate_once(service, [sink], cooldown))
    second = asyncio.run(evaluate_once(service, [sink], cooldown))

    assert [a.condition for a in first] == [
        AlertCondition.CRITICAL_SYSTOLIC,
        AlertCondition.LOW_SATURATION,
        AlertCondition.HYPOTENSIVE_HYPOXEMIA,
    ]
    assert second == []
    assert sink.history == first


def test_evaluate_periodic_runs_until_stopped(storage, service):
    storage.add_patient_data(1, 185, "SystolicPressure", NOW - MINUTE)

    async def scenario():
        stop = asyncio.Event()
        sink = RecordingSink(stop)
        await asyncio.wait_for(
            evaluate_periodic(service, [sink], CooldownFilter(MINUTE), interval=0.01, stop=stop),
            timeout=5,
        )
        return sink

    sink = asyncio.run(scenario())

    assert [a.condition for a in sink.history] == [AlertCondition.CRITICAL_SYSTOLIC]


def test_run_file_mode_loads_and_evaluates(tmp_path, storage, service):
    (tmp_path / "Saturation.txt").write_text(
        format_line(3, NOW - MINUTE, "Saturation", "91%") + "\n", encoding="utf-8"
    )
    sink = ConsoleAlertSink()

    alerts = asyncio.run(run_file_mode(str(tmp_path), service, [sink]))

    assert alerts == [_alert(AlertCondition.LOW_SATURATION, patient_id="3", timestamp=NOW - MINUTE)]
    assert storage.record_count(3) == 1


def test_database_writer_inserts_alert():
    connection = FakeConnection()
    writer = DatabaseWriter("postgresql://unused", pool=FakePool(connection))

    assert asyncio.run(writer.handle(_alert(AlertCondition.IRREGULAR_BEAT, patient_id="9")))

    _, args = connection.executed[0]
    assert args[0] == "9"
    assert args[1] == "Irregular Beat Alert"
    assert int(args[2].timestamp() * 1000) == NOW


def test_database_writer_reports_failure():
    writer = DatabaseWriter("postgresql://unused", pool=FakePool(FakeConnection(fail=True)))

    assert asyncio.run(writer.handle(_alert())) is False


def test_database_writer_close_releases_pool():
    pool = FakePool(FakeConnection())
    writer = DatabaseWriter("postgresql://unused", pool=pool)

    asyncio.run(writer.close())

    assert pool.closed
    assert writer.pool is None


def test_build_sinks():
    assert [type(s) for s in build_sinks("console")] == [ConsoleAlertSink]
    assert [type(s) for s in build_sinks("postgres")] == [ConsoleAlertSink, DatabaseWriter]
    with pytest.raises(ValueError):
        build_sinks("kafka")
