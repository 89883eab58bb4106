import logging

from prometheus_client import CollectorRegistry

from gust import (
    HistoryObserver,
    LoggingObserver,
    MachineConfig,
    MetricsObserver,
    StateMachineFactory,
)

from tests.fakes import diamond


def observer_types(machine):
    return [type(o) for o in machine.get_observers()]


def test_create_with_defaults():
    machine = StateMachineFactory.create()

    assert machine.name == "gust"
    assert observer_types(machine) == [LoggingObserver]


def test_create_with_everything_enabled():
    registry = CollectorRegistry()
    config = MachineConfig(name="checkout", dev_mode=True, metrics_enabled=True, history_limit=3)

    machine = StateMachineFactory.create(config, registry=registry)

    assert machine.name == "checkout"
    assert observer_types(machine) == [LoggingObserver, HistoryObserver, MetricsObserver]
    history = machine.get_observers()[1]
    assert history.limit == 3


def test_create_without_observers():
    machine = StateMachineFactory.create(MachineConfig(log_transitions=False))

    assert machine.get_observers() == []


def test_created_machine_runs(caplog):
    registry = CollectorRegistry()
    config = MachineConfig(name="diamond", log_level="DEBUG", dev_mode=True, metrics_enabled=True)
    machine = StateMachineFactory.create(config, registry=registry)
    a, b, c, d = diamond()
    for state in (a, b, c, d):
        machine.add_state(state)

    with caplog.at_level(logging.DEBUG, logger="gust.observers"):
        machine.run(None, a)

    history = next(o for o in machine.get_observers() if isinstance(o, HistoryObserver))
    assert [r.to_state for r in history.get_history()] == ["stateA", "stateC", "stateD"]
    assert "[SM:diamond] TRANSITION: stateC -> stateD" in caplog.text
    assert registry.get_sample_value(
        'diamond_transitions_total', {'from_state': 'stateA', 'to_state': 'stateC'}
    ) == 1.0


def test_from_file_applies_env(tmp_path, monkeypatch):
    config_file = tmp_path / "gust.yaml"
    config_file.write_text("state_machine:\n  name: from-file\n  log_transitions: false\n")
    monkeypatch.setenv("GUST_DEV_MODE", "true")

    machine = StateMachineFactory.from_file(config_file, registry=CollectorRegistry())

    assert machine.name == "from-file"
    assert observer_types(machine) == [HistoryObserver]


def test_create_same_name_twice_with_metrics():
    registry = CollectorRegistry()
    config = MachineConfig(name="twice", metrics_enabled=True)

    first = StateMachineFactory.create(config, registry=registry)
    second = StateMachineFactory.create(config, registry=registry)

    assert observer_types(first) == observer_types(second)
