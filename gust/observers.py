"""
Ready-made observers: transition logging, bounded history and Prometheus metrics.
"""

import logging
import threading
import time
import weakref
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Tuple, Union

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram, Info

logger = logging.getLogger(__name__)

START = "<start>"


class LoggingObserver:
    """Logs every reported transition"""

    def __init__(self,
                 machine_name: str = "gust",
                 level: Union[int, str] = logging.INFO,
                 log: Optional[logging.Logger] = None):
        self.machine_name = machine_name
        if isinstance(level, str):
            level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {level}")
        self.level = level
        self.log = log or logger

    def state_changed(self, prior_state: str, next_state: str):
        self.log.log(
            self.level,
            f"[SM:{self.machine_name}] TRANSITION: {prior_state or START} -> {next_state}"
        )


@dataclass
class TransitionRecord:
    """A reported transition"""
    timestamp: datetime
    from_state: str
    to_state: str


class HistoryObserver:
    """
    Keeps the most recent transitions in memory.

    Safe to read from another thread while a machine is running.
    """

    def __init__(self, limit: int = 20):
        if limit <= 0:
            raise ValueError(f"History limit must be positive, got {limit}")
        self.limit = limit
        self._lock = threading.Lock()
        self._history: List[TransitionRecord] = []

    def state_changed(self, prior_state: str, next_state: str):
        record = TransitionRecord(
            timestamp=datetime.now(),
            from_state=prior_state,
            to_state=next_state
        )
        with self._lock:
            self._history.append(record)
            if len(self._history) > self.limit:
                self._history.pop(0)

    def get_history(self, limit: int = 10) -> List[TransitionRecord]:
        """Get the latest transitions, oldest first"""
        if limit <= 0:
            return []
        with self._lock:
            return self._history[-limit:]

    def get_current_state(self) -> Optional[str]:
        with self._lock:
            if not self._history:
                return None
            return self._history[-1].to_state

    def clear(self):
        with self._lock:
            self._history.clear()

    def visualize(self, title: str = "gust") -> str:
        """Generate a PlantUML diagram of the recorded transitions"""
        lines = ["@startuml", f"title {title} State Machine", ""]

        with self._lock:
            history = list(self._history)

        states: List[str] = []
        for record in history:
            for name in (record.from_state, record.to_state):
                if name and name not in states:
                    states.append(name)

        current = history[-1].to_state if history else None
        for name in states:
            if name == current:
                lines.append(f"state {name} #yellow : Current State")
            else:
                lines.append(f"state {name}")

        lines.append("")

        processed = set()
        for record in history:
            source = record.from_state or "[*]"
            key = f"{source}->{record.to_state}"
            if key not in processed:
                lines.append(f"{source} --> {record.to_state}")
                processed.add(key)

        lines.append("@enduml")
        return "\n".join(lines)


class MetricsObserver:
    """
    Exports transitions as Prometheus metrics.

    Metrics (prefix is the machine name, lowercased, dashes to underscores):
    - <prefix>_transitions_total{from_state, to_state}
    - <prefix>_state_info{state, previous_state}
    - <prefix>_state_duration_seconds{state}

    Observers created with the same prefix on the same registry share one
    set of collectors, so their samples add up.
    """

    # registry -> prefix -> (counter, info, histogram)
    _collectors: "weakref.WeakKeyDictionary[CollectorRegistry, Dict[str, Tuple]]" = weakref.WeakKeyDictionary()
    _collectors_lock = threading.Lock()

    def __init__(self, name: str = "gust", registry: CollectorRegistry = REGISTRY):
        self.name = name
        metric_name = name.lower().replace('-', '_')

        with self._collectors_lock:
            by_prefix = self._collectors.setdefault(registry, {})
            if metric_name not in by_prefix:
                by_prefix[metric_name] = self._init_metrics(name, metric_name, registry)
            self.transition_counter, self.state_info, self.state_duration = by_prefix[metric_name]

        self._current: Optional[str] = None
        self._entered_at = time.monotonic()

    @staticmethod
    def _init_metrics(name: str, metric_name: str,
                      registry: CollectorRegistry) -> Tuple[Counter, Info, Histogram]:
        transition_counter = Counter(
            f'{metric_name}_transitions_total',
            f'Total state transitions of {name}',
            labelnames=['from_state', 'to_state'],
            registry=registry
        )

        state_info = Info(
            f'{metric_name}_state',
            f'Current state of {name}',
            registry=registry
        )

        state_duration = Histogram(
            f'{metric_name}_state_duration_seconds',
            'Time spent in each state',
            labelnames=['state'],
            buckets=(0.001, 0.01, 0.1, 0.5, 1, 5, 10, 30, 60, 300),
            registry=registry
        )

        return transition_counter, state_info, state_duration

    def state_changed(self, prior_state: str, next_state: str):
        now = time.monotonic()

        # Durations are only known when the prior state's entry was reported
        if prior_state and prior_state == self._current:
            self.state_duration.labels(state=prior_state).observe(now - self._entered_at)

        self.transition_counter.labels(
            from_state=prior_state,
            to_state=next_state
        ).inc()

        self.state_info.info({
            'state': next_state,
            'previous_state': prior_state,
        })

        self._current = next_state
        self._entered_at = now
