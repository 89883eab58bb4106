"""
Core state machine driver with observer notification.

States decide their own successor at execution time; the driver only checks
that every successor was registered and tells observers about named
transitions.
"""

import logging
import threading
from typing import Any, List, Optional, Sequence, Tuple

from typing_extensions import Protocol, runtime_checkable

from .exceptions import InvalidTargetStateError

logger = logging.getLogger(__name__)


@runtime_checkable
class State(Protocol):
    """A unit of work that picks the next state to run"""

    def exec(self, cargo: Any) -> Tuple[Optional["State"], Any]:
        """
        Execute the state.

        Args:
            cargo: Payload handed over by the previous state, or the initial
                cargo given to run() for the start state

        Returns:
            (next_state, next_cargo). A next_state of None ends the run.
            Raising aborts the run.
        """
        ...


@runtime_checkable
class HaveName(Protocol):
    """Optional capability that lets a state be reported to observers"""

    def name(self) -> str:
        ...


@runtime_checkable
class Observer(Protocol):
    """Listener for state changes"""

    def state_changed(self, prior_state: str, next_state: str) -> None:
        """
        Called when a named state is entered. prior_state is an empty
        string when next_state is the start state.
        """
        ...


def contains(states: Sequence[State], state: State) -> bool:
    """Check registry membership by identity"""
    for candidate in states:
        if candidate is state:
            return True
    return False


class StateMachine:
    """
    Driver that walks from a start state until a state returns no successor.

    Features:
    - Successors computed by the states themselves
    - Every hop validated against the registered states
    - Synchronous observer notification of named transitions
    """

    def __init__(self, name: str = "gust"):
        self.name = name
        self.states: List[State] = []

        self._observers: List[Observer] = []
        self._observers_lock = threading.Lock()

    def register_observers(self, *observers: Observer):
        """Register observers for state change events, in notification order"""
        with self._observers_lock:
            self._observers.extend(observers)

        logger.debug(f"[SM:{self.name}] Registered {len(observers)} observer(s)")

    def remove_observer(self, observer: Observer):
        """Remove an observer; the last observer takes its slot"""
        with self._observers_lock:
            for index, candidate in enumerate(self._observers):
                if candidate is observer:
                    self._observers[index] = self._observers[-1]
                    self._observers.pop()
                    logger.debug(f"[SM:{self.name}] Removed observer {observer!r}")
                    return

    def get_observers(self) -> List[Observer]:
        """Get registered observers in notification order"""
        with self._observers_lock:
            return self._observers.copy()

    def add_state(self, state: State):
        """Add a state to the registry"""
        self.states.append(state)
        logger.debug(f"[SM:{self.name}] Added state {_describe(state)}")

    def run(self, cargo: Any, start_state: State):
        """
        Run the machine from start_state.

        Raises:
            InvalidTargetStateError: a state returned an unregistered successor
            Exception: whatever a state's exec() raised, unchanged
        """
        state = start_state
        prior_state: Optional[State] = None

        while True:
            self.notify_state(prior_state, state)

            try:
                next_state, next_cargo = state.exec(cargo)
            except Exception as e:
                logger.error(f"[SM:{self.name}] State {_describe(state)} failed: {e}")
                raise

            if next_state is None:
                break

            if not contains(self.states, next_state):
                logger.error(
                    f"[SM:{self.name}] Invalid target state {_describe(next_state)} "
                    f"from {_describe(state)}"
                )
                raise InvalidTargetStateError(next_state)

            logger.debug(f"[SM:{self.name}] {_describe(state)} -> {_describe(next_state)}")
            cargo = next_cargo
            prior_state = state
            state = next_state

        logger.debug(f"[SM:{self.name}] Finished in state {_describe(state)}")

    def notify_state(self, prior_state: Optional[State], next_state: State):
        """Notify observers about a state change"""
        with self._observers_lock:
            for observer in self._observers:
                prior_name, next_name = "", ""
                if _has_name(next_state):
                    next_name = next_state.name()
                if prior_state is not None:
                    if _has_name(prior_state):
                        prior_name = prior_state.name()
                    else:
                        # An anonymous prior state silences the rest of this call
                        return

                if next_name:
                    observer.state_changed(prior_name, next_name)


def _has_name(state: Any) -> bool:
    # A plain `name` field is not the naming capability
    return callable(getattr(state, "name", None))


def _describe(state: Any) -> str:
    if _has_name(state):
        return state.name() or repr(state)
    return repr(state)
