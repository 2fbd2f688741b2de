import logging
import threading
from typing import Dict, List, Optional, Union

from scoreboard.engine import (
    add_point,
    initialize_match,
    replace_config,
    resume_match,
    toggle_serving_partner,
    undo_point,
)
from scoreboard.exceptions import StaleStateError
from scoreboard.models import MatchConfiguration, MatchState, PlayerId

logger = logging.getLogger(__name__)


class MatchSession:
    """
    Single local match session.

    Responsibilities:
    - Own the current MatchState (the engine itself is stateless)
    - Serialise writers: one lock, one version counter for compare-and-swap
    - Bulk replay point events (atomic)
    - Export the recorded point events
    """

    def __init__(self, config: MatchConfiguration, start_time: Optional[float] = None):
        self._state = initialize_match(config, now=start_time)
        self._version = 0
        self._lock = threading.Lock()

    @classmethod
    def from_state(cls, state: MatchState) -> "MatchSession":
        """
        Continue a stored match exactly where it stopped.
        """
        resumed = resume_match(state)
        session = cls(resumed.config, start_time=resumed.start_time)
        session._state = resumed
        logger.info("Resumed match at event %d", len(state.history))
        return session

    # ---------------------------------------------------------
    # Read API
    # ---------------------------------------------------------

    @property
    def state(self) -> MatchState:
        return self._state

    @property
    def version(self) -> int:
        return self._version

    # ---------------------------------------------------------
    # Write API
    # ---------------------------------------------------------

    def add_point(
        self,
        winner: Union[PlayerId, str],
        expected_version: Optional[int] = None,
        timestamp: Optional[float] = None,
    ) -> MatchState:
        with self._lock:
            self._check_version(expected_version)
            return self._commit(add_point(self._state, winner, timestamp=timestamp))

    def undo(self, expected_version: Optional[int] = None) -> MatchState:
        with self._lock:
            self._check_version(expected_version)
            return self._commit(undo_point(self._state))

    def replace_config(
        self,
        config: MatchConfiguration,
        expected_version: Optional[int] = None,
    ) -> MatchState:
        with self._lock:
            self._check_version(expected_version)
            return self._commit(replace_config(self._state, config))

    def toggle_serving_partner(
        self,
        team: Union[PlayerId, str],
        expected_version: Optional[int] = None,
    ) -> MatchState:
        with self._lock:
            self._check_version(expected_version)
            return self._commit(toggle_serving_partner(self._state, team))

    def load_events(self, events: List[Dict]) -> List[MatchState]:
        """
        Bulk load point events from list of dicts: {"timestamp": ..., "winner": "P1"}.
        Atomic: if any event fails -> no state mutation.
        """
        if not isinstance(events, list):
            raise ValueError("events must be a list")

        for e in events:
            if not isinstance(e, dict) or "timestamp" not in e or "winner" not in e:
                raise ValueError("invalid event format")

        ordered = sorted(events, key=lambda e: float(e["timestamp"]))

        with self._lock:
            # Replay on a fresh match, commit only if every event applies
            state = initialize_match(self._state.config, now=self._state.start_time)
            timeline: List[MatchState] = []

            for e in ordered:
                state = add_point(state, e["winner"], timestamp=float(e["timestamp"]))
                timeline.append(state)

            self._commit(state)

        logger.info("Loaded %d event(s)", len(ordered))
        return timeline

    def export_events(self) -> List[Dict]:
        return [
            {"timestamp": e.timestamp, "winner": e.winner.value}
            for e in self._state.history
        ]

    def reset(self, expected_version: Optional[int] = None) -> MatchState:
        with self._lock:
            self._check_version(expected_version)
            return self._commit(initialize_match(self._state.config))

    # ---------------------------------------------------------
    # Internals
    # ---------------------------------------------------------

    def _check_version(self, expected_version: Optional[int]):
        if expected_version is not None and expected_version != self._version:
            raise StaleStateError(expected_version, self._version)

    def _commit(self, state: MatchState) -> MatchState:
        if state is not self._state:
            self._state = state
            self._version += 1
        return state
