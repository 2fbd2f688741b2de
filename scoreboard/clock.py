"""
Elapsed-time bookkeeping for a MatchState.

Display only: the scoring rules never read these fields.
"""
import logging
import time
from dataclasses import replace
from typing import Optional

from scoreboard.models import MatchState

logger = logging.getLogger(__name__)


def _now(now: Optional[float]) -> float:
    return time.time() if now is None else now


def tick(state: MatchState, now: Optional[float] = None) -> MatchState:
    """
    Refresh duration_seconds from start_time.
    Frozen while paused, once the match is over, or before it has a start time.
    """
    if state.is_paused or state.is_match_over or state.start_time is None:
        return state

    duration = max(0, int(_now(now) - state.start_time))
    if duration == state.duration_seconds:
        return state

    return replace(state, duration_seconds=duration)


def pause(state: MatchState, now: Optional[float] = None) -> MatchState:
    if state.is_paused:
        return state

    state = tick(state, now)
    logger.debug("Clock paused at %ds", state.duration_seconds)
    return replace(state, is_paused=True)


def resume(state: MatchState, now: Optional[float] = None) -> MatchState:
    """
    Restart the clock. start_time is shifted so the paused span is not counted.
    """
    if not state.is_paused:
        return state

    start_time = _now(now) - state.duration_seconds
    logger.debug("Clock resumed at %ds", state.duration_seconds)
    return replace(state, start_time=start_time, is_paused=False)
