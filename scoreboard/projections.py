"""
Read-only views of a MatchState for external collaborators.

- match_summary: low-frequency projection (lists of live matches)
- realtime_view: high-frequency projection (current points + recent history)
- summary_due: whether the low-frequency projection changed shape
"""
from typing import Any, Dict, Optional, Tuple

from scoreboard.models import (
    EventType,
    MatchConfiguration,
    MatchState,
    PlayerId,
    PointLabel,
    TieBreakScore,
)

STATUS_LIVE = "LIVE"
STATUS_FINISHED = "FINISHED"


def display_name(config: MatchConfiguration, player: PlayerId) -> str:
    name = config.name_of(player)
    if config.doubles:
        return f"{name} & {config.partner_of(player)}"
    return name


def current_server_name(state: MatchState) -> str:
    """Name of the individual due to serve (the right partner in doubles)."""
    config = state.config
    team = state.serve.server
    if config.doubles and state.serve.partner_index(team) == 1:
        return config.partner_of(team)
    return config.name_of(team)


def point_display(state: MatchState) -> Tuple[str, str]:
    points = state.points
    if isinstance(points, TieBreakScore):
        return str(points.p1), str(points.p2)
    return PointLabel(points.p1).value, PointLabel(points.p2).value


def score_summary(state: MatchState) -> str:
    """
    Completed sets then the current games, e.g. "6-4, 2-1".
    A set decided by a tie-break carries the loser's points: "7-6(5)".
    """
    parts = []
    for set_score in state.sets[: state.current_set_index]:
        text = f"{set_score.p1}-{set_score.p2}"
        if set_score.tie_break is not None:
            text += f"({min(set_score.tie_break.p1, set_score.tie_break.p2)})"
        parts.append(text)

    if state.is_match_over:
        final = state.sets[state.current_set_index]
        text = f"{final.p1}-{final.p2}"
        if final.tie_break is not None:
            text += f"({min(final.tie_break.p1, final.tie_break.p2)})"
        parts.append(text)
    else:
        parts.append(f"{state.games.p1}-{state.games.p2}")

    return ", ".join(parts)


def match_summary(state: MatchState) -> Dict[str, Any]:
    config = state.config
    return {
        "p1_name": display_name(config, PlayerId.P1),
        "p2_name": display_name(config, PlayerId.P2),
        "score_summary": score_summary(state),
        "current_games": state.games.to_dict(),
        "current_sets": [s.to_dict() for s in state.sets],
        "server": state.server.value,
        "is_doubles": config.doubles,
        "status": STATUS_FINISHED if state.is_match_over else STATUS_LIVE,
        "winner": state.winner.value if state.winner else None,
        "match_duration": state.duration_seconds,
        "start_time": state.start_time,
        "is_paused": state.is_paused,
        "config": config.to_dict(),
    }


def realtime_view(state: MatchState, history_limit: Optional[int] = None) -> Dict[str, Any]:
    history = state.history
    if history_limit is not None:
        history = history[-history_limit:] if history_limit > 0 else []

    return {
        "current_points": state.points.to_dict(),
        "is_tie_break": state.is_tie_break,
        "should_switch_sides": state.should_switch_sides,
        "history": [e.to_dict() for e in history],
    }


def summary_due(state: MatchState) -> bool:
    """
    True at match start, at match end, and after any game, set or match win.
    Plain points only move the realtime view.
    """
    if not state.history or state.is_match_over:
        return True
    return state.history[-1].type is not EventType.POINT
