"""
Tennis score engine.

Pure transitions over MatchState:
- initialize_match(config) -> MatchState
- add_point(state, winner) -> MatchState
- undo_point(state) -> MatchState

No call mutates its input. Every effective call returns a new, independent
MatchState; an ineffective one (point after the match, undo with no history)
returns the input unchanged.
"""
import logging
import time
import uuid
from dataclasses import replace
from typing import Optional, Tuple, Union

from scoreboard.config import SIDE_SWITCH_TIE_BREAK_POINTS, SUPER_TIE_BREAK_POINTS
from scoreboard.exceptions import (
    ConfigurationError,
    CorruptStateError,
    InvalidWinnerError,
)
from scoreboard.models import (
    EventType,
    GameScore,
    HistoryEvent,
    LadderScore,
    MatchConfiguration,
    MatchState,
    PlayerId,
    PointLabel,
    ServeRotation,
    SetScore,
    TieBreakScore,
    validate_configuration,
)

logger = logging.getLogger(__name__)

LADDER_NEXT = {
    PointLabel.LOVE: PointLabel.FIFTEEN,
    PointLabel.FIFTEEN: PointLabel.THIRTY,
    PointLabel.THIRTY: PointLabel.FORTY,
}


# =========================================================
# PUBLIC API
# =========================================================

def initialize_match(config: MatchConfiguration, now: Optional[float] = None) -> MatchState:
    """
    Build the starting state of a match.
    Raises ConfigurationError for an invalid rule set.
    """
    _ensure_valid(config)

    return MatchState(
        config=config,
        start_time=time.time() if now is None else now,
        serve=ServeRotation(server=PlayerId(config.first_server)),
    )


def add_point(
    state: MatchState,
    winner: Union[PlayerId, str],
    timestamp: Optional[float] = None,
) -> MatchState:
    """
    Award one point and return the resulting state.
    """
    winner = _coerce_player(winner)
    _check_state(state)

    if state.is_match_over:
        logger.debug("Point for %s ignored: match is over", winner.value)
        return state

    new = _clone(state)
    loser = winner.other
    config = new.config
    was_tie_break = new.is_tie_break

    event_type = EventType.POINT
    game_won = False
    set_won = False
    final_tie_break = None

    # -----------------------------------------------------
    # Point
    # -----------------------------------------------------
    if was_tie_break:
        points = new.points.scored(winner)
        new.points = points
        target = tie_break_target(config, new.current_set_index)

        if points.of(winner) >= target and points.of(winner) - points.of(loser) >= 2:
            game_won = True
            final_tie_break = points
        elif points.total % 2 == 1:
            new.serve = new.serve.passed(config.doubles)
    else:
        new.points, game_won = _advance_ladder(new.points, winner, config.use_advantage)

    # -----------------------------------------------------
    # Game
    # -----------------------------------------------------
    if game_won:
        event_type = EventType.GAME_WIN
        new.games = new.games.incremented(winner)
        new.points = LadderScore()
        new.is_tie_break = False

        if was_tie_break:
            # A tie-break game always decides its set
            set_won = True
        else:
            new.serve = new.serve.passed(config.doubles)

            won = new.games.of(winner)
            lost = new.games.of(loser)

            if won == config.tie_break_at and lost == config.tie_break_at:
                _enter_tie_break(new)
            elif won >= config.tie_break_at and won - lost >= 2:
                set_won = True

        new.sets[-1] = SetScore(p1=new.games.p1, p2=new.games.p2)

    # -----------------------------------------------------
    # Set / match
    # -----------------------------------------------------
    if set_won:
        event_type = EventType.SET_WIN
        new.sets[-1] = SetScore(
            p1=new.games.p1,
            p2=new.games.p2,
            winner=winner,
            tie_break=final_tie_break,
        )

        if was_tie_break:
            # The tie-break counts as one service game of whoever opened it
            new.serve = new.tie_break_opening.passed(config.doubles)
            new.tie_break_opening = None

        logger.info(
            "Set %d won by %s %d-%d",
            new.current_set_index + 1,
            winner.value,
            new.games.p1,
            new.games.p2,
        )

        p1_sets, p2_sets = new.sets_won()

        if p1_sets >= config.sets_to_win or p2_sets >= config.sets_to_win:
            event_type = EventType.MATCH_WIN
            new.is_match_over = True
            new.winner = PlayerId.P1 if p1_sets > p2_sets else PlayerId.P2
            logger.info("Match won by %s (%d-%d in sets)", new.winner.value, p1_sets, p2_sets)
        else:
            _start_next_set(new)

    # -----------------------------------------------------
    # Change of ends, history
    # -----------------------------------------------------
    new.should_switch_sides = _should_switch_sides(new, event_type)

    new.history.append(
        HistoryEvent(
            id=uuid.uuid4().hex,
            timestamp=time.time() if timestamp is None else timestamp,
            type=event_type,
            winner=winner,
            snapshot=new.snapshot(),
            side_switch_after=new.should_switch_sides,
        )
    )

    logger.debug(
        "%s for %s -> sets=%s games=%s points=%s",
        event_type.value,
        winner.value,
        [(s.p1, s.p2) for s in new.sets],
        (new.games.p1, new.games.p2),
        new.points.to_dict(),
    )

    return new


def undo_point(state: MatchState) -> MatchState:
    """
    Remove the last history event and restore the score it replaced.
    """
    _check_state(state)

    if not state.history:
        logger.debug("Undo ignored: history is empty")
        return state

    history = state.history[:-1]

    if not history:
        logger.debug("Undo reached the start of the match")
        return initialize_match(state.config, now=state.start_time)

    last = history[-1]
    snapshot = last.snapshot

    logger.debug("Undo: back to event %s (%s)", last.id, last.type.value)

    return replace(
        state,
        history=history,
        sets=list(snapshot.sets),
        games=snapshot.games,
        points=snapshot.points,
        is_tie_break=snapshot.is_tie_break,
        serve=snapshot.serve,
        tie_break_opening=snapshot.tie_break_opening,
        is_match_over=False,
        winner=None,
        current_set_index=len(snapshot.sets) - 1,
        should_switch_sides=last.side_switch_after,
    )


def replace_config(state: MatchState, config: MatchConfiguration) -> MatchState:
    """
    Swap the rule set. Only future transitions see it; history and the
    current score keep the shape they were played under.
    """
    _ensure_valid(config)
    return replace(_clone(state), config=config)


def toggle_serving_partner(state: MatchState, team: Union[PlayerId, str]) -> MatchState:
    """
    Doubles correction: swap which partner of `team` serves on its next turn.
    Not recorded in history. Ignored in singles.
    """
    team = _coerce_player(team)

    if not state.config.doubles:
        logger.debug("Partner toggle for %s ignored: singles match", team.value)
        return state

    return replace(_clone(state), serve=state.serve.with_partner_toggled(team))


def resume_match(state: MatchState) -> MatchState:
    """
    Adopt a stored MatchState as is (score, rules, clock, serve corrections).
    Raises ConfigurationError or CorruptStateError instead of repairing it.
    """
    _ensure_valid(state.config)
    _check_state(state)

    if state.history:
        # serve may differ: partner corrections are not history events
        recorded = state.history[-1].snapshot
        current = state.snapshot()
        if (recorded.sets, recorded.games, recorded.points) != (
            current.sets,
            current.games,
            current.points,
        ):
            raise CorruptStateError("Score does not match the last history event")

    return _clone(state)


def tie_break_target(config: MatchConfiguration, set_index: int) -> int:
    if config.is_super_tie_break_set(set_index):
        return SUPER_TIE_BREAK_POINTS
    return config.tie_break_points


# =========================================================
# POINT LADDER
# =========================================================

def _advance_ladder(
    points: LadderScore,
    winner: PlayerId,
    use_advantage: bool,
) -> Tuple[LadderScore, bool]:
    """
    Apply one standard-game point. Returns (new points, game won).
    """
    mine = points.of(winner)
    theirs = points.of(winner.other)

    if mine in LADDER_NEXT:
        return points.with_label(winner, LADDER_NEXT[mine]), False

    if mine == PointLabel.ADVANTAGE:
        return points, True

    # mine is 40
    if theirs == PointLabel.FORTY:
        if use_advantage:
            return points.with_label(winner, PointLabel.ADVANTAGE), False
        # golden point
        return points, True

    if theirs == PointLabel.ADVANTAGE:
        return points.with_label(winner.other, PointLabel.FORTY), False

    return points, True


# =========================================================
# SET LOGIC
# =========================================================

def _enter_tie_break(state: MatchState):
    state.is_tie_break = True
    state.points = TieBreakScore()
    state.tie_break_opening = state.serve


def _start_next_set(state: MatchState):
    state.sets.append(SetScore())
    state.current_set_index += 1
    state.games = GameScore()

    if state.config.is_super_tie_break_set(state.current_set_index):
        _enter_tie_break(state)


def _should_switch_sides(state: MatchState, event_type: EventType) -> bool:
    if state.is_tie_break:
        total = state.points.total
        return total > 0 and total % SIDE_SWITCH_TIE_BREAK_POINTS == 0

    if event_type is EventType.GAME_WIN:
        return state.games.total % 2 == 1

    if event_type is EventType.SET_WIN:
        return state.sets[-2].total % 2 == 1

    return False


# =========================================================
# VALIDATION
# =========================================================

def _ensure_valid(config: MatchConfiguration):
    problems = validate_configuration(config)
    if problems:
        raise ConfigurationError(problems)


def _coerce_player(player) -> PlayerId:
    try:
        return PlayerId(player)
    except ValueError:
        raise InvalidWinnerError(f"Invalid player: {player!r}") from None


def _check_state(state: MatchState):
    """
    Fail loudly on a state no sequence of transitions could produce.
    """
    if not state.sets or state.current_set_index != len(state.sets) - 1:
        raise CorruptStateError(
            f"current_set_index {state.current_set_index} does not match "
            f"{len(state.sets)} set(s)"
        )

    if not isinstance(state.points, (LadderScore, TieBreakScore)):
        raise CorruptStateError(f"Unknown point score: {state.points!r}")

    if state.is_tie_break != isinstance(state.points, TieBreakScore):
        raise CorruptStateError(
            f"is_tie_break={state.is_tie_break} but points are {state.points.mode}"
        )

    if state.is_tie_break and state.tie_break_opening is None:
        raise CorruptStateError("Tie-break in progress without an opening server")

    if state.is_match_over and state.winner is None:
        raise CorruptStateError("Match is over without a winner")


def _clone(state: MatchState) -> MatchState:
    # Elements are frozen; copying the containers is enough for independence
    return replace(state, sets=list(state.sets), history=list(state.history))
