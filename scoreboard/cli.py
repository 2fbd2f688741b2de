from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from scoreboard.config import (
    DEFAULT_P1_NAME,
    DEFAULT_P2_NAME,
    DEFAULT_SETS_TO_WIN,
    DEFAULT_TIE_BREAK_AT,
    DEFAULT_TIE_BREAK_POINTS,
)
from scoreboard.exceptions import ScoreboardError
from scoreboard.match_session import MatchSession
from scoreboard.models import (
    EventType,
    FinalSetType,
    MatchConfiguration,
    MatchState,
    PlayerId,
)
from scoreboard.projections import display_name, point_display, score_summary
from scoreboard.storage import load_match, resolve_match_path, save_match

UNDO_TOKENS = ("u", "undo")
POINT_TOKENS = {
    "1": PlayerId.P1,
    "p1": PlayerId.P1,
    "2": PlayerId.P2,
    "p2": PlayerId.P2,
}


def parse_token(token: str) -> Optional[PlayerId]:
    """Return the point winner for a token, or None for an undo token.

    Raises ValueError for anything else.
    """
    t = token.strip().lower()
    if t in UNDO_TOKENS:
        return None
    if t in POINT_TOKENS:
        return POINT_TOKENS[t]
    raise ValueError(f"Unknown point token: {token!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Tennis match scoreboard (CLI)")
    parser.add_argument("points", nargs="*", help="Point winners in order: 1/P1, 2/P2, or u to undo")
    parser.add_argument("--p1", dest="p1_name", default=DEFAULT_P1_NAME, help="Player 1 name")
    parser.add_argument("--p2", dest="p2_name", default=DEFAULT_P2_NAME, help="Player 2 name")
    parser.add_argument("--sets-to-win", dest="sets_to_win", type=int, choices=[1, 2, 3], default=DEFAULT_SETS_TO_WIN)
    parser.add_argument("--advantage", action="store_true", help="Play deuce/advantage instead of golden point")
    parser.add_argument(
        "--final-set",
        dest="final_set_type",
        choices=[t.value for t in FinalSetType],
        default=FinalSetType.SUPER_TIE_BREAK.value,
    )
    parser.add_argument("--tie-break-at", dest="tie_break_at", type=int, default=DEFAULT_TIE_BREAK_AT)
    parser.add_argument("--tie-break-points", dest="tie_break_points", type=int, default=DEFAULT_TIE_BREAK_POINTS)
    parser.add_argument("--doubles", action="store_true")
    parser.add_argument("--p1-partner", dest="p1_partner_name", default=None)
    parser.add_argument("--p2-partner", dest="p2_partner_name", default=None)
    parser.add_argument("--first-server", dest="first_server", choices=[p.value for p in PlayerId], default=PlayerId.P1.value)
    parser.add_argument("--load", dest="load", default=None, help="Resume a saved match (rule flags are ignored)")
    parser.add_argument("--save", dest="save", default=None, help="Save the match after playing the points")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def config_from_args(args: argparse.Namespace) -> MatchConfiguration:
    return MatchConfiguration(
        p1_name=args.p1_name,
        p2_name=args.p2_name,
        sets_to_win=args.sets_to_win,
        use_advantage=args.advantage,
        final_set_type=FinalSetType(args.final_set_type),
        tie_break_at=args.tie_break_at,
        tie_break_points=args.tie_break_points,
        doubles=args.doubles,
        p1_partner_name=args.p1_partner_name,
        p2_partner_name=args.p2_partner_name,
        first_server=PlayerId(args.first_server),
    )


def describe(state: MatchState) -> List[str]:
    """Return the lines that report the last history event."""
    event = state.history[-1]
    config = state.config
    name = display_name(config, event.winner)
    p1 = display_name(config, PlayerId.P1)
    p2 = display_name(config, PlayerId.P2)
    left, right = point_display(state)

    lines: List[str] = []
    if event.type is EventType.POINT:
        label = "Tie-break" if state.is_tie_break else "Game Score"
        lines.append(f"Point {name}, {label}: {left} - {right}")
    elif event.type is EventType.GAME_WIN:
        lines.append(f"Point {name}, Game {name}")
        lines.append(f"Set Score: {p1} vs {p2} {state.games.p1} - {state.games.p2}")
        if state.is_tie_break:
            lines.append("Tie-break")
    elif event.type is EventType.SET_WIN:
        finished = state.sets[-2]
        lines.append(f"Set won by {name}. Games: {p1} vs {p2} {finished.p1} - {finished.p2}")
        if state.is_tie_break:
            lines.append("Super tie-break")
    else:
        lines.append(f"Winner: {name}. Final Score: {p1} vs {p2} {score_summary(state)}")

    if event.side_switch_after:
        lines.append("Change ends")
    return lines


def main(argv=None) -> int:
    """Play a point sequence and print the running score.

    Accepts rule flags (or a saved match) and prints one block per point.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        tokens = [parse_token(t) for t in args.points]
    except ValueError as e:
        print(f"Invalid input: {e}")
        return 2

    try:
        if args.load:
            session = MatchSession.from_state(load_match(resolve_match_path(args.load)))
        else:
            session = MatchSession(config_from_args(args))
    except (ScoreboardError, FileNotFoundError) as e:
        print(f"Error: {e}")
        return 2

    config = session.state.config
    print(
        f"{display_name(config, PlayerId.P1)} vs {display_name(config, PlayerId.P2)}"
        f" - first to {config.sets_to_win} set(s)"
    )

    for winner in tokens:
        if winner is None:
            before = len(session.state.history)
            state = session.undo()
            if len(state.history) < before:
                left, right = point_display(state)
                print(f"Undo. Score: {score_summary(state)} ({left} - {right})")
            continue

        if session.state.is_match_over:
            print("Match is over; point ignored.")
            continue

        for line in describe(session.add_point(winner)):
            print(line)

    state = session.state
    left, right = point_display(state)
    print(f"Score: {score_summary(state)} ({left} - {right})")

    if args.save:
        path = resolve_match_path(args.save)
        save_match(path, state)
        print(f"Saved to {path}")

    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
