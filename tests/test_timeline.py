import pytest

from scoreboard.exceptions import ConfigurationError
from scoreboard.models import FinalSetType, GameScore, MatchConfiguration, PlayerId
from scoreboard.timeline import build_match_timeline


def make_config(**overrides):
    values = dict(sets_to_win=2, final_set_type=FinalSetType.STANDARD)
    values.update(overrides)
    return MatchConfiguration(**values)


# -------------------------------------------------
# Basic Timeline Build
# -------------------------------------------------

def test_timeline_basic_build():
    timeline = build_match_timeline(make_config(), ["P1"] * 5)

    assert len(timeline) == 5
    assert timeline[-1].games == GameScore(1, 0)
    assert timeline[-1].points.p1.value == "15"


# -------------------------------------------------
# Timeline Stops After Match Finish
# -------------------------------------------------

def test_timeline_stops_after_match_finish():
    # enough to win match 2 sets
    winners = ["P1"] * 48

    # add extra noise events
    winners += ["P2"] * 20

    timeline = build_match_timeline(make_config(), winners)

    last = timeline[-1]

    assert len(timeline) == 48
    assert last.is_match_over
    assert last.winner == PlayerId.P1


# -------------------------------------------------
# Empty Events
# -------------------------------------------------

def test_timeline_empty_events():
    assert build_match_timeline(make_config(), []) == []


# -------------------------------------------------
# Invalid input
# -------------------------------------------------

def test_timeline_invalid_winner():
    with pytest.raises(ValueError):
        build_match_timeline(make_config(), ["P1", "unknown"])


def test_timeline_invalid_config():
    with pytest.raises(ConfigurationError):
        build_match_timeline(make_config(tie_break_points=0), ["P1"])


# -------------------------------------------------
# Timeline Independence
# -------------------------------------------------

def test_timeline_states_independent():
    timeline = build_match_timeline(make_config(), ["P1", "P2", "P1"], start_time=10.0)

    assert timeline[0].points.p2.value == "0"
    assert timeline[1].points.p2.value == "15"
    assert len(timeline[0].history) == 1
    assert len(timeline[2].history) == 3
    assert timeline[0].history is not timeline[2].history
    assert all(s.start_time == 10.0 for s in timeline)
