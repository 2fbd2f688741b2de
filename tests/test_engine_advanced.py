import random
from dataclasses import replace

import pytest

from scoreboard.engine import (
    add_point,
    initialize_match,
    replace_config,
    tie_break_target,
    toggle_serving_partner,
    undo_point,
)
from scoreboard.exceptions import (
    ConfigurationError,
    CorruptStateError,
    InvalidWinnerError,
)
from scoreboard.models import (
    FinalSetType,
    GameScore,
    LadderScore,
    MatchConfiguration,
    PlayerId,
    ServeRotation,
    SetScore,
    TieBreakScore,
)

P1 = PlayerId.P1
P2 = PlayerId.P2


# ---------------------------------------------------------
# Helpers
# ---------------------------------------------------------

def make_config(**overrides):
    values = dict(
        p1_name="Alice",
        p2_name="Bea",
        sets_to_win=2,
        use_advantage=False,
        final_set_type=FinalSetType.STANDARD,
    )
    values.update(overrides)
    return MatchConfiguration(**values)


def doubles_config(**overrides):
    return make_config(
        doubles=True,
        p1_partner_name="Ana",
        p2_partner_name="Bo",
        **overrides,
    )


def play(state, winners):
    for w in winners:
        state = add_point(state, w)
    return state


def win_game(state, player):
    return play(state, [player] * 4)


def assert_invariants(state):
    assert state.current_set_index == len(state.sets) - 1
    assert state.is_tie_break == isinstance(state.points, TieBreakScore)
    current = state.sets[state.current_set_index]
    assert (current.p1, current.p2) == (state.games.p1, state.games.p2)


CONFIG_VARIANTS = [
    make_config(),
    make_config(use_advantage=True),
    make_config(final_set_type=FinalSetType.SUPER_TIE_BREAK),
    make_config(sets_to_win=3, use_advantage=True, tie_break_at=4, tie_break_points=5),
    make_config(sets_to_win=1, final_set_type=FinalSetType.SUPER_TIE_BREAK),
    doubles_config(use_advantage=True),
]


# ---------------------------------------------------------
# Undo restores the exact prior state
# ---------------------------------------------------------

@pytest.mark.parametrize("config", CONFIG_VARIANTS)
@pytest.mark.parametrize("seed", [1, 7, 42])
def test_undo_inverts_add_point_on_random_walk(config, seed):
    rng = random.Random(seed)
    state = initialize_match(config, now=0.0)

    steps = 0
    while not state.is_match_over and steps < 2000:
        winner = rng.choice([P1, P2])
        after = add_point(state, winner)

        assert len(after.history) == len(state.history) + 1
        assert undo_point(after) == state
        assert_invariants(after)

        state = after
        steps += 1

    assert state.is_match_over


@pytest.mark.parametrize("seed", [3, 11])
def test_undo_all_the_way_back_to_start(seed):
    rng = random.Random(seed)
    start = initialize_match(make_config(use_advantage=True), now=5.0)

    states = [start]
    for _ in range(150):
        states.append(add_point(states[-1], rng.choice([P1, P2])))
        if states[-1].is_match_over:
            break

    state = states[-1]
    for expected in reversed(states[:-1]):
        state = undo_point(state)
        assert state == expected

    assert state.history == []
    assert state.start_time == 5.0


def test_undo_unfinishes_match():
    state = play(initialize_match(make_config(sets_to_win=1)), [P1] * 24)
    assert state.is_match_over is True

    state = undo_point(state)

    assert state.is_match_over is False
    assert state.winner is None
    assert state.games == GameScore(5, 0)
    assert state.current_set_index == 0
    assert state.sets == [SetScore(p1=5, p2=0)]


def test_undo_restores_tie_break_serve():
    state = initialize_match(make_config())
    for _ in range(6):
        state = win_game(state, P1)
        state = win_game(state, P2)
    state = play(state, [P1, P2, P1])

    finished = play(state, [P1] * 5)
    assert finished.current_set_index == 1

    for _ in range(5):
        finished = undo_point(finished)

    assert finished == state
    assert finished.tie_break_opening == ServeRotation(P1)


# ---------------------------------------------------------
# No mutation of inputs
# ---------------------------------------------------------

def test_add_point_does_not_mutate_input():
    state = play(initialize_match(make_config()), [P1, P2, P1, P1, P1])
    before = state.to_dict()

    after = add_point(state, P2)

    assert state.to_dict() == before
    assert after is not state
    assert after.history is not state.history
    assert after.sets is not state.sets


def test_undo_does_not_mutate_input():
    state = play(initialize_match(make_config()), [P1] * 6)
    before = state.to_dict()

    undo_point(state)

    assert state.to_dict() == before


def test_snapshots_are_frozen():
    state = play(initialize_match(make_config()), [P1] * 4)
    event = state.history[-1]

    state = play(state, [P2] * 8)

    assert event.snapshot.games == GameScore(1, 0)
    assert event.snapshot.sets == (SetScore(p1=1, p2=0),)
    with pytest.raises(AttributeError):
        event.snapshot.games = GameScore(9, 9)


# ---------------------------------------------------------
# Configuration validation
# ---------------------------------------------------------

@pytest.mark.parametrize("overrides", [
    {"sets_to_win": 0},
    {"tie_break_at": 0},
    {"tie_break_points": 0},
    {"p1_name": "  "},
    {"final_set_type": "bogus"},
    {"first_server": "P3"},
    {"doubles": True},
])
def test_invalid_configuration_rejected(overrides):
    with pytest.raises(ConfigurationError) as exc_info:
        initialize_match(make_config(**overrides))

    assert exc_info.value.problems
    assert isinstance(exc_info.value, ValueError)


def test_configuration_is_not_clamped():
    with pytest.raises(ConfigurationError, match="sets_to_win"):
        initialize_match(make_config(sets_to_win=-3))


def test_replace_config_is_not_retroactive():
    state = play(initialize_match(make_config()), [P1] * 6)

    updated = replace_config(state, make_config(use_advantage=True, tie_break_points=10))

    assert updated.config.use_advantage is True
    assert updated.history == state.history
    assert updated.sets == state.sets
    assert updated.points == state.points
    assert state.config.use_advantage is False


def test_replace_config_validates():
    state = initialize_match(make_config())

    with pytest.raises(ConfigurationError):
        replace_config(state, make_config(tie_break_points=0))


def test_replaced_rules_apply_to_next_points():
    state = play(initialize_match(make_config()), [P1, P1, P1, P2, P2, P2])
    state = replace_config(state, make_config(use_advantage=True))

    state = add_point(state, P1)

    assert state.games == GameScore(0, 0)
    assert state.points.p1.value == "Ad"


# ---------------------------------------------------------
# Invalid input / corrupt state
# ---------------------------------------------------------

@pytest.mark.parametrize("winner", ["P3", "player_a", None, 1])
def test_invalid_winner_raises(winner):
    state = initialize_match(make_config())

    with pytest.raises(InvalidWinnerError):
        add_point(state, winner)


def test_tie_break_flag_without_tie_break_points_is_corrupt():
    state = initialize_match(make_config())
    broken = replace(state, is_tie_break=True)

    with pytest.raises(CorruptStateError):
        add_point(broken, P1)


def test_set_index_mismatch_is_corrupt():
    state = play(initialize_match(make_config()), [P1] * 4)
    broken = replace(state, current_set_index=3)

    with pytest.raises(CorruptStateError):
        undo_point(broken)


def test_tie_break_without_opening_server_is_corrupt():
    state = initialize_match(make_config())
    broken = replace(state, is_tie_break=True, points=TieBreakScore())

    with pytest.raises(CorruptStateError):
        add_point(broken, P1)


def test_foreign_point_score_is_corrupt():
    state = initialize_match(make_config())
    broken = replace(state, points={"P1": "15", "P2": "0"})

    with pytest.raises(CorruptStateError):
        add_point(broken, P1)


# ---------------------------------------------------------
# Doubles
# ---------------------------------------------------------

def test_doubles_partner_rotation():
    state = initialize_match(doubles_config())
    assert state.serve == ServeRotation(P1, 0, 0)

    state = win_game(state, P1)
    assert state.serve == ServeRotation(P2, 1, 0)

    state = win_game(state, P1)
    assert state.serve == ServeRotation(P1, 1, 1)

    state = win_game(state, P2)
    assert state.serve == ServeRotation(P2, 0, 1)

    state = win_game(state, P2)
    assert state.serve == ServeRotation(P1, 0, 0)


def test_doubles_tie_break_counts_as_one_service_game():
    state = initialize_match(doubles_config())
    for _ in range(6):
        state = win_game(state, P1)
        state = win_game(state, P2)
    opening = state.serve
    assert state.tie_break_opening == opening

    state = play(state, [P2, P1] * 4 + [P2] * 3)

    assert state.current_set_index == 1
    assert state.serve == opening.passed(doubles=True)


def test_toggle_serving_partner():
    state = play(initialize_match(doubles_config()), [P1])

    toggled = toggle_serving_partner(state, P2)

    assert toggled.serve == ServeRotation(P1, 0, 1)
    assert toggled.history == state.history
    assert state.serve == ServeRotation(P1, 0, 0)


# ---------------------------------------------------------
# Decider rules
# ---------------------------------------------------------

def test_single_set_super_tie_break_plays_normal_games_first():
    config = make_config(sets_to_win=1, final_set_type=FinalSetType.SUPER_TIE_BREAK)
    state = initialize_match(config)

    assert state.is_tie_break is False
    assert state.points == LadderScore()

    for _ in range(6):
        state = win_game(state, P1)
        state = win_game(state, P2)

    assert state.is_tie_break is True
    assert tie_break_target(config, 0) == 10

    state = play(state, [P1] * 7)
    assert state.is_match_over is False

    state = play(state, [P1] * 3)
    assert state.is_match_over is True
    assert state.sets[0] == SetScore(
        p1=7, p2=6, winner=P1, tie_break=TieBreakScore(10, 0)
    )


def test_best_of_five_standard_decider_has_no_super_tie_break():
    config = make_config(sets_to_win=3, final_set_type=FinalSetType.STANDARD)
    state = initialize_match(config)

    for player in (P1, P2, P1, P2):
        state = play(state, [player] * 24)

    assert state.current_set_index == 4
    assert state.is_tie_break is False
    assert state.points == LadderScore()


def test_toggle_serving_partner_ignored_in_singles():
    state = play(initialize_match(make_config()), [P1])

    assert toggle_serving_partner(state, P1) is state
    assert state.serve == ServeRotation(P1, 0, 0)
