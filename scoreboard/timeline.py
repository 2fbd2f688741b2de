from typing import Iterable, List, Optional, Union

from scoreboard.engine import add_point, initialize_match
from scoreboard.models import MatchConfiguration, MatchState, PlayerId


def build_match_timeline(
    config: MatchConfiguration,
    winners: Iterable[Union[PlayerId, str]],
    start_time: Optional[float] = None,
) -> List[MatchState]:
    """
    Replays a match from scratch using the winner sequence.
    Returns the state after each point, stopping once the match is over.
    Does NOT mutate external state.
    """
    state = initialize_match(config, now=start_time)

    timeline: List[MatchState] = []

    for winner in winners:

        state = add_point(state, winner)

        timeline.append(state)

        if state.is_match_over:
            break

    return timeline
