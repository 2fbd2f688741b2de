from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Union

from scoreboard.config import (
    DEFAULT_P1_NAME,
    DEFAULT_P2_NAME,
    DEFAULT_SETS_TO_WIN,
    DEFAULT_TIE_BREAK_AT,
    DEFAULT_TIE_BREAK_POINTS,
)
from scoreboard.exceptions import CorruptStateError


class PlayerId(str, Enum):
    P1 = "P1"
    P2 = "P2"

    @property
    def other(self) -> "PlayerId":
        return PlayerId.P2 if self == PlayerId.P1 else PlayerId.P1


class PointLabel(str, Enum):
    LOVE = "0"
    FIFTEEN = "15"
    THIRTY = "30"
    FORTY = "40"
    ADVANTAGE = "Ad"


class FinalSetType(str, Enum):
    STANDARD = "standard"
    SUPER_TIE_BREAK = "superTieBreak"


class EventType(str, Enum):
    POINT = "POINT"
    GAME_WIN = "GAME_WIN"
    SET_WIN = "SET_WIN"
    MATCH_WIN = "MATCH_WIN"


def _side(player: PlayerId) -> str:
    return "p1" if player == PlayerId.P1 else "p2"


def _player_value(player: Optional[PlayerId]) -> Optional[str]:
    return PlayerId(player).value if player is not None else None


def _player_from(raw: Optional[str]) -> Optional[PlayerId]:
    return PlayerId(raw) if raw is not None else None


# =============================================================================
# Configuration
# =============================================================================

@dataclass(frozen=True)
class MatchConfiguration:
    """
    Rule set fixed at match creation.

    - sets_to_win: 1, 2 (best of 3) or 3 (best of 5)
    - use_advantage: True = deuce/advantage, False = golden point at 40-40
    - final_set_type: the decider is a full set or a super tie-break to 10
    """
    p1_name: str = DEFAULT_P1_NAME
    p2_name: str = DEFAULT_P2_NAME
    sets_to_win: int = DEFAULT_SETS_TO_WIN
    use_advantage: bool = False
    final_set_type: FinalSetType = FinalSetType.SUPER_TIE_BREAK
    tie_break_at: int = DEFAULT_TIE_BREAK_AT
    tie_break_points: int = DEFAULT_TIE_BREAK_POINTS
    doubles: bool = False
    p1_partner_name: Optional[str] = None
    p2_partner_name: Optional[str] = None
    first_server: PlayerId = PlayerId.P1

    @property
    def decider_set_index(self) -> int:
        return self.sets_to_win * 2 - 2

    def is_super_tie_break_set(self, set_index: int) -> bool:
        return (
            self.final_set_type == FinalSetType.SUPER_TIE_BREAK
            and set_index == self.decider_set_index
        )

    def name_of(self, player: PlayerId) -> str:
        return self.p1_name if player == PlayerId.P1 else self.p2_name

    def partner_of(self, player: PlayerId) -> Optional[str]:
        return self.p1_partner_name if player == PlayerId.P1 else self.p2_partner_name

    def to_dict(self) -> Dict[str, Any]:
        return {
            "p1_name": self.p1_name,
            "p2_name": self.p2_name,
            "sets_to_win": self.sets_to_win,
            "use_advantage": self.use_advantage,
            "final_set_type": FinalSetType(self.final_set_type).value,
            "tie_break_at": self.tie_break_at,
            "tie_break_points": self.tie_break_points,
            "doubles": self.doubles,
            "p1_partner_name": self.p1_partner_name,
            "p2_partner_name": self.p2_partner_name,
            "first_server": PlayerId(self.first_server).value,
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "MatchConfiguration":
        return MatchConfiguration(
            p1_name=str(d.get("p1_name", DEFAULT_P1_NAME)),
            p2_name=str(d.get("p2_name", DEFAULT_P2_NAME)),
            sets_to_win=int(d.get("sets_to_win", DEFAULT_SETS_TO_WIN)),
            use_advantage=bool(d.get("use_advantage", False)),
            final_set_type=FinalSetType(
                d.get("final_set_type", FinalSetType.SUPER_TIE_BREAK.value)
            ),
            tie_break_at=int(d.get("tie_break_at", DEFAULT_TIE_BREAK_AT)),
            tie_break_points=int(d.get("tie_break_points", DEFAULT_TIE_BREAK_POINTS)),
            doubles=bool(d.get("doubles", False)),
            p1_partner_name=d.get("p1_partner_name"),
            p2_partner_name=d.get("p2_partner_name"),
            first_server=PlayerId(d.get("first_server", PlayerId.P1.value)),
        )


def _is_count(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_configuration(config: MatchConfiguration) -> List[str]:
    """
    Return list of problems (empty == valid).
    Nothing is clamped: a bad value is reported, never corrected.
    """
    problems: List[str] = []

    for label, name in (("p1_name", config.p1_name), ("p2_name", config.p2_name)):
        if not isinstance(name, str) or not name.strip():
            problems.append(f"{label} is empty")

    if not _is_count(config.sets_to_win) or config.sets_to_win < 1:
        problems.append(f"sets_to_win must be >= 1, got {config.sets_to_win!r}")

    if not _is_count(config.tie_break_at) or config.tie_break_at < 1:
        problems.append(f"tie_break_at must be >= 1, got {config.tie_break_at!r}")

    if not _is_count(config.tie_break_points) or config.tie_break_points < 1:
        problems.append(
            f"tie_break_points must be >= 1, got {config.tie_break_points!r}"
        )

    if config.final_set_type not in tuple(FinalSetType):
        problems.append(f"unknown final_set_type: {config.final_set_type!r}")

    if config.first_server not in tuple(PlayerId):
        problems.append(f"invalid first_server: {config.first_server!r}")

    if config.doubles:
        for label, name in (
            ("p1_partner_name", config.p1_partner_name),
            ("p2_partner_name", config.p2_partner_name),
        ):
            if not isinstance(name, str) or not name.strip():
                problems.append(f"{label} is required in doubles")

    return problems


# =============================================================================
# Point scores (tagged: ladder labels vs. tie-break counts)
# =============================================================================

@dataclass(frozen=True)
class LadderScore:
    mode: ClassVar[str] = "ladder"

    p1: PointLabel = PointLabel.LOVE
    p2: PointLabel = PointLabel.LOVE

    def of(self, player: PlayerId) -> PointLabel:
        return self.p1 if player == PlayerId.P1 else self.p2

    def with_label(self, player: PlayerId, label: PointLabel) -> "LadderScore":
        return replace(self, **{_side(player): label})

    def to_dict(self) -> Dict[str, Any]:
        return {"mode": self.mode, "p1": self.p1.value, "p2": self.p2.value}


@dataclass(frozen=True)
class TieBreakScore:
    mode: ClassVar[str] = "tie_break"

    p1: int = 0
    p2: int = 0

    def of(self, player: PlayerId) -> int:
        return self.p1 if player == PlayerId.P1 else self.p2

    def scored(self, player: PlayerId) -> "TieBreakScore":
        return replace(self, **{_side(player): self.of(player) + 1})

    @property
    def total(self) -> int:
        return self.p1 + self.p2

    def to_dict(self) -> Dict[str, Any]:
        return {"mode": self.mode, "p1": self.p1, "p2": self.p2}


PointScore = Union[LadderScore, TieBreakScore]


def point_score_from_dict(d: Dict[str, Any]) -> PointScore:
    mode = d.get("mode")
    if mode == LadderScore.mode:
        return LadderScore(p1=PointLabel(d["p1"]), p2=PointLabel(d["p2"]))
    if mode == TieBreakScore.mode:
        return TieBreakScore(p1=int(d["p1"]), p2=int(d["p2"]))
    raise CorruptStateError(f"Unknown point score mode: {mode!r}")


# =============================================================================
# Games, sets, serve
# =============================================================================

@dataclass(frozen=True)
class GameScore:
    p1: int = 0
    p2: int = 0

    def of(self, player: PlayerId) -> int:
        return self.p1 if player == PlayerId.P1 else self.p2

    def incremented(self, player: PlayerId) -> "GameScore":
        return replace(self, **{_side(player): self.of(player) + 1})

    @property
    def total(self) -> int:
        return self.p1 + self.p2

    def to_dict(self) -> Dict[str, Any]:
        return {"p1": self.p1, "p2": self.p2}

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "GameScore":
        return GameScore(p1=int(d["p1"]), p2=int(d["p2"]))


@dataclass(frozen=True)
class SetScore:
    p1: int = 0
    p2: int = 0
    winner: Optional[PlayerId] = None
    # Final tie-break points when the set was decided by one
    tie_break: Optional[TieBreakScore] = None

    def of(self, player: PlayerId) -> int:
        return self.p1 if player == PlayerId.P1 else self.p2

    @property
    def total(self) -> int:
        return self.p1 + self.p2

    def to_dict(self) -> Dict[str, Any]:
        return {
            "p1": self.p1,
            "p2": self.p2,
            "winner": _player_value(self.winner),
            "tie_break": self.tie_break.to_dict() if self.tie_break else None,
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "SetScore":
        tie_break = d.get("tie_break")
        return SetScore(
            p1=int(d["p1"]),
            p2=int(d["p2"]),
            winner=_player_from(d.get("winner")),
            tie_break=(
                TieBreakScore(p1=int(tie_break["p1"]), p2=int(tie_break["p2"]))
                if tie_break
                else None
            ),
        )


@dataclass(frozen=True)
class ServeRotation:
    """
    Who serves next, plus (doubles) which partner of each team is due
    to serve on that team's next service turn.
    """
    server: PlayerId = PlayerId.P1
    p1_partner: int = 0
    p2_partner: int = 0

    def partner_index(self, team: PlayerId) -> int:
        return self.p1_partner if team == PlayerId.P1 else self.p2_partner

    def with_partner_toggled(self, team: PlayerId) -> "ServeRotation":
        return replace(
            self, **{f"{_side(team)}_partner": 1 - self.partner_index(team)}
        )

    def passed(self, doubles: bool) -> "ServeRotation":
        """Hand the serve to the other team."""
        rotation = self.with_partner_toggled(self.server) if doubles else self
        return replace(rotation, server=self.server.other)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "server": PlayerId(self.server).value,
            "p1_partner": self.p1_partner,
            "p2_partner": self.p2_partner,
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "ServeRotation":
        return ServeRotation(
            server=PlayerId(d["server"]),
            p1_partner=int(d.get("p1_partner", 0)),
            p2_partner=int(d.get("p2_partner", 0)),
        )


def _rotation_from(d: Optional[Dict[str, Any]]) -> Optional[ServeRotation]:
    return ServeRotation.from_dict(d) if d else None


# =============================================================================
# History
# =============================================================================

@dataclass(frozen=True)
class ScoreSnapshot:
    sets: Tuple[SetScore, ...]
    games: GameScore
    points: PointScore
    is_tie_break: bool
    serve: ServeRotation
    tie_break_opening: Optional[ServeRotation] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sets": [s.to_dict() for s in self.sets],
            "games": self.games.to_dict(),
            "points": self.points.to_dict(),
            "is_tie_break": self.is_tie_break,
            "serve": self.serve.to_dict(),
            "tie_break_opening": (
                self.tie_break_opening.to_dict() if self.tie_break_opening else None
            ),
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "ScoreSnapshot":
        return ScoreSnapshot(
            sets=tuple(SetScore.from_dict(s) for s in d["sets"]),
            games=GameScore.from_dict(d["games"]),
            points=point_score_from_dict(d["points"]),
            is_tie_break=bool(d["is_tie_break"]),
            serve=ServeRotation.from_dict(d["serve"]),
            tie_break_opening=_rotation_from(d.get("tie_break_opening")),
        )


@dataclass(frozen=True)
class HistoryEvent:
    id: str
    timestamp: float
    type: EventType
    winner: PlayerId
    snapshot: ScoreSnapshot
    side_switch_after: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "type": EventType(self.type).value,
            "winner": PlayerId(self.winner).value,
            "snapshot": self.snapshot.to_dict(),
            "side_switch_after": self.side_switch_after,
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "HistoryEvent":
        return HistoryEvent(
            id=str(d["id"]),
            timestamp=float(d["timestamp"]),
            type=EventType(d["type"]),
            winner=PlayerId(d["winner"]),
            snapshot=ScoreSnapshot.from_dict(d["snapshot"]),
            side_switch_after=bool(d.get("side_switch_after", False)),
        )


# =============================================================================
# Match state
# =============================================================================

@dataclass
class MatchState:
    config: MatchConfiguration
    # Host-only time bookkeeping, never read by the scoring rules
    start_time: Optional[float] = None
    duration_seconds: int = 0
    is_paused: bool = False

    is_match_over: bool = False
    winner: Optional[PlayerId] = None
    current_set_index: int = 0
    sets: List[SetScore] = field(default_factory=lambda: [SetScore()])
    games: GameScore = field(default_factory=GameScore)
    points: PointScore = field(default_factory=LadderScore)
    is_tie_break: bool = False
    serve: ServeRotation = field(default_factory=ServeRotation)
    tie_break_opening: Optional[ServeRotation] = None
    should_switch_sides: bool = False
    history: List[HistoryEvent] = field(default_factory=list)

    @property
    def server(self) -> PlayerId:
        return self.serve.server

    def snapshot(self) -> ScoreSnapshot:
        return ScoreSnapshot(
            sets=tuple(self.sets),
            games=self.games,
            points=self.points,
            is_tie_break=self.is_tie_break,
            serve=self.serve,
            tie_break_opening=self.tie_break_opening,
        )

    def sets_won(self) -> Tuple[int, int]:
        p1 = sum(1 for s in self.sets if s.winner == PlayerId.P1)
        p2 = sum(1 for s in self.sets if s.winner == PlayerId.P2)
        return p1, p2

    def to_dict(self) -> Dict[str, Any]:
        return {
            "config": self.config.to_dict(),
            "start_time": self.start_time,
            "duration_seconds": self.duration_seconds,
            "is_paused": self.is_paused,
            "is_match_over": self.is_match_over,
            "winner": _player_value(self.winner),
            "current_set_index": self.current_set_index,
            "sets": [s.to_dict() for s in self.sets],
            "games": self.games.to_dict(),
            "points": self.points.to_dict(),
            "is_tie_break": self.is_tie_break,
            "serve": self.serve.to_dict(),
            "tie_break_opening": (
                self.tie_break_opening.to_dict() if self.tie_break_opening else None
            ),
            "should_switch_sides": self.should_switch_sides,
            "history": [e.to_dict() for e in self.history],
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "MatchState":
        start_time = d.get("start_time")
        return MatchState(
            config=MatchConfiguration.from_dict(d["config"]),
            start_time=float(start_time) if start_time is not None else None,
            duration_seconds=int(d.get("duration_seconds", 0)),
            is_paused=bool(d.get("is_paused", False)),
            is_match_over=bool(d["is_match_over"]),
            winner=_player_from(d.get("winner")),
            current_set_index=int(d["current_set_index"]),
            sets=[SetScore.from_dict(s) for s in d["sets"]],
            games=GameScore.from_dict(d["games"]),
            points=point_score_from_dict(d["points"]),
            is_tie_break=bool(d["is_tie_break"]),
            serve=ServeRotation.from_dict(d["serve"]),
            tie_break_opening=_rotation_from(d.get("tie_break_opening")),
            should_switch_sides=bool(d.get("should_switch_sides", False)),
            history=[HistoryEvent.from_dict(e) for e in d.get("history", [])],
        )
