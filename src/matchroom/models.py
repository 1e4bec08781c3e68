"""Data models for matchroom.

Domain model hierarchy:
- Room contains Players
- Tournament belongs to a Room and owns its Matches
- Match is played between two Competitors (a player, or a pair of players)
- Standing is derived from Matches, never stored
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

# Reserved competitor name meaning "no opponent"
BYE = "BYE"
# Winner value stored for a level score
DRAW = "Draw"
# Nominal score awarded to the advancing side of a walkover
WALKOVER_SCORE = 3


class TournamentType(str, Enum):
    """Tournament game type."""

    ONE_V_ONE = "1v1"
    TWO_V_TWO = "2v2"


class TournamentFormat(str, Enum):
    """How the initial schedule is built."""

    ROUND_ROBIN = "round_robin"  # Everyone plays everyone in round 0
    KNOCKOUT = "knockout"  # Single elimination starting at round 1


class TournamentStatus(str, Enum):
    """Tournament status."""

    PENDING = "pending"  # Created, no result yet
    ACTIVE = "active"  # At least one match completed
    COMPLETED = "completed"  # Final played


class MatchStatus(str, Enum):
    """Match status."""

    PENDING = "pending"
    COMPLETED = "completed"


# ============================================================================
# Roster Models
# ============================================================================


@dataclass
class Room:
    """A group of players who record games together."""

    id: int
    name: str


@dataclass
class Player:
    """Player registered in a room."""

    id: int
    name: str
    room_id: Optional[int] = None

    def __str__(self) -> str:
        return self.name


def team_name(name_a: str, name_b: str) -> str:
    """Return the canonical display name for a two-player team.

    Names are sorted so the same pair always renders the same way.

    Examples:
        >>> team_name("Zoe", "Adam")
        'Adam & Zoe'
    """
    first, second = sorted([name_a, name_b])
    return f"{first} & {second}"


@dataclass
class Competitor:
    """One side of a match.

    For 1v1 this wraps a single player, for 2v2 a pair. The display name is
    derived and is what matches store in team1/team2.
    """

    name: str
    player1_id: Optional[int] = None
    player2_id: Optional[int] = None

    @classmethod
    def from_player(cls, player: Player) -> "Competitor":
        return cls(name=player.name, player1_id=player.id)

    @classmethod
    def from_pair(cls, first: Player, second: Player) -> "Competitor":
        """Build a 2v2 team, keeping player refs in the same order as the name."""
        ordered = sorted([first, second], key=lambda p: p.name)
        return cls(
            name=team_name(first.name, second.name),
            player1_id=ordered[0].id,
            player2_id=ordered[1].id,
        )

    @classmethod
    def bye(cls) -> "Competitor":
        return cls(name=BYE)

    @property
    def is_bye(self) -> bool:
        return self.name == BYE

    def __str__(self) -> str:
        return self.name


# ============================================================================
# Tournament Models
# ============================================================================


@dataclass
class Match:
    """A tournament match.

    Round 0 is the round-robin stage; knockout rounds start at 1.
    A completed match always has both scores and a winner.
    """

    tournament_id: Optional[int]
    round: int
    match_number: int
    team1: str
    team2: str
    id: Optional[int] = None
    team1_player1: Optional[int] = None
    team1_player2: Optional[int] = None
    team2_player1: Optional[int] = None
    team2_player2: Optional[int] = None
    score1: Optional[int] = None
    score2: Optional[int] = None
    winner: Optional[str] = None
    status: MatchStatus = MatchStatus.PENDING

    @classmethod
    def between(
        cls,
        tournament_id: Optional[int],
        round: int,
        match_number: int,
        home: Competitor,
        away: Competitor,
    ) -> "Match":
        """Create a pending match between two competitors."""
        return cls(
            tournament_id=tournament_id,
            round=round,
            match_number=match_number,
            team1=home.name,
            team2=away.name,
            team1_player1=home.player1_id,
            team1_player2=home.player2_id,
            team2_player1=away.player1_id,
            team2_player2=away.player2_id,
        )

    @property
    def competitor1(self) -> Competitor:
        return Competitor(self.team1, self.team1_player1, self.team1_player2)

    @property
    def competitor2(self) -> Competitor:
        return Competitor(self.team2, self.team2_player1, self.team2_player2)

    @property
    def is_completed(self) -> bool:
        return self.status == MatchStatus.COMPLETED

    @property
    def bye_sides(self) -> int:
        """Number of sides holding the BYE placeholder (0, 1 or 2)."""
        return (self.team1 == BYE) + (self.team2 == BYE)

    @property
    def has_bye(self) -> bool:
        return self.bye_sides > 0

    @property
    def is_draw(self) -> bool:
        return self.winner == DRAW

    @property
    def winning_competitor(self) -> Optional[Competitor]:
        """Return the winning side, or None if pending or drawn."""
        if not self.is_completed or self.winner is None:
            return None
        if self.winner == self.team1:
            return self.competitor1
        if self.winner == self.team2:
            return self.competitor2
        return None

    @property
    def score_differential(self) -> int:
        return abs((self.score1 or 0) - (self.score2 or 0))

    @property
    def total_goals(self) -> int:
        return (self.score1 or 0) + (self.score2 or 0)

    def __str__(self) -> str:
        score = f"{self.score1}-{self.score2}" if self.is_completed else "vs"
        return f"R{self.round} M{self.match_number}: {self.team1} {score} {self.team2}"


@dataclass
class Tournament:
    """A tournament held in a room."""

    name: str
    type: TournamentType
    room_id: int
    id: Optional[int] = None
    format: TournamentFormat = TournamentFormat.ROUND_ROBIN
    status: TournamentStatus = TournamentStatus.PENDING
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    auto_advance: bool = False
    matches_per_player: Optional[int] = None

    def __str__(self) -> str:
        return f"{self.name} ({self.type.value}, {self.status.value})"


@dataclass
class Standing:
    """Per-competitor aggregate derived from completed matches.

    Points: 3 for a win, 1 for a draw, 0 for a loss.
    """

    name: str
    player_id: Optional[int] = None
    matches: int = 0
    wins: int = 0
    draws: int = 0
    losses: int = 0
    goals_for: int = 0
    goals_against: int = 0
    points: int = 0
    position: Optional[int] = None

    @property
    def goal_difference(self) -> int:
        return self.goals_for - self.goals_against

    @property
    def win_percentage(self) -> float:
        """(wins + 0.5 * draws) / played * 100, or 0.0 before any match."""
        if self.matches == 0:
            return 0.0
        return (self.wins + 0.5 * self.draws) / self.matches * 100

    def __str__(self) -> str:
        pos = f"#{self.position}" if self.position else "unranked"
        return f"{pos} {self.name}: {self.points}pts {self.wins}W-{self.draws}D-{self.losses}L"


# ============================================================================
# History Models
# ============================================================================


@dataclass
class GameRecord:
    """Denormalized history row for a played game.

    Written for casual games and for every user-entered tournament result.
    """

    team1: str
    team2: str
    score1: int
    score2: int
    winner: str
    type: TournamentType
    room_id: Optional[int] = None
    id: Optional[int] = None
    team1_player1: Optional[int] = None
    team1_player2: Optional[int] = None
    team2_player1: Optional[int] = None
    team2_player2: Optional[int] = None
    tournament_id: Optional[int] = None
    created_by: Optional[str] = None
    updated_by: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def is_completed(self) -> bool:
        # History rows are written only for finished games
        return True

    @property
    def has_bye(self) -> bool:
        return BYE in (self.team1, self.team2)


# ============================================================================
# Result Models
# ============================================================================


@dataclass
class OperationResult:
    """Outcome of a service operation.

    Exactly one of value/error is meaningful, selected by ok.
    """

    ok: bool
    value: Any = None
    error: Optional[Exception] = None
    warnings: list[str] = field(default_factory=list)

    @classmethod
    def success(cls, value: Any = None, warnings: Optional[list[str]] = None) -> "OperationResult":
        return cls(ok=True, value=value, warnings=warnings or [])

    @classmethod
    def failure(cls, error: Exception) -> "OperationResult":
        return cls(ok=False, error=error)

    @property
    def error_kind(self) -> Optional[str]:
        """Class name of the error ("ValidationError", "NotFoundError", ...)."""
        return type(self.error).__name__ if self.error is not None else None

    @property
    def message(self) -> str:
        return str(self.error) if self.error is not None else ""
