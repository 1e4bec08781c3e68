"""
Request and response schemas for the matchroom web API.

Response models read straight from the domain dataclasses
(from_attributes), so derived properties such as goal_difference are
included without copying.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from matchroom.models import MatchStatus, TournamentFormat, TournamentStatus, TournamentType


class RoomOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class PlayerOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    room_id: Optional[int] = None


class TournamentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    type: TournamentType
    format: TournamentFormat
    room_id: int
    status: TournamentStatus
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    auto_advance: bool = False
    matches_per_player: Optional[int] = None


class MatchOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tournament_id: int
    round: int
    match_number: int
    team1: str
    team2: str
    team1_player1: Optional[int] = None
    team1_player2: Optional[int] = None
    team2_player1: Optional[int] = None
    team2_player2: Optional[int] = None
    score1: Optional[int] = None
    score2: Optional[int] = None
    winner: Optional[str] = None
    status: MatchStatus


class StandingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    position: Optional[int] = None
    name: str
    player_id: Optional[int] = None
    matches: int
    wins: int
    draws: int
    losses: int
    goals_for: int
    goals_against: int
    goal_difference: int
    points: int
    win_percentage: float


class GameOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    team1: str
    team2: str
    score1: int
    score2: int
    winner: str
    type: TournamentType
    room_id: Optional[int] = None
    tournament_id: Optional[int] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None


class CreatedTournamentOut(BaseModel):
    tournament: TournamentOut
    matches: List[MatchOut]


class MatchResultOut(BaseModel):
    match: MatchOut
    warnings: List[str] = []


class CreateRoomRequest(BaseModel):
    name: str


class CreatePlayerRequest(BaseModel):
    name: str


class CreateTournamentRequest(BaseModel):
    name: str
    type: TournamentType = TournamentType.ONE_V_ONE
    format: TournamentFormat = TournamentFormat.ROUND_ROBIN
    player_ids: List[int] = Field(..., description="Selected players in selection order")
    matches_per_player: Optional[int] = None
    created_by: Optional[str] = None
    auto_advance: Optional[bool] = None
    shuffle_teams: bool = True
    random_seed: Optional[int] = None


class MatchResultRequest(BaseModel):
    # Validated by the core so that bad values come back as ValidationError
    score1: Optional[int] = None
    score2: Optional[int] = None
    acting_user: Optional[str] = None


class CreateGameRequest(BaseModel):
    type: TournamentType = TournamentType.ONE_V_ONE
    team1_player_ids: List[int]
    team2_player_ids: List[int]
    score1: Optional[int] = None
    score2: Optional[int] = None
    acting_user: Optional[str] = None
