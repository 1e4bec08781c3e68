"""FastAPI web application for matchroom."""

import os
from datetime import datetime
from functools import lru_cache
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException

from matchroom.config_loader import load_and_validate_config
from matchroom.models import OperationResult
from matchroom.service import TournamentService
from matchroom.storage import DatabaseManager
from matchroom.utils import set_log_level, setup_logger
from matchroom.webapp.schemas import (
    CreateGameRequest,
    CreatePlayerRequest,
    CreateRoomRequest,
    CreateTournamentRequest,
    CreatedTournamentOut,
    GameOut,
    MatchOut,
    MatchResultOut,
    MatchResultRequest,
    PlayerOut,
    RoomOut,
    StandingOut,
    TournamentOut,
)

logger = setup_logger(__name__)

CONFIG_ENV = "MATCHROOM_CONFIG"

# Error kind -> HTTP status
ERROR_STATUS = {
    "ValidationError": 422,
    "NotFoundError": 404,
    "ConflictError": 409,
    "PersistenceError": 500,
}

app = FastAPI(title="Matchroom")


@lru_cache(maxsize=1)
def get_config() -> Dict[str, Any]:
    """Configuration from $MATCHROOM_CONFIG, or defaults."""
    cfg = load_and_validate_config(os.environ.get(CONFIG_ENV))
    set_log_level(cfg["log_level"])
    return cfg


@lru_cache(maxsize=1)
def get_db_manager() -> DatabaseManager:
    """Shared database manager, created on first use."""
    db = DatabaseManager(get_config()["database_path"])
    db.create_tables()
    return db


def get_service():
    """Request-scoped service; the session is closed after the response."""
    session = get_db_manager().get_session()
    try:
        yield TournamentService(session, get_config())
    finally:
        session.close()


def unwrap(result: OperationResult):
    """Return the value of a successful result or raise the mapped HTTPException."""
    if result.ok:
        return result.value
    status = ERROR_STATUS.get(result.error_kind, 400)
    raise HTTPException(status_code=status, detail={"error": result.error_kind, "message": result.message})


# ============================================================================
# Health
# ============================================================================


@app.get("/")
def read_root():
    return {"message": "Matchroom is running"}


# ============================================================================
# Rooms and players
# ============================================================================


@app.post("/rooms", response_model=RoomOut, status_code=201)
def create_room(payload: CreateRoomRequest, service: TournamentService = Depends(get_service)):
    return unwrap(service.create_room(payload.name))


@app.get("/rooms", response_model=List[RoomOut])
def list_rooms(service: TournamentService = Depends(get_service)):
    return unwrap(service.list_rooms())


@app.post("/rooms/{room_id}/players", response_model=PlayerOut, status_code=201)
def add_player(room_id: int, payload: CreatePlayerRequest, service: TournamentService = Depends(get_service)):
    return unwrap(service.add_player(room_id, payload.name))


@app.get("/rooms/{room_id}/players", response_model=List[PlayerOut])
def list_players(room_id: int, service: TournamentService = Depends(get_service)):
    return unwrap(service.list_players(room_id))


# ============================================================================
# Tournaments
# ============================================================================


@app.post("/rooms/{room_id}/tournaments", response_model=CreatedTournamentOut, status_code=201)
def create_tournament(
    room_id: int,
    payload: CreateTournamentRequest,
    service: TournamentService = Depends(get_service),
):
    tournament, matches = unwrap(
        service.create_tournament(
            name=payload.name,
            tournament_type=payload.type,
            room_id=room_id,
            player_ids=payload.player_ids,
            matches_per_player=payload.matches_per_player,
            tournament_format=payload.format,
            created_by=payload.created_by,
            auto_advance=payload.auto_advance,
            shuffle_teams=payload.shuffle_teams,
            random_seed=payload.random_seed,
        )
    )
    return CreatedTournamentOut(
        tournament=TournamentOut.model_validate(tournament),
        matches=[MatchOut.model_validate(m) for m in matches],
    )


@app.get("/rooms/{room_id}/tournaments", response_model=List[TournamentOut])
def list_tournaments(room_id: int, service: TournamentService = Depends(get_service)):
    return unwrap(service.list_tournaments(room_id))


@app.get("/tournaments/{tournament_id}", response_model=TournamentOut)
def get_tournament(tournament_id: int, service: TournamentService = Depends(get_service)):
    return unwrap(service.get_tournament(tournament_id))


@app.delete("/tournaments/{tournament_id}", status_code=204)
def delete_tournament(tournament_id: int, service: TournamentService = Depends(get_service)):
    unwrap(service.delete_tournament(tournament_id))


@app.get("/tournaments/{tournament_id}/matches", response_model=List[MatchOut])
def get_tournament_matches(tournament_id: int, service: TournamentService = Depends(get_service)):
    return unwrap(service.get_tournament_matches(tournament_id))


@app.get("/tournaments/{tournament_id}/standings", response_model=List[StandingOut])
def get_standings(tournament_id: int, service: TournamentService = Depends(get_service)):
    return [StandingOut.model_validate(s) for s in unwrap(service.get_standings(tournament_id))]


@app.post("/tournaments/{tournament_id}/finals", response_model=MatchOut, status_code=201)
def create_finals_match(tournament_id: int, service: TournamentService = Depends(get_service)):
    return unwrap(service.create_finals_match(tournament_id))


@app.post("/tournaments/{tournament_id}/advance", response_model=List[MatchOut])
def advance_tournament(tournament_id: int, service: TournamentService = Depends(get_service)):
    return unwrap(service.advance_tournament(tournament_id))


@app.post("/matches/{match_id}/result", response_model=MatchResultOut)
def record_match_result(
    match_id: int,
    payload: MatchResultRequest,
    service: TournamentService = Depends(get_service),
):
    result = service.record_match_result(match_id, payload.score1, payload.score2, payload.acting_user)
    match = unwrap(result)
    return MatchResultOut(match=MatchOut.model_validate(match), warnings=result.warnings)


# ============================================================================
# Casual games and leaderboard
# ============================================================================


@app.post("/rooms/{room_id}/games", response_model=GameOut, status_code=201)
def record_game(room_id: int, payload: CreateGameRequest, service: TournamentService = Depends(get_service)):
    return unwrap(
        service.record_game(
            room_id,
            payload.type,
            payload.team1_player_ids,
            payload.team2_player_ids,
            payload.score1,
            payload.score2,
            payload.acting_user,
        )
    )


@app.get("/rooms/{room_id}/leaderboard", response_model=List[StandingOut])
def get_leaderboard(
    room_id: int,
    since: Optional[datetime] = None,
    until: Optional[datetime] = None,
    service: TournamentService = Depends(get_service),
):
    rows = unwrap(service.get_leaderboard(room_id, since, until))
    return [StandingOut.model_validate(s) for s in rows]
