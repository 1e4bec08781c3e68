"""Tournament service: the operations offered to the surrounding application.

Every public method returns an OperationResult. Errors raised below this
layer are turned into failed results here, after rolling back the session,
so callers never see exceptions from the core.
"""

import random
from datetime import datetime
from functools import wraps
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError

from matchroom.advancement import ROUND_ROBIN_ROUND, RoundAdvancementEngine, is_round_complete
from matchroom.exceptions import MatchroomError, NotFoundError, PersistenceError, ValidationError
from matchroom.finals import create_finals_match
from matchroom.models import (
    Competitor,
    OperationResult,
    Tournament,
    TournamentFormat,
    TournamentStatus,
    TournamentType,
)
from matchroom.results import record_game, record_match_result
from matchroom.schedule import build_teams, initialize_tournament
from matchroom.standings import calculate_leaderboard, calculate_ranked_standings
from matchroom.storage import (
    GameRepository,
    MatchRepository,
    PlayerRepository,
    RoomRepository,
    TournamentRepository,
)
from matchroom.utils import setup_logger

logger = setup_logger(__name__)


def _as_result(method):
    """Run a service method, wrapping its return value or error in an OperationResult."""

    @wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            value = method(self, *args, **kwargs)
        except MatchroomError as e:
            self.session.rollback()
            logger.info("%s failed: %s: %s", method.__name__, type(e).__name__, e)
            return OperationResult.failure(e)
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("%s failed in storage: %s", method.__name__, e)
            return OperationResult.failure(PersistenceError(str(e)))
        if isinstance(value, OperationResult):
            return value
        return OperationResult.success(value)

    return wrapper


def _parse_enum(enum_cls, value, label: str):
    try:
        return enum_cls(value)
    except ValueError:
        choices = ", ".join(e.value for e in enum_cls)
        raise ValidationError(f"{label} must be one of {choices}, got {value!r}")


class TournamentService:
    """Facade over repositories and the tournament engine for one session."""

    def __init__(self, session, config: Optional[dict[str, Any]] = None):
        """Initialize the service.

        Args:
            session: SQLAlchemy session
            config: Validated configuration (see config_loader)
        """
        self.session = session
        self.config = config or {}
        self.rooms = RoomRepository(session)
        self.players = PlayerRepository(session)
        self.tournaments = TournamentRepository(session)
        self.matches = MatchRepository(session)
        self.games = GameRepository(session)
        self.engine = RoundAdvancementEngine(self.matches, self.tournaments)

    def _rng(self, seed: Optional[int] = None) -> random.Random:
        if seed is None:
            seed = self.config.get("random_seed")
        return random.Random(seed)

    def _get_tournament(self, tournament_id: int) -> Tournament:
        tournament = self.tournaments.get_by_id(tournament_id)
        if tournament is None:
            raise NotFoundError(f"Tournament {tournament_id} not found")
        return tournament

    def _get_room(self, room_id: int):
        room = self.rooms.get_by_id(room_id)
        if room is None:
            raise NotFoundError(f"Room {room_id} not found")
        return room

    def _get_players(self, player_ids: list[int]):
        players = self.players.get_by_ids(player_ids)
        found = {p.id for p in players}
        missing = [pid for pid in player_ids if pid not in found]
        if missing:
            raise NotFoundError(f"Player(s) not found: {', '.join(str(m) for m in missing)}")
        return players

    # ------------------------------------------------------------------
    # Rooms and players
    # ------------------------------------------------------------------

    @_as_result
    def create_room(self, name: str):
        if not name or not name.strip():
            raise ValidationError("Room name is required")
        return self.rooms.create(name.strip())

    @_as_result
    def list_rooms(self):
        return self.rooms.get_all()

    @_as_result
    def add_player(self, room_id: int, name: str):
        self._get_room(room_id)
        if not name or not name.strip():
            raise ValidationError("Player name is required")
        return self.players.create(name.strip(), room_id=room_id)

    @_as_result
    def list_players(self, room_id: int):
        self._get_room(room_id)
        return self.players.get_by_room(room_id)

    # ------------------------------------------------------------------
    # Tournaments
    # ------------------------------------------------------------------

    @_as_result
    def create_tournament(
        self,
        name: str,
        tournament_type,
        room_id: int,
        player_ids: list[int],
        matches_per_player: Optional[int] = None,
        tournament_format=TournamentFormat.ROUND_ROBIN,
        created_by: Optional[str] = None,
        auto_advance: Optional[bool] = None,
        shuffle_teams: bool = True,
        random_seed: Optional[int] = None,
    ):
        """Create a tournament and its initial matches.

        For 2v2, players are drawn into teams of two (shuffled unless
        shuffle_teams is False, in which case consecutive players team up).

        Returns:
            OperationResult with (Tournament, list[Match])
        """
        if not name or not name.strip():
            raise ValidationError("Tournament name is required")
        tournament_type = _parse_enum(TournamentType, tournament_type, "type")
        tournament_format = _parse_enum(TournamentFormat, tournament_format, "format")

        self._get_room(room_id)
        players = self._get_players(list(player_ids))

        if matches_per_player is None:
            matches_per_player = self.config.get("matches_per_player", 1)
        if auto_advance is None:
            auto_advance = self.config.get("auto_advance", True)

        tournament = Tournament(
            name=name.strip(),
            type=tournament_type,
            room_id=room_id,
            format=tournament_format,
            status=TournamentStatus.PENDING,
            created_by=created_by,
            auto_advance=auto_advance,
            matches_per_player=matches_per_player,
        )
        return initialize_tournament(
            self.tournaments,
            self.matches,
            tournament,
            players,
            rng=self._rng(random_seed),
            shuffle_teams=shuffle_teams,
        )

    @_as_result
    def get_tournament(self, tournament_id: int):
        return self._get_tournament(tournament_id)

    @_as_result
    def list_tournaments(self, room_id: int):
        self._get_room(room_id)
        return self.tournaments.get_by_room(room_id)

    @_as_result
    def get_tournament_matches(self, tournament_id: int):
        self._get_tournament(tournament_id)
        return self.matches.get_by_tournament(tournament_id)

    @_as_result
    def delete_tournament(self, tournament_id: int):
        if not self.tournaments.delete(tournament_id):
            raise NotFoundError(f"Tournament {tournament_id} not found")
        logger.info("Tournament %s deleted", tournament_id)
        return True

    # ------------------------------------------------------------------
    # Results and advancement
    # ------------------------------------------------------------------

    @_as_result
    def record_match_result(
        self,
        match_id: int,
        score1: Any,
        score2: Any,
        acting_user: Optional[str] = None,
    ):
        """Record a score, then advance the tournament as far as it can go.

        Knockout rounds chain through the advancement engine. When the
        round-robin stage finishes on a tournament with auto_advance, the
        final is created.

        Returns:
            OperationResult with the completed Match; warnings list any
            follow-up step that could not run
        """
        match = self.matches.get_by_id(match_id)
        if match is None:
            raise NotFoundError(f"Match {match_id} not found")
        tournament = self._get_tournament(match.tournament_id)

        updated = record_match_result(
            self.matches, self.games, tournament, match_id, score1, score2, acting_user
        )

        warnings = []
        try:
            if updated.round == ROUND_ROBIN_ROUND:
                self._finish_round_robin(tournament)
            else:
                self.engine.advance_chain(tournament.id, updated.round)
        except (MatchroomError, SQLAlchemyError) as e:
            # The result itself is saved; the next trigger retries advancement
            self.session.rollback()
            logger.warning("Advancement after match %s halted: %s", match_id, e)
            warnings.append(str(e))

        return OperationResult.success(updated, warnings=warnings)

    def _finish_round_robin(self, tournament: Tournament) -> list:
        """Create the final of an auto-advancing league whose stage is done.

        Returns:
            The created final in a list, or an empty list
        """
        created = []
        if (
            tournament.auto_advance
            and self.engine.round_complete(tournament.id, ROUND_ROBIN_ROUND)
            and self.matches.max_round(tournament.id) == ROUND_ROBIN_ROUND
        ):
            created.append(create_finals_match(self.matches, tournament.id))
        self.engine.refresh_status(tournament.id)
        return created

    @_as_result
    def advance_tournament(self, tournament_id: int):
        """Re-run advancement after a failed step.

        Chains every complete knockout round, or creates the missing final of
        an auto-advancing league. Safe to repeat.

        Returns:
            OperationResult with the list of created matches
        """
        tournament = self._get_tournament(tournament_id)
        highest = self.matches.max_round(tournament_id)
        if highest is None:
            return []
        if highest == ROUND_ROBIN_ROUND:
            return self._finish_round_robin(tournament)
        return self.engine.advance_chain(tournament_id, highest)

    @_as_result
    def get_standings(self, tournament_id: int):
        """Ranked standings recomputed from all matches of the tournament."""
        self._get_tournament(tournament_id)
        return calculate_ranked_standings(self.matches.get_by_tournament(tournament_id))

    @_as_result
    def create_finals_match(self, tournament_id: int):
        """Create the decisive match after a completed round-robin stage."""
        self._get_tournament(tournament_id)
        final = create_finals_match(self.matches, tournament_id)
        self.engine.refresh_status(tournament_id)
        return final

    @_as_result
    def is_round_robin_complete(self, tournament_id: int):
        self._get_tournament(tournament_id)
        return is_round_complete(self.matches.get_by_round(tournament_id, ROUND_ROBIN_ROUND))

    # ------------------------------------------------------------------
    # Casual games and leaderboard
    # ------------------------------------------------------------------

    @_as_result
    def record_game(
        self,
        room_id: int,
        game_type,
        team1_player_ids: list[int],
        team2_player_ids: list[int],
        score1: Any,
        score2: Any,
        acting_user: Optional[str] = None,
    ):
        """Record a casual 1v1 or 2v2 game between players of a room."""
        game_type = _parse_enum(TournamentType, game_type, "type")
        self._get_room(room_id)

        size = 1 if game_type == TournamentType.ONE_V_ONE else 2
        if len(team1_player_ids) != size or len(team2_player_ids) != size:
            raise ValidationError(f"A {game_type.value} game needs {size} player(s) per side")

        all_ids = list(team1_player_ids) + list(team2_player_ids)
        if len(set(all_ids)) != len(all_ids):
            raise ValidationError("A player can only appear once in a game")

        sides = []
        for ids in (team1_player_ids, team2_player_ids):
            players = self._get_players(list(ids))
            if size == 1:
                sides.append(Competitor.from_player(players[0]))
            else:
                sides.append(build_teams(players, shuffle=False)[0])

        return record_game(self.games, room_id, game_type, sides[0], sides[1], score1, score2, acting_user)

    @_as_result
    def get_leaderboard(
        self,
        room_id: int,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ):
        """Ranked standings over a room's game history."""
        self._get_room(room_id)
        return calculate_leaderboard(self.games.get_by_room(room_id, since, until))
