"""SQLite storage layer for matchroom.

Provides ORM models and repository pattern for data persistence.
Repositories hand back domain models from matchroom.models.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    create_engine,
    func,
)
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import declarative_base, relationship, sessionmaker
from sqlalchemy.pool import NullPool

from matchroom.exceptions import ConflictError
from matchroom.models import (
    GameRecord,
    Match,
    MatchStatus,
    Player,
    Room,
    Tournament,
    TournamentFormat,
    TournamentStatus,
    TournamentType,
)

Base = declarative_base()


# ============================================================================
# ORM Models
# ============================================================================


class RoomORM(Base):
    """Room table. Owned by room CRUD, read here as roster source."""

    __tablename__ = "rooms"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    players = relationship("PlayerORM", back_populates="room")


class PlayerORM(Base):
    """Player table."""

    __tablename__ = "players"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    room = relationship("RoomORM", back_populates="players")


class TournamentORM(Base):
    """Tournament table.

    A tournament owns its matches; deleting it deletes them.
    """

    __tablename__ = "tournaments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    type = Column(String(3), nullable=False)  # 1v1, 2v2
    format = Column(String(20), nullable=False, default="round_robin")  # round_robin, knockout
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False)
    status = Column(String(20), nullable=False, default="pending")  # pending, active, completed
    created_by = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    auto_advance = Column(Boolean, nullable=True, default=False)
    matches_per_player = Column(Integer, nullable=True)

    matches = relationship(
        "TournamentMatchORM",
        back_populates="tournament",
        cascade="all, delete-orphan",
    )


class TournamentMatchORM(Base):
    """Tournament match table.

    (tournament_id, round, match_number) is unique, so two writers generating
    the same round cannot both succeed.
    """

    __tablename__ = "tournament_matches"
    __table_args__ = (
        UniqueConstraint("tournament_id", "round", "match_number", name="uq_match_slot"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    tournament_id = Column(Integer, ForeignKey("tournaments.id"), nullable=False)
    round = Column(Integer, nullable=False, default=0)
    match_number = Column(Integer, nullable=False)
    team1 = Column(String(200), nullable=False)
    team2 = Column(String(200), nullable=False)
    # Player references are absent for BYE sides
    team1_player1 = Column(Integer, ForeignKey("players.id"), nullable=True)
    team1_player2 = Column(Integer, ForeignKey("players.id"), nullable=True)
    team2_player1 = Column(Integer, ForeignKey("players.id"), nullable=True)
    team2_player2 = Column(Integer, ForeignKey("players.id"), nullable=True)
    score1 = Column(Integer, nullable=True)
    score2 = Column(Integer, nullable=True)
    winner = Column(String(200), nullable=True)
    status = Column(String(20), nullable=False, default="pending")
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    tournament = relationship("TournamentORM", back_populates="matches")


class GameORM(Base):
    """Game history table (casual games and played tournament matches)."""

    __tablename__ = "games"

    id = Column(Integer, primary_key=True, autoincrement=True)
    team1 = Column(String(200), nullable=False)
    team2 = Column(String(200), nullable=False)
    score1 = Column(Integer, nullable=False)
    score2 = Column(Integer, nullable=False)
    winner = Column(String(200), nullable=False)
    type = Column(String(3), nullable=False)
    team1_player1 = Column(Integer, ForeignKey("players.id"), nullable=True)
    team1_player2 = Column(Integer, ForeignKey("players.id"), nullable=True)
    team2_player1 = Column(Integer, ForeignKey("players.id"), nullable=True)
    team2_player2 = Column(Integer, ForeignKey("players.id"), nullable=True)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=True)
    tournament_id = Column(Integer, nullable=True)
    created_by = Column(String(100), nullable=True)
    updated_by = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


# ============================================================================
# ORM <-> domain conversion
# ============================================================================


def room_from_orm(orm: RoomORM) -> Room:
    return Room(id=orm.id, name=orm.name)


def player_from_orm(orm: PlayerORM) -> Player:
    return Player(id=orm.id, name=orm.name, room_id=orm.room_id)


def tournament_from_orm(orm: TournamentORM) -> Tournament:
    return Tournament(
        id=orm.id,
        name=orm.name,
        type=TournamentType(orm.type),
        format=TournamentFormat(orm.format),
        room_id=orm.room_id,
        status=TournamentStatus(orm.status),
        created_by=orm.created_by,
        created_at=orm.created_at,
        auto_advance=bool(orm.auto_advance),
        matches_per_player=orm.matches_per_player,
    )


def match_from_orm(orm: TournamentMatchORM) -> Match:
    return Match(
        id=orm.id,
        tournament_id=orm.tournament_id,
        round=orm.round,
        match_number=orm.match_number,
        team1=orm.team1,
        team2=orm.team2,
        team1_player1=orm.team1_player1,
        team1_player2=orm.team1_player2,
        team2_player1=orm.team2_player1,
        team2_player2=orm.team2_player2,
        score1=orm.score1,
        score2=orm.score2,
        winner=orm.winner,
        status=MatchStatus(orm.status),
    )


def game_from_orm(orm: GameORM) -> GameRecord:
    return GameRecord(
        id=orm.id,
        team1=orm.team1,
        team2=orm.team2,
        score1=orm.score1,
        score2=orm.score2,
        winner=orm.winner,
        type=TournamentType(orm.type),
        team1_player1=orm.team1_player1,
        team1_player2=orm.team1_player2,
        team2_player1=orm.team2_player1,
        team2_player2=orm.team2_player2,
        room_id=orm.room_id,
        tournament_id=orm.tournament_id,
        created_by=orm.created_by,
        updated_by=orm.updated_by,
        created_at=orm.created_at,
    )


# ============================================================================
# Database Manager
# ============================================================================


class DatabaseManager:
    """Manages SQLite database connection and session."""

    def __init__(self, db_path: str = ".matchroom/matchroom.sqlite"):
        """Initialize database manager.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        # Use NullPool for SQLite to avoid connection pool issues
        self.engine = create_engine(
            f"sqlite:///{self.db_path}",
            echo=False,
            poolclass=NullPool,
            connect_args={"check_same_thread": False},
        )
        self.SessionLocal = sessionmaker(bind=self.engine)

    def create_tables(self):
        """Create all tables in the database."""
        Base.metadata.create_all(self.engine)

    def get_session(self):
        """Get a new database session."""
        return self.SessionLocal()


# ============================================================================
# Repository Pattern
# ============================================================================


class RoomRepository:
    """Repository for Room operations."""

    def __init__(self, session):
        self.session = session

    def create(self, name: str) -> Room:
        """Create a new room."""
        room = RoomORM(name=name)
        self.session.add(room)
        self.session.commit()
        self.session.refresh(room)
        return room_from_orm(room)

    def get_by_id(self, room_id: int) -> Optional[Room]:
        orm = self.session.query(RoomORM).filter(RoomORM.id == room_id).first()
        return room_from_orm(orm) if orm else None

    def get_all(self) -> list[Room]:
        return [room_from_orm(r) for r in self.session.query(RoomORM).order_by(RoomORM.name).all()]


class PlayerRepository:
    """Repository for Player operations."""

    def __init__(self, session):
        self.session = session

    def create(self, name: str, room_id: Optional[int] = None) -> Player:
        """Create a new player in the database.

        Args:
            name: Display name
            room_id: Room the player belongs to

        Returns:
            Created Player with auto-generated ID
        """
        player = PlayerORM(name=name, room_id=room_id)
        self.session.add(player)
        self.session.commit()
        self.session.refresh(player)
        return player_from_orm(player)

    def get_by_id(self, player_id: int) -> Optional[Player]:
        orm = self.session.query(PlayerORM).filter(PlayerORM.id == player_id).first()
        return player_from_orm(orm) if orm else None

    def get_by_ids(self, player_ids: list[int]) -> list[Player]:
        """Get players by ID, preserving the order of player_ids.

        Unknown IDs are left out.
        """
        if not player_ids:
            return []
        rows = self.session.query(PlayerORM).filter(PlayerORM.id.in_(player_ids)).all()
        by_id = {row.id: row for row in rows}
        return [player_from_orm(by_id[pid]) for pid in player_ids if pid in by_id]

    def get_by_room(self, room_id: int) -> list[Player]:
        rows = (
            self.session.query(PlayerORM)
            .filter(PlayerORM.room_id == room_id)
            .order_by(PlayerORM.name)
            .all()
        )
        return [player_from_orm(row) for row in rows]


class TournamentRepository:
    """Repository for Tournament operations."""

    def __init__(self, session):
        self.session = session

    def create(self, tournament: Tournament) -> Tournament:
        """Persist a new tournament and return it with its ID."""
        orm = TournamentORM(
            name=tournament.name,
            type=tournament.type.value,
            format=tournament.format.value,
            room_id=tournament.room_id,
            status=tournament.status.value,
            created_by=tournament.created_by,
            auto_advance=tournament.auto_advance,
            matches_per_player=tournament.matches_per_player,
        )
        self.session.add(orm)
        self.session.commit()
        self.session.refresh(orm)
        return tournament_from_orm(orm)

    def get_by_id(self, tournament_id: int) -> Optional[Tournament]:
        orm = self.session.query(TournamentORM).filter(TournamentORM.id == tournament_id).first()
        return tournament_from_orm(orm) if orm else None

    def get_by_room(self, room_id: int) -> list[Tournament]:
        """Get all tournaments of a room (newest first)."""
        rows = (
            self.session.query(TournamentORM)
            .filter(TournamentORM.room_id == room_id)
            .order_by(TournamentORM.created_at.desc(), TournamentORM.id.desc())
            .all()
        )
        return [tournament_from_orm(row) for row in rows]

    def update_status(self, tournament_id: int, status: TournamentStatus) -> bool:
        """Update tournament status (pending, active, completed)."""
        result = (
            self.session.query(TournamentORM)
            .filter(TournamentORM.id == tournament_id)
            .update({"status": status.value})
        )
        self.session.commit()
        return result > 0

    def delete(self, tournament_id: int) -> bool:
        """Delete a tournament and all its matches."""
        orm = self.session.query(TournamentORM).filter(TournamentORM.id == tournament_id).first()
        if orm:
            self.session.delete(orm)
            self.session.commit()
            return True
        return False


class MatchRepository:
    """Repository for tournament match operations."""

    def __init__(self, session):
        self.session = session

    def create_many(self, matches: list[Match]) -> list[Match]:
        """Insert a batch of matches in one commit.

        Raises:
            ConflictError: If any (tournament, round, match_number) slot is taken
        """
        rows = [
            TournamentMatchORM(
                tournament_id=m.tournament_id,
                round=m.round,
                match_number=m.match_number,
                team1=m.team1,
                team2=m.team2,
                team1_player1=m.team1_player1,
                team1_player2=m.team1_player2,
                team2_player1=m.team2_player1,
                team2_player2=m.team2_player2,
                score1=m.score1,
                score2=m.score2,
                winner=m.winner,
                status=m.status.value,
            )
            for m in matches
        ]
        self.session.add_all(rows)
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            raise ConflictError(f"Match slot already exists: {e.orig}")
        for row in rows:
            self.session.refresh(row)
        return [match_from_orm(row) for row in rows]

    def get_by_id(self, match_id: int) -> Optional[Match]:
        orm = self.session.query(TournamentMatchORM).filter(TournamentMatchORM.id == match_id).first()
        return match_from_orm(orm) if orm else None

    def get_by_tournament(self, tournament_id: int) -> list[Match]:
        """Get all matches of a tournament ordered by round then match number."""
        rows = (
            self.session.query(TournamentMatchORM)
            .filter(TournamentMatchORM.tournament_id == tournament_id)
            .order_by(TournamentMatchORM.round, TournamentMatchORM.match_number)
            .all()
        )
        return [match_from_orm(row) for row in rows]

    def get_by_round(self, tournament_id: int, round_number: int) -> list[Match]:
        """Get the matches of one round ordered by match number."""
        rows = (
            self.session.query(TournamentMatchORM)
            .filter(
                TournamentMatchORM.tournament_id == tournament_id,
                TournamentMatchORM.round == round_number,
            )
            .order_by(TournamentMatchORM.match_number)
            .all()
        )
        return [match_from_orm(row) for row in rows]

    def count_in_round(self, tournament_id: int, round_number: int) -> int:
        return (
            self.session.query(func.count(TournamentMatchORM.id))
            .filter(
                TournamentMatchORM.tournament_id == tournament_id,
                TournamentMatchORM.round == round_number,
            )
            .scalar()
        )

    def max_round(self, tournament_id: int) -> Optional[int]:
        """Highest round number of a tournament, or None if it has no matches."""
        return (
            self.session.query(func.max(TournamentMatchORM.round))
            .filter(TournamentMatchORM.tournament_id == tournament_id)
            .scalar()
        )

    def update_result(
        self, match_id: int, score1: int, score2: int, winner: str, commit: bool = True
    ) -> Optional[Match]:
        """Complete a pending match.

        The update only applies while the match is still pending, so a second
        writer for the same match gets None back. With commit=False the change
        stays in the open transaction and the caller commits.

        Returns:
            Updated Match, or None if the match is missing or already completed
        """
        updated = (
            self.session.query(TournamentMatchORM)
            .filter(
                TournamentMatchORM.id == match_id,
                TournamentMatchORM.status == MatchStatus.PENDING.value,
            )
            .update(
                {
                    "score1": score1,
                    "score2": score2,
                    "winner": winner,
                    "status": MatchStatus.COMPLETED.value,
                },
                synchronize_session="fetch",
            )
        )
        if commit:
            self.session.commit()
        if not updated:
            return None
        return self.get_by_id(match_id)


class GameRepository:
    """Repository for game history operations."""

    def __init__(self, session):
        self.session = session

    def create(self, game: GameRecord, commit: bool = True) -> GameRecord:
        """Insert a history row; with commit=False it is only flushed."""
        orm = GameORM(
            team1=game.team1,
            team2=game.team2,
            score1=game.score1,
            score2=game.score2,
            winner=game.winner,
            type=game.type.value,
            team1_player1=game.team1_player1,
            team1_player2=game.team1_player2,
            team2_player1=game.team2_player1,
            team2_player2=game.team2_player2,
            room_id=game.room_id,
            tournament_id=game.tournament_id,
            created_by=game.created_by,
            updated_by=game.updated_by,
        )
        self.session.add(orm)
        if commit:
            self.session.commit()
        else:
            self.session.flush()
        self.session.refresh(orm)
        return game_from_orm(orm)

    def get_by_room(
        self,
        room_id: int,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> list[GameRecord]:
        """Get a room's games, optionally limited to [since, until)."""
        query = self.session.query(GameORM).filter(GameORM.room_id == room_id)
        if since is not None:
            query = query.filter(GameORM.created_at >= since)
        if until is not None:
            query = query.filter(GameORM.created_at < until)
        rows = query.order_by(GameORM.created_at, GameORM.id).all()
        return [game_from_orm(row) for row in rows]

    def get_by_tournament(self, tournament_id: int) -> list[GameRecord]:
        rows = (
            self.session.query(GameORM)
            .filter(GameORM.tournament_id == tournament_id)
            .order_by(GameORM.id)
            .all()
        )
        return [game_from_orm(row) for row in rows]
