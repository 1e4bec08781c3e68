"""Command-line interface for matchroom."""

import click


def _open_service(config_path):
    """Load config, open the database and return (session, service)."""
    from matchroom.config_loader import ConfigError, load_and_validate_config
    from matchroom.service import TournamentService
    from matchroom.storage import DatabaseManager
    from matchroom.utils import set_log_level

    try:
        cfg = load_and_validate_config(config_path)
    except ConfigError as e:
        click.echo(f"[ERROR] Configuration Error: {e}", err=True)
        raise click.Abort()

    set_log_level(cfg["log_level"])
    db = DatabaseManager(cfg["database_path"])
    db.create_tables()
    session = db.get_session()
    return session, TournamentService(session, cfg)


def _unwrap(result):
    """Return a successful result's value, or print the error and abort."""
    if not result.ok:
        click.echo(f"[ERROR] {result.error_kind}: {result.message}", err=True)
        raise click.Abort()
    for warning in result.warnings:
        click.echo(f"[WARNING] {warning}")
    return result.value


def _echo_match(match):
    if match.is_completed:
        score = f"{match.score1}-{match.score2}"
        status = f"winner: {match.winner}"
    else:
        score = "vs"
        status = "pending"
    click.echo(
        f"  #{match.id} R{match.round} M{match.match_number}: "
        f"{match.team1} {score} {match.team2} ({status})"
    )


config_option = click.option("--config", required=False, help="Path to config YAML file")


@click.group()
@click.version_option(version="0.1.0")
def cli():
    """Matchroom - record casual matches and run small tournaments."""
    pass


@cli.command()
@config_option
def init_db(config: str):
    """Create the database tables.

    Example:
        matchroom init-db --config config.yaml
    """
    session, _ = _open_service(config)
    session.close()
    click.echo("[SUCCESS] Database ready")


@cli.command()
@config_option
@click.option("--name", required=True, help="Room name")
def add_room(config: str, name: str):
    """Create a room."""
    session, service = _open_service(config)
    try:
        room = _unwrap(service.create_room(name))
        click.echo(f"[SUCCESS] Room #{room.id} '{room.name}' created")
    finally:
        session.close()


@cli.command()
@config_option
@click.option("--room", "room_id", type=int, required=True, help="Room ID")
@click.option("--name", required=True, help="Player name")
def add_player(config: str, room_id: int, name: str):
    """Add a player to a room."""
    session, service = _open_service(config)
    try:
        player = _unwrap(service.add_player(room_id, name))
        click.echo(f"[SUCCESS] Player #{player.id} '{player.name}' added to room {room_id}")
    finally:
        session.close()


@cli.command()
@config_option
@click.option("--room", "room_id", type=int, required=True, help="Room ID")
@click.option("--name", required=True, help="Tournament name")
@click.option("--type", "tournament_type", type=click.Choice(["1v1", "2v2"]), default="1v1")
@click.option(
    "--format",
    "tournament_format",
    type=click.Choice(["round_robin", "knockout"]),
    default="round_robin",
)
@click.option("--player", "player_ids", type=int, multiple=True, required=True, help="Player ID (repeat)")
@click.option("--matches-per-player", type=int, default=None, help="Matches per pairing in round robin")
@click.option("--by", "created_by", default=None, help="Name of the organizer")
@click.option("--seed", "random_seed", type=int, default=None, help="Random seed for the 2v2 team draw")
def create_tournament(
    config: str,
    room_id: int,
    name: str,
    tournament_type: str,
    tournament_format: str,
    player_ids: tuple,
    matches_per_player: int,
    created_by: str,
    random_seed: int,
):
    """Create a tournament and its initial matches.

    Example:
        matchroom create-tournament --room 1 --name "Friday Cup" --player 1 --player 2 --player 3
    """
    session, service = _open_service(config)
    try:
        tournament, matches = _unwrap(
            service.create_tournament(
                name=name,
                tournament_type=tournament_type,
                room_id=room_id,
                player_ids=list(player_ids),
                matches_per_player=matches_per_player,
                tournament_format=tournament_format,
                created_by=created_by,
                random_seed=random_seed,
            )
        )
        click.echo(f"[SUCCESS] Tournament #{tournament.id} '{tournament.name}' created with {len(matches)} matches")
        for match in matches:
            _echo_match(match)
    finally:
        session.close()


@cli.command()
@config_option
@click.option("--match", "match_id", type=int, required=True, help="Match ID")
@click.option("--score1", required=True, help="Score of team 1")
@click.option("--score2", required=True, help="Score of team 2")
@click.option("--by", "acting_user", default=None, help="Name of the user entering the result")
def record_result(config: str, match_id: int, score1: str, score2: str, acting_user: str):
    """Record a match result and advance the tournament.

    Example:
        matchroom record-result --match 4 --score1 3 --score2 1 --by Ana
    """
    session, service = _open_service(config)
    try:
        match = _unwrap(service.record_match_result(match_id, score1, score2, acting_user))
        click.echo("[SUCCESS] Result saved")
        _echo_match(match)
    finally:
        session.close()


@cli.command()
@config_option
@click.option("--tournament", "tournament_id", type=int, required=True, help="Tournament ID")
def matches(config: str, tournament_id: int):
    """List the matches of a tournament."""
    session, service = _open_service(config)
    try:
        tournament = _unwrap(service.get_tournament(tournament_id))
        click.echo(f"[INFO] {tournament}")
        for match in _unwrap(service.get_tournament_matches(tournament_id)):
            _echo_match(match)
    finally:
        session.close()


@cli.command()
@config_option
@click.option("--tournament", "tournament_id", type=int, required=True, help="Tournament ID")
def standings(config: str, tournament_id: int):
    """Show tournament standings."""
    session, service = _open_service(config)
    try:
        rows = _unwrap(service.get_standings(tournament_id))
        click.echo("\n[STATS] Standings:")
        for standing in rows:
            click.echo(
                f"  {standing.position}. {standing.name} - {standing.points}pts "
                f"({standing.wins}W-{standing.draws}D-{standing.losses}L, "
                f"GD {standing.goal_difference:+d}, {standing.win_percentage:.1f}%)"
            )
    finally:
        session.close()


@cli.command()
@config_option
@click.option("--tournament", "tournament_id", type=int, required=True, help="Tournament ID")
def create_final(config: str, tournament_id: int):
    """Create the final of a finished round-robin stage."""
    session, service = _open_service(config)
    try:
        final = _unwrap(service.create_finals_match(tournament_id))
        click.echo("[SUCCESS] Final created")
        _echo_match(final)
    finally:
        session.close()


@cli.command()
@config_option
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--port", default=8000, help="Port to bind to")
def open_panel(config: str, host: str, port: int):
    """Launch the web API.

    Example:
        matchroom open-panel --port 8080
    """
    import os

    import uvicorn

    if config:
        os.environ["MATCHROOM_CONFIG"] = config

    from matchroom.webapp.app import app

    click.echo(f"[INFO] Starting web API at http://{host}:{port}")
    click.echo("[INFO] Press CTRL+C to stop")

    try:
        uvicorn.run(app, host=host, port=port, log_level="info")
    except KeyboardInterrupt:
        click.echo("\n[INFO] Shutting down...")


if __name__ == "__main__":
    cli()
