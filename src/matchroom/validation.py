"""Validation rules for match scores and tournament rosters."""

from typing import Any, Sequence

from matchroom.exceptions import ValidationError
from matchroom.models import TournamentType

MIN_COMPETITORS = 2
MIN_TEAM_PLAYERS = 4
# Largest score accepted (fits a 32-bit signed INTEGER column)
MAX_SCORE = 2**31 - 1


def validate_score(value: Any, label: str = "score") -> int:
    """Validate a single reported score.

    Args:
        value: Score as entered (int, or a digit string from a form)
        label: Name used in the error message

    Returns:
        The score as an int

    Raises:
        ValidationError: If the value is missing, not an integer, negative,
            or above MAX_SCORE

    Examples:
        >>> validate_score(3)
        3
        >>> validate_score("0")
        0
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{label} is required")

    if isinstance(value, str):
        stripped = value.strip()
        # isdigit alone also accepts superscript digits, which int() rejects
        if not (stripped.isascii() and stripped.isdigit()):
            raise ValidationError(f"{label} must be a non-negative integer, got {value!r}")
        if len(stripped.lstrip("0")) > len(str(MAX_SCORE)):
            raise ValidationError(f"{label} cannot be greater than {MAX_SCORE} (got {value!r})")
        value = int(stripped)

    if not isinstance(value, int):
        raise ValidationError(f"{label} must be a non-negative integer, got {value!r}")

    if value < 0:
        raise ValidationError(f"{label} cannot be negative (got {value})")

    if value > MAX_SCORE:
        raise ValidationError(f"{label} cannot be greater than {MAX_SCORE} (got {value})")

    return value


def validate_scores(score1: Any, score2: Any) -> tuple[int, int]:
    """Validate both scores of a match."""
    return validate_score(score1, "score1"), validate_score(score2, "score2")


def validate_roster(players: Sequence, tournament_type: TournamentType) -> None:
    """Validate the selected players for a new tournament.

    Rules:
    - At least 2 players for any tournament
    - 2v2 needs an even number of players, and at least 4 (two teams)

    Raises:
        ValidationError: If the selection cannot form a tournament
    """
    count = len(players)

    if count < MIN_COMPETITORS:
        raise ValidationError(
            f"Select at least {MIN_COMPETITORS} players for a tournament (got {count})"
        )

    if tournament_type == TournamentType.TWO_V_TWO:
        if count % 2 != 0:
            raise ValidationError(f"2v2 tournaments need an even number of players (got {count})")
        if count < MIN_TEAM_PLAYERS:
            raise ValidationError(
                f"2v2 tournaments need at least {MIN_TEAM_PLAYERS} players (got {count})"
            )

    ids = [p.id for p in players]
    if len(set(ids)) != len(ids):
        raise ValidationError("A player cannot be selected twice")


def validate_multiplicity(value: Any) -> int:
    """Validate matches-per-pairing (must be a positive integer)."""
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValidationError(f"matches_per_player must be a positive integer, got {value!r}")
    return value
