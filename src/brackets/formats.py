"""
Tournament formats and the single entry point that generates a bracket for any of them.
"""
import logging
from enum import Enum
from typing import Callable, Dict, List, Optional, Union

from .double_elimination import generate_double_elimination
from .elimination import generate_single_elimination
from .models import GenerationResult, StageConfig, Team
from .pool_play import generate_pool_play
from .round_robin import generate_round_robin
from .validation import validate_matches

logger = logging.getLogger(__name__)


class TournamentFormat(str, Enum):
    SINGLE_ELIMINATION = "single_elimination"
    DOUBLE_ELIMINATION = "double_elimination"
    ROUND_ROBIN = "round_robin"
    POOL_PLAY = "pool_play"


Generator = Callable[[List[Team], StageConfig], GenerationResult]

GENERATORS: Dict[TournamentFormat, Generator] = {
    TournamentFormat.SINGLE_ELIMINATION: generate_single_elimination,
    TournamentFormat.DOUBLE_ELIMINATION: generate_double_elimination,
    TournamentFormat.ROUND_ROBIN: generate_round_robin,
    TournamentFormat.POOL_PLAY: generate_pool_play,
}

_missing = set(TournamentFormat) - set(GENERATORS)
if _missing:
    raise RuntimeError(f"No generator registered for formats: {sorted(f.value for f in _missing)}")


def parse_format(value: Union[TournamentFormat, str]) -> Optional[TournamentFormat]:
    """Return the format for an enum member or its string value, None if unknown."""
    if isinstance(value, TournamentFormat):
        return value
    try:
        return TournamentFormat(str(value).strip().lower())
    except ValueError:
        return None


def validate_input(teams: List[Team], format: Union[TournamentFormat, str],
                   config: StageConfig) -> List[str]:
    """Check generation input, returning a message per problem."""
    errors = []
    if not teams:
        errors.append("No teams provided")

    if parse_format(format) is None:
        valid = ', '.join(f.value for f in TournamentFormat)
        errors.append(f"Unknown tournament format: {format!r} (expected one of {valid})")

    if config.number_of_pools is not None and config.number_of_pools <= 0:
        errors.append(f"Number of pools must be positive, got {config.number_of_pools}")

    for stage in ('early_round', 'quarter_final', 'semi_final', 'final'):
        games = getattr(config, f"{stage}_games")
        if games <= 0:
            errors.append(f"{stage}_games must be positive, got {games}")
        points = getattr(config, f"{stage}_points")
        if points <= 0:
            errors.append(f"{stage}_points must be positive, got {points}")

    seen = set()
    for team in teams or []:
        if team.id in seen:
            errors.append(f"Duplicate team id: {team.id}")
        seen.add(team.id)

    return errors


def generate_bracket(teams: List[Team], format: Union[TournamentFormat, str],
                     config: Optional[StageConfig] = None) -> GenerationResult:
    """
    Generate every match of a tournament in the given format.

    Invalid input comes back as `errors` with no matches. Structural problems
    found in the generated matches come back as `warnings` next to the
    matches; such a result should not be persisted.
    """
    config = config or StageConfig()
    team_list = list(teams or [])

    errors = validate_input(team_list, format, config)
    if errors:
        for error in errors:
            logger.warning("Bracket generation skipped: %s", error)
        fmt = parse_format(format)
        return GenerationResult(format=fmt.value if fmt else str(format), teams=team_list, errors=errors)

    fmt = parse_format(format)
    if len(team_list) < 2:
        logger.info("Not enough teams to start a %s bracket (%d)", fmt.value, len(team_list))
        return GenerationResult(format=fmt.value, teams=team_list)

    result = GENERATORS[fmt](team_list, config)
    result.format = fmt.value
    result.warnings = validate_matches(result.matches)
    for warning in result.warnings:
        logger.warning("%s bracket: %s", fmt.value, warning)
    return result
