"""
Single elimination bracket generation.
"""
import logging
from typing import Dict, List, Optional

from .models import BracketSide, GenerationResult, Match, MatchRef, StageConfig, Team, match_id
from .seeding import (
    advance_byes,
    build_first_round,
    calculate_bracket_size,
    calculate_byes,
    calculate_total_rounds,
    sort_by_seed,
)

logger = logging.getLogger(__name__)


def get_round_name(teams_in_round: int) -> str:
    """Get the name of a round based on number of teams."""
    if teams_in_round == 2:
        return "Final"
    elif teams_in_round == 4:
        return "Semifinal"
    elif teams_in_round == 8:
        return "Quarterfinal"
    else:
        return f"Round of {teams_in_round}"


def matches_in_round(bracket_size: int, round_num: int) -> int:
    """Number of matches in a knockout round (round 0 is the first round)."""
    return bracket_size // (2 ** (round_num + 1))


def build_empty_rounds(bracket: BracketSide, bracket_size: int, total_rounds: int,
                       config: StageConfig, first_round: int = 1) -> Dict[int, List[Match]]:
    """
    Create placeholder matches for rounds first_round..total_rounds-1.

    Games and points per match come from the stage, counted backward from the
    final (the last round).
    """
    rounds = {}
    for round_num in range(first_round, total_rounds):
        stage = StageConfig.stage_for_rounds_remaining(total_rounds - 1 - round_num)
        best_of = config.games_for(stage)
        rounds[round_num] = [
            Match(
                id=match_id(MatchRef(bracket, round_num, i)),
                round=round_num,
                position=i,
                bracket=bracket,
                best_of=best_of,
                points_to_win=config.points_for(stage),
            )
            for i in range(matches_in_round(bracket_size, round_num))
        ]
    return rounds


def generate_single_elimination(teams: List[Team], config: Optional[StageConfig] = None) -> GenerationResult:
    """
    Generate every match of a single elimination bracket.

    Round 0 is seeded with fold pairing; later rounds are empty until results
    come in, except for slots already filled by round-0 bye winners.
    """
    config = config or StageConfig()
    sorted_teams = sort_by_seed(teams)
    num_teams = len(sorted_teams)
    total_rounds = calculate_total_rounds(num_teams)

    if total_rounds == 0:
        return GenerationResult(teams=sorted_teams, bracket_size=calculate_bracket_size(num_teams))

    bracket_size = calculate_bracket_size(num_teams)
    first_stage = StageConfig.stage_for_rounds_remaining(total_rounds - 1)
    rounds = {
        0: build_first_round(
            sorted_teams,
            BracketSide.MAIN,
            best_of=config.games_for(first_stage),
            points_to_win=config.points_for(first_stage),
        )
    }
    rounds.update(build_empty_rounds(BracketSide.MAIN, bracket_size, total_rounds, config))

    if total_rounds > 1:
        advance_byes(rounds[0], rounds[1])

    matches = [m for round_num in range(total_rounds) for m in rounds[round_num]]
    byes = calculate_byes(num_teams)
    logger.info("Single elimination: %d teams, %d rounds, %d byes, %d matches",
                num_teams, total_rounds, byes, len(matches))

    return GenerationResult(
        matches=matches,
        total_rounds=total_rounds,
        teams=sorted_teams,
        bracket_size=bracket_size,
        byes=byes,
    )
