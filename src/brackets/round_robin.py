"""
Round robin scheduling using the circle method.

Used on its own for the round robin format and once per pool by pool play.
"""
import logging
from typing import List, Optional, Tuple

from .models import BracketSide, GenerationResult, Match, MatchRef, Stage, StageConfig, Team, match_id
from .validation import compact_rounds, count_total_rounds

logger = logging.getLogger(__name__)

# Synthetic opponent for odd team counts; a team paired with it sits out the round.
BYE = "BYE"


def create_round_robin_schedule(team_ids: List[str]) -> List[List[Tuple[str, str]]]:
    """
    Build a round-by-round pairing schedule with the circle method.

    Team 0 stays fixed while the remaining teams rotate one place per round,
    so every pair meets exactly once over n - 1 rounds. Pairs involving BYE are
    dropped; a round left empty is still returned.

    >>> create_round_robin_schedule(['a', 'b', 'c', 'd'])
    [[('a', 'b'), ('c', 'd')], [('a', 'c'), ('d', 'b')], [('a', 'd'), ('b', 'c')]]
    """
    teams = list(team_ids)
    if len(teams) < 2:
        return []
    if len(teams) % 2 == 1:
        teams.append(BYE)

    fixed, rest = teams[0], teams[1:]
    size = len(rest)
    schedule = []
    for round_num in range(size):
        pairs = [(fixed, rest[round_num % size])]
        for i in range(1, len(teams) // 2):
            pairs.append((rest[(round_num + i) % size], rest[(round_num - i) % size]))
        schedule.append([p for p in pairs if BYE not in p])
    return schedule


def build_schedule_matches(team_ids: List[str], bracket: BracketSide, best_of: int, points_to_win: int,
                           pool: Optional[int] = None) -> List[Match]:
    """Turn a circle-method schedule into matches, keeping the schedule's round numbers."""
    matches = []
    for round_num, pairs in enumerate(create_round_robin_schedule(team_ids)):
        for position, (team1, team2) in enumerate(pairs):
            matches.append(Match(
                id=match_id(MatchRef(bracket, round_num, position, pool)),
                round=round_num,
                position=position,
                bracket=bracket,
                team1_id=team1,
                team2_id=team2,
                best_of=best_of,
                points_to_win=points_to_win,
                pool_id=pool,
            ))
    return matches


def generate_round_robin(teams: List[Team], config: Optional[StageConfig] = None) -> GenerationResult:
    """Everyone plays everyone once, in input order, at early round settings."""
    config = config or StageConfig()
    team_list = list(teams)
    matches = build_schedule_matches(
        [t.id for t in team_list],
        BracketSide.ROUND_ROBIN,
        best_of=config.games_for(Stage.EARLY_ROUND),
        points_to_win=config.points_for(Stage.EARLY_ROUND),
    )
    remapped = compact_rounds(matches)
    if any(old != new for old, new in remapped.items()):
        logger.debug("Compacted round robin rounds: %s", remapped)

    total_rounds = count_total_rounds(matches)
    logger.info("Round robin: %d teams, %d rounds, %d matches", len(team_list), total_rounds, len(matches))
    return GenerationResult(matches=matches, total_rounds=total_rounds, teams=team_list)
