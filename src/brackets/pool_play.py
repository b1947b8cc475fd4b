"""
Pool play: snake-seeded round robin pools followed by a knockout stage.

Knockout matches live in their own round space (100, 101, ...) so they never
collide with pool rounds. The first knockout round stays empty until teams
qualify from their pools.
"""
import logging
import math
from typing import Dict, List, Optional

from .models import (
    KNOCKOUT_ROUND_OFFSET,
    BracketSide,
    GenerationResult,
    Match,
    MatchRef,
    Pool,
    Stage,
    StageConfig,
    Team,
    match_id,
    slot_for_position,
)
from .round_robin import build_schedule_matches
from .validation import compact_rounds, count_knockout_rounds, count_total_rounds

logger = logging.getLogger(__name__)

TEAMS_ADVANCING_PER_POOL = 2


def _skill_rating(team: Team) -> Optional[float]:
    if team.skill_level is None or team.skill_level == '':
        return None
    try:
        return float(team.skill_level)
    except ValueError:
        logger.warning("Ignoring unparsable skill level %r for team %s", team.skill_level, team.id)
        return None


def sort_for_pools(teams: List[Team]) -> List[Team]:
    """
    Order teams for snake seeding.

    Highest skill rating first, then lowest seed; teams with neither keep
    their input order after the others.
    """
    def sort_key(team: Team):
        rating = _skill_rating(team)
        return (
            rating is None,
            -rating if rating is not None else 0.0,
            team.seed is None,
            team.seed if team.seed is not None else 0,
        )

    return sorted(teams, key=sort_key)


def default_number_of_pools(num_teams: int) -> int:
    """Pick a pool count from the roster size."""
    if num_teams >= 16:
        return 4
    elif num_teams >= 12:
        return 3
    return 2


def snake_pool_index(index: int, number_of_pools: int) -> int:
    """
    Pool for the team at `index` of the sorted list.

    With 4 pools the sequence is 0, 1, 2, 3, 3, 2, 1, 0, 0, 1, ...
    """
    fold = index % (2 * number_of_pools)
    return fold if fold < number_of_pools else 2 * number_of_pools - 1 - fold


def pool_name(index: int) -> str:
    return f"Pool {chr(ord('A') + index)}"


def assign_pools(teams: List[Team], number_of_pools: int) -> List[Pool]:
    """Distribute already sorted teams into pools, returning copies tagged with their pool."""
    pools = [Pool(id=str(i), name=pool_name(i)) for i in range(number_of_pools)]
    for index, team in enumerate(teams):
        pool_index = snake_pool_index(index, number_of_pools)
        pools[pool_index].teams.append(team.with_pool(pool_index))
    return pools


def build_knockout_stage(knockout_rounds: int, config: StageConfig) -> List[Match]:
    """Empty knockout matches, each pointing its winner at the next round."""
    matches = []
    for stage_round in range(knockout_rounds):
        stage = StageConfig.stage_for_rounds_remaining(knockout_rounds - 1 - stage_round)
        is_last = stage_round == knockout_rounds - 1
        for i in range(2 ** (knockout_rounds - stage_round - 1)):
            matches.append(Match(
                id=match_id(MatchRef(BracketSide.KNOCKOUT, stage_round, i)),
                round=KNOCKOUT_ROUND_OFFSET + stage_round,
                position=i,
                bracket=BracketSide.KNOCKOUT,
                best_of=config.games_for(stage),
                points_to_win=config.points_for(stage),
                is_knockout=True,
                winner_goes_to=None if is_last else match_id(
                    MatchRef(BracketSide.KNOCKOUT, stage_round + 1, i // 2)),
                winner_slot=None if is_last else slot_for_position(i),
            ))
    return matches


def generate_pool_play(teams: List[Team], config: Optional[StageConfig] = None) -> GenerationResult:
    """
    Generate pool matches for every pool plus the knockout stage.

    The knockout stage is sized for the top two teams of each pool.
    """
    config = config or StageConfig()
    sorted_teams = sort_for_pools(teams)
    if len(sorted_teams) < 2:
        return GenerationResult(teams=sorted_teams)
    number_of_pools = config.number_of_pools or default_number_of_pools(len(sorted_teams))
    pools = assign_pools(sorted_teams, number_of_pools)

    matches = []
    for pool_index, pool in enumerate(pools):
        if len(pool.teams) < 2:
            logger.warning("%s has fewer than 2 teams (%d found). Skipping match generation.",
                           pool.name, len(pool.teams))
            continue
        matches.extend(build_schedule_matches(
            [t.id for t in pool.teams],
            BracketSide.POOL,
            best_of=config.games_for(Stage.EARLY_ROUND),
            points_to_win=config.points_for(Stage.EARLY_ROUND),
            pool=pool_index,
        ))

    teams_advancing = number_of_pools * TEAMS_ADVANCING_PER_POOL
    knockout_rounds = math.ceil(math.log2(teams_advancing))
    matches.extend(build_knockout_stage(knockout_rounds, config))
    compact_rounds(matches)

    pool_teams = [t for pool in pools for t in pool.teams]
    total_rounds = count_total_rounds(matches)
    logger.info("Pool play: %d teams in %d pools, %d pool rounds, %d knockout rounds, %d matches",
                len(sorted_teams), number_of_pools, total_rounds, knockout_rounds, len(matches))

    return GenerationResult(
        matches=matches,
        total_rounds=total_rounds,
        teams=pool_teams,
        pools=pools,
        knockout_rounds=count_knockout_rounds(matches),
    )


def seed_qualified_teams(pools: List[Pool], qualified: Dict[str, List[str]]) -> List[str]:
    """
    Create the knockout seed order of teams qualified from their pools.

    `qualified` maps a pool id to its qualified team ids in finishing order.
    Seeding is done by pool finish position:
    - All 1st place finishers get top seeds, in pool order
    - All 2nd place finishers get next seeds
    - etc.

    Team ids that are not in the pool they were qualified from are skipped.
    """
    qualified = {str(pool_id): team_ids for pool_id, team_ids in qualified.items()}
    members = {pool.id: {t.id for t in pool.teams} for pool in pools}
    finishers = {}
    for pool in pools:
        entries = []
        for team_id in qualified.get(pool.id, []):
            if team_id not in members[pool.id]:
                logger.warning("Team %s is not in %s, not qualifying it", team_id, pool.name)
                continue
            entries.append(team_id)
        finishers[pool.id] = entries

    unknown = set(qualified) - set(members)
    if unknown:
        logger.warning("Ignoring qualifiers for unknown pools: %s", sorted(unknown))

    seeded = []
    max_position = max((len(entries) for entries in finishers.values()), default=0)
    for position in range(max_position):
        for pool in pools:
            entries = finishers[pool.id]
            if position < len(entries):
                seeded.append(entries[position])
    return seeded
