"""
Seeding and bye normalization shared by every elimination bracket.

The first round uses "fold" pairing: with F first-round matches, position i
holds seed slot i against slot 2F - 1 - i. Slots past the last team are empty,
so the byes fall to the highest seeds.
"""
import math
from typing import Callable, List, Optional, Tuple

from .models import BracketSide, Match, MatchRef, Outcome, Team, match_id


def sort_by_seed(teams: List[Team]) -> List[Team]:
    """Seeded teams ascending by seed, then unseeded teams in their input order."""
    # sorted() is stable, so ties and unseeded teams keep their input order
    return sorted(teams, key=lambda t: (t.seed is None, t.seed if t.seed is not None else 0))


def calculate_total_rounds(num_teams: int) -> int:
    """Number of rounds of a knockout bracket for num_teams teams."""
    if num_teams <= 1:
        return 0
    return math.ceil(math.log2(num_teams))


def calculate_bracket_size(num_teams: int) -> int:
    """Calculate the bracket size (next power of 2)."""
    if num_teams <= 0:
        return 0
    return 2 ** calculate_total_rounds(num_teams)


def calculate_byes(num_teams: int) -> int:
    """Calculate number of byes needed."""
    return calculate_bracket_size(num_teams) - num_teams


def fold_pairings(num_teams: int, bracket_size: Optional[int] = None) -> List[Tuple[Optional[int], Optional[int]]]:
    """
    Seed-slot pairs for every first-round position.

    Returns one (slot1, slot2) tuple per position, with None for an empty
    slot. For 5 teams: [(0, None), (1, None), (2, None), (3, 4)].
    `bracket_size` defaults to the smallest power of two holding every team.
    """
    if bracket_size is None:
        bracket_size = calculate_bracket_size(num_teams)
    first_round_matches = bracket_size // 2
    pairings = []
    for i in range(first_round_matches):
        opponent = first_round_matches * 2 - 1 - i
        slot1 = i if i < num_teams else None
        slot2 = opponent if opponent < num_teams else None
        pairings.append((slot1, slot2))
    return pairings


def build_first_round(sorted_teams: List[Team], bracket: BracketSide, best_of: int,
                      points_to_win: int,
                      ref_factory: Optional[Callable[[int], MatchRef]] = None) -> List[Match]:
    """
    Create round 0 of a bracket from teams already in seed order.

    A position with a single team becomes a bye already decided for that team,
    which always sits in slot 1. Positions with no team at all are skipped.
    """
    if len(sorted_teams) == 0:
        return []
    if ref_factory is None:
        ref_factory = lambda position: MatchRef(bracket, 0, position)

    matches = []
    for position, (slot1, slot2) in enumerate(fold_pairings(len(sorted_teams))):
        team1 = sorted_teams[slot1].id if slot1 is not None else None
        team2 = sorted_teams[slot2].id if slot2 is not None else None
        if team1 is None and team2 is None:
            continue
        if team1 is None:
            team1, team2 = team2, None

        is_bye = team2 is None
        matches.append(Match(
            id=match_id(ref_factory(position)),
            round=0,
            position=position,
            bracket=bracket,
            team1_id=team1,
            team2_id=team2,
            best_of=best_of,
            points_to_win=points_to_win,
            outcome=Outcome.decided(team1) if is_bye else Outcome.pending(),
            is_bye=is_bye,
            expected_teams=1 if is_bye else 2,
        ))
    return matches


def advance_byes(first_round: List[Match], next_round: List[Match]) -> int:
    """
    Place every round-0 bye winner into round 1.

    The winner of position p goes to position p // 2, slot 1 when p is even
    and slot 2 when odd. Returns how many teams were advanced.
    """
    by_position = {m.position: m for m in next_round}
    advanced = 0
    for bye in first_round:
        if not bye.is_bye or not bye.outcome.is_decided:
            continue
        target = by_position.get(bye.position // 2)
        if target is None:
            continue
        if bye.position % 2 == 0:
            target.team1_id = bye.winner_id
        else:
            target.team2_id = bye.winner_id
        advanced += 1
    return advanced
