"""
Round normalization and structural checks run on every generated match list.

Findings are returned as human-readable messages; nothing here raises, so a
caller can always inspect a bracket before deciding whether to keep it.
"""
from collections import defaultdict
from typing import Dict, List

from .models import KNOCKOUT_ROUND_OFFSET, BracketSide, Match


def is_knockout_match(match: Match) -> bool:
    """
    Knockout matches are told apart by their bracket, not their round number.

    A round robin of more than 101 teams has a round 100 of its own.
    """
    return match.is_knockout or match.bracket == BracketSide.KNOCKOUT


def compact_rounds(matches: List[Match]) -> Dict[int, int]:
    """
    Renumber rounds into dense sequences, in place.

    Regular rounds map onto 0, 1, 2...; knockout rounds map onto 100, 101...
    Relative order is kept. Returns the old -> new mapping of the regular
    rounds, followed by that of the knockout rounds.
    """
    regular = sorted({m.round for m in matches if not is_knockout_match(m)})
    knockout = sorted({m.round for m in matches if is_knockout_match(m)})
    regular_map = {old: new for new, old in enumerate(regular)}
    knockout_map = {old: KNOCKOUT_ROUND_OFFSET + new for new, old in enumerate(knockout)}
    for match in matches:
        if is_knockout_match(match):
            match.round = knockout_map[match.round]
        else:
            match.round = regular_map[match.round]
    mapping = dict(regular_map)
    mapping.update(knockout_map)
    return mapping


def count_total_rounds(matches: List[Match]) -> int:
    """Number of regular rounds (highest round + 1)."""
    rounds = [m.round for m in matches if not is_knockout_match(m)]
    return max(rounds) + 1 if rounds else 0


def count_knockout_rounds(matches: List[Match]) -> int:
    rounds = [m.round for m in matches if is_knockout_match(m)]
    return max(rounds) - KNOCKOUT_ROUND_OFFSET + 1 if rounds else 0


def _check_sequential(label: str, rounds: List[int], start: int) -> List[str]:
    expected = list(range(start, start + len(rounds)))
    if rounds != expected:
        return [f"{label} rounds are not sequential: {rounds}"]
    return []


def validate_matches(matches: List[Match]) -> List[str]:
    """Check a generated match list and return every problem found."""
    errors = []
    ids = set()

    for match in matches:
        if not match.id:
            errors.append(f"Match at round {match.round}, position {match.position} has no id")
        elif match.id in ids:
            errors.append(f"Duplicate match id: {match.id}")
        ids.add(match.id)

        if match.round < 0:
            errors.append(f"Match {match.id} has a negative round: {match.round}")
        if match.position < 0:
            errors.append(f"Match {match.id} has a negative position: {match.position}")

        if match.round == 0:
            if not match.team_ids and not match.is_bye:
                errors.append(f"First round match {match.id} has no teams and is not a bye")
            if match.is_bye and (len(match.team_ids) != 1 or match.winner_id != match.team_ids[0]):
                errors.append(f"Bye {match.id} must hold exactly one team and be decided for it")

    # Pool matches number their rounds per pool, everything else per bracket side
    groups = defaultdict(set)
    positions = defaultdict(list)
    for match in matches:
        if is_knockout_match(match):
            groups['knockout'].add(match.round)
        elif match.pool_id is not None:
            groups[f"Pool {match.pool_id}"].add(match.round)
        else:
            groups['regular'].add(match.round)
        positions[(match.bracket, match.pool_id, match.round)].append(match.position)

    for label, rounds in sorted(groups.items()):
        if label == 'knockout':
            errors.extend(_check_sequential('Knockout', sorted(rounds), KNOCKOUT_ROUND_OFFSET))
        elif label == 'regular':
            errors.extend(_check_sequential('Bracket', sorted(rounds), 0))
        else:
            errors.extend(_check_sequential(label, sorted(rounds), 0))

    for (bracket, pool_id, round_num), round_positions in sorted(
            positions.items(), key=lambda item: (item[0][0].value, item[0][1] or 0, item[0][2])):
        if sorted(round_positions) != list(range(len(round_positions))):
            where = f"pool {pool_id} " if pool_id is not None else ""
            errors.append(f"Positions in {bracket.value} {where}round {round_num} are not contiguous: "
                          f"{sorted(round_positions)}")

    for match in matches:
        for pointer in (match.winner_goes_to, match.loser_goes_to):
            if pointer is not None and pointer not in ids:
                errors.append(f"Match {match.id} points to unknown match {pointer}")

    return errors
