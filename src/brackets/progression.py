"""
Applying match results to a stored bracket.

A result write only sees the match it updates, so forwarding the winner (and
in double elimination the loser) follows the pointers stored on the match.
Main bracket matches carry no pointers and use the positional rule instead:
the winner of round r, position p plays in round r + 1, position p // 2, in
slot 1 when p is even and slot 2 when odd.
"""
import logging
from typing import Dict, List, Optional, Tuple

from .models import (
    DEFAULT_CATEGORY,
    KNOCKOUT_ROUND_OFFSET,
    BracketSide,
    Match,
    MatchRef,
    Outcome,
    Pool,
    match_id,
    slot_for_position,
)
from .pool_play import seed_qualified_teams
from .seeding import fold_pairings

logger = logging.getLogger(__name__)

TIE_ALLOWED = {BracketSide.ROUND_ROBIN, BracketSide.POOL}


def outcome_from_games(team1_id: Optional[str], team2_id: Optional[str],
                       team1_games: List[int], team2_games: List[int], best_of: int) -> Outcome:
    """
    Work out a match outcome from per-game scores.

    A team that wins the majority of `best_of` games wins the match. A game
    with equal scores (0-0 included) has not been played. When every game is
    played and the teams won as many games each, the match is tied.
    """
    if team1_id is None or team2_id is None:
        return Outcome.pending()

    wins = [0, 0]
    for score1, score2 in zip(team1_games, team2_games):
        if score1 is None or score2 is None:
            continue
        if score1 > score2:
            wins[0] += 1
        elif score2 > score1:
            wins[1] += 1

    needed = best_of // 2 + 1
    if wins[0] >= needed:
        return Outcome.decided(team1_id)
    elif wins[1] >= needed:
        return Outcome.decided(team2_id)
    elif wins[0] + wins[1] >= best_of and wins[0] == wins[1]:
        return Outcome.tied()
    return Outcome.pending()


def _winner_target(store, tournament_id: str, match: Match,
                   category_id: str) -> Tuple[Optional[str], Optional[int]]:
    if match.winner_goes_to:
        return match.winner_goes_to, match.winner_slot or slot_for_position(match.position)
    if match.bracket == BracketSide.MAIN:
        next_id = match_id(MatchRef(BracketSide.MAIN, match.round + 1, match.position // 2))
        if store.find_match(tournament_id, next_id, category_id) is not None:
            return next_id, slot_for_position(match.position)
    return None, None


def place_team(store, tournament_id: str, target_id: str, slot: int, team_id: str,
               category_id: str = DEFAULT_CATEGORY) -> bool:
    """
    Put a team into slot 1 or 2 of a match.

    A match that can only ever receive one team is decided for that team as
    soon as it arrives, and the team moves on.
    """
    target = store.find_match(tournament_id, target_id, category_id)
    if target is None:
        logger.warning("Cannot place team %s: no match %s in tournament %s", team_id, target_id, tournament_id)
        return False

    update = {'team1_id' if slot == 1 else 'team2_id': team_id}
    passes_through = target.expected_teams == 1
    if passes_through:
        update['outcome'] = Outcome.decided(team_id)
    if not store.apply_match_update(tournament_id, target_id, update, category_id):
        return False

    logger.debug("Placed %s into %s slot %d", team_id, target_id, slot)
    if passes_through:
        logger.debug("%s is the only team that can reach %s, passing it through", team_id, target_id)
        target = store.find_match(tournament_id, target_id, category_id)
        return _forward_winner(store, tournament_id, target, team_id, category_id)
    return True


def _forward_winner(store, tournament_id: str, match: Match, winner_id: str, category_id: str) -> bool:
    target_id, slot = _winner_target(store, tournament_id, match, category_id)
    if target_id is None:
        return True
    return place_team(store, tournament_id, target_id, slot, winner_id, category_id)


def record_result(store, tournament_id: str, match_id: str, outcome: Outcome,
                  team1_games: Optional[List[int]] = None, team2_games: Optional[List[int]] = None,
                  category_id: str = DEFAULT_CATEGORY) -> bool:
    """
    Store the result of a match and move its teams on.

    Setting a winner completes the match. The winner follows winner_goes_to
    (or the positional rule in a main bracket); in double elimination the
    loser follows loser_goes_to. Ties are only accepted in round robin and pool
    matches.
    """
    match = store.find_match(tournament_id, match_id, category_id)
    if match is None:
        logger.warning("No match %s in tournament %s category %s", match_id, tournament_id, category_id)
        return False

    if outcome.is_decided and outcome.winner_id not in match.team_ids:
        logger.warning("Winner %s did not play match %s", outcome.winner_id, match_id)
        return False
    if outcome.is_tied and match.bracket not in TIE_ALLOWED:
        logger.warning("Match %s cannot end in a tie", match_id)
        return False

    update = {'outcome': outcome}
    if team1_games is not None:
        update['team1_games'] = list(team1_games)
    if team2_games is not None:
        update['team2_games'] = list(team2_games)
    if not store.apply_match_update(tournament_id, match_id, update, category_id):
        return False

    if not outcome.is_decided:
        return True

    match.outcome = outcome
    ok = _forward_winner(store, tournament_id, match, outcome.winner_id, category_id)
    loser = match.loser_id()
    if loser is not None and match.loser_goes_to:
        ok = place_team(store, tournament_id, match.loser_goes_to,
                        match.loser_slot or 2, loser, category_id) and ok
    return ok


def _expected_teams_by_round(first_round: Dict[int, int], rounds: int) -> List[Dict[int, int]]:
    """How many teams can reach each knockout match, from the first round counts."""
    expected = [first_round]
    for _ in range(1, rounds):
        previous = expected[-1]
        expected.append({
            position: sum(1 for feeder in (2 * position, 2 * position + 1) if previous.get(feeder, 0) > 0)
            for position in range(len(previous) // 2)
        })
    return expected


def qualify_teams(store, tournament_id: str, pools: List[Pool], qualified: Dict[str, List[str]],
                  category_id: str = DEFAULT_CATEGORY) -> bool:
    """
    Seed the teams qualified from pool play into the knockout stage.

    Qualified teams are seeded by finishing position across pools and placed
    with fold pairing into the first knockout round. Missing qualifiers leave
    byes, which are advanced straight away.
    """
    seeded = seed_qualified_teams(pools, qualified)
    knockout = [m for m in store.get_matches(tournament_id, category_id) if m.is_knockout]
    if not knockout:
        logger.warning("Tournament %s category %s has no knockout stage", tournament_id, category_id)
        return False

    by_round: Dict[int, List[Match]] = {}
    for match in knockout:
        by_round.setdefault(match.round - KNOCKOUT_ROUND_OFFSET, []).append(match)
    first_round = sorted(by_round.get(0, []), key=lambda m: m.position)
    slots = 2 * len(first_round)
    if len(seeded) < 2 or len(seeded) > slots:
        logger.warning("Cannot seed %d qualified teams into a knockout stage of %d slots", len(seeded), slots)
        return False

    pairings = []
    for slot1, slot2 in fold_pairings(len(seeded), bracket_size=slots):
        team_ids = [seeded[s] for s in (slot1, slot2) if s is not None]
        pairings.append(team_ids)
    expected = _expected_teams_by_round({i: len(t) for i, t in enumerate(pairings)}, len(by_round))

    ok = True
    for round_num in sorted(by_round)[1:]:
        for match in by_round[round_num]:
            ok = store.apply_match_update(tournament_id, match.id, {
                'team1_id': None,
                'team2_id': None,
                'outcome': Outcome.pending(),
                'expected_teams': expected[round_num].get(match.position, 0),
            }, category_id) and ok

    byes = []
    for match, team_ids in zip(first_round, pairings):
        is_bye = len(team_ids) == 1
        ok = store.apply_match_update(tournament_id, match.id, {
            'team1_id': team_ids[0] if team_ids else None,
            'team2_id': team_ids[1] if len(team_ids) > 1 else None,
            'outcome': Outcome.decided(team_ids[0]) if is_bye else Outcome.pending(),
            'is_bye': is_bye,
            'expected_teams': len(team_ids),
        }, category_id) and ok
        if is_bye:
            byes.append((match, team_ids[0]))

    for match, team_id in byes:
        ok = _forward_winner(store, tournament_id, match, team_id, category_id) and ok

    logger.info("Qualified %d teams into the knockout stage of tournament %s category %s (%d byes)",
                len(seeded), tournament_id, category_id, len(byes))
    return ok
