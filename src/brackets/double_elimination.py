"""
Double elimination bracket generation.

In double elimination:
- Teams must lose twice to be eliminated
- Winners Bracket: Teams that haven't lost yet
- Losers Bracket: Teams that have lost once
- Grand Final: Winners bracket champion vs Losers bracket champion

The losers bracket alternates between two kinds of rounds:
- Round 0 pairs the losers of winners round 0 (two per match)
- Drop-in rounds (odd: 1, 3, 5...): the losers of winners round r drop in
  against the survivors of the previous losers round, same match count
- Consolidation rounds (even: 2, 4...): survivors play each other, halving
  the match count

For an 8-team bracket:
- L Round 0: 4 W-R0 losers pair off -> 2 matches
- L Round 1: 2 W-R1 losers vs 2 L-R0 winners -> 2 matches
- L Round 2: 2 L-R1 winners pair off -> 1 match
- L Round 3: W-final loser vs L-R2 winner -> 1 match (losers champion)

That is 2 * (W - 1) losers rounds for W winners rounds, with winners round r
(r >= 1) dropping into l-match-{2r-1}-{p}. The older W + 1 round wiring with
l-match-{2r}-{p // 2} targets overfills its losers rounds and is not used.

Every progression is wired at generation time through winner_goes_to /
loser_goes_to pointers, since a result write only sees the match it updates.
"""
import logging
from typing import Dict, List, Optional, Tuple

from .elimination import build_empty_rounds
from .models import (
    BracketSide,
    GenerationResult,
    Match,
    MatchRef,
    StageConfig,
    Team,
    match_id,
    slot_for_position,
)
from .seeding import (
    advance_byes,
    build_first_round,
    calculate_bracket_size,
    calculate_byes,
    calculate_total_rounds,
    sort_by_seed,
)

logger = logging.getLogger(__name__)

GRAND_FINAL_REF = MatchRef(BracketSide.GRAND_FINAL, 0, 0)


def get_losers_round_name(round_num: int, total_losers_rounds: int) -> str:
    """Get the name for a losers bracket round (0-indexed)."""
    rounds_from_end = total_losers_rounds - round_num - 1
    if rounds_from_end == 0:
        return "Losers Final"
    elif rounds_from_end == 1:
        return "Losers Semifinal"
    else:
        return f"Losers Round {round_num + 1}"


def get_winners_round_name(teams_in_round: int) -> str:
    """Get the name for a winners bracket round."""
    if teams_in_round == 2:
        return "Winners Final"
    elif teams_in_round == 4:
        return "Winners Semifinal"
    elif teams_in_round == 8:
        return "Winners Quarterfinal"
    else:
        return f"Winners Round of {teams_in_round}"


def calculate_losers_bracket_rounds(bracket_size: int) -> int:
    """
    Calculate number of rounds in losers bracket.

    A bracket of N teams (power of 2) has log2(N) winners rounds and
    2 * (log2(N) - 1) losers rounds.
    """
    if bracket_size < 2:
        return 0
    winners_rounds = calculate_total_rounds(bracket_size)
    return 2 * (winners_rounds - 1)


def losers_matches_in_round(bracket_size: int, losers_round: int) -> int:
    """Match count of a losers round: B/4, B/4, B/8, B/8, ... for bracket size B."""
    return bracket_size // (2 ** (losers_round // 2 + 2))


def _loser_destination(winners_round: int, position: int, total_winners_rounds: int,
                       total_losers_rounds: int) -> Tuple[MatchRef, int]:
    """Where the loser of a winners match drops to, and into which slot."""
    if total_losers_rounds == 0:
        return GRAND_FINAL_REF, 2
    if winners_round == 0:
        return MatchRef(BracketSide.LOSERS, 0, position // 2), slot_for_position(position)
    return MatchRef(BracketSide.LOSERS, 2 * winners_round - 1, position), 1


def _winner_destination(winners_round: int, position: int, total_winners_rounds: int) -> Tuple[MatchRef, int]:
    if winners_round == total_winners_rounds - 1:
        return GRAND_FINAL_REF, 1
    return MatchRef(BracketSide.WINNERS, winners_round + 1, position // 2), slot_for_position(position)


def _losers_winner_destination(losers_round: int, position: int, total_losers_rounds: int) -> Tuple[MatchRef, int]:
    if losers_round == total_losers_rounds - 1:
        return GRAND_FINAL_REF, 2
    if losers_round % 2 == 0:
        # Survivors of round 0 and of consolidation rounds meet a drop-in team
        return MatchRef(BracketSide.LOSERS, losers_round + 1, position), 2
    return MatchRef(BracketSide.LOSERS, losers_round + 1, position // 2), slot_for_position(position)


def _generate_winners_bracket(sorted_teams: List[Team], bracket_size: int, total_rounds: int,
                              total_losers_rounds: int, config: StageConfig) -> Dict[int, List[Match]]:
    """Generate winners bracket rounds with their progression pointers."""
    first_stage = StageConfig.stage_for_rounds_remaining(total_rounds - 1)
    rounds = {
        0: build_first_round(
            sorted_teams,
            BracketSide.WINNERS,
            best_of=config.games_for(first_stage),
            points_to_win=config.points_for(first_stage),
        )
    }
    rounds.update(build_empty_rounds(BracketSide.WINNERS, bracket_size, total_rounds, config))

    for round_num, round_matches in rounds.items():
        for match in round_matches:
            match.is_winners_bracket = True
            winner_ref, match.winner_slot = _winner_destination(round_num, match.position, total_rounds)
            match.winner_goes_to = match_id(winner_ref)
            if match.is_bye:
                continue
            loser_ref, match.loser_slot = _loser_destination(
                round_num, match.position, total_rounds, total_losers_rounds)
            match.loser_goes_to = match_id(loser_ref)

    if total_rounds > 1:
        advance_byes(rounds[0], rounds[1])
    return rounds


def _generate_losers_bracket(bracket_size: int, total_losers_rounds: int,
                             config: StageConfig, round_offset: int) -> Dict[int, List[Match]]:
    """
    Generate losers bracket rounds.

    Match.round continues after the winners bracket (round_offset + losers
    round); ids and pointers use the losers-local round number.
    """
    rounds = {}
    for losers_round in range(total_losers_rounds):
        stage = StageConfig.stage_for_rounds_remaining(total_losers_rounds - 1 - losers_round)
        round_matches = []
        for i in range(losers_matches_in_round(bracket_size, losers_round)):
            target, slot = _losers_winner_destination(losers_round, i, total_losers_rounds)
            round_matches.append(Match(
                id=match_id(MatchRef(BracketSide.LOSERS, losers_round, i)),
                round=round_offset + losers_round,
                position=i,
                bracket=BracketSide.LOSERS,
                best_of=config.games_for(stage),
                points_to_win=config.points_for(stage),
                is_winners_bracket=False,
                winner_goes_to=match_id(target),
                winner_slot=slot,
            ))
        rounds[losers_round] = round_matches
    return rounds


def _mark_short_losers_matches(winners_first_round: List[Match], losers_rounds: Dict[int, List[Match]]):
    """
    Record how many teams can ever reach the early losers matches.

    A winners bye produces no loser, so a losers round-0 match fed by byes
    gets fewer than two teams, and so does the drop-in match it feeds.
    """
    if not losers_rounds:
        return
    losers_by_position = {m.position: m for m in winners_first_round if not m.is_bye}
    for match in losers_rounds[0]:
        feeders = [2 * match.position, 2 * match.position + 1]
        match.expected_teams = sum(1 for p in feeders if p in losers_by_position)
    if 1 in losers_rounds:
        survivors = {m.position: m.expected_teams > 0 for m in losers_rounds[0]}
        for match in losers_rounds[1]:
            match.expected_teams = 1 + (1 if survivors.get(match.position) else 0)


def generate_double_elimination(teams: List[Team], config: Optional[StageConfig] = None) -> GenerationResult:
    """
    Generate complete double elimination bracket.

    Match rounds: winners 0..W-1, losers W..W+L-1, grand final W+L, for W
    winners rounds and L losers rounds.
    """
    config = config or StageConfig()
    sorted_teams = sort_by_seed(teams)
    num_teams = len(sorted_teams)
    total_winners_rounds = calculate_total_rounds(num_teams)

    if total_winners_rounds == 0:
        return GenerationResult(teams=sorted_teams, bracket_size=calculate_bracket_size(num_teams),
                                total_winner_rounds=0)

    bracket_size = calculate_bracket_size(num_teams)
    total_losers_rounds = calculate_losers_bracket_rounds(bracket_size)

    winners = _generate_winners_bracket(sorted_teams, bracket_size, total_winners_rounds,
                                        total_losers_rounds, config)
    losers = _generate_losers_bracket(bracket_size, total_losers_rounds,
                                      config, round_offset=total_winners_rounds)
    _mark_short_losers_matches(winners[0], losers)

    grand_final = Match(
        id=match_id(GRAND_FINAL_REF),
        round=total_winners_rounds + total_losers_rounds,
        position=0,
        bracket=BracketSide.GRAND_FINAL,
        best_of=config.final_games,
        points_to_win=config.final_points,
        is_winners_bracket=False,
    )

    matches = [m for r in range(total_winners_rounds) for m in winners[r]]
    matches.extend(m for r in range(total_losers_rounds) for m in losers[r])
    matches.append(grand_final)

    total_rounds = total_winners_rounds + total_losers_rounds + 1
    byes = calculate_byes(num_teams)
    logger.info("Double elimination: %d teams, %d winners rounds, %d losers rounds, %d matches",
                num_teams, total_winners_rounds, total_losers_rounds, len(matches))

    return GenerationResult(
        matches=matches,
        total_rounds=total_rounds,
        teams=sorted_teams,
        bracket_size=bracket_size,
        byes=byes,
        total_winner_rounds=total_winners_rounds,
    )
