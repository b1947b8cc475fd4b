"""
Generate a tournament bracket from a YAML team roster and print it by round.

Usage:
    python src/generate_brackets.py data/teams.yaml --format double_elimination
"""
import argparse
import logging
import os
import sys
from collections import OrderedDict
from dataclasses import replace

import yaml

from brackets.config import get_data_dir, load_stage_config, load_teams
from brackets.double_elimination import get_losers_round_name, get_winners_round_name
from brackets.elimination import get_round_name
from brackets.formats import TournamentFormat, generate_bracket
from brackets.models import DEFAULT_CATEGORY, KNOCKOUT_ROUND_OFFSET, BracketSide, GenerationResult
from brackets.pool_play import pool_name
from brackets.store import YamlTournamentStore


def round_heading(result: GenerationResult, match) -> str:
    """Heading for the group of matches a match is printed in."""
    if match.bracket == BracketSide.MAIN:
        return get_round_name(result.bracket_size // 2 ** match.round)
    elif match.bracket == BracketSide.WINNERS:
        return get_winners_round_name(result.bracket_size // 2 ** match.round)
    elif match.bracket == BracketSide.LOSERS:
        losers_rounds = result.total_rounds - result.total_winner_rounds - 1
        return get_losers_round_name(match.round - result.total_winner_rounds, losers_rounds)
    elif match.bracket == BracketSide.GRAND_FINAL:
        return "Grand Final"
    elif match.bracket == BracketSide.POOL:
        return f"{pool_name(match.pool_id)} - Round {match.round + 1}"
    elif match.bracket == BracketSide.KNOCKOUT:
        stage_round = match.round - KNOCKOUT_ROUND_OFFSET
        return f"Knockout {get_round_name(2 ** (result.knockout_rounds - stage_round))}"
    return f"Round {match.round + 1}"


def format_schedule(result: GenerationResult) -> str:
    """Render the matches grouped by round, one 'team vs team' line per match."""
    names = {team.id: team.name for team in result.teams}
    groups = OrderedDict()
    for match in result.matches:
        groups.setdefault(round_heading(result, match), []).append(match)

    blocks = []
    for heading, matches in groups.items():
        lines = [f"# {heading}"]
        for match in matches:
            team1 = names.get(match.team1_id, match.team1_id) if match.team1_id else "TBD"
            team2 = names.get(match.team2_id, match.team2_id) if match.team2_id else "TBD"
            if match.is_bye:
                lines.append(f"{team1} (bye)")
            else:
                lines.append(f"{team1} vs {team2}  [{match.id}, best of {match.best_of}]")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Generate a tournament bracket from a YAML team list'
    )
    parser.add_argument(
        'teams_file',
        help='YAML file with the teams (a list, or a mapping with a "teams" key)'
    )
    parser.add_argument(
        '--format',
        default=TournamentFormat.SINGLE_ELIMINATION.value,
        help='Tournament format: ' + ', '.join(f.value for f in TournamentFormat)
    )
    parser.add_argument(
        '--config',
        help='YAML file with games and points per stage'
    )
    parser.add_argument(
        '--pools',
        type=int,
        help='Number of pools (pool play only)'
    )
    parser.add_argument(
        '--output',
        help='Write the generated bracket to this YAML file'
    )
    parser.add_argument(
        '--store',
        action='store_true',
        help='Save the bracket into the tournament store (BRACKETS_DATA_DIR)'
    )
    parser.add_argument(
        '--tournament-id',
        default='tournament',
        help='Tournament id used with --store (default: tournament)'
    )
    parser.add_argument(
        '--category',
        default=DEFAULT_CATEGORY,
        help=f'Category of the tournament used with --store (default: {DEFAULT_CATEGORY})'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Log debug output'
    )

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(levelname)s %(name)s: %(message)s',
    )

    if not os.path.exists(args.teams_file):
        print(f"Error: Teams file not found: {args.teams_file}", file=sys.stderr)
        return 1

    try:
        teams = load_teams(args.teams_file)
        config = load_stage_config(args.config)
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.pools is not None:
        config = replace(config, number_of_pools=args.pools)

    result = generate_bracket(teams, args.format, config)
    if not result.ok:
        for error in result.errors:
            print(f"Error: {error}", file=sys.stderr)
        return 1

    if not result.matches:
        print("Not enough teams to generate a bracket.")
        return 0

    print(format_schedule(result))
    print(f"\n{len(result.matches)} matches, {result.total_rounds} rounds")
    for warning in result.warnings:
        print(f"Warning: {warning}", file=sys.stderr)

    if args.output:
        with open(args.output, 'w', encoding='utf-8') as f:
            yaml.safe_dump(result.to_dict(), f, default_flow_style=False, sort_keys=False)
        print(f"Bracket written to {args.output}")

    if args.store:
        store = YamlTournamentStore(get_data_dir())
        if not store.save_bracket(args.tournament_id, result, args.category):
            print("Bracket was not stored.", file=sys.stderr)
            return 2
        print(f"Stored as category '{args.category}' of tournament '{args.tournament_id}' in {store.data_dir}")

    return 0


if __name__ == '__main__':
    sys.exit(main())
