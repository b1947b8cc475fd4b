"""
Unit tests for seeding and bye normalization.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from brackets.models import BracketSide, Match, Team
from brackets.seeding import (
    advance_byes,
    build_first_round,
    calculate_bracket_size,
    calculate_byes,
    calculate_total_rounds,
    fold_pairings,
    sort_by_seed,
)


class TestBracketMath:
    """Tests for bracket size, rounds and byes."""

    def test_calculate_total_rounds(self):
        """Test rounds is ceil(log2(n))."""
        assert calculate_total_rounds(0) == 0
        assert calculate_total_rounds(1) == 0
        assert calculate_total_rounds(2) == 1
        assert calculate_total_rounds(5) == 3
        assert calculate_total_rounds(8) == 3
        assert calculate_total_rounds(9) == 4

    def test_calculate_bracket_size(self):
        """Test bracket size rounds up to the next power of 2."""
        assert calculate_bracket_size(0) == 0
        assert calculate_bracket_size(2) == 2
        assert calculate_bracket_size(3) == 4
        assert calculate_bracket_size(5) == 8
        assert calculate_bracket_size(12) == 16

    def test_calculate_byes(self):
        """Test byes fill the bracket up to its size."""
        assert calculate_byes(8) == 0
        assert calculate_byes(5) == 3
        assert calculate_byes(12) == 4


class TestSortBySeed:
    """Tests for seed ordering."""

    def test_seeded_before_unseeded(self):
        """Test seeded teams come first in seed order, unseeded keep input order."""
        teams = [
            Team(id="u1", name="U1"),
            Team(id="s3", name="S3", seed=3),
            Team(id="u2", name="U2"),
            Team(id="s1", name="S1", seed=1),
        ]
        assert [t.id for t in sort_by_seed(teams)] == ["s1", "s3", "u1", "u2"]

    def test_input_not_mutated(self):
        """Test sorting returns a new list."""
        teams = [Team(id="b", name="B", seed=2), Team(id="a", name="A", seed=1)]
        sort_by_seed(teams)
        assert [t.id for t in teams] == ["b", "a"]


class TestFoldPairings:
    """Tests for first round fold pairing."""

    def test_full_bracket(self):
        """Test 8 teams pair 1v8, 2v7, 3v6, 4v5."""
        assert fold_pairings(8) == [(0, 7), (1, 6), (2, 5), (3, 4)]

    def test_byes_go_to_top_seeds(self):
        """Test missing opponents fall against the highest seeds."""
        assert fold_pairings(5) == [(0, None), (1, None), (2, None), (3, 4)]

    def test_explicit_bracket_size(self):
        """Test pairing into a bracket larger than the team count needs."""
        assert fold_pairings(3, bracket_size=8) == [(0, None), (1, None), (2, None), (None, None)]


class TestBuildFirstRound:
    """Tests for round 0 construction."""

    def test_five_teams(self, make_teams):
        """Test 5 teams give 4 matches, 3 of them byes for the top seeds."""
        matches = build_first_round(make_teams(5), BracketSide.MAIN, best_of=1, points_to_win=11)
        assert len(matches) == 4
        byes = [m for m in matches if m.is_bye]
        assert [m.team1_id for m in byes] == ["team-1", "team-2", "team-3"]
        for bye in byes:
            assert bye.team2_id is None
            assert bye.winner_id == bye.team1_id
            assert bye.expected_teams == 1
        assert (matches[3].team1_id, matches[3].team2_id) == ("team-4", "team-5")
        assert matches[3].outcome.is_pending

    def test_ids_and_positions(self, make_teams):
        """Test ids follow the bracket side and positions are contiguous."""
        matches = build_first_round(make_teams(4), BracketSide.WINNERS, best_of=3, points_to_win=15)
        assert [m.id for m in matches] == ["w-match-0-0", "w-match-0-1"]
        assert [m.position for m in matches] == [0, 1]
        assert all(m.best_of == 3 and m.points_to_win == 15 for m in matches)

    def test_no_teams(self):
        """Test an empty roster builds nothing."""
        assert build_first_round([], BracketSide.MAIN, best_of=1, points_to_win=11) == []


class TestAdvanceByes:
    """Tests for pre-advancing bye winners."""

    def test_parity_slots(self, make_teams):
        """Test even bye positions fill slot 1 and odd positions slot 2."""
        first = build_first_round(make_teams(5), BracketSide.MAIN, best_of=1, points_to_win=11)
        second = [Match(id=f"match-1-{i}", round=1, position=i, bracket=BracketSide.MAIN) for i in range(2)]
        assert advance_byes(first, second) == 3
        assert (second[0].team1_id, second[0].team2_id) == ("team-1", "team-2")
        assert (second[1].team1_id, second[1].team2_id) == ("team-3", None)
