"""
Unit tests for round robin scheduling.
"""
from itertools import combinations
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from brackets.models import BracketSide, StageConfig
from brackets.round_robin import BYE, create_round_robin_schedule, generate_round_robin
from brackets.validation import validate_matches


class TestCircleMethod:
    """Tests for create_round_robin_schedule."""

    def test_four_teams(self):
        """Test the fixed team meets the rotating teams in order."""
        schedule = create_round_robin_schedule(['a', 'b', 'c', 'd'])
        assert schedule == [
            [('a', 'b'), ('c', 'd')],
            [('a', 'c'), ('d', 'b')],
            [('a', 'd'), ('b', 'c')],
        ]

    @pytest.mark.parametrize("num_teams", list(range(2, 17)))
    def test_every_pair_once(self, num_teams):
        """Test n(n-1)/2 matches, every pair exactly once, nobody twice in a round."""
        team_ids = [f"t{i}" for i in range(num_teams)]
        schedule = create_round_robin_schedule(team_ids)
        pairs = [frozenset(p) for round_pairs in schedule for p in round_pairs]
        assert len(pairs) == num_teams * (num_teams - 1) // 2
        assert set(pairs) == {frozenset(p) for p in combinations(team_ids, 2)}
        for round_pairs in schedule:
            playing = [t for p in round_pairs for t in p]
            assert len(playing) == len(set(playing))

    def test_odd_count_sits_one_out(self):
        """Test an odd roster gets n rounds with one team resting each round."""
        schedule = create_round_robin_schedule(['a', 'b', 'c', 'd', 'e'])
        assert len(schedule) == 5
        for round_pairs in schedule:
            assert len(round_pairs) == 2
            assert all(BYE not in p for p in round_pairs)

    def test_too_few_teams(self):
        """Test fewer than two teams give no schedule."""
        assert create_round_robin_schedule([]) == []
        assert create_round_robin_schedule(['a']) == []

    def test_input_not_mutated(self):
        """Test the BYE padding is not added to the caller's list."""
        team_ids = ['a', 'b', 'c']
        create_round_robin_schedule(team_ids)
        assert team_ids == ['a', 'b', 'c']


class TestGenerateRoundRobin:
    """Tests for generate_round_robin."""

    def test_six_teams(self, make_teams):
        """Test 6 teams: 5 rounds, 15 matches, 3 per round."""
        result = generate_round_robin(make_teams(6))
        assert result.total_rounds == 5
        assert len(result.matches) == 15
        for round_num in range(5):
            assert sum(1 for m in result.matches if m.round == round_num) == 3

    def test_match_fields(self, make_teams):
        """Test ids, bracket side and early round settings."""
        config = StageConfig(early_round_games=3, early_round_points=15)
        result = generate_round_robin(make_teams(4), config)
        first = result.matches[0]
        assert first.id == "rr-match-0-0"
        assert first.bracket == BracketSide.ROUND_ROBIN
        assert (first.best_of, first.points_to_win) == (3, 15)
        assert first.pool_id is None
        assert (first.team1_id, first.team2_id) == ("team-1", "team-2")

    def test_rounds_dense(self, make_teams):
        """Test round numbers run 0..total_rounds-1 without holes."""
        result = generate_round_robin(make_teams(7))
        assert sorted({m.round for m in result.matches}) == list(range(result.total_rounds))

    def test_deterministic(self, make_teams):
        """Test identical input gives identical matches."""
        teams = make_teams(9)
        assert generate_round_robin(teams).matches == generate_round_robin(teams).matches

    @pytest.mark.slow
    def test_more_than_a_hundred_rounds(self, make_teams):
        """Test 102 teams keep all 101 rounds as regular rounds."""
        result = generate_round_robin(make_teams(102))
        assert result.total_rounds == 101
        assert len(result.matches) == 5151
        assert max(m.round for m in result.matches) == 100
        assert not any(m.is_knockout for m in result.matches)
        assert validate_matches(result.matches) == []
