"""
Unit tests for single elimination bracket generation.
"""
import math
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from brackets.elimination import generate_single_elimination, get_round_name, matches_in_round
from brackets.models import StageConfig


def _by_round(result):
    rounds = {}
    for match in result.matches:
        rounds.setdefault(match.round, []).append(match)
    return rounds


class TestBracketHelpers:
    """Tests for bracket helper functions."""

    def test_get_round_name(self):
        """Test round names by number of teams."""
        assert get_round_name(2) == "Final"
        assert get_round_name(4) == "Semifinal"
        assert get_round_name(8) == "Quarterfinal"
        assert get_round_name(16) == "Round of 16"

    def test_matches_in_round(self):
        """Test match counts halve each round."""
        assert [matches_in_round(16, r) for r in range(4)] == [8, 4, 2, 1]


class TestSingleElimination:
    """Tests for generate_single_elimination."""

    def test_five_teams(self, make_teams):
        """Test 5 teams: 3 rounds, bracket of 8, 3 byes, 4 first round matches."""
        result = generate_single_elimination(make_teams(5))
        assert result.total_rounds == 3
        assert result.bracket_size == 8
        assert result.byes == 3
        rounds = _by_round(result)
        assert len(rounds[0]) == 4
        assert sum(1 for m in rounds[0] if m.is_bye) == 3
        assert len(rounds[1]) == 2
        assert len(rounds[2]) == 1

    @pytest.mark.parametrize("num_teams", list(range(1, 34)))
    def test_rounds_and_byes_for_any_size(self, make_teams, num_teams):
        """Test round count, bye count and distinct teams for every roster size."""
        result = generate_single_elimination(make_teams(num_teams))
        expected_rounds = math.ceil(math.log2(num_teams)) if num_teams > 1 else 0
        assert result.total_rounds == expected_rounds
        first_round = [m for m in result.matches if m.round == 0]
        if num_teams > 1:
            assert sum(1 for m in first_round if m.is_bye) == 2 ** expected_rounds - num_teams
        for match in first_round:
            if not match.is_bye:
                assert match.team1_id and match.team2_id
                assert match.team1_id != match.team2_id

    def test_bye_winners_advanced(self, make_teams):
        """Test bye winners already sit in round 1 with the parity rule."""
        result = generate_single_elimination(make_teams(6))
        second = sorted((m for m in result.matches if m.round == 1), key=lambda m: m.position)
        # Byes at positions 0 and 1 both feed round 1 position 0
        assert (second[0].team1_id, second[0].team2_id) == ("team-1", "team-2")
        assert (second[1].team1_id, second[1].team2_id) == (None, None)

    def test_later_rounds_empty(self, make_teams):
        """Test rounds after the first hold no teams when there are no byes."""
        result = generate_single_elimination(make_teams(8))
        for match in result.matches:
            if match.round > 0:
                assert match.team1_id is None and match.team2_id is None
                assert match.outcome.is_pending

    def test_games_per_stage(self, make_teams):
        """Test best_of is chosen by counting rounds back from the final."""
        config = StageConfig(early_round_games=1, quarter_final_games=3, semi_final_games=5, final_games=7,
                             final_points=15)
        result = generate_single_elimination(make_teams(16), config)
        best_of = {m.round: m.best_of for m in result.matches}
        assert best_of == {0: 1, 1: 3, 2: 5, 3: 7}
        final = [m for m in result.matches if m.round == 3][0]
        assert final.points_to_win == 15
        assert len(final.team1_games) == 7

    def test_ids(self, make_teams):
        """Test ids encode round and position."""
        result = generate_single_elimination(make_teams(4))
        assert [m.id for m in result.matches] == ["match-0-0", "match-0-1", "match-1-0"]

    def test_no_teams(self):
        """Test zero teams gives no bracket rather than an error."""
        result = generate_single_elimination([])
        assert result.matches == []
        assert result.total_rounds == 0

    def test_deterministic(self, make_teams):
        """Test identical input gives identical matches."""
        teams = make_teams(11)
        assert generate_single_elimination(teams).matches == generate_single_elimination(teams).matches
