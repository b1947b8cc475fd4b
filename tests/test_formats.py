"""
Tests for format dispatch, input validation and the generation entry point.
"""
import logging
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from brackets.formats import GENERATORS, TournamentFormat, generate_bracket, parse_format, validate_input
from brackets.models import StageConfig, Team


class TestTournamentFormat:
    """Tests for the format enum and its dispatch table."""

    def test_every_format_has_a_generator(self):
        """Test the dispatch table covers the whole enum."""
        assert set(GENERATORS) == set(TournamentFormat)

    def test_parse_format(self):
        """Test formats parse from members and string values."""
        assert parse_format(TournamentFormat.POOL_PLAY) == TournamentFormat.POOL_PLAY
        assert parse_format("round_robin") == TournamentFormat.ROUND_ROBIN
        assert parse_format(" Double_Elimination ") == TournamentFormat.DOUBLE_ELIMINATION
        assert parse_format("swiss") is None


class TestValidateInput:
    """Tests for validate_input."""

    def test_valid(self, make_teams):
        """Test good input has no errors."""
        assert validate_input(make_teams(4), "single_elimination", StageConfig()) == []

    def test_no_teams(self):
        """Test an empty roster is an input error."""
        assert validate_input([], "single_elimination", StageConfig()) == ["No teams provided"]

    def test_unknown_format(self, make_teams):
        """Test an unknown format is reported."""
        errors = validate_input(make_teams(4), "swiss", StageConfig())
        assert len(errors) == 1
        assert "Unknown tournament format" in errors[0]

    def test_non_positive_pools(self, make_teams):
        """Test zero or negative pool counts are rejected."""
        assert validate_input(make_teams(4), "pool_play", StageConfig(number_of_pools=0))
        assert validate_input(make_teams(4), "pool_play", StageConfig(number_of_pools=-2))

    def test_non_positive_games(self, make_teams):
        """Test stage game counts must be positive."""
        errors = validate_input(make_teams(4), "single_elimination", StageConfig(semi_final_games=0))
        assert errors == ["semi_final_games must be positive, got 0"]

    def test_duplicate_team_ids(self):
        """Test duplicate team ids are rejected."""
        teams = [Team(id="a", name="A"), Team(id="a", name="A again")]
        assert validate_input(teams, "round_robin", StageConfig()) == ["Duplicate team id: a"]


class TestGenerateBracket:
    """Tests for generate_bracket."""

    @pytest.mark.parametrize("fmt", list(TournamentFormat))
    def test_every_format_generates_cleanly(self, make_teams, fmt):
        """Test every format produces persistable output for a normal roster."""
        result = generate_bracket(make_teams(10), fmt)
        assert result.format == fmt.value
        assert result.matches
        assert result.errors == []
        assert result.warnings == []
        assert result.can_persist

    def test_errors_skip_generation(self, caplog):
        """Test invalid input returns errors and no matches."""
        with caplog.at_level(logging.WARNING):
            result = generate_bracket([], "swiss")
        assert not result.ok
        assert result.matches == []
        assert len(result.errors) == 2
        assert "No teams provided" in caplog.text

    @pytest.mark.parametrize("fmt", list(TournamentFormat))
    def test_single_team_is_not_an_error(self, make_teams, fmt):
        """Test one team gives zero rounds and no matches without errors."""
        result = generate_bracket(make_teams(1), fmt)
        assert result.ok
        assert result.matches == []
        assert result.total_rounds == 0

    def test_string_format(self, make_teams):
        """Test the format may be given as its string value."""
        result = generate_bracket(make_teams(5), "single_elimination")
        assert result.total_rounds == 3
        assert result.bracket_size == 8
        assert result.byes == 3

    @pytest.mark.parametrize("fmt", list(TournamentFormat))
    def test_idempotent(self, make_teams, fmt):
        """Test two calls with the same input give identical matches."""
        teams = make_teams(13)
        first = generate_bracket(teams, fmt)
        second = generate_bracket(teams, fmt)
        assert [m.to_dict() for m in first.matches] == [m.to_dict() for m in second.matches]

    def test_output_does_not_share_input(self, make_teams):
        """Test the result owns its team list."""
        teams = make_teams(4)
        result = generate_bracket(teams, TournamentFormat.ROUND_ROBIN)
        result.teams.append(Team(id="x", name="X"))
        assert len(teams) == 4

    def test_pools_from_config(self, make_teams):
        """Test number_of_pools is honoured."""
        result = generate_bracket(make_teams(12), TournamentFormat.POOL_PLAY, StageConfig(number_of_pools=2))
        assert len(result.pools) == 2
