"""Bracket and schedule generation for pickleball tournaments."""
from .formats import TournamentFormat, generate_bracket
from .models import GenerationResult, Match, MatchRef, Outcome, StageConfig, Team, match_id

__all__ = [
    'GenerationResult',
    'Match',
    'MatchRef',
    'Outcome',
    'StageConfig',
    'Team',
    'TournamentFormat',
    'generate_bracket',
    'match_id',
]
