"""
Shared pytest fixtures for bracket engine tests.

Running tests:
    pytest tests/                  - full suite
    pytest tests/ -m "not slow"   - fast subset
"""
import pytest
import sys
import os
import yaml

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from brackets.models import Team
from brackets.store import MemoryTournamentStore, YamlTournamentStore


def build_teams(count, seeded=True):
    """Teams team-1..team-N, seeded 1..N unless seeded is False."""
    return [
        Team(id=f"team-{i}", name=f"Team {i}", seed=i if seeded else None)
        for i in range(1, count + 1)
    ]


@pytest.fixture
def make_teams():
    """Factory fixture building a roster of a given size."""
    return build_teams


@pytest.fixture
def memory_store():
    return MemoryTournamentStore()


@pytest.fixture
def yaml_store(tmp_path):
    return YamlTournamentStore(str(tmp_path / "data"))


@pytest.fixture(params=['memory', 'yaml'])
def store(request, tmp_path):
    """Each store implementation in turn."""
    if request.param == 'memory':
        return MemoryTournamentStore()
    return YamlTournamentStore(str(tmp_path / "data"))


@pytest.fixture
def teams_file(tmp_path):
    """A YAML roster with six teams, two of them rated."""
    path = tmp_path / "teams.yaml"
    path.write_text(yaml.dump({'teams': [
        {'id': 'aces', 'name': 'Aces', 'seed': 1, 'skill_level': '4.5'},
        {'id': 'dinks', 'name': 'Dinks', 'seed': 2, 'skill_level': '4.0'},
        {'name': 'Kitchen Kings', 'players': ['Ann', 'Bob']},
        'Lobsters',
        'Net Ninjas',
        'Spin Doctors',
    ]}, default_flow_style=False))
    return str(path)
