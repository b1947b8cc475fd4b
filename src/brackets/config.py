"""
Loading stage configuration and team rosters from YAML files.
"""
import logging
import os
from typing import Any, Dict, List, Optional

import yaml

from .models import StageConfig, Team

logger = logging.getLogger(__name__)


def get_data_dir() -> str:
    """Directory of the YAML tournament store, from BRACKETS_DATA_DIR."""
    return os.environ.get('BRACKETS_DATA_DIR', os.path.join(os.getcwd(), 'data'))


def get_default_stage_config() -> Dict[str, Any]:
    """Return default stage configuration."""
    return StageConfig().to_dict()


def load_stage_config(path: Optional[str] = None) -> StageConfig:
    """Load stage configuration from a YAML file, merging with defaults."""
    defaults = get_default_stage_config()
    if not path or not os.path.exists(path):
        return StageConfig.from_dict(defaults)
    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)
    if not data:
        return StageConfig.from_dict(defaults)
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping of stage settings")

    unknown = set(data) - set(defaults)
    if unknown:
        logger.warning("Ignoring unknown settings in %s: %s", path, sorted(unknown))
    # Merge with defaults to ensure all keys exist
    for key, value in defaults.items():
        if key not in data:
            data[key] = value
    return StageConfig.from_dict(data)


def _team_from_entry(entry: Any, index: int) -> Team:
    if isinstance(entry, dict):
        data = dict(entry)
        data.setdefault('id', f"team-{index + 1}")
        return Team.from_dict(data)
    return Team(id=f"team-{index + 1}", name=str(entry))


def load_teams(path: str) -> List[Team]:
    """
    Load a team roster from YAML.

    The file holds a list of teams (mappings or plain names), optionally under
    a top-level `teams:` key. Teams without an id get `team-1`, `team-2`...
    """
    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)
    if not data:
        return []
    if isinstance(data, dict):
        data = data.get('teams') or []
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a list of teams")
    return [_team_from_entry(entry, index) for index, entry in enumerate(data)]
