"""
Tournament stores: where generated brackets live once they are accepted.

A tournament holds one or more categories, each an independently generated
bracket. Both stores hand out copies and take partial, per-match updates
keyed by tournament, category and match id, which is all the progression
step needs. Match ids only need to be unique within their category.
"""
import copy
import logging
import os
import re
import threading
from typing import Any, Dict, List, Optional, Tuple

import yaml
from filelock import FileLock, Timeout

from .models import DEFAULT_CATEGORY, GenerationResult, Match, Outcome

logger = logging.getLogger(__name__)

# Everything on a match except its identity can be updated
UPDATABLE_FIELDS = frozenset(Match.__dataclass_fields__) - {'id'}

_TOURNAMENT_ID_RE = re.compile(r'^[A-Za-z0-9_-]+$')


def _normalize_update(partial_update: Dict[str, Any]) -> Dict[str, Any]:
    """Map the legacy winner_id form onto an outcome."""
    update = dict(partial_update)
    if 'winner_id' in update:
        winner = update.pop('winner_id')
        if winner == 'tied':
            update['outcome'] = Outcome.tied()
        elif winner:
            update['outcome'] = Outcome.decided(winner)
        else:
            update['outcome'] = Outcome.pending()
    return update


def check_update(match_id: str, partial_update: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Return the update to apply, or None (logged) when it names unknown fields."""
    update = _normalize_update(partial_update)
    unknown = set(update) - UPDATABLE_FIELDS
    if unknown:
        logger.warning("Rejected update of match %s: unknown fields %s", match_id, sorted(unknown))
        return None
    if 'outcome' in update and not isinstance(update['outcome'], Outcome):
        logger.warning("Rejected update of match %s: outcome must be an Outcome", match_id)
        return None
    return update


def _bundle_without_matches(result: GenerationResult, category_id: str) -> Dict[str, Any]:
    data = {'id': category_id}
    data.update(result.to_dict())
    data.pop('matches')
    return data


def _categories(data: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Category bundles of a tournament file; a bare bundle is the default category."""
    if not data:
        return []
    if 'categories' in data:
        return data['categories'] or []
    if 'matches' in data:
        legacy = dict(data)
        legacy['id'] = DEFAULT_CATEGORY
        return [legacy]
    return []


def _find_category(categories: List[Dict[str, Any]], category_id: str) -> Optional[Dict[str, Any]]:
    for category in categories:
        if category.get('id') == category_id:
            return category
    return None


class MemoryTournamentStore:
    """
    In-process store.

    Each match has its own lock, so concurrent updates to different matches
    of the same tournament never lose each other.
    """

    def __init__(self):
        # tournament id -> category id -> bundle without matches
        self._tournaments: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._matches: Dict[Tuple[str, str], Dict[str, Match]] = {}
        self._match_locks: Dict[Tuple[str, str, str], threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _drop_locks(self, tournament_id: str, category_id: Optional[str] = None):
        self._match_locks = {
            k: v for k, v in self._match_locks.items()
            if k[0] != tournament_id or (category_id is not None and k[1] != category_id)
        }

    def save_bracket(self, tournament_id: str, result: GenerationResult,
                     category_id: str = DEFAULT_CATEGORY) -> bool:
        """Store a generated bracket, replacing any previous one for the same category."""
        if not result.can_persist:
            logger.error("Refusing to store tournament %s category %s: %d errors, %d warnings",
                         tournament_id, category_id, len(result.errors), len(result.warnings))
            return False
        matches = {m.id: copy.deepcopy(m) for m in result.matches}
        with self._registry_lock:
            self._tournaments.setdefault(tournament_id, {})[category_id] = \
                _bundle_without_matches(result, category_id)
            self._matches[(tournament_id, category_id)] = matches
            self._drop_locks(tournament_id, category_id)
            for match_id in matches:
                self._match_locks[(tournament_id, category_id, match_id)] = threading.Lock()
        logger.info("Stored tournament %s category %s with %d matches",
                    tournament_id, category_id, len(matches))
        return True

    def tournament_ids(self) -> List[str]:
        with self._registry_lock:
            return sorted(self._tournaments)

    def category_ids(self, tournament_id: str) -> List[str]:
        """Categories of a tournament, in the order they were first stored."""
        with self._registry_lock:
            return list(self._tournaments.get(tournament_id, {}))

    def get_category(self, tournament_id: str, category_id: str = DEFAULT_CATEGORY) -> Optional[Dict[str, Any]]:
        """The stored bundle (format, rounds, teams, pools) of one category with its current matches."""
        with self._registry_lock:
            bundle = self._tournaments.get(tournament_id, {}).get(category_id)
            if bundle is None:
                return None
            data = copy.deepcopy(bundle)
        data['matches'] = [m.to_dict() for m in self.get_matches(tournament_id, category_id)]
        return data

    def get_tournament(self, tournament_id: str) -> Optional[Dict[str, Any]]:
        """Every category of a tournament."""
        if tournament_id not in self.tournament_ids():
            return None
        categories = [self.get_category(tournament_id, category_id)
                      for category_id in self.category_ids(tournament_id)]
        return {'id': tournament_id, 'categories': [c for c in categories if c is not None]}

    def get_matches(self, tournament_id: str, category_id: str = DEFAULT_CATEGORY) -> List[Match]:
        with self._registry_lock:
            ids = list(self._matches.get((tournament_id, category_id), {}))
        matches = (self.find_match(tournament_id, match_id, category_id) for match_id in ids)
        return [m for m in matches if m is not None]

    def _lock_for(self, key: Tuple[str, str, str]) -> Optional[threading.Lock]:
        with self._registry_lock:
            return self._match_locks.get(key)

    def _current_match(self, key: Tuple[str, str, str], lock: threading.Lock) -> Optional[Match]:
        """The match behind `key`, unless it was deleted or replaced since `lock` was handed out."""
        tournament_id, category_id, match_id = key
        with self._registry_lock:
            if self._match_locks.get(key) is not lock:
                return None
            return self._matches.get((tournament_id, category_id), {}).get(match_id)

    def find_match(self, tournament_id: str, match_id: str,
                   category_id: str = DEFAULT_CATEGORY) -> Optional[Match]:
        key = (tournament_id, category_id, match_id)
        lock = self._lock_for(key)
        if lock is None:
            return None
        with lock:
            match = self._current_match(key, lock)
            return copy.deepcopy(match) if match is not None else None

    def apply_match_update(self, tournament_id: str, match_id: str, partial_update: Dict[str, Any],
                           category_id: str = DEFAULT_CATEGORY) -> bool:
        """Apply a partial update to one match. Returns False for unknown ids or fields."""
        key = (tournament_id, category_id, match_id)
        lock = self._lock_for(key)
        if lock is None:
            logger.warning("No match %s in tournament %s category %s", match_id, tournament_id, category_id)
            return False
        update = check_update(match_id, partial_update)
        if update is None:
            return False
        with lock:
            match = self._current_match(key, lock)
            if match is None:
                logger.warning("Match %s of tournament %s category %s was removed during the update",
                               match_id, tournament_id, category_id)
                return False
            for field_name, value in update.items():
                setattr(match, field_name, copy.deepcopy(value))
        logger.debug("Updated match %s of tournament %s category %s: %s",
                     match_id, tournament_id, category_id, sorted(update))
        return True

    def delete_category(self, tournament_id: str, category_id: str) -> bool:
        """Remove one category; the tournament goes with its last category."""
        with self._registry_lock:
            categories = self._tournaments.get(tournament_id, {})
            if category_id not in categories:
                return False
            del categories[category_id]
            del self._matches[(tournament_id, category_id)]
            self._drop_locks(tournament_id, category_id)
            if not categories:
                del self._tournaments[tournament_id]
        return True

    def delete_tournament(self, tournament_id: str) -> bool:
        with self._registry_lock:
            if tournament_id not in self._tournaments:
                return False
            for category_id in self._tournaments.pop(tournament_id):
                self._matches.pop((tournament_id, category_id), None)
            self._drop_locks(tournament_id)
        return True


class YamlTournamentStore:
    """
    One YAML file per tournament under `data_dir`, holding a list of categories.

    Every read-modify-write of a tournament file runs under a FileLock, so
    concurrent updates from several processes are applied one after another.
    """

    def __init__(self, data_dir: str, lock_timeout: float = 10):
        self.data_dir = data_dir
        self.lock_timeout = lock_timeout

    def _path(self, tournament_id: str) -> Optional[str]:
        if not tournament_id or not _TOURNAMENT_ID_RE.match(tournament_id):
            logger.error("Invalid tournament id: %r", tournament_id)
            return None
        return os.path.join(self.data_dir, f'{tournament_id}.yaml')

    def _lock(self, path: str) -> FileLock:
        return FileLock(path + '.lock', timeout=self.lock_timeout)

    def _read(self, path: str) -> Optional[Dict[str, Any]]:
        if not os.path.exists(path):
            return None
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
        return data or None

    def _write(self, path: str, tournament_id: str, categories: List[Dict[str, Any]]):
        os.makedirs(self.data_dir, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            yaml.safe_dump({'id': tournament_id, 'categories': categories}, f,
                           default_flow_style=False, sort_keys=False)

    def save_bracket(self, tournament_id: str, result: GenerationResult,
                     category_id: str = DEFAULT_CATEGORY) -> bool:
        if not result.can_persist:
            logger.error("Refusing to store tournament %s category %s: %d errors, %d warnings",
                         tournament_id, category_id, len(result.errors), len(result.warnings))
            return False
        path = self._path(tournament_id)
        if path is None:
            return False
        os.makedirs(self.data_dir, exist_ok=True)
        bundle = {'id': category_id}
        bundle.update(result.to_dict())
        try:
            with self._lock(path):
                categories = _categories(self._read(path))
                for index, category in enumerate(categories):
                    if category.get('id') == category_id:
                        categories[index] = bundle
                        break
                else:
                    categories.append(bundle)
                self._write(path, tournament_id, categories)
        except Timeout:
            logger.error("Timed out waiting for the lock on %s", path)
            return False
        logger.info("Stored tournament %s category %s with %d matches in %s",
                    tournament_id, category_id, len(result.matches), path)
        return True

    def tournament_ids(self) -> List[str]:
        if not os.path.isdir(self.data_dir):
            return []
        return sorted(name[:-len('.yaml')] for name in os.listdir(self.data_dir)
                      if name.endswith('.yaml'))

    def get_tournament(self, tournament_id: str) -> Optional[Dict[str, Any]]:
        """Every category of a tournament."""
        path = self._path(tournament_id)
        if path is None or not os.path.exists(path):
            return None
        with self._lock(path):
            data = self._read(path)
        if data is None:
            return None
        return {'id': tournament_id, 'categories': _categories(data)}

    def category_ids(self, tournament_id: str) -> List[str]:
        data = self.get_tournament(tournament_id)
        if not data:
            return []
        return [c.get('id') for c in data['categories']]

    def get_category(self, tournament_id: str, category_id: str = DEFAULT_CATEGORY) -> Optional[Dict[str, Any]]:
        data = self.get_tournament(tournament_id)
        if not data:
            return None
        return _find_category(data['categories'], category_id)

    def get_matches(self, tournament_id: str, category_id: str = DEFAULT_CATEGORY) -> List[Match]:
        category = self.get_category(tournament_id, category_id)
        if not category:
            return []
        return [Match.from_dict(m) for m in category.get('matches', [])]

    def find_match(self, tournament_id: str, match_id: str,
                   category_id: str = DEFAULT_CATEGORY) -> Optional[Match]:
        for match in self.get_matches(tournament_id, category_id):
            if match.id == match_id:
                return match
        return None

    def apply_match_update(self, tournament_id: str, match_id: str, partial_update: Dict[str, Any],
                           category_id: str = DEFAULT_CATEGORY) -> bool:
        path = self._path(tournament_id)
        if path is None:
            return False
        if not os.path.exists(path):
            logger.warning("No tournament %s in %s", tournament_id, self.data_dir)
            return False
        update = check_update(match_id, partial_update)
        if update is None:
            return False
        try:
            with self._lock(path):
                categories = _categories(self._read(path))
                category = _find_category(categories, category_id)
                if category is None:
                    logger.warning("No category %s in tournament %s", category_id, tournament_id)
                    return False
                for index, raw in enumerate(category.get('matches', [])):
                    if raw.get('id') == match_id:
                        match = Match.from_dict(raw)
                        for field_name, value in update.items():
                            setattr(match, field_name, copy.deepcopy(value))
                        category['matches'][index] = match.to_dict()
                        self._write(path, tournament_id, categories)
                        return True
        except Timeout:
            logger.error("Timed out waiting for the lock on %s", path)
            return False
        logger.warning("No match %s in tournament %s category %s", match_id, tournament_id, category_id)
        return False

    def delete_category(self, tournament_id: str, category_id: str) -> bool:
        """Remove one category; the tournament file goes with its last category."""
        path = self._path(tournament_id)
        if path is None or not os.path.exists(path):
            return False
        with self._lock(path):
            categories = _categories(self._read(path))
            remaining = [c for c in categories if c.get('id') != category_id]
            if len(remaining) == len(categories):
                return False
            if remaining:
                self._write(path, tournament_id, remaining)
            else:
                os.remove(path)
        return True

    def delete_tournament(self, tournament_id: str) -> bool:
        path = self._path(tournament_id)
        if path is None or not os.path.exists(path):
            return False
        with self._lock(path):
            if not os.path.exists(path):
                return False
            os.remove(path)
        return True
