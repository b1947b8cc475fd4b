"""
Data models shared by the bracket generators, the stores and the progression step.
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


KNOCKOUT_ROUND_OFFSET = 100
GRAND_FINAL_ID = "final-match"
DEFAULT_CATEGORY = "main"


class BracketSide(str, Enum):
    MAIN = "main"
    WINNERS = "winners"
    LOSERS = "losers"
    GRAND_FINAL = "grand_final"
    ROUND_ROBIN = "round_robin"
    POOL = "pool"
    KNOCKOUT = "knockout"


class Stage(str, Enum):
    EARLY_ROUND = "early_round"
    QUARTER_FINAL = "quarter_final"
    SEMI_FINAL = "semi_final"
    FINAL = "final"


class OutcomeStatus(str, Enum):
    PENDING = "pending"
    DECIDED = "decided"
    TIED = "tied"


@dataclass(frozen=True)
class Outcome:
    """Result of a match: still to be played, won by a team, or drawn."""
    status: OutcomeStatus = OutcomeStatus.PENDING
    winner_id: Optional[str] = None

    def __post_init__(self):
        if self.status == OutcomeStatus.DECIDED and not self.winner_id:
            raise ValueError("A decided outcome needs a winner")
        if self.status != OutcomeStatus.DECIDED and self.winner_id is not None:
            raise ValueError(f"A {self.status.value} outcome cannot have a winner")

    @classmethod
    def pending(cls) -> "Outcome":
        return cls()

    @classmethod
    def decided(cls, team_id: str) -> "Outcome":
        return cls(OutcomeStatus.DECIDED, team_id)

    @classmethod
    def tied(cls) -> "Outcome":
        return cls(OutcomeStatus.TIED)

    @property
    def is_pending(self) -> bool:
        return self.status == OutcomeStatus.PENDING

    @property
    def is_decided(self) -> bool:
        return self.status == OutcomeStatus.DECIDED

    @property
    def is_tied(self) -> bool:
        return self.status == OutcomeStatus.TIED


@dataclass(frozen=True)
class MatchRef:
    """
    Typed address of a match inside one bracket unit.

    `round` is local to the bracket side (losers round 0 is the first losers
    round, knockout round 0 is the first knockout round). `pool` is only set
    for pool matches.
    """
    bracket: BracketSide
    round: int
    position: int
    pool: Optional[int] = None


def match_id(ref: MatchRef) -> str:
    """Build the persisted id of a match from its reference."""
    if ref.bracket == BracketSide.MAIN:
        return f"match-{ref.round}-{ref.position}"
    elif ref.bracket == BracketSide.WINNERS:
        return f"w-match-{ref.round}-{ref.position}"
    elif ref.bracket == BracketSide.LOSERS:
        return f"l-match-{ref.round}-{ref.position}"
    elif ref.bracket == BracketSide.GRAND_FINAL:
        return GRAND_FINAL_ID
    elif ref.bracket == BracketSide.ROUND_ROBIN:
        return f"rr-match-{ref.round}-{ref.position}"
    elif ref.bracket == BracketSide.POOL:
        return f"pool-{ref.pool}-match-{ref.round}-{ref.position}"
    elif ref.bracket == BracketSide.KNOCKOUT:
        return f"knockout-{ref.round}-{ref.position}"
    raise ValueError(f"Unknown bracket side: {ref.bracket}")


def slot_for_position(position: int) -> int:
    """Even positions feed slot 1 of the next match, odd positions slot 2."""
    return 1 if position % 2 == 0 else 2


@dataclass(frozen=True)
class Team:
    id: str
    name: str
    seed: Optional[int] = None
    skill_level: Optional[str] = None
    players: Tuple[str, ...] = ()
    pool_id: Optional[int] = None
    gender: Optional[str] = None
    age_group: Optional[str] = None

    def with_pool(self, pool_id: int) -> "Team":
        """Return a copy of the team assigned to a pool."""
        return replace(self, pool_id=pool_id)

    def to_dict(self) -> Dict[str, Any]:
        data = {'id': self.id, 'name': self.name}
        if self.seed is not None:
            data['seed'] = self.seed
        if self.skill_level is not None:
            data['skill_level'] = self.skill_level
        if self.players:
            data['players'] = list(self.players)
        if self.pool_id is not None:
            data['pool_id'] = self.pool_id
        if self.gender is not None:
            data['gender'] = self.gender
        if self.age_group is not None:
            data['age_group'] = self.age_group
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Team":
        skill = data.get('skill_level')
        return cls(
            id=str(data['id']),
            name=str(data.get('name', data['id'])),
            seed=int(data['seed']) if data.get('seed') is not None else None,
            skill_level=str(skill) if skill is not None else None,
            players=tuple(data.get('players') or ()),
            pool_id=data.get('pool_id'),
            gender=data.get('gender'),
            age_group=data.get('age_group'),
        )


@dataclass
class Match:
    id: str
    round: int
    position: int
    bracket: BracketSide
    team1_id: Optional[str] = None
    team2_id: Optional[str] = None
    best_of: int = 1
    points_to_win: int = 11
    team1_games: List[int] = field(default_factory=list)
    team2_games: List[int] = field(default_factory=list)
    outcome: Outcome = field(default_factory=Outcome)
    is_bye: bool = False
    is_winners_bracket: Optional[bool] = None
    is_knockout: bool = False
    winner_goes_to: Optional[str] = None
    winner_slot: Optional[int] = None
    loser_goes_to: Optional[str] = None
    loser_slot: Optional[int] = None
    pool_id: Optional[int] = None
    expected_teams: int = 2

    def __post_init__(self):
        if not self.team1_games:
            self.team1_games = [0] * self.best_of
        if not self.team2_games:
            self.team2_games = [0] * self.best_of

    @property
    def winner_id(self) -> Optional[str]:
        return self.outcome.winner_id

    @property
    def completed(self) -> bool:
        return not self.outcome.is_pending

    @property
    def team_ids(self) -> List[str]:
        return [t for t in (self.team1_id, self.team2_id) if t is not None]

    def loser_id(self) -> Optional[str]:
        """The team that lost, when the match was decided between two teams."""
        if not self.outcome.is_decided or self.team1_id is None or self.team2_id is None:
            return None
        return self.team2_id if self.outcome.winner_id == self.team1_id else self.team1_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'round': self.round,
            'position': self.position,
            'bracket': self.bracket.value,
            'team1_id': self.team1_id,
            'team2_id': self.team2_id,
            'best_of': self.best_of,
            'points_to_win': self.points_to_win,
            'team1_games': list(self.team1_games),
            'team2_games': list(self.team2_games),
            'outcome': self.outcome.status.value,
            'winner_id': self.outcome.winner_id,
            'completed': self.completed,
            'is_bye': self.is_bye,
            'is_winners_bracket': self.is_winners_bracket,
            'is_knockout': self.is_knockout,
            'winner_goes_to': self.winner_goes_to,
            'winner_slot': self.winner_slot,
            'loser_goes_to': self.loser_goes_to,
            'loser_slot': self.loser_slot,
            'pool_id': self.pool_id,
            'expected_teams': self.expected_teams,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Match":
        winner = data.get('winner_id')
        status = data.get('outcome')
        # Older records stored a draw as winner_id == "tied"
        if winner == 'tied':
            outcome = Outcome.tied()
        elif status == OutcomeStatus.TIED.value:
            outcome = Outcome.tied()
        elif winner:
            outcome = Outcome.decided(winner)
        else:
            outcome = Outcome.pending()
        best_of = data.get('best_of', 1)
        return cls(
            id=data['id'],
            round=data['round'],
            position=data['position'],
            bracket=BracketSide(data.get('bracket', BracketSide.MAIN.value)),
            team1_id=data.get('team1_id'),
            team2_id=data.get('team2_id'),
            best_of=best_of,
            points_to_win=data.get('points_to_win', 11),
            team1_games=list(data.get('team1_games') or [0] * best_of),
            team2_games=list(data.get('team2_games') or [0] * best_of),
            outcome=outcome,
            is_bye=data.get('is_bye', False),
            is_winners_bracket=data.get('is_winners_bracket'),
            is_knockout=data.get('is_knockout', False),
            winner_goes_to=data.get('winner_goes_to'),
            winner_slot=data.get('winner_slot'),
            loser_goes_to=data.get('loser_goes_to'),
            loser_slot=data.get('loser_slot'),
            pool_id=data.get('pool_id'),
            expected_teams=data.get('expected_teams', 2),
        )


@dataclass(frozen=True)
class StageConfig:
    early_round_games: int = 1
    quarter_final_games: int = 3
    semi_final_games: int = 3
    final_games: int = 3
    early_round_points: int = 11
    quarter_final_points: int = 11
    semi_final_points: int = 11
    final_points: int = 11
    number_of_pools: Optional[int] = None

    @staticmethod
    def stage_for_rounds_remaining(rounds_remaining: int) -> Stage:
        """Pick the stage of a round from how many rounds follow it before the final."""
        if rounds_remaining == 0:
            return Stage.FINAL
        elif rounds_remaining == 1:
            return Stage.SEMI_FINAL
        elif rounds_remaining == 2:
            return Stage.QUARTER_FINAL
        return Stage.EARLY_ROUND

    def games_for(self, stage: Stage) -> int:
        return getattr(self, f"{stage.value}_games")

    def points_for(self, stage: Stage) -> int:
        return getattr(self, f"{stage.value}_points")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StageConfig":
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)

    def to_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in self.__dataclass_fields__}


@dataclass
class Pool:
    id: str
    name: str
    teams: List[Team] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'name': self.name, 'teams': [t.to_dict() for t in self.teams]}


@dataclass
class GenerationResult:
    """Everything one generation call hands to its caller."""
    format: Optional[str] = None
    matches: List[Match] = field(default_factory=list)
    total_rounds: int = 0
    teams: List[Team] = field(default_factory=list)
    pools: List[Pool] = field(default_factory=list)
    bracket_size: int = 0
    byes: int = 0
    total_winner_rounds: Optional[int] = None
    knockout_rounds: Optional[int] = None
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def can_persist(self) -> bool:
        return not self.errors and not self.warnings

    def find(self, match_ref_or_id) -> Optional[Match]:
        wanted = match_id(match_ref_or_id) if isinstance(match_ref_or_id, MatchRef) else match_ref_or_id
        for match in self.matches:
            if match.id == wanted:
                return match
        return None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'format': self.format,
            'total_rounds': self.total_rounds,
            'bracket_size': self.bracket_size,
            'byes': self.byes,
            'matches': [m.to_dict() for m in self.matches],
            'teams': [t.to_dict() for t in self.teams],
            'pools': [p.to_dict() for p in self.pools],
        }
        if self.total_winner_rounds is not None:
            data['total_winner_rounds'] = self.total_winner_rounds
        if self.knockout_rounds is not None:
            data['knockout_rounds'] = self.knockout_rounds
        return data
