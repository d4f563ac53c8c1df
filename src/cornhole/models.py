from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional

MODES = ("groups", "single")
STAGES = ("setup", "groups", "knockout", "champion")
TARGETS = (11, 21)

DEFAULT_MODE = "groups"
DEFAULT_TARGET = 21

def generate_id():
    import uuid
    return str(uuid.uuid4())[:8]

@dataclass
class Player:
    id: str
    name: str
    seed: int

@dataclass
class Match:
    id: str
    a: str  # player id
    b: Optional[str]  # player id, None for a bye
    score_a: Optional[int] = None
    score_b: Optional[int] = None
    completed: bool = False

    @property
    def bye(self) -> bool:
        return self.b is None

    @property
    def scored(self) -> bool:
        return self.completed and self.score_a is not None and self.score_b is not None

    @property
    def decided(self) -> bool:
        return self.bye or self.scored

    @classmethod
    def from_dict(cls, data: dict) -> "Match":
        return cls(
            id=data["id"], a=data["a"], b=data["b"],
            score_a=data.get("score_a"), score_b=data.get("score_b"),
            completed=bool(data.get("completed", False)),
        )

@dataclass
class Group:
    name: str
    players: List[str]  # player ids, length 4
    matches: List[Match] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "Group":
        return cls(
            name=data["name"],
            players=list(data["players"]),
            matches=[Match.from_dict(m) for m in data.get("matches", [])],
        )

@dataclass
class Podium:
    gold: Optional[str] = None
    silver: Optional[str] = None
    bronze: Optional[str] = None

@dataclass
class Tournament:
    players: List[Player] = field(default_factory=list)
    groups: List[Group] = field(default_factory=list)
    mode: str = DEFAULT_MODE         # groups, single
    stage: str = "setup"             # setup, groups, knockout, champion
    rounds: List[List[Match]] = field(default_factory=list)
    champion: Optional[str] = None
    target: int = DEFAULT_TARGET     # 11, 21

    def players_index(self) -> Dict[str, Player]:
        return {p.id: p for p in self.players}

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Tournament":
        return cls(
            players=[Player(**p) for p in data.get("players") or []],
            groups=[Group.from_dict(g) for g in data.get("groups") or []],
            mode=data.get("mode") or DEFAULT_MODE,
            stage=data.get("stage") or "setup",
            rounds=[[Match.from_dict(m) for m in rnd] for rnd in data.get("rounds") or []],
            champion=data.get("champion"),
            target=data.get("target") or DEFAULT_TARGET,
        )
