import copy
import enum
from dataclasses import dataclass, field
from typing import List, Optional

from .deck import Tile


class GameStatus(str, enum.Enum):
    IDLE = 'idle'
    PLAYING = 'playing'
    WON = 'won'
    LOST_FLIPS = 'lost_flips'
    LOST_TIME = 'lost_time'

    @property
    def is_terminal(self) -> bool:
        return self in (GameStatus.WON, GameStatus.LOST_FLIPS, GameStatus.LOST_TIME)


@dataclass
class GameState:
    tiles: List[Tile] = field(default_factory=list)
    pending_flips: List[int] = field(default_factory=list)
    matched_pairs: int = 0
    flips_count: int = 0
    time_remaining: int = 0
    elapsed_seconds: Optional[int] = None
    is_locked: bool = False
    status: GameStatus = GameStatus.IDLE
    generation: int = 0

    def copy(self) -> 'GameState':
        return copy.deepcopy(self)

    def to_dict(self):
        return {
            'tiles': [t.to_dict() for t in self.tiles],
            'pending_flips': list(self.pending_flips),
            'matched_pairs': self.matched_pairs,
            'flips_count': self.flips_count,
            'time_remaining': self.time_remaining,
            'elapsed_seconds': self.elapsed_seconds,
            'is_locked': self.is_locked,
            'status': self.status.value,
            'generation': self.generation,
        }
