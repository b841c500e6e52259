import random
from dataclasses import dataclass, asdict
from typing import Any, List, Mapping, Optional, Sequence

from .constants import ICONS, validate_catalog


@dataclass
class Tile:
    index: int
    pair_id: str
    emoji: str
    label: str
    is_flipped: bool = False
    is_matched: bool = False

    def to_dict(self):
        return asdict(self)


def generate_deck(icons: Sequence[Mapping[str, Any]] = ICONS, rng: Optional[random.Random] = None) -> List[Tile]:
    """Build a shuffled deck with two tiles per catalog entry.

    ``random.shuffle`` is a Fisher-Yates shuffle, so every permutation is
    equally likely. Indexes are assigned after shuffling and equal the
    tile's board position.
    """
    validate_catalog(icons)
    rng = rng or random
    faces = [icon for icon in icons for _ in range(2)]
    rng.shuffle(faces)
    return [
        Tile(index=i, pair_id=icon['id'], emoji=icon['emoji'], label=icon['label'])
        for i, icon in enumerate(faces)
    ]
