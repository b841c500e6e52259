"""Icon catalog and default limits for a round."""
from dataclasses import dataclass
from typing import Any, Mapping, Sequence


class ConfigurationError(ValueError):
    """Raised at startup when the game cannot be configured."""


ICONS = [
    {'id': 'family', 'label': 'Life', 'emoji': '🫂'},
    {'id': 'shield', 'label': 'Protect', 'emoji': '🛡️'},
    {'id': 'heart', 'label': 'Health', 'emoji': '🩺'},
    {'id': 'umbrella', 'label': 'Cover', 'emoji': '☂️'},
    {'id': 'home', 'label': 'Home', 'emoji': '🏡'},
    {'id': 'medical', 'label': 'Care', 'emoji': '🏥'},
    {'id': 'savings', 'label': 'Grow', 'emoji': '💰'},
    {'id': 'policy', 'label': 'Secure', 'emoji': '📝'},
]

TOTAL_PAIRS = len(ICONS)
GAME_DURATION = 120  # seconds
MISMATCH_DELAY = 0.7  # seconds
MAX_FLIPS = 30
TIME_WARNING = 20  # seconds


def validate_catalog(icons: Sequence[Mapping[str, Any]]) -> None:
    if len(icons) < 1:
        raise ConfigurationError('Icon catalog must contain at least one pair')
    seen = set()
    for entry in icons:
        missing = [k for k in ('id', 'label', 'emoji') if not entry.get(k)]
        if missing:
            raise ConfigurationError(f"Icon entry {entry!r} is missing {', '.join(missing)}")
        if entry['id'] in seen:
            raise ConfigurationError(f"Duplicate icon id {entry['id']!r}")
        seen.add(entry['id'])


@dataclass(frozen=True)
class GameSettings:
    icons: tuple = tuple(ICONS)
    duration: int = GAME_DURATION
    mismatch_delay: float = MISMATCH_DELAY
    max_flips: int = MAX_FLIPS
    time_warning: int = TIME_WARNING
    heartbeat_sec: int = 0

    def __post_init__(self):
        validate_catalog(self.icons)
        if self.duration <= 0:
            raise ConfigurationError('Game duration must be positive')
        if self.max_flips <= 0:
            raise ConfigurationError('Flip limit must be positive')
        if self.max_flips % 2:
            # A round always ends on a whole pair of flips
            raise ConfigurationError('Flip limit must be even')
        if self.mismatch_delay < 0:
            raise ConfigurationError('Mismatch delay cannot be negative')

    @property
    def total_pairs(self) -> int:
        return len(self.icons)

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any]) -> 'GameSettings':
        """Build settings from a Flask config mapping.

        Missing keys fall back to the module defaults. An optional
        ``GAME_ICONS`` entry replaces the catalog.
        """
        try:
            return cls(
                icons=tuple(cfg.get('GAME_ICONS') or ICONS),
                duration=int(cfg.get('GAME_DURATION_SEC', GAME_DURATION)),
                mismatch_delay=int(cfg.get('MISMATCH_DELAY_MS', int(MISMATCH_DELAY * 1000))) / 1000.0,
                max_flips=int(cfg.get('MAX_FLIPS', MAX_FLIPS)),
                time_warning=int(cfg.get('TIME_WARNING_SEC', TIME_WARNING)),
                heartbeat_sec=int(cfg.get('TIMER_HEARTBEAT_SEC', 0)),
            )
        except (TypeError, ValueError) as exc:
            if isinstance(exc, ConfigurationError):
                raise
            raise ConfigurationError(f'Invalid game configuration: {exc}') from exc

    def to_dict(self):
        return {
            'icons': [dict(i) for i in self.icons],
            'total_pairs': self.total_pairs,
            'game_duration': self.duration,
            'mismatch_delay_ms': int(round(self.mismatch_delay * 1000)),
            'max_flips': self.max_flips,
            'time_warning': self.time_warning,
        }
