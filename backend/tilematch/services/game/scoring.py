from typing import Optional, Sequence, Tuple

from .constants import TIME_WARNING, TOTAL_PAIRS
from .state import GameStatus

# (minimum matched pairs, message), checked top-down. Thresholds are
# fractions of the pair count so the table follows catalog size; the last
# entry must stay at 0 so every score has a message.
SCORE_MESSAGES: Sequence[Tuple[float, str]] = (
    (1.0, "Perfect memory! You're as sharp as your future plans should be secure."),
    (0.75, 'Great job! Just a couple of pairs short of perfect protection.'),
    (0.5, 'Well played! Half the board is covered. Imagine full coverage.'),
    (0.25, "Good start! A little more practice and you'll be unstoppable."),
    (0.0, "Every journey starts somewhere. Let's protect what matters together."),
)

HINTS: Sequence[Tuple[float, str]] = (
    (1.0, 'All pairs found!'),
    (0.75, 'Almost there, just a few left!'),
    (0.5, "Halfway done, you're on a roll!"),
    (0.25, 'Nice! Keep the streak going.'),
    (0.125, 'First match! Find the rest.'),
    (0.0, 'Tap a tile to reveal it and find its pair.'),
)


def evaluate_end(state, duration: int, total_pairs: int, max_flips: int):
    """Apply the end rules to a playing state.

    Returns the new terminal status, or None when play continues (or the
    state is not playing in the first place). Freezes ``elapsed_seconds``
    on the state when it ends.
    """
    if state.status != GameStatus.PLAYING:
        return None
    if state.matched_pairs >= total_pairs:
        state.status = GameStatus.WON
        state.elapsed_seconds = duration - state.time_remaining
    elif state.flips_count >= max_flips:
        state.status = GameStatus.LOST_FLIPS
        state.elapsed_seconds = duration - state.time_remaining
    elif state.time_remaining <= 0:
        state.status = GameStatus.LOST_TIME
        state.elapsed_seconds = duration
    else:
        return None
    return state.status


def stars_for(score: int, total_pairs: int = TOTAL_PAIRS) -> int:
    if score >= total_pairs:
        return 3
    if score >= total_pairs * 0.5:
        return 2
    if score >= 1:
        return 1
    return 0


def _staged(table, count: int, total_pairs: int) -> str:
    for fraction, text in table:
        if count >= fraction * total_pairs:
            return text
    return table[-1][1]


def message_for(score: int, total_pairs: int = TOTAL_PAIRS, table=SCORE_MESSAGES) -> str:
    return _staged(table, score, total_pairs)


def format_time(seconds: Optional[int]) -> str:
    seconds = max(0, int(seconds or 0))
    return f'{seconds // 60}:{seconds % 60:02d}'


def hint_for(matched_pairs: int, time_remaining: Optional[int] = None,
             total_pairs: int = TOTAL_PAIRS, warning: int = TIME_WARNING) -> str:
    """Encouragement line shown above the board.

    When ``time_remaining`` is given and inside the warning window, a hurry
    message wins over the progress message.
    """
    if time_remaining is not None and 0 < time_remaining <= warning:
        return f'Hurry! Only {time_remaining}s left!'
    return _staged(HINTS, matched_pairs, total_pairs)


def summarize(state, settings) -> dict:
    """Post-game numbers for the score screen and score submission."""
    score = state.matched_pairs
    elapsed = state.elapsed_seconds
    if elapsed is None:
        elapsed = settings.duration - state.time_remaining
    total = settings.total_pairs
    return {
        'score': score,
        'total_pairs': total,
        'stars': stars_for(score, total),
        'message': message_for(score, total),
        'flips_count': state.flips_count,
        'elapsed_seconds': elapsed,
        'elapsed_display': format_time(elapsed),
        'flips_per_match': round(state.flips_count / score, 1) if score > 0 else None,
        'share_text': f'I scored {score}/{total} in the Life Insurance Memory Game! Can you beat me?',
    }
