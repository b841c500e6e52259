import pytest

from tilematch.services.game import GameSettings, GameState, GameStatus
from tilematch.services.game.scoring import (
    SCORE_MESSAGES, evaluate_end, format_time, hint_for, message_for, stars_for, summarize,
)


def playing(**kwargs):
    defaults = {'status': GameStatus.PLAYING, 'time_remaining': 120}
    defaults.update(kwargs)
    return GameState(**defaults)


@pytest.mark.parametrize('score,stars', [(8, 3), (7, 2), (4, 2), (3, 1), (1, 1), (0, 0)])
def test_stars(score, stars):
    assert stars_for(score, 8) == stars


def test_every_score_has_exactly_one_message():
    messages = [message_for(score, 8) for score in range(0, 9)]
    assert all(messages)
    assert messages[8] == SCORE_MESSAGES[0][1]
    assert messages[0] == SCORE_MESSAGES[-1][1]
    # Higher scores never fall back to a lower tier
    tiers = [[text for _, text in SCORE_MESSAGES].index(m) for m in messages]
    assert tiers == sorted(tiers, reverse=True)


def test_message_table_is_swappable():
    table = ((1.0, 'all'), (0.0, 'some'))
    assert message_for(8, 8, table=table) == 'all'
    assert message_for(3, 8, table=table) == 'some'


def test_hint_progresses_with_pairs():
    hints = [hint_for(n) for n in range(9)]
    assert hints[0] != hints[1]
    assert hints[8] == 'All pairs found!'
    assert len(set(hints)) >= 4


def test_hurry_hint_inside_warning_window():
    assert hint_for(3, time_remaining=15) == 'Hurry! Only 15s left!'
    assert hint_for(3, time_remaining=90) == hint_for(3)
    assert hint_for(3, time_remaining=0) == hint_for(3)


def test_format_time():
    assert format_time(0) == '0:00'
    assert format_time(75) == '1:15'
    assert format_time(None) == '0:00'


def test_win_has_priority_over_flip_exhaustion():
    state = playing(matched_pairs=8, flips_count=30, time_remaining=50)
    assert evaluate_end(state, 120, 8, 30) == GameStatus.WON
    assert state.elapsed_seconds == 70


def test_flip_exhaustion_before_time():
    state = playing(matched_pairs=3, flips_count=30, time_remaining=0)
    assert evaluate_end(state, 120, 8, 30) == GameStatus.LOST_FLIPS
    assert state.elapsed_seconds == 120


def test_time_exhaustion_freezes_full_duration():
    state = playing(matched_pairs=3, flips_count=12, time_remaining=0)
    assert evaluate_end(state, 120, 8, 30) == GameStatus.LOST_TIME
    assert state.elapsed_seconds == 120


def test_no_change_while_play_continues_or_after_end():
    state = playing(matched_pairs=2, flips_count=10, time_remaining=60)
    assert evaluate_end(state, 120, 8, 30) is None
    assert state.status == GameStatus.PLAYING
    done = playing(status=GameStatus.WON, matched_pairs=8, time_remaining=0)
    assert evaluate_end(done, 120, 8, 30) is None
    assert done.status == GameStatus.WON


def test_summary():
    state = playing(status=GameStatus.LOST_FLIPS, matched_pairs=5, flips_count=30, elapsed_seconds=83)
    summary = summarize(state, GameSettings())
    assert summary['score'] == 5
    assert summary['stars'] == 2
    assert summary['elapsed_display'] == '1:23'
    assert summary['flips_per_match'] == 6.0
    assert '5/8' in summary['share_text']


def test_summary_without_matches():
    state = playing(status=GameStatus.LOST_TIME, flips_count=4, time_remaining=0, elapsed_seconds=120)
    summary = summarize(state, GameSettings())
    assert summary['stars'] == 0
    assert summary['flips_per_match'] is None
