import pytest

from tilematch.services.game.clock import CountdownClock


@pytest.fixture()
def events():
    return {'ticks': [], 'expired': 0}


@pytest.fixture()
def clock(scheduler, events):
    def on_expire():
        events['expired'] += 1
    return CountdownClock(5, scheduler, on_tick=events['ticks'].append, on_expire=on_expire)


def test_ticks_once_per_second_then_expires(clock, scheduler, events):
    clock.start()
    scheduler.advance(2.5)
    assert events['ticks'] == [4, 3]
    scheduler.advance(10)
    assert events['ticks'] == [4, 3, 2, 1, 0]
    assert events['expired'] == 1
    assert not clock.running
    assert scheduler.pending == []


def test_catches_up_after_suspension(clock, scheduler, events):
    clock.start()
    scheduler.advance(1)
    scheduler.suspend(3.2)
    scheduler.run_pending()
    # One tick with the caught-up value, not three replayed ticks
    assert events['ticks'] == [4, 1]
    assert clock.remaining == 1
    scheduler.advance(1)
    assert events['ticks'] == [4, 1, 0]
    assert events['expired'] == 1


def test_suspension_past_zero_expires_once(clock, scheduler, events):
    clock.start()
    scheduler.suspend(60)
    scheduler.run_pending()
    assert events['ticks'] == [0]
    assert events['expired'] == 1


def test_cancel_is_idempotent_and_stops_ticks(clock, scheduler, events):
    clock.start()
    scheduler.advance(1)
    clock.cancel()
    clock.cancel()
    scheduler.advance(10)
    assert events['ticks'] == [4]
    assert events['expired'] == 0
    assert scheduler.pending == []


def test_cancel_before_start_is_harmless(clock):
    clock.cancel()
    assert not clock.running
