from tilematch.services.game.scheduler import BackgroundScheduler, ManualScheduler


class SteppingSocketIO:
    """Holds background tasks until run and fakes time on sleep."""

    def __init__(self):
        self.now = 0.0
        self.tasks = []
        self.sleeps = []
        self.on_sleep = None

    def start_background_task(self, target, *args):
        self.tasks.append((target, args))

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds
        if self.on_sleep:
            self.on_sleep()

    def run_tasks(self):
        for target, args in self.tasks:
            target(*args)


def test_background_callback_fires_at_deadline():
    sio = SteppingSocketIO()
    scheduler = BackgroundScheduler(sio, clock=lambda: sio.now, step=0.5)
    fired = []
    scheduler.call_later(2, fired.append, 'rollback', label='rollback')
    sio.run_tasks()
    assert fired == ['rollback']
    assert sio.now == 2
    assert max(sio.sleeps) <= 0.5


def test_cancelled_background_timer_stops_sleeping():
    sio = SteppingSocketIO()
    scheduler = BackgroundScheduler(sio, clock=lambda: sio.now, step=0.5)
    fired = []
    handle = scheduler.call_later(30, fired.append, 'discard', label='discard')
    sio.on_sleep = handle.cancel
    sio.run_tasks()
    assert fired == []
    assert sio.sleeps == [0.5]


def test_manual_scheduler_fires_in_order_and_skips_cancelled():
    scheduler = ManualScheduler()
    fired = []
    scheduler.call_later(2, fired.append, 'late')
    early = scheduler.call_later(1, fired.append, 'early')
    dropped = scheduler.call_later(1.5, fired.append, 'dropped')
    dropped.cancel()
    scheduler.advance(3)
    assert fired == ['early', 'late']
    assert not early.pending
    assert scheduler.pending == []
