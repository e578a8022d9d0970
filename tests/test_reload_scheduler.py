import threading

from serialgate.policy.reload import ReloadScheduler


def test_tick_runs_check_synchronously():
    calls = []
    scheduler = ReloadScheduler(lambda: calls.append(1) or True, interval=None)
    assert scheduler.tick() is True
    assert calls == [1]
    scheduler.start()
    assert not scheduler.running


def test_periodic_check_runs_until_stopped():
    fired = threading.Event()
    count = []

    def check():
        count.append(1)
        if len(count) >= 3:
            fired.set()

    scheduler = ReloadScheduler(check, interval=0.01)
    scheduler.start()
    scheduler.start()
    try:
        assert fired.wait(5)
    finally:
        scheduler.stop()
    assert not scheduler.running
    settled = len(count)
    fired.clear()
    assert not fired.wait(0.05)
    assert len(count) == settled


def test_crashing_check_does_not_kill_timer():
    fired = threading.Event()
    count = []

    def check():
        count.append(1)
        if len(count) == 1:
            raise RuntimeError("boom")
        fired.set()

    scheduler = ReloadScheduler(check, interval=0.01)
    scheduler.start()
    try:
        assert fired.wait(5)
    finally:
        scheduler.stop()
