from __future__ import annotations

import threading

from src.timeclock.timeclock.reminders.scheduler import RecurringTask


def test_overlapping_run_is_skipped(caplog):
    entered = threading.Event()
    release = threading.Event()
    calls = []

    def slow():
        calls.append(1)
        entered.set()
        release.wait(5)

    task = RecurringTask(slow, lambda: 3600, name="slow")
    worker = threading.Thread(target=task.run_once)
    worker.start()
    assert entered.wait(5)

    assert task.run_once() is False
    release.set()
    worker.join(5)

    assert calls == [1]
    assert "previous run still in progress" in caplog.text


def test_failing_action_does_not_escape():
    def boom():
        raise RuntimeError("boom")

    task = RecurringTask(boom, lambda: 3600)

    assert task.run_once() is True


def test_start_runs_periodically_and_stops():
    ran = threading.Event()
    task = RecurringTask(ran.set, lambda: 0.01, name="fast")

    with task:
        assert task.is_alive
        assert ran.wait(5)

    assert not task.is_alive
