"""Tests for the update pump between a sweep loop and its callback."""

import threading
import time

import pytest

from ivsweep.sweep import UpdatePump
from ivsweep.types import Source


def produce(pump, results, n, delay=0.0):
    for i in range(n):
        results.append(i * 10)
        pump.notify()
        if delay:
            time.sleep(delay)


def test_delivers_in_order():
    results, seen = [], []
    with UpdatePump(results, lambda i, p: seen.append((i, p))) as pump:
        produce(pump, results, 20)
    assert seen == [(i, i * 10) for i in range(20)]
    assert pump.delivered == 20


def test_failing_callback_does_not_stop_delivery():
    results, seen, errors = [], [], []

    def callback(i, p):
        if i == 3:
            raise RuntimeError("callback failure")
        seen.append(i)

    pump = UpdatePump(
        results, callback, exception_handler=lambda i, e: errors.append((i, e))
    )
    pump.start()
    produce(pump, results, 10)
    pump.close()
    assert seen == [0, 1, 2, 4, 5, 6, 7, 8, 9]
    assert [i for i, _ in errors] == [3]
    assert isinstance(errors[0][1], RuntimeError)
    assert pump.delivered == 10


def test_default_handler_logs(caplog_loguru):
    results = []

    def callback(i, p):
        raise ValueError("bad point")

    with UpdatePump(results, callback) as pump:
        produce(pump, results, 2)
    assert pump.delivered == 2
    assert sum("callback failed on point" in m for m in caplog_loguru) == 2


def test_failing_handler_does_not_kill_worker():
    results, seen = [], []

    def callback(i, p):
        if i == 0:
            raise RuntimeError("first")
        seen.append(i)

    def handler(i, e):
        raise RuntimeError("handler broken")

    with UpdatePump(results, callback, exception_handler=handler) as pump:
        produce(pump, results, 3)
    assert seen == [1, 2]


def test_producer_never_waits_on_slow_callback():
    results = []
    release = threading.Event()
    pump = UpdatePump(results, lambda i, p: release.wait(5))
    pump.start()
    start = time.perf_counter()
    produce(pump, results, 50)
    assert time.perf_counter() - start < 1.0
    release.set()
    pump.close()
    assert pump.delivered == 50


def test_close_drains_outstanding_points():
    results, seen = [], []

    def slow(i, p):
        time.sleep(0.005)
        seen.append(i)

    pump = UpdatePump(results, slow)
    pump.start()
    produce(pump, results, 15)
    pump.close()
    assert seen == list(range(15))


def test_notify_after_close_rejected():
    pump = UpdatePump([], lambda i, p: None)
    pump.start()
    pump.close()
    pump.close()  # second close is a no-op
    with pytest.raises(RuntimeError):
        pump.notify()


def test_start_twice_rejected():
    pump = UpdatePump([], lambda i, p: None)
    pump.start()
    with pytest.raises(RuntimeError):
        pump.start()
    pump.close()


def test_callback_runs_off_the_sweep_thread(smu2):
    threads = []
    sweep = smu2.create_nested_sweep()
    sweep.add_sweep(0, Source.VOLTAGE, [0.0, 1.0, 2.0])
    sweep.run(lambda i, p: threads.append(threading.current_thread()))
    assert len(threads) == 3
    assert all(t is not threading.main_thread() for t in threads)
    assert {t.name for t in threads} == {"ivsweep-update-pump"}


def test_sweep_callback_failure_keeps_all_points(smu2):
    indices = []

    def callback(i, p):
        indices.append(i)
        if i == 3:
            raise RuntimeError("display crashed")

    sweep = smu2.create_nested_sweep()
    sweep.add_linear_sweep(1, Source.VOLTAGE, 0, 9, 10)
    points = sweep.run(callback)
    assert len(points) == 10
    assert indices == list(range(10))
