import threading

import pytest

from cafe_enricher.core.throttle import RequestQueue


def test_request_queue_runs_one_call_at_a_time():
    events = []
    lock = threading.Lock()
    in_flight = {"now": 0, "max": 0}

    def fake_sleep(seconds):
        events.append(("sleep", seconds))

    def call(value):
        with lock:
            in_flight["now"] += 1
            in_flight["max"] = max(in_flight["max"], in_flight["now"])
        events.append(("call", value))
        with lock:
            in_flight["now"] -= 1
        return value * 2

    with RequestQueue(0.2, sleep=fake_sleep) as queue:
        futures = [queue.submit(call, value) for value in range(3)]
        results = [future.result() for future in futures]

    assert results == [0, 2, 4]
    assert in_flight["max"] == 1
    assert events == [
        ("call", 0),
        ("sleep", 0.2),
        ("call", 1),
        ("sleep", 0.2),
        ("call", 2),
        ("sleep", 0.2),
    ]


def test_request_queue_delays_after_failures_too():
    sleeps = []

    def boom():
        raise RuntimeError("upstream down")

    with RequestQueue(0.5, sleep=sleeps.append) as queue:
        future = queue.submit(boom)
        with pytest.raises(RuntimeError):
            future.result()

    assert sleeps == [0.5]
