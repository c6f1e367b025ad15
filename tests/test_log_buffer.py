import threading

import pytest

from uswap_monitor.models.stats import LogEntry
from uswap_monitor.services.log_buffer import LogBuffer
from conftest import make_tx

def entry(n, reseller="EagleSwap"):
    return LogEntry(affiliate=reseller.lower(), reseller=reseller, tx=make_tx(n), fee_usd=float(n))

def numbers(entries):
    return [int(e.fee_usd) for e in entries]

def test_rejects_zero_capacity():
    with pytest.raises(ValueError):
        LogBuffer(0)

def test_snapshot_is_newest_first():
    buf = LogBuffer(10)
    for n in range(1, 6):
        buf.append(entry(n))
    assert numbers(buf.snapshot(10)) == [5, 4, 3, 2, 1]

def test_overflow_evicts_oldest():
    capacity, extra = 5, 3
    buf = LogBuffer(capacity)
    for n in range(1, capacity + extra + 1):
        buf.append(entry(n))

    snap = buf.snapshot(100)
    assert len(buf) == capacity
    assert len(snap) == capacity
    assert numbers(snap) == [8, 7, 6, 5, 4]
    assert not {1, 2, 3} & set(numbers(snap))

def test_limit_caps_results():
    buf = LogBuffer(10)
    for n in range(1, 8):
        buf.append(entry(n))
    assert numbers(buf.snapshot(3)) == [7, 6, 5]
    assert buf.snapshot(0) == []

def test_predicate_stops_at_limit():
    buf = LogBuffer(20)
    for n in range(1, 11):
        buf.append(entry(n, "EagleSwap" if n % 2 else "LizardSwap"))

    seen = []

    def only_eagle(e):
        seen.append(e)
        return e.reseller == "EagleSwap"

    assert numbers(buf.snapshot(2, only_eagle)) == [9, 7]
    # walked 10, 9, 8, 7 and stopped
    assert len(seen) == 4

def test_concurrent_append_and_snapshot():
    buf = LogBuffer(100)
    errors = []

    def writer():
        for n in range(2000):
            buf.append(entry(n))

    def reader():
        try:
            for _ in range(200):
                snap = buf.snapshot(100)
                values = numbers(snap)
                assert values == sorted(values, reverse=True)
                assert len(snap) <= 100
        except AssertionError as e:
            errors.append(e)

    threads = [threading.Thread(target=writer)] + [threading.Thread(target=reader) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert numbers(buf.snapshot(1)) == [1999]
