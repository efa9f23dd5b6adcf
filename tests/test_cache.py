import logging
import threading
import time

import pytest

from specode.base import CompilationCache, CompilationError


def test_compiles_once_per_key():
    cache = CompilationCache("test")
    calls = []

    def build():
        calls.append(1)
        return object()

    a = cache.get_or_compile(("hybrid", False, "f", 1), build)
    b = cache.get_or_compile(("hybrid", False, "f", 1), build)
    assert a is b
    assert len(calls) == 1
    assert len(cache) == 1
    assert ("hybrid", False, "f", 1) in cache
    assert cache.stats.compilations == 1
    assert cache.stats.hits == 1
    assert cache.stats.misses == 1


def test_concurrent_callers_share_in_flight_compilation():
    cache = CompilationCache("test")
    calls = []
    lock = threading.Lock()

    def build():
        with lock:
            calls.append(1)
        time.sleep(0.05)
        return object()

    results = []

    def worker():
        results.append(cache.get_or_compile(("specialized", "shape"), build))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(calls) == 1
    assert len(results) == 8
    assert all(r is results[0] for r in results)


def test_failed_build_is_not_cached():
    cache = CompilationCache("test")

    def broken():
        raise ValueError("nope")

    with pytest.raises(CompilationError) as info:
        cache.get_or_compile(("generic",), broken)
    assert isinstance(info.value.__cause__, ValueError)
    assert len(cache) == 0

    unit = cache.get_or_compile(("generic",), lambda: "ok")
    assert unit == "ok"


def test_clear_resets_units_and_stats():
    cache = CompilationCache("test")
    cache.get_or_compile(("generic",), lambda: 1)
    cache.clear()
    assert len(cache) == 0
    assert cache.keys() == []
    assert cache.stats.compilations == 0


def test_warns_once_when_full_specialization_piles_up(caplog):
    cache = CompilationCache("test", warn_threshold=2)
    with caplog.at_level(logging.WARNING, logger="specode.base.cache"):
        for k in range(5):
            cache.get_or_compile(("specialized", k), lambda: object())
    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert "'full'" in warnings[0].getMessage()


def test_hybrid_keys_do_not_trigger_warning(caplog):
    cache = CompilationCache("test", warn_threshold=1)
    with caplog.at_level(logging.WARNING, logger="specode.base.cache"):
        for k in range(4):
            cache.get_or_compile(("hybrid", k), lambda: object())
    assert not [r for r in caplog.records if r.levelno == logging.WARNING]


def test_interrupted_build_releases_key():
    cache = CompilationCache("test")

    def interrupted():
        raise KeyboardInterrupt

    with pytest.raises(KeyboardInterrupt):
        cache.get_or_compile(("generic",), interrupted)

    results = []
    thread = threading.Thread(
        target=lambda: results.append(cache.get_or_compile(("generic",), lambda: 1))
    )
    thread.start()
    thread.join(timeout=2.0)
    assert not thread.is_alive()
    assert results == [1]


def test_waiters_see_the_build_error_cause():
    cache = CompilationCache("test")
    entered = threading.Event()
    release = threading.Event()
    causes = []

    def slow_broken():
        entered.set()
        release.wait(timeout=2.0)
        raise ValueError("bad callback")

    def broken():
        raise ValueError("bad callback")

    def call(build):
        try:
            cache.get_or_compile(("specialized", "shape"), build)
        except CompilationError as exc:
            causes.append(exc.__cause__)

    owner = threading.Thread(target=call, args=(slow_broken,))
    owner.start()
    assert entered.wait(timeout=2.0)
    waiter = threading.Thread(target=call, args=(broken,))
    waiter.start()
    time.sleep(0.05)
    release.set()
    owner.join(timeout=2.0)
    waiter.join(timeout=2.0)

    assert len(causes) == 2
    assert all(isinstance(cause, ValueError) for cause in causes)
    assert len(cache) == 0
