from __future__ import annotations

import threading
import time
from typing import List

import pytest

from ccal.core.cache import YearCache
from ccal.core.seed import seed_structures
from ccal.core.year_structure import MonthEntry, MonthLabel, YearStructure


def _dummy_year(y: int) -> YearStructure:
    base = 730000 + (y - 2000) * 365
    months = (MonthEntry(MonthLabel(12), base),) + tuple(
        MonthEntry(MonthLabel(k), base + 30 * k) for k in range(1, 12)
    )
    return YearStructure(solar_year=y, months=months)


class CountingBuilder:
    def __init__(self, delay: float = 0.0) -> None:
        self.calls: List[int] = []
        self.delay = delay
        self._lock = threading.Lock()

    def build_year(self, solar_year: int) -> YearStructure:
        with self._lock:
            self.calls.append(solar_year)
        if self.delay:
            time.sleep(self.delay)
        return _dummy_year(solar_year)


class FailingBuilder:
    def __init__(self) -> None:
        self.calls = 0

    def build_year(self, solar_year: int) -> YearStructure:
        self.calls += 1
        raise RuntimeError("oracle exploded")


def test_get_memoizes():
    b = CountingBuilder()
    cache = YearCache(b)
    first = cache.get(2030)
    assert cache.get(2030) is first
    assert b.calls == [2030]
    assert 2030 in cache
    assert len(cache) == 1


def test_seeded_years_skip_builder():
    b = CountingBuilder()
    cache = YearCache(b, seed=seed_structures())
    assert cache.years() == [2020, 2021, 2022, 2023, 2024, 2025]
    ys = cache.get(2023)
    assert ys.leap_month is not None and ys.leap_month.label == MonthLabel(2, True)
    assert b.calls == []


def test_seed_rejects_mismatched_year():
    cache = YearCache(CountingBuilder())
    with pytest.raises(ValueError):
        cache.seed({2031: _dummy_year(2030)})


def test_build_fresh_bypasses_cache():
    b = CountingBuilder()
    cache = YearCache(b, seed={2030: _dummy_year(2030)})
    fresh = cache.build_fresh(2030)
    assert fresh == cache.get(2030)
    assert b.calls == [2030]
    assert len(cache) == 1


def test_failed_build_is_not_stored():
    b = FailingBuilder()
    cache = YearCache(b)
    with pytest.raises(RuntimeError):
        cache.get(2030)
    assert 2030 not in cache
    with pytest.raises(RuntimeError):
        cache.get(2030)
    assert b.calls == 2


def test_year_locks_are_released():
    cache = YearCache(FailingBuilder())
    with pytest.raises(RuntimeError):
        cache.get(2030)
    assert cache._year_locks == {}

    ok = YearCache(CountingBuilder())
    ok.get(2030)
    assert ok._year_locks == {}


def test_concurrent_get_builds_once():
    b = CountingBuilder(delay=0.05)
    cache = YearCache(b)
    results: List[YearStructure] = []
    lock = threading.Lock()

    def worker() -> None:
        ys = cache.get(2040)
        with lock:
            results.append(ys)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert b.calls == [2040]
    assert len(results) == 8
    assert all(r is results[0] for r in results)


def test_lru_eviction():
    b = CountingBuilder()
    cache = YearCache(b, maxsize=2)
    cache.get(2001)
    cache.get(2002)
    cache.get(2001)
    cache.get(2003)
    assert cache.years() == [2001, 2003]
    cache.get(2002)
    assert b.calls == [2001, 2002, 2003, 2002]


def test_maxsize_must_be_positive():
    with pytest.raises(ValueError):
        YearCache(CountingBuilder(), maxsize=0)
