# src/ccal/core/cache.py
from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from typing import Dict, List, Mapping, Optional, Protocol

from .year_structure import YearStructure

log = logging.getLogger(__name__)


class YearBuilder(Protocol):
    def build_year(self, solar_year: int) -> YearStructure: ...


class YearCache:
    """
    solar year -> YearStructure, filled on demand.

    - seeded entries are served without calling the builder
    - concurrent get() calls for the same missing year build it once
    - a build that raises stores nothing
    - maxsize=None never evicts; otherwise least recently used years go first
    """

    def __init__(
        self,
        builder: YearBuilder,
        seed: Optional[Mapping[int, YearStructure]] = None,
        maxsize: Optional[int] = None,
    ) -> None:
        if maxsize is not None and maxsize < 1:
            raise ValueError("maxsize must be >= 1 or None")
        self.builder = builder
        self.maxsize = maxsize
        self._entries: "OrderedDict[int, YearStructure]" = OrderedDict()
        self._lock = threading.Lock()
        self._year_locks: Dict[int, threading.Lock] = {}
        if seed:
            self.seed(seed)

    def seed(self, table: Mapping[int, YearStructure]) -> None:
        with self._lock:
            for year in sorted(table):
                ys = table[year]
                if ys.solar_year != year:
                    raise ValueError(f"seed entry for {year} holds solar year {ys.solar_year}")
                self._entries[year] = ys
            self._evict()
        log.debug("seeded %d solar years", len(table))

    def _evict(self) -> None:
        if self.maxsize is None:
            return
        while len(self._entries) > self.maxsize:
            year, _ = self._entries.popitem(last=False)
            log.debug("evicted solar year %d", year)

    def _lookup(self, year: int) -> Optional[YearStructure]:
        with self._lock:
            ys = self._entries.get(year)
            if ys is not None and self.maxsize is not None:
                self._entries.move_to_end(year)
            return ys

    def get(self, solar_year: int) -> YearStructure:
        year = int(solar_year)
        ys = self._lookup(year)
        if ys is not None:
            return ys

        with self._lock:
            year_lock = self._year_locks.setdefault(year, threading.Lock())

        with year_lock:
            # another thread may have finished while we waited
            ys = self._lookup(year)
            if ys is not None:
                return ys

            try:
                ys = self.builder.build_year(year)
                with self._lock:
                    self._entries[year] = ys
                    self._evict()
            finally:
                with self._lock:
                    self._year_locks.pop(year, None)
            log.debug("cached solar year %d", year)
            return ys

    def build_fresh(self, solar_year: int) -> YearStructure:
        """Build without reading or writing the cache."""
        return self.builder.build_year(int(solar_year))

    def years(self) -> List[int]:
        with self._lock:
            return sorted(self._entries)

    def __contains__(self, solar_year: object) -> bool:
        with self._lock:
            return solar_year in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
