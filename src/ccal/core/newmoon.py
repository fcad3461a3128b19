# src/ccal/core/newmoon.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from .astronomy import AstronomyEngine, angdiff180
from .config import NewMoonConfig
from .timeutil import require_utc


@dataclass(frozen=True)
class _Sample:
    t: datetime
    unwrapped: float


def _bisect_new_moon(
    eng: AstronomyEngine,
    a: datetime,
    b: datetime,
    *,
    tol_seconds: float,
    max_iter: int = 80,
) -> datetime:
    """
    Refine within [a, b] using the signed distance of the phase to 0.
    Only called on brackets found by wrap-crossing detection, so the root is
    near phase 0 and far from the +/-180 discontinuity.
    """
    lo, hi = a, b
    flo = eng.moon_sun_lon_diff(lo)
    for _ in range(max_iter):
        if (hi - lo).total_seconds() <= tol_seconds:
            break
        mid = lo + (hi - lo) / 2
        fmid = eng.moon_sun_lon_diff(mid)
        if fmid == 0.0:
            return mid
        if flo * fmid <= 0:
            hi = mid
        else:
            lo, flo = mid, fmid
    return lo + (hi - lo) / 2


def _first_new_moon(
    eng: AstronomyEngine,
    start_utc: datetime,
    end_utc: datetime,
    config: NewMoonConfig,
) -> Optional[datetime]:
    """First new moon in [start_utc, end_utc), or None."""
    step = timedelta(hours=float(config.scan_step_hours))

    prev: Optional[_Sample] = None
    offset = 0.0
    last_phase = 0.0
    t = start_utc
    while True:
        ph = eng.phase360(t)
        if prev is not None:
            dp = ph - last_phase
            # typical wrap: 350 -> 5  => dp ~ -345
            if dp < -180.0:
                offset += 360.0
            elif dp > 180.0:
                offset -= 360.0
        cur = _Sample(t, ph + offset)

        # crossed 360*k => new moon bracket
        if prev is not None and int(cur.unwrapped // 360.0) > int(prev.unwrapped // 360.0):
            nm = _bisect_new_moon(eng, prev.t, cur.t, tol_seconds=float(config.tol_seconds))
            # reject anything not genuinely at phase 0 (full-moon false hits)
            if abs(eng.moon_sun_lon_diff(nm)) <= config.max_phase_error_deg and start_utc <= nm < end_utc:
                return nm

        if t >= end_utc:
            return None
        prev, last_phase = cur, ph
        t = min(t + step, end_utc)


def next_new_moon_on_or_after(
    eng: AstronomyEngine,
    t_utc: datetime,
    *,
    config: NewMoonConfig | None = None,
) -> datetime:
    """
    First new moon at or after t_utc.
    """
    start = require_utc(t_utc, "t_utc")
    if config is None:
        config = NewMoonConfig()
    if eng.phase360(start) == 0.0:
        return start

    end = start + timedelta(days=config.search_window_days)
    found = _first_new_moon(eng, start, end, config)
    if found is None:
        raise RuntimeError(f"no new moon found in {start.isoformat()} .. {end.isoformat()}")
    return found
