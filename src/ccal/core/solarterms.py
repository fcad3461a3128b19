# src/ccal/core/solarterms.py
from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Optional

from .astronomy import AstronomyEngine, angdiff180, norm360
from .config import SolarTermConfig
from .rootfind import bracket_by_scan, brentq_datetime
from .timeutil import require_utc


def _first_crossing(
    eng: AstronomyEngine,
    start_utc: datetime,
    end_utc: datetime,
    *,
    target_deg: float,
    config: SolarTermConfig,
) -> Optional[datetime]:
    """
    First instant in [start_utc, end_utc] where the apparent solar longitude
    crosses target_deg (increasing), or None.
    """
    target = norm360(target_deg)

    def g(t: datetime) -> float:
        return angdiff180(eng.sun_lon(t) - target)

    brackets = bracket_by_scan(
        g, start_utc, end_utc, timedelta(hours=config.scan_step_hours), first_only=True
    )
    if not brackets:
        return None
    a, b = brackets[0]
    if a == b:
        return a
    # the +/-180 jump also changes sign; only - to + is a crossing
    if g(a) > 0.0:
        return None
    return brentq_datetime(g, a, b, tol_seconds=config.tol_seconds).t


def next_longitude_multiple(lon_deg: float, step_deg: float) -> float:
    """Smallest multiple of step_deg strictly greater than lon_deg, mod 360."""
    return norm360((math.floor(lon_deg / step_deg) + 1.0) * step_deg)


def next_principal_term_on_or_after(
    eng: AstronomyEngine,
    t_utc: datetime,
    *,
    config: SolarTermConfig = SolarTermConfig(),
) -> datetime:
    """
    First instant at or after t_utc when the solar longitude is a multiple
    of config.step_deg (30 degrees: the principal terms).
    """
    start = require_utc(t_utc, "t_utc")
    lon = eng.sun_lon(start)
    if lon % config.step_deg == 0.0:
        return start

    target = next_longitude_multiple(lon, config.step_deg)
    end = start + timedelta(days=config.search_window_days)
    found = _first_crossing(eng, start, end, target_deg=target, config=config)
    if found is None:
        raise RuntimeError(
            f"no solar longitude crossing of {target:.1f} deg in {start.isoformat()} .. {end.isoformat()}"
        )
    return found
