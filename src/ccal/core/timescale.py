# src/ccal/core/timescale.py
from __future__ import annotations

from datetime import date, datetime
from typing import Tuple

from .timeutil import as_utc

J2000_TT = 2451545.0
_JD_UNIX_EPOCH = 2440587.5  # JD at 1970-01-01 00:00:00 UTC


def _poly(u: float, coeffs: Tuple[float, ...]) -> float:
    """Horner evaluation for sum(coeffs[k] * u**k)."""
    acc = 0.0
    for c in reversed(coeffs):
        acc = acc * u + c
    return acc


def delta_t_seconds(y: float) -> float:
    """
    Espenak-Meeus polynomial ΔT = TT - UT1 in seconds, y a decimal year.

    Only the branches around the oracle's working window are kept; outside
    1800..2150 the long-term parabola is used.
    """
    if y < 1800.0 or y >= 2150.0:
        u = (y - 1820.0) / 100.0
        return -20.0 + 32.0 * u * u
    if y < 1860.0:
        t = y - 1800.0
        return _poly(t, (13.72, -0.332447, 0.0068612, 0.0041116,
                         -0.00037436, 0.0000121272, -0.0000001699, 0.000000000875))
    if y < 1900.0:
        t = y - 1860.0
        return _poly(t, (7.62, 0.5737, -0.251754, 0.01680668, -0.0004473624, 1.0 / 233174.0))
    if y < 1920.0:
        t = y - 1900.0
        return _poly(t, (-2.79, 1.494119, -0.0598939, 0.0061966, -0.000197))
    if y < 1941.0:
        t = y - 1920.0
        return _poly(t, (21.20, 0.84493, -0.076100, 0.0020936))
    if y < 1961.0:
        t = y - 1950.0
        return _poly(t, (29.07, 0.407, -1.0 / 233.0, 1.0 / 2547.0))
    if y < 1986.0:
        t = y - 1975.0
        return _poly(t, (45.45, 1.067, -1.0 / 260.0, -1.0 / 718.0))
    if y < 2005.0:
        t = y - 2000.0
        return _poly(t, (63.86, 0.3345, -0.060374, 0.0017275, 0.000651814, 0.00002373599))
    if y < 2050.0:
        t = y - 2000.0
        return _poly(t, (62.92, 0.32217, 0.005589))
    u = (y - 1820.0) / 100.0
    return -20.0 + 32.0 * u * u - 0.5628 * (2150.0 - y)


def decimal_year(d: date) -> float:
    start = date(d.year, 1, 1)
    end = date(d.year + 1, 1, 1)
    return d.year + (d - start).days / (end - start).days


def jd_utc(dt: datetime) -> float:
    """Aware datetime -> Julian Date (UTC)."""
    return _JD_UNIX_EPOCH + as_utc(dt).timestamp() / 86400.0


def jd_tt(dt: datetime) -> float:
    """Aware datetime -> Julian Ephemeris Date (TT), taking UT1 = UTC."""
    t = as_utc(dt)
    return jd_utc(t) + delta_t_seconds(decimal_year(t.date())) / 86400.0


def centuries_since_j2000(jd: float) -> float:
    return (jd - J2000_TT) / 36525.0
