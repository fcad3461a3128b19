# src/ccal/core/providers/meeus_provider.py
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime

from ..astronomy import norm360
from ..timescale import centuries_since_j2000, jd_tt

# Periodic terms for the Moon's longitude (Meeus, Astronomical Algorithms, table 47.A).
# (D, M, M', F, coefficient in 1e-6 degrees)
LUNAR_LON_TERMS = (
    (0, 0, 1, 0, 6288774),
    (2, 0, -1, 0, 1274027),
    (2, 0, 0, 0, 658314),
    (0, 0, 2, 0, 213618),
    (0, 1, 0, 0, -185116),
    (0, 0, 0, 2, -114332),
    (2, 0, -2, 0, 58793),
    (2, -1, -1, 0, 57066),
    (2, 0, 1, 0, 53322),
    (2, -1, 0, 0, 45758),
    (0, 1, -1, 0, -40923),
    (1, 0, 0, 0, -34720),
    (0, 1, 1, 0, -30383),
    (2, 0, 0, -2, 15327),
    (0, 0, 1, 2, -12528),
    (0, 0, 1, -2, 10980),
    (4, 0, -1, 0, 10675),
    (0, 0, 3, 0, 10034),
    (4, 0, -2, 0, 8548),
    (2, 1, -1, 0, -7888),
    (2, 1, 0, 0, -6766),
    (1, 0, -1, 0, -5163),
    (1, 1, 0, 0, 4987),
    (2, -1, 1, 0, 4036),
    (2, 0, 2, 0, 3994),
    (4, 0, 0, 0, 3861),
    (2, 0, -3, 0, 3665),
    (0, 1, -2, 0, -2689),
    (2, 0, -1, 2, -2602),
    (2, -1, -2, 0, 2390),
    (1, 0, 1, 0, -2348),
    (2, -2, 0, 0, 2236),
    (0, 1, 2, 0, -2120),
    (0, 2, 0, 0, -2069),
    (2, -2, -1, 0, 2048),
    (2, 0, 1, -2, -1773),
    (2, 0, 0, 2, -1595),
    (4, -1, -1, 0, 1215),
    (0, 0, 2, 2, -1110),
    (3, 0, -1, 0, -892),
    (2, 1, 1, 0, -810),
    (4, -1, -2, 0, 759),
    (0, 2, -1, 0, -713),
    (2, 2, -1, 0, -700),
    (2, 1, -2, 0, 691),
    (2, -1, 0, -2, 596),
    (4, 0, 1, 0, 549),
    (0, 0, 4, 0, 537),
    (4, -1, 0, 0, 520),
    (1, 0, -2, 0, -487),
    (2, 1, 0, -2, -399),
    (0, 0, 2, -2, -381),
    (1, 1, 1, 0, 351),
    (3, 0, -2, 0, -340),
    (4, 0, -3, 0, 330),
    (2, -1, 2, 0, 327),
    (0, 2, 1, 0, -323),
    (1, 1, -1, 0, 299),
    (2, 0, 3, 0, 294),
)


def _nutation_lon_deg(T: float) -> float:
    """Leading term of nutation in longitude (-17.20" sin Ω)."""
    omega = 125.04452 - 1934.136261 * T
    return -0.00478 * math.sin(math.radians(omega))


def sun_apparent_longitude_deg(jde: float) -> float:
    """
    Apparent solar longitude from the equation of centre (~0.01 deg),
    corrected for aberration and the leading nutation term.
    """
    T = centuries_since_j2000(jde)
    L0 = 280.46646 + 36000.76983 * T + 0.0003032 * T * T
    M = math.radians(357.52911 + 35999.05029 * T - 0.0001537 * T * T)
    C = (
        (1.914602 - 0.004817 * T - 0.000014 * T * T) * math.sin(M)
        + (0.019993 - 0.000101 * T) * math.sin(2.0 * M)
        + 0.000289 * math.sin(3.0 * M)
    )
    return norm360(L0 + C - 0.00569 + _nutation_lon_deg(T))


def moon_apparent_longitude_deg(jde: float) -> float:
    """
    Apparent lunar longitude from the truncated ELP-2000/82 series (~10").
    """
    T = centuries_since_j2000(jde)
    T2 = T * T
    T3 = T2 * T
    T4 = T2 * T2

    Lp = 218.3164477 + 481267.88123421 * T - 0.0015786 * T2 + T3 / 538841.0 - T4 / 65194000.0
    D = 297.8501921 + 445267.1114034 * T - 0.0018819 * T2 + T3 / 545868.0 - T4 / 113065000.0
    M = 357.5291092 + 35999.0502909 * T - 0.0001536 * T2 + T3 / 24490000.0
    Mp = 134.9633964 + 477198.8675055 * T + 0.0087414 * T2 + T3 / 69699.0 - T4 / 14712000.0
    F = 93.2720950 + 483202.0175233 * T - 0.0036539 * T2 - T3 / 3526000.0 + T4 / 863310000.0

    E = 1.0 - 0.002516 * T - 0.0000074 * T2

    d, m, mp, f = (math.radians(x) for x in (D, M, Mp, F))
    total = 0.0
    for cd, cm, cmp, cf, coef in LUNAR_LON_TERMS:
        c = float(coef)
        if cm in (1, -1):
            c *= E
        elif cm in (2, -2):
            c *= E * E
        total += c * math.sin(cd * d + cm * m + cmp * mp + cf * f)

    # additive terms (Venus, Jupiter, flattening of the Earth)
    A1 = math.radians(119.75 + 131.849 * T)
    A2 = math.radians(53.09 + 479264.290 * T)
    total += 3958.0 * math.sin(A1) + 1962.0 * math.sin(math.radians(Lp - F)) + 318.0 * math.sin(A2)

    return norm360(Lp + total * 1e-6 + _nutation_lon_deg(T))


@dataclass(frozen=True)
class MeeusProvider:
    """
    Offline provider: analytic series, no ephemeris file required.

    Accuracy is good enough to date new moons to about a minute and solar
    terms to about a quarter of an hour over several centuries around J2000.
    """

    def sun_ecliptic_longitude_deg(self, dt_utc: datetime) -> float:
        return sun_apparent_longitude_deg(jd_tt(dt_utc))

    def moon_ecliptic_longitude_deg(self, dt_utc: datetime) -> float:
        return moon_apparent_longitude_deg(jd_tt(dt_utc))
