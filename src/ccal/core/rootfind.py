# src/ccal/core/rootfind.py
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Tuple


@dataclass(frozen=True)
class RootResult:
    t: datetime
    iterations: int


def bracket_by_scan(
    f: Callable[[datetime], float],
    start: datetime,
    end: datetime,
    step: timedelta,
    *,
    first_only: bool = False,
) -> List[Tuple[datetime, datetime]]:
    """
    Walk [start, end] in fixed steps and collect brackets of f.

    Returns (a, b) pairs where
      - f(a) * f(b) < 0             -> (a, b)
      - f is exactly 0 at a point t -> (t, t)

    With first_only the walk stops at the first bracket, which is what the
    on-or-after searches need. Non-finite samples reset the baseline.
    """
    if step.total_seconds() <= 0:
        raise ValueError("step must be positive")
    if not (start < end):
        return []

    out: List[Tuple[datetime, datetime]] = []

    t_prev = start
    f_prev = f(t_prev)
    if f_prev == 0.0:
        out.append((t_prev, t_prev))
        if first_only:
            return out

    t = start
    while t < end:
        t = min(t + step, end)
        f_cur = f(t)

        if not (math.isfinite(f_prev) and math.isfinite(f_cur)):
            t_prev, f_prev = t, f_cur
            continue

        if f_cur == 0.0:
            out.append((t, t))
        elif f_prev != 0.0 and f_prev * f_cur < 0.0:
            out.append((t_prev, t))

        if first_only and out:
            return out
        t_prev, f_prev = t, f_cur

    return out


def brentq_datetime(
    f: Callable[[datetime], float],
    a: datetime,
    b: datetime,
    tol_seconds: float = 0.5,
    max_iter: int = 100,
) -> RootResult:
    """
    Root of f on a datetime bracket [a, b] with f(a) * f(b) <= 0.

    Regula falsi when the secant lands strictly inside the bracket,
    bisection otherwise; the bracket is kept valid throughout.
    """
    if tol_seconds <= 0:
        raise ValueError("tol_seconds must be positive")
    if a > b:
        a, b = b, a

    fa = f(a)
    fb = f(b)

    if not (math.isfinite(fa) and math.isfinite(fb)):
        raise ValueError("Non-finite function value at bracket endpoints.")
    if fa == 0.0:
        return RootResult(a, 0)
    if fb == 0.0:
        return RootResult(b, 0)
    if fa * fb > 0.0:
        raise ValueError("Root is not bracketed (same sign).")

    # seconds from a keeps the arithmetic well conditioned
    a0 = a

    def at(sec: float) -> datetime:
        return a0 + timedelta(seconds=sec)

    xa, xb = 0.0, (b - a).total_seconds()
    last_side: Optional[int] = None

    for it in range(1, max_iter + 1):
        if (xb - xa) <= tol_seconds:
            return RootResult(at(0.5 * (xa + xb)), it)

        xm = 0.5 * (xa + xb)
        xc = xm
        if fb != fa:
            xs = xb - fb * (xb - xa) / (fb - fa)
            if xa < xs < xb and math.isfinite(xs):
                xc = xs

        fc = f(at(xc))
        if not math.isfinite(fc):
            xc = xm
            fc = f(at(xc))
            if not math.isfinite(fc):
                raise ValueError("Non-finite function value during root finding.")

        if fc == 0.0:
            return RootResult(at(xc), it)

        side = -1 if fa * fc < 0.0 else 1
        if side < 0:
            xb, fb = xc, fc
        else:
            xa, fa = xc, fc

        if last_side == side and xc != xm:
            # regula falsi stalls when one end never moves; bisect once
            xm = 0.5 * (xa + xb)
            fm = f(at(xm))
            if fm == 0.0:
                return RootResult(at(xm), it)
            if fa * fm < 0.0:
                xb, fb = xm, fm
            else:
                xa, fa = xm, fm
        last_side = side

    return RootResult(at(0.5 * (xa + xb)), max_iter)
