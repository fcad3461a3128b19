# src/ccal/core/providers/skyfield_provider.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal, Optional, Tuple, Union

from skyfield.api import Loader

from ..timeutil import as_utc

log = logging.getLogger(__name__)

EPHEMERIS_CANDIDATES = ("de440s.bsp", "de421.bsp")

EclipticFrameName = Literal[
    "of_date_true",   # true ecliptic and equinox of date
    "J2000",          # ecliptic J2000
]


def _resolve_ecliptic_frame(name: EclipticFrameName):
    """
    Return a Skyfield frame object.
    Older Skyfield releases lack the true-of-date frame; fall back to ecliptic_frame.
    """
    from skyfield.framelib import ecliptic_frame, ecliptic_J2000_frame

    if name == "J2000":
        return ecliptic_J2000_frame

    try:
        from skyfield.framelib import true_ecliptic_and_equinox_of_date  # type: ignore
        return true_ecliptic_and_equinox_of_date
    except ImportError:
        return ecliptic_frame


def project_data_dir() -> Path:
    return Path(__file__).resolve().parents[4] / "data"


def _resolve_ephemeris_path(
    *,
    ephemeris_path: Optional[Path],
    ephemeris: Optional[Union[str, Path]],
) -> Path:
    """
    Resolution priority:
      1) ephemeris_path if provided
      2) ephemeris: absolute path as is, bare name under the project data dir
      3) first existing of de440s.bsp, de421.bsp under the data dir
    """
    if ephemeris_path is not None:
        return Path(ephemeris_path)

    if ephemeris is not None:
        p = Path(ephemeris)
        return p if p.is_absolute() else project_data_dir() / p

    data_dir = project_data_dir()
    for name in EPHEMERIS_CANDIDATES:
        p = data_dir / name
        if p.exists():
            return p
    return data_dir / EPHEMERIS_CANDIDATES[0]


@dataclass(frozen=True)
class SkyfieldProvider:
    """
    Apparent solar/lunar longitudes from a JPL ephemeris via Skyfield.
    """

    ephemeris_path: Optional[Path] = None
    ephemeris: Optional[Union[str, Path]] = None
    ecliptic_frame: EclipticFrameName = "of_date_true"

    def __post_init__(self) -> None:
        resolved = _resolve_ephemeris_path(
            ephemeris_path=self.ephemeris_path,
            ephemeris=self.ephemeris,
        )
        object.__setattr__(self, "ephemeris_path", resolved)

        if not resolved.exists():
            data_dir = project_data_dir()
            cand_str = "\n".join(f"  - {data_dir / n}" for n in EPHEMERIS_CANDIDATES)
            raise FileNotFoundError(
                f"Ephemeris not found: {resolved}\n"
                f"Place one of the following files under {data_dir}:\n"
                f"{cand_str}\n"
                "Or set CCAL_EPHEMERIS_PATH / pass ephemeris_path=Path(...)."
            )

        loader = Loader(str(resolved.parent))
        eph = loader(resolved.name)
        ts = loader.timescale()

        object.__setattr__(self, "_eph", eph)
        object.__setattr__(self, "_ts", ts)
        object.__setattr__(self, "_earth", eph["earth"])
        object.__setattr__(self, "_sun", eph["sun"])
        object.__setattr__(self, "_moon", eph["moon"])
        object.__setattr__(self, "_frame", _resolve_ecliptic_frame(self.ecliptic_frame))

        start_utc, end_utc = self._coverage_utc()
        object.__setattr__(self, "_ephem_start_utc", start_utc)
        object.__setattr__(self, "_ephem_end_utc", end_utc)
        log.debug("loaded ephemeris %s coverage %s..%s", resolved, start_utc, end_utc)

    def _coverage_utc(self) -> Tuple[datetime, datetime]:
        """
        Coverage from SPK segments. Skyfield raises EphemerisRangeError deep
        inside; checking up front gives a clearer message.
        """
        spk = getattr(self._eph, "spk", None)
        if spk is None or not getattr(spk, "segments", None):
            return (
                datetime.min.replace(tzinfo=timezone.utc),
                datetime.max.replace(tzinfo=timezone.utc),
            )

        start_jd = min(s.start_jd for s in spk.segments)
        end_jd = max(s.end_jd for s in spk.segments)
        start_utc = self._ts.tt_jd(start_jd).utc_datetime().replace(tzinfo=timezone.utc)
        end_utc = self._ts.tt_jd(end_jd).utc_datetime().replace(tzinfo=timezone.utc)
        return start_utc, end_utc

    def _t(self, dt_utc: datetime):
        dt = as_utc(dt_utc, "dt_utc")
        if dt < self._ephem_start_utc or dt > self._ephem_end_utc:
            raise ValueError(
                "Requested datetime is outside ephemeris coverage.\n"
                f"  requested: {dt.isoformat()}\n"
                f"  ephemeris: {self.ephemeris_path}\n"
                f"  coverage : {self._ephem_start_utc.isoformat()} .. {self._ephem_end_utc.isoformat()}"
            )
        return self._ts.from_datetime(dt)

    def _apparent_lon_deg(self, body, dt_utc: datetime) -> float:
        t = self._t(dt_utc)
        obs = self._earth.at(t).observe(body).apparent()
        _lat, lon, _dist = obs.frame_latlon(self._frame)
        return float(lon.degrees % 360.0)

    def sun_ecliptic_longitude_deg(self, dt_utc: datetime) -> float:
        return self._apparent_lon_deg(self._sun, dt_utc)

    def moon_ecliptic_longitude_deg(self, dt_utc: datetime) -> float:
        return self._apparent_lon_deg(self._moon, dt_utc)
