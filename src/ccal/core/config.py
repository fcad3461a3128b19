# src/ccal/core/config.py
from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Literal, Optional

ProviderName = Literal["meeus", "skyfield"]

ENV_PROVIDER = "CCAL_PROVIDER"
ENV_EPHEMERIS = "CCAL_EPHEMERIS"
ENV_EPHEMERIS_PATH = "CCAL_EPHEMERIS_PATH"


@dataclass(frozen=True)
class NewMoonConfig:
    scan_step_hours: int = 6
    tol_seconds: float = 0.5

    # a lunation never exceeds ~29.9 days
    search_window_days: int = 31

    # reject bisection results farther than this from phase 0
    max_phase_error_deg: float = 1e-2


@dataclass(frozen=True)
class SolarTermConfig:
    """
    Configuration for solar longitude crossing searches.
    All time units are explicit to avoid minute/second confusion.
    """
    scan_step_hours: int = 24
    tol_seconds: float = 0.5
    step_deg: float = 30.0

    # the sun needs at most ~31 days to advance 30 degrees
    search_window_days: int = 40


@dataclass(frozen=True)
class OracleConfig:
    """
    Validated accuracy window of the astronomical oracle (local calendar days).
    Requests outside it raise OracleOutOfRange.
    """
    valid_from: date = date(1900, 1, 1)
    valid_to: date = date(2299, 12, 31)
    newmoon: NewMoonConfig = field(default_factory=NewMoonConfig)
    solarterm: SolarTermConfig = field(default_factory=SolarTermConfig)


@dataclass(frozen=True)
class ProviderConfig:
    name: ProviderName = "meeus"
    ephemeris: Optional[str] = None
    ephemeris_path: Optional[Path] = None

    @classmethod
    def from_env(cls) -> "ProviderConfig":
        """
        CCAL_PROVIDER       meeus (default) | skyfield
        CCAL_EPHEMERIS      ephemeris file name under ./data (skyfield only)
        CCAL_EPHEMERIS_PATH explicit ephemeris path (skyfield only)
        """
        name = os.environ.get(ENV_PROVIDER, "").strip().lower() or "meeus"
        if name not in ("meeus", "skyfield"):
            raise ValueError(f"{ENV_PROVIDER} must be 'meeus' or 'skyfield' (got {name!r})")

        ephem = os.environ.get(ENV_EPHEMERIS, "").strip() or None
        path_raw = os.environ.get(ENV_EPHEMERIS_PATH, "").strip()
        path = Path(path_raw).expanduser() if path_raw else None
        return cls(name=name, ephemeris=ephem, ephemeris_path=path)  # type: ignore[arg-type]


@dataclass(frozen=True)
class CCalConfig:
    provider: ProviderConfig = field(default_factory=ProviderConfig)
    oracle: OracleConfig = field(default_factory=OracleConfig)

    # seed the process-wide year cache with the bundled table
    use_seed_table: bool = True

    # None: the cache never evicts
    cache_maxsize: Optional[int] = None
