# src/ccal/core/astronomy.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol, runtime_checkable

from .config import ProviderConfig
from .timeutil import as_utc

log = logging.getLogger(__name__)


def norm360(deg: float) -> float:
    x = deg % 360.0
    return x + 360.0 if x < 0 else x


def angdiff180(deg: float) -> float:
    """Map angle to (-180, 180]."""
    x = (deg + 180.0) % 360.0 - 180.0
    return 180.0 if x == -180.0 else x


@runtime_checkable
class AstroProvider(Protocol):
    def sun_ecliptic_longitude_deg(self, dt_utc: datetime) -> float: ...
    def moon_ecliptic_longitude_deg(self, dt_utc: datetime) -> float: ...


@dataclass(frozen=True)
class AstronomyEngine:
    provider: AstroProvider

    def sun_lon(self, dt_utc: datetime) -> float:
        """Return apparent solar ecliptic longitude (degrees) at dt_utc (timezone-aware)."""
        return norm360(self.provider.sun_ecliptic_longitude_deg(as_utc(dt_utc)))

    def moon_lon(self, dt_utc: datetime) -> float:
        """Return apparent lunar ecliptic longitude (degrees) at dt_utc (timezone-aware)."""
        return norm360(self.provider.moon_ecliptic_longitude_deg(as_utc(dt_utc)))

    def phase360(self, dt_utc: datetime) -> float:
        """(moon - sun) mod 360 in [0, 360). New moon is the wrap point."""
        return norm360(self.moon_lon(dt_utc) - self.sun_lon(dt_utc))

    def moon_sun_lon_diff(self, dt_utc: datetime) -> float:
        """Δλ = λ☾ - λ☉ mapped to (-180, 180]. New moon ≈ 0."""
        return angdiff180(self.moon_lon(dt_utc) - self.sun_lon(dt_utc))


def make_provider(config: Optional[ProviderConfig] = None) -> AstroProvider:
    """
    Resolve the configured provider.

    - meeus: analytic series, always available
    - skyfield: JPL ephemeris file (see SkyfieldProvider for path resolution)
    """
    if config is None:
        config = ProviderConfig.from_env()

    if config.name == "skyfield":
        from .providers.skyfield_provider import SkyfieldProvider

        log.debug("using skyfield provider ephemeris=%s path=%s", config.ephemeris, config.ephemeris_path)
        return SkyfieldProvider(ephemeris=config.ephemeris, ephemeris_path=config.ephemeris_path)

    if config.name == "meeus":
        from .providers.meeus_provider import MeeusProvider

        return MeeusProvider()

    raise ValueError(f"unknown provider {config.name!r} (expected 'meeus' or 'skyfield')")


def make_engine(config: Optional[ProviderConfig] = None) -> AstronomyEngine:
    return AstronomyEngine(provider=make_provider(config))
