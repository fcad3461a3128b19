# src/ccal/core/seed.py
from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, List, Tuple

from .gregorian import absolute_from_gregorian, gregorian_from_absolute
from .year_structure import MonthEntry, MonthLabel, YearStructure

# (ordinal, is_leap, first day in Beijing time)
SeedRow = Tuple[int, bool, str]

# regenerate with: ccal seed-table 2020 2025
SEED_TABLE: Dict[int, Tuple[SeedRow, ...]] = {
    2020: (
        (12, False, "2019-12-26"),
        (1, False, "2020-01-25"),
        (2, False, "2020-02-23"),
        (3, False, "2020-03-24"),
        (4, False, "2020-04-23"),
        (4, True, "2020-05-23"),
        (5, False, "2020-06-21"),
        (6, False, "2020-07-21"),
        (7, False, "2020-08-19"),
        (8, False, "2020-09-17"),
        (9, False, "2020-10-17"),
        (10, False, "2020-11-15"),
        (11, False, "2020-12-15"),
    ),
    2021: (
        (12, False, "2021-01-13"),
        (1, False, "2021-02-12"),
        (2, False, "2021-03-13"),
        (3, False, "2021-04-12"),
        (4, False, "2021-05-12"),
        (5, False, "2021-06-10"),
        (6, False, "2021-07-10"),
        (7, False, "2021-08-08"),
        (8, False, "2021-09-07"),
        (9, False, "2021-10-06"),
        (10, False, "2021-11-05"),
        (11, False, "2021-12-04"),
    ),
    2022: (
        (12, False, "2022-01-03"),
        (1, False, "2022-02-01"),
        (2, False, "2022-03-03"),
        (3, False, "2022-04-01"),
        (4, False, "2022-05-01"),
        (5, False, "2022-05-30"),
        (6, False, "2022-06-29"),
        (7, False, "2022-07-29"),
        (8, False, "2022-08-27"),
        (9, False, "2022-09-26"),
        (10, False, "2022-10-25"),
        (11, False, "2022-11-24"),
    ),
    2023: (
        (12, False, "2022-12-23"),
        (1, False, "2023-01-22"),
        (2, False, "2023-02-20"),
        (2, True, "2023-03-22"),
        (3, False, "2023-04-20"),
        (4, False, "2023-05-19"),
        (5, False, "2023-06-18"),
        (6, False, "2023-07-18"),
        (7, False, "2023-08-16"),
        (8, False, "2023-09-15"),
        (9, False, "2023-10-15"),
        (10, False, "2023-11-13"),
        (11, False, "2023-12-13"),
    ),
    2024: (
        (12, False, "2024-01-11"),
        (1, False, "2024-02-10"),
        (2, False, "2024-03-10"),
        (3, False, "2024-04-09"),
        (4, False, "2024-05-08"),
        (5, False, "2024-06-06"),
        (6, False, "2024-07-06"),
        (7, False, "2024-08-04"),
        (8, False, "2024-09-03"),
        (9, False, "2024-10-03"),
        (10, False, "2024-11-01"),
        (11, False, "2024-12-01"),
    ),
    2025: (
        (12, False, "2024-12-31"),
        (1, False, "2025-01-29"),
        (2, False, "2025-02-28"),
        (3, False, "2025-03-29"),
        (4, False, "2025-04-28"),
        (5, False, "2025-05-27"),
        (6, False, "2025-06-25"),
        (6, True, "2025-07-25"),
        (7, False, "2025-08-23"),
        (8, False, "2025-09-22"),
        (9, False, "2025-10-21"),
        (10, False, "2025-11-20"),
        (11, False, "2025-12-20"),
    ),
}


def structure_from_rows(solar_year: int, rows: Iterable[SeedRow]) -> YearStructure:
    months = tuple(
        MonthEntry(MonthLabel(int(o), bool(leap)), absolute_from_gregorian(date.fromisoformat(s)))
        for o, leap, s in rows
    )
    return YearStructure(solar_year=int(solar_year), months=months)


def rows_from_structure(ys: YearStructure) -> Tuple[SeedRow, ...]:
    return tuple(
        (m.label.ordinal, m.label.is_leap, gregorian_from_absolute(m.start).isoformat())
        for m in ys.months
    )


def seed_structures() -> Dict[int, YearStructure]:
    return {y: structure_from_rows(y, rows) for y, rows in SEED_TABLE.items()}


def format_seed_table(structures: Iterable[YearStructure]) -> str:
    """Python literal in the layout of SEED_TABLE."""
    lines: List[str] = ["SEED_TABLE: Dict[int, Tuple[SeedRow, ...]] = {"]
    for ys in sorted(structures, key=lambda s: s.solar_year):
        lines.append(f"    {ys.solar_year}: (")
        for o, leap, s in rows_from_structure(ys):
            lines.append(f'        ({o}, {leap}, "{s}"),')
        lines.append("    ),")
    lines.append("}")
    return "\n".join(lines)
