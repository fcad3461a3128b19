from __future__ import annotations

import argparse
import json
import logging
import re
import sys
from datetime import date

from ccal.core.converter import ChineseCalendar, ChineseDate, default_calendar, gregorian_year_of
from ccal.core.errors import ChineseCalendarError
from ccal.core.gregorian import gregorian_from_absolute
from ccal.core.seed import format_seed_table
from ccal.core.year_structure import MonthLabel

_MONTH_RE = re.compile(r"^(\d{1,2})([lL]?)$")


def _parse_ymd(s: str) -> date:
    try:
        return date.fromisoformat(s)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid date {s!r} (expected YYYY-MM-DD)") from e


def _parse_month(s: str) -> MonthLabel:
    """'4' -> month 4, '4L' -> leap month 4."""
    m = _MONTH_RE.match(s.strip())
    if not m:
        raise argparse.ArgumentTypeError(f"invalid month {s!r} (expected e.g. 4 or 4L)")
    try:
        return MonthLabel(int(m.group(1)), bool(m.group(2)))
    except ChineseCalendarError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _chinese_dict(cd: ChineseDate) -> dict:
    return {
        "cycle": cd.cycle,
        "year": cd.year,
        "month": cd.month.ordinal,
        "leap": cd.month.is_leap,
        "day": cd.day,
        "year_stem": cd.year_stem,
        "year_branch": cd.year_branch,
    }


def _format_chinese(cd: ChineseDate) -> str:
    return f"cycle {cd.cycle} year {cd.year} month {cd.month} day {cd.day}"


def cmd_date(cal: ChineseCalendar, args: argparse.Namespace) -> int:
    cd = cal.from_gregorian(args.date)
    if args.json:
        print(json.dumps({"date": args.date.isoformat(), "chinese": _chinese_dict(cd)}))
    else:
        print(f"{args.date.isoformat()}  {_format_chinese(cd)}")
    return 0


def cmd_gregorian(cal: ChineseCalendar, args: argparse.Namespace) -> int:
    cd = ChineseDate(cycle=args.cycle, year=args.year, month=args.month, day=args.day)
    d = cal.to_gregorian(cd)
    if args.json:
        print(json.dumps({"chinese": _chinese_dict(cd), "date": d.isoformat()}))
    else:
        print(f"{_format_chinese(cd)}  {d.isoformat()}")
    return 0


def cmd_year(cal: ChineseCalendar, args: argparse.Namespace) -> int:
    ys = cal.year_structure(args.solar_year)
    rows = [
        {
            "month": m.label.ordinal,
            "leap": m.label.is_leap,
            "start": gregorian_from_absolute(m.start).isoformat(),
        }
        for m in ys
    ]
    if args.json:
        print(json.dumps({"solar_year": ys.solar_year, "months": rows}))
        return 0

    print(f"solar year {ys.solar_year}: {len(ys)} months")
    for m in ys:
        print(f"  {str(m.label):>3}  {gregorian_from_absolute(m.start).isoformat()}")
    return 0


def cmd_months(cal: ChineseCalendar, args: argparse.Namespace) -> int:
    labels = cal.months_in_year(args.cycle, args.year)
    if args.json:
        print(json.dumps({
            "cycle": args.cycle,
            "year": args.year,
            "gregorian_year": gregorian_year_of(args.cycle, args.year),
            "months": [{"month": x.ordinal, "leap": x.is_leap} for x in labels],
        }))
    else:
        print(" ".join(str(x) for x in labels))
    return 0


def cmd_seed_table(cal: ChineseCalendar, args: argparse.Namespace) -> int:
    if args.end < args.start:
        raise SystemExit("END must be >= START")
    structures = [cal.cache.build_fresh(y) for y in range(args.start, args.end + 1)]
    print(format_seed_table(structures))
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="ccal", description="Chinese lunisolar calendar CLI.")
    p.add_argument("--verbose", "-v", action="store_true", help="DEBUG logging")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_date = sub.add_parser("date", help="Gregorian -> Chinese date")
    p_date.add_argument("date", type=_parse_ymd, help="YYYY-MM-DD")
    p_date.add_argument("--json", action="store_true")
    p_date.set_defaults(func=cmd_date)

    p_greg = sub.add_parser("gregorian", help="Chinese -> Gregorian date")
    p_greg.add_argument("cycle", type=int)
    p_greg.add_argument("year", type=int, help="year in cycle, 1..60")
    p_greg.add_argument("month", type=_parse_month, help="month, e.g. 4 or 4L for the leap month")
    p_greg.add_argument("day", type=int)
    p_greg.add_argument("--json", action="store_true")
    p_greg.set_defaults(func=cmd_gregorian)

    p_year = sub.add_parser("year", help="Lunar month starts of a solar year")
    p_year.add_argument("solar_year", type=int)
    p_year.add_argument("--json", action="store_true")
    p_year.set_defaults(func=cmd_year)

    p_months = sub.add_parser("months", help="Month labels of a Chinese year")
    p_months.add_argument("cycle", type=int)
    p_months.add_argument("year", type=int)
    p_months.add_argument("--json", action="store_true")
    p_months.set_defaults(func=cmd_months)

    p_seed = sub.add_parser("seed-table", help="Compute year structures and print them as a seed table literal")
    p_seed.add_argument("start", type=int)
    p_seed.add_argument("end", type=int)
    p_seed.set_defaults(func=cmd_seed_table)

    return p


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    cal = default_calendar()
    try:
        return int(args.func(cal, args) or 0)
    except ChineseCalendarError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
