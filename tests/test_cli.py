from __future__ import annotations

import json

import pytest

from ccal import cli
from ccal.core.cache import YearCache
from ccal.core.converter import ChineseCalendar
from ccal.core.seed import SEED_TABLE, format_seed_table, seed_structures


@pytest.fixture(autouse=True)
def seeded_calendar(monkeypatch):
    cal = ChineseCalendar(YearCache(_TableBuilder(), seed=seed_structures()))
    monkeypatch.setattr(cli, "default_calendar", lambda: cal)
    return cal


class _TableBuilder:
    """Rebuilds seeded years from the table itself."""

    def build_year(self, solar_year: int):
        return seed_structures()[solar_year]


def test_date_command(capsys):
    assert cli.main(["date", "2024-02-10"]) == 0
    out = capsys.readouterr().out
    assert "cycle 78 year 41 month 1 day 1" in out


def test_date_command_json(capsys):
    assert cli.main(["date", "2023-03-22", "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["chinese"]["month"] == 2
    assert data["chinese"]["leap"] is True


def test_gregorian_command_leap_month(capsys):
    assert cli.main(["gregorian", "78", "37", "4L", "1"]) == 0
    assert "2020-05-23" in capsys.readouterr().out


def test_gregorian_command_reports_errors(capsys):
    assert cli.main(["gregorian", "78", "41", "1", "30"]) == 2
    assert "error:" in capsys.readouterr().err


def test_gregorian_command_rejects_bad_month():
    with pytest.raises(SystemExit):
        cli.main(["gregorian", "78", "41", "13", "1"])


def test_year_command(capsys):
    assert cli.main(["year", "2020", "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert {"month": 4, "leap": True, "start": "2020-05-23"} in data["months"]


def test_months_command(capsys):
    assert cli.main(["months", "78", "40"]) == 0
    assert capsys.readouterr().out.split() == ["1", "2", "2L", "3", "4", "5", "6", "7", "8", "9", "10", "11", "12"]


def test_seed_table_command_round_trips(capsys):
    assert cli.main(["seed-table", "2020", "2025"]) == 0
    out = capsys.readouterr().out.strip()
    assert out == format_seed_table(seed_structures().values())
    assert out.count('"2020-05-23"') == 1
    assert len(SEED_TABLE) == 6
