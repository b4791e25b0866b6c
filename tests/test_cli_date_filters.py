"""Tests for CLI date filter helper."""

from datetime import date

import click
import pytest

from cashledger.cli.date_filters import (
    parse_date_or_exit,
    parse_month_or_exit,
    resolve_cli_date_range,
)


def _ctx() -> click.Context:
    return click.Context(click.Command("test"))


def test_resolve_cli_date_range_rejects_month_with_start_end(capsys):
    with pytest.raises(click.exceptions.Exit) as excinfo:
        resolve_cli_date_range(
            _ctx(),
            start_date="2024-01-01",
            end_date=None,
            month="2024-01",
        )

    assert excinfo.value.exit_code == 1
    err = capsys.readouterr().err
    assert "cannot be combined" in err


def test_resolve_cli_date_range_returns_month_bounds():
    start, end = resolve_cli_date_range(
        _ctx(),
        start_date=None,
        end_date=None,
        month="2024-02",
    )

    assert start == date(2024, 2, 1)
    assert end == date(2024, 2, 29)


def test_resolve_cli_date_range_explicit_dates():
    start, end = resolve_cli_date_range(
        _ctx(),
        start_date="2024-01-05",
        end_date="31/01/2024",
        month=None,
    )

    assert start == date(2024, 1, 5)
    assert end == date(2024, 1, 31)


def test_resolve_cli_date_range_open_ended():
    assert resolve_cli_date_range(_ctx(), start_date=None, end_date=None, month=None) == (
        None,
        None,
    )


def test_resolve_cli_date_range_rejects_reversed_range(capsys):
    with pytest.raises(click.exceptions.Exit) as excinfo:
        resolve_cli_date_range(
            _ctx(),
            start_date="2024-02-01",
            end_date="2024-01-01",
            month=None,
        )

    assert excinfo.value.exit_code == 1
    assert "on or before" in capsys.readouterr().err


@pytest.mark.parametrize("value", ["2024", "2024-13", "march", "2024-03-01"])
def test_parse_month_or_exit_rejects_bad_values(capsys, value):
    with pytest.raises(click.exceptions.Exit):
        parse_month_or_exit(_ctx(), value)

    assert "YYYY-MM" in capsys.readouterr().err


def test_parse_month_or_exit():
    assert parse_month_or_exit(_ctx(), "2024-03") == (2024, 3)


def test_parse_date_or_exit_labels_error(capsys):
    with pytest.raises(click.exceptions.Exit):
        parse_date_or_exit(_ctx(), "someday", "as-of date")

    assert "Invalid as-of date" in capsys.readouterr().err
