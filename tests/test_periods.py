from __future__ import annotations

import datetime as dt

import pytest

from git_attribution.attribution_periods import Window, parse_instant, stats_window

UTC = dt.timezone.utc


def test_parse_instant_zulu_and_offset() -> None:
    assert parse_instant("2024-01-04T00:00:00Z") == dt.datetime(2024, 1, 4, tzinfo=UTC)
    d = parse_instant("2024-01-04T09:00:00+09:00")
    assert d == dt.datetime(2024, 1, 4, tzinfo=UTC)


def test_parse_instant_naive_is_utc() -> None:
    assert parse_instant("2024-01-04T00:00:00").tzinfo is not None


def test_parse_instant_invalid() -> None:
    with pytest.raises(ValueError):
        parse_instant("last tuesday")


def test_stats_window_defaults_to_ninety_days() -> None:
    asof = dt.datetime(2024, 4, 1, tzinfo=UTC)
    w = stats_window(asof)
    assert w.asof == asof
    assert w.since == asof - dt.timedelta(days=90)
    assert w.days == 90


def test_stats_window_clipped_by_epoch() -> None:
    asof = dt.datetime(2024, 4, 1, tzinfo=UTC)
    epoch = dt.datetime(2024, 3, 1, tzinfo=UTC)
    assert stats_window(asof, epoch).since == epoch
    old_epoch = dt.datetime(2020, 1, 1, tzinfo=UTC)
    assert stats_window(asof, old_epoch).since == asof - dt.timedelta(days=90)


def test_window_contains_half_open() -> None:
    w = Window(since=dt.datetime(2024, 1, 1, tzinfo=UTC), asof=dt.datetime(2024, 1, 4, tzinfo=UTC))
    assert w.contains(dt.datetime(2024, 1, 1, tzinfo=UTC))
    assert not w.contains(dt.datetime(2024, 1, 4, tzinfo=UTC))
    assert w.contains(dt.datetime(2024, 1, 4, 8, tzinfo=dt.timezone(dt.timedelta(hours=9))))


def test_window_rejects_reversed_bounds() -> None:
    with pytest.raises(ValueError):
        Window(since=dt.datetime(2024, 2, 1, tzinfo=UTC), asof=dt.datetime(2024, 1, 1, tzinfo=UTC))
