from __future__ import annotations

import dataclasses
import datetime as dt

STATS_DAYS = 90


@dataclasses.dataclass(frozen=True)
class Window:
    since: dt.datetime  # inclusive
    asof: dt.datetime  # exclusive

    def __post_init__(self) -> None:
        object.__setattr__(self, "since", as_aware(self.since))
        object.__setattr__(self, "asof", as_aware(self.asof))
        if self.asof < self.since:
            raise ValueError(f"window ends before it starts: {self.since.isoformat()} > {self.asof.isoformat()}")

    def contains(self, ts: dt.datetime) -> bool:
        return self.since <= as_aware(ts) < self.asof

    @property
    def days(self) -> int:
        return (self.asof - self.since).days


def as_aware(ts: dt.datetime) -> dt.datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=dt.timezone.utc)
    return ts


def parse_instant(value: str) -> dt.datetime:
    s = (value or "").strip()
    if not s:
        raise ValueError("empty timestamp")
    if s.endswith("Z") or s.endswith("z"):
        s = s[:-1] + "+00:00"
    try:
        d = dt.datetime.fromisoformat(s)
    except ValueError:
        raise ValueError(f"Invalid timestamp: {value!r} (expected RFC 3339, e.g. 2024-01-01T00:00:00Z)") from None
    return as_aware(d)


def stats_window(asof: dt.datetime, epoch: dt.datetime | None = None, *, days: int = STATS_DAYS) -> Window:
    """
    Window ending at `asof` covering the last `days` days, clipped so it never
    starts before `epoch` when one is given.
    """
    asof = as_aware(asof)
    since = asof - dt.timedelta(days=days)
    if epoch is not None:
        since = max(since, as_aware(epoch))
    return Window(since=since, asof=asof)
