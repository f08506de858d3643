from __future__ import annotations

import datetime as dt

from .attribution_periods import Window
from .errors import BlameLineError
from .models import BlameLine, ParseWarning

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S %z"
TIMESTAMP_WIDTH = len("2024-01-02 10:00:00 +0000")


def parse_blame_line(line: str) -> BlameLine:
    """
    Extract the author email and timestamp from one line of `git blame -e`:

      ^1a2b3c4 (<alice@example.com> 2024-01-02 10:00:00 +0000 1) foo

    Raises BlameLineError when the metadata block is malformed.
    """
    start = line.find("(<")
    if start < 0:
        raise BlameLineError("missing '(<'")
    email_start = start + 2
    email_end = line.find(">", email_start)
    if email_end < 0:
        raise BlameLineError("missing '>' after email")
    email = line[email_start:email_end]

    # the first ')' after the email closes the metadata block; later ones are source text
    close = line.find(")", email_end + 1)
    if close < 0:
        raise BlameLineError("missing ')' after metadata")
    return BlameLine(email=email, timestamp=_timestamp_before(line, email_end + 1, close))


def _timestamp_before(line: str, start: int, close: int) -> dt.datetime:
    last_space = line.rfind(" ", start, close)
    if last_space < 0:
        raise BlameLineError("missing line number")
    field = line[start:last_space].strip()
    # padding or stray text before the timestamp; it always ends the field
    if len(field) > TIMESTAMP_WIDTH:
        field = field[-TIMESTAMP_WIDTH:]
    try:
        return dt.datetime.strptime(field, TIMESTAMP_FORMAT)
    except ValueError:
        raise BlameLineError(f"invalid timestamp {field!r}") from None


def count_blame_lines(text: str, window: Window, counts: dict[str, int], *, path: str = "") -> list[ParseWarning]:
    """Add one per in-window line of `text` to `counts`; malformed lines are skipped and reported."""
    warnings: list[ParseWarning] = []
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    for i, raw in enumerate(lines, start=1):
        line = raw.rstrip("\r")
        try:
            rec = parse_blame_line(line)
        except BlameLineError as e:
            warnings.append(ParseWarning(path=path, line_no=i, reason=str(e), text=line))
            continue
        if not window.contains(rec.timestamp):
            continue
        counts[rec.email] = counts.get(rec.email, 0) + 1
    return warnings
