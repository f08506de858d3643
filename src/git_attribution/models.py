from __future__ import annotations

import dataclasses
import datetime as dt


@dataclasses.dataclass(frozen=True)
class RepoDescriptor:
    name: str
    url: str = ""
    exclude: tuple[str, ...] = ()


@dataclasses.dataclass(frozen=True)
class BlameLine:
    email: str
    timestamp: dt.datetime


@dataclasses.dataclass(frozen=True)
class ParseWarning:
    path: str
    line_no: int
    reason: str
    text: str

    def __str__(self) -> str:
        where = f"{self.path}:{self.line_no}" if self.path else f"line {self.line_no}"
        return f"{where}: {self.reason}: {self.text[:120]!r}"


@dataclasses.dataclass
class RepoScan:
    name: str
    path: str
    counts: dict[str, int] = dataclasses.field(default_factory=dict)  # email -> lines
    files_scanned: int = 0
    files_excluded: int = 0
    warnings: list[ParseWarning] = dataclasses.field(default_factory=list)

    @property
    def lines_total(self) -> int:
        return sum(self.counts.values())


@dataclasses.dataclass
class RepoOutcome:
    name: str
    path: str
    scan: RepoScan | None = None
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.scan is not None and not self.error


@dataclasses.dataclass
class TrackerCounters:
    bugs_reported: int = 0
    issues_opened: int = 0
    issues_completed: float = 0.0  # 1/N per assignee
    recently_opened: int = 0
    recently_closed: int = 0
    merged_requests_opened: int = 0
    request_comment_count: int = 0

    def add(self, other: TrackerCounters) -> None:
        self.bugs_reported += other.bugs_reported
        self.issues_opened += other.issues_opened
        self.issues_completed += other.issues_completed
        self.recently_opened += other.recently_opened
        self.recently_closed += other.recently_closed
        self.merged_requests_opened += other.merged_requests_opened
        self.request_comment_count += other.request_comment_count


@dataclasses.dataclass
class IndividualStats:
    bugs_reported: int = 0
    issues_opened: int = 0
    issues_completed: float = 0.0
    merged_requests_opened: int = 0
    request_comment_count: int = 0
    lines_contributed: int = 0
    recently_opened: int = 0
    recently_closed: int = 0

    def add_counters(self, c: TrackerCounters) -> None:
        self.bugs_reported += c.bugs_reported
        self.issues_opened += c.issues_opened
        self.issues_completed += c.issues_completed
        self.recently_opened += c.recently_opened
        self.recently_closed += c.recently_closed
        self.merged_requests_opened += c.merged_requests_opened
        self.request_comment_count += c.request_comment_count

    def to_dict(self) -> dict[str, object]:
        return dataclasses.asdict(self)
