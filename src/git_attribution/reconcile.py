from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping

from .attribution_aggregate import top_contributors
from .attribution_periods import Window
from .identity import IdentityMap
from .models import IndividualStats, TrackerCounters
from .tracker import merge_tracker_counters


@dataclasses.dataclass
class Reconciliation:
    people: dict[str, IndividualStats]
    unmapped_emails: list[tuple[str, int]]
    unmapped_logins: list[tuple[str, TrackerCounters]]

    @property
    def lines_mapped(self) -> int:
        return sum(s.lines_contributed for s in self.people.values())

    @property
    def lines_unmapped(self) -> int:
        return sum(n for _, n in self.unmapped_emails)


def build_individual_stats(
    line_counts: Mapping[str, int],
    email_map: Mapping[str, str],
    tracker_counters: Iterable[Mapping[str, TrackerCounters]] = (),
    login_map: Mapping[str, str] | None = None,
) -> Reconciliation:
    """
    Merge blame line counts and tracker counters into one IndividualStats per
    canonical person.

    Emails missing from `email_map` are kept, with their line counts, in
    `unmapped_emails`. With a `login_map`, logins missing from it are kept in
    `unmapped_logins`; without one every login is its own person.
    """
    identities = IdentityMap(emails=email_map, logins=login_map)
    people: dict[str, IndividualStats] = {}
    unmapped_emails: dict[str, int] = {}
    unmapped_logins: dict[str, TrackerCounters] = {}

    def entry(person: str) -> IndividualStats:
        st = people.get(person)
        if st is None:
            st = IndividualStats()
            people[person] = st
        return st

    for login, counters in merge_tracker_counters(dict(t) for t in tracker_counters).items():
        person = identities.person_for_login(login)
        if person is None:
            unmapped_logins[login] = counters
            continue
        entry(person).add_counters(counters)

    for email, n in line_counts.items():
        person = identities.person_for_email(email)
        if person is None:
            unmapped_emails[email] = unmapped_emails.get(email, 0) + int(n)
            continue
        entry(person).lines_contributed += int(n)

    return Reconciliation(
        people=dict(sorted(people.items())),
        unmapped_emails=top_contributors(unmapped_emails),
        unmapped_logins=sorted(unmapped_logins.items()),
    )


def select_people(people: Mapping[str, IndividualStats], names: Iterable[str]) -> dict[str, IndividualStats]:
    wanted = [n for n in names if n]
    if not wanted:
        return dict(people)
    return {n: people[n] for n in wanted if n in people}


def daily_rates(stats: IndividualStats, window: Window) -> dict[str, float]:
    days = max(1, window.days)
    requests = stats.merged_requests_opened
    return {
        "issues_completed_per_day": stats.issues_completed / days,
        "issues_opened_per_day": stats.issues_opened / days,
        "bugs_reported_per_day": stats.bugs_reported / days,
        "merged_requests_opened_per_day": requests / days,
        "comments_per_merged_request": stats.request_comment_count / requests if requests else 0.0,
        "lines_contributed_per_day": stats.lines_contributed / days,
    }
