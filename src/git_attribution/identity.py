from __future__ import annotations

import dataclasses
from collections.abc import Mapping


def normalize_email(email: str) -> str:
    return email.strip().lower()


def normalize_login(login: str) -> str:
    return login.strip().lstrip("@").casefold()


def github_login_from_email(email: str) -> str:
    """
    Extract GitHub login from GitHub noreply patterns:
      - login@users.noreply.github.com
      - 123456+login@users.noreply.github.com
    Returns normalized login or "".
    """
    e = normalize_email(email)
    if not e:
        return ""
    if not e.endswith("@users.noreply.github.com"):
        return ""
    local = e.split("@", 1)[0]
    if "+" in local:
        local = local.rsplit("+", 1)[-1]
    return normalize_login(local)


@dataclasses.dataclass(frozen=True)
class IdentityMap:
    """Resolves author emails and tracker logins to canonical people."""

    emails: Mapping[str, str]
    logins: Mapping[str, str] | None = None
    _emails_norm: dict[str, str] = dataclasses.field(init=False, repr=False, compare=False)
    _logins_norm: dict[str, str] | None = dataclasses.field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_emails_norm", {normalize_email(k): v for k, v in self.emails.items()})
        logins_norm = None if self.logins is None else {normalize_login(k): v for k, v in self.logins.items()}
        object.__setattr__(self, "_logins_norm", logins_norm)

    def person_for_email(self, email: str) -> str | None:
        if email in self.emails:
            return self.emails[email]
        person = self._emails_norm.get(normalize_email(email))
        if person is not None:
            return person
        login = github_login_from_email(email)
        if login and self.logins is not None:
            return self._logins_norm.get(login)
        return None

    def person_for_login(self, login: str) -> str | None:
        if self.logins is None:
            return login
        if login in self.logins:
            return self.logins[login]
        return self._logins_norm.get(normalize_login(login))
