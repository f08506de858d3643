from __future__ import annotations


class ScanError(Exception):
    """A repository could not be scanned; fatal to that repository only."""

    def __init__(self, repo: str, message: str) -> None:
        super().__init__(f"{repo}: {message}")
        self.repo = repo
        self.message = message


class TraversalError(ScanError):
    pass


class ExtractionError(ScanError):
    pass


class BlameLineError(ValueError):
    pass
