"""Exceptions raised by the autolink core."""

from __future__ import annotations


class AutolinkError(Exception):
    pass


class AutolinkCompileError(AutolinkError):
    """A link pattern could not be turned into a regular expression."""

    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(f"cannot compile pattern {pattern!r}: {reason}")
        self.pattern = pattern
        self.reason = reason


class LookupFailure(AutolinkError):
    """A lookup URL could not be resolved to a title."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"lookup failed for {url}: {reason}")
        self.url = url
        self.reason = reason


class LookupFetchError(LookupFailure):
    pass


class LookupReadError(LookupFailure):
    pass
