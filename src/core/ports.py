"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for lookup and chat adapters so that the
core can be reused with different HTTP clients and chat hosts.
"""

from __future__ import annotations

from typing import Protocol

from core.models import MessageContext


class FetcherPort(Protocol):
    """Raw HTTP GET used to resolve lookup URLs."""

    def fetch(self, url: str) -> bytes:
        ...


class TitleResolverPort(Protocol):
    """Turn a lookup URL into a human-readable title.

    Implementations raise ``LookupFailure`` when the URL cannot be fetched.
    """

    def resolve(self, url: str) -> str:
        ...


class MessageEditorPort(Protocol):
    """Write rewritten text back to the chat host."""

    async def edit(self, context: MessageContext, text: str) -> None:
        ...
