"""Helpers for link scopes.

A scope entry is either ``team`` or ``team/channel``. For Telegram the team is
the chat's source key (``@username`` or ``chat_id:<id>``) and the channel is
the forum topic id.
"""

from __future__ import annotations

from typing import Iterable, Optional, Tuple

from core.models import MessageContext

SCOPE_SEPARATOR = "/"


def build_source_key(username: Optional[str], chat_id: int) -> str:
    """Normalize a chat into the team name used by scope entries."""

    if username:
        return f"@{username.lower()}"
    return f"chat_id:{chat_id}"


def split_scope(entry: str) -> Tuple[str, Optional[str]]:
    """Split a scope entry into (team, channel)."""

    team, sep, channel = entry.strip().partition(SCOPE_SEPARATOR)
    if not sep or not channel:
        return team, None
    return team, channel


def in_scope(scope: Iterable[str], context: MessageContext) -> bool:
    """Return True when a link with ``scope`` applies to ``context``.

    An empty scope applies everywhere.
    """

    entries = [entry for entry in scope if entry.strip()]
    if not entries:
        return True

    for entry in entries:
        team, channel = split_scope(entry)
        if team.lower() != context.team.lower():
            continue
        if channel is None or channel == context.channel:
            return True
    return False
