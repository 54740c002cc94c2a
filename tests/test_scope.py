from __future__ import annotations

from typing import Optional

from core.models import MessageContext
from core.scope import build_source_key, in_scope, split_scope


def _context(team: str, channel: Optional[str] = None) -> MessageContext:
    return MessageContext(team=team, channel=channel, chat_id=1, message_id=1, text="hello")


def test_split_scope() -> None:
    assert split_scope("@team") == ("@team", None)
    assert split_scope("@team/12") == ("@team", "12")
    assert split_scope(" @team/ ") == ("@team", None)


def test_build_source_key() -> None:
    assert build_source_key("Group", -100123) == "@group"
    assert build_source_key(None, -100123) == "chat_id:-100123"


def test_empty_scope_applies_everywhere() -> None:
    assert in_scope([], _context("@any"))
    assert in_scope(["", "  "], _context("@any"))


def test_team_scope_matches_every_channel() -> None:
    assert in_scope(["@Team"], _context("@team", "5"))
    assert in_scope(["@team"], _context("@team"))
    assert not in_scope(["@team"], _context("@other"))


def test_channel_scope_is_exact() -> None:
    assert in_scope(["@team/5"], _context("@team", "5"))
    assert not in_scope(["@team/5"], _context("@team", "6"))
    assert not in_scope(["@team/5"], _context("@team"))
    assert in_scope(["@other", "@team/6"], _context("@team", "6"))
