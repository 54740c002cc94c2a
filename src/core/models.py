"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any integration-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class MessageContext:
    """Minimal message context used by the rewriting pipeline.

    ``team`` and ``channel`` are the names scope entries are checked against.
    """

    team: str
    channel: Optional[str]
    chat_id: int
    message_id: int
    text: str
