"""Telegram message editor adapter.

Writes rewritten text back to the original message.
"""

from __future__ import annotations

from core.models import MessageContext


class TelegramMessageEditor:
    """Editor adapter that edits the user's own messages in place.

    The ids of edits made here are remembered so the MessageEdited event they
    trigger can be skipped instead of being rewritten again.
    """

    def __init__(self, client) -> None:
        self._client = client
        self._own_edits: set[tuple[int, int]] = set()

    async def edit(self, context: MessageContext, text: str) -> None:
        key = (context.chat_id, context.message_id)
        self._own_edits.add(key)
        try:
            await self._client.edit_message(
                context.chat_id,
                context.message_id,
                text,
                parse_mode="md",
                link_preview=False,
            )
        except Exception:
            self._own_edits.discard(key)
            raise

    def consume_own_edit(self, context: MessageContext) -> bool:
        """Return True (once) if ``context`` is the echo of our own edit."""

        key = (context.chat_id, context.message_id)
        if key in self._own_edits:
            self._own_edits.discard(key)
            return True
        return False
