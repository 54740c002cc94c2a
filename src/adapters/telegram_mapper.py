"""Telegram-to-core message mapping adapter.

This keeps Telethon-specific details out of the core pipeline.
"""

from __future__ import annotations

from typing import Optional

from telethon.tl.custom import Message

from core.models import MessageContext
from core.scope import build_source_key


def source_key_from_message(message: Message) -> str:
    """Normalize a chat into a source key used as the scope team."""

    chat = getattr(message, "chat", None)
    username = getattr(chat, "username", None)
    if not isinstance(username, str):
        username = None
    return build_source_key(username, message.chat_id)


def _topic_id_from_message(message: Message) -> Optional[int]:
    reply_to = getattr(message, "reply_to", None)
    if not reply_to or not getattr(reply_to, "forum_topic", False):
        return None
    top_id = getattr(reply_to, "reply_to_top_id", None)
    if top_id:
        return top_id
    return getattr(reply_to, "reply_to_msg_id", None)


def build_context(message: Message) -> MessageContext:
    """Build a core MessageContext from a Telethon Message.

    The markdown form of the text is used so existing formatting survives the
    edit.
    """

    topic_id = _topic_id_from_message(message)
    return MessageContext(
        team=source_key_from_message(message),
        channel=str(topic_id) if topic_id is not None else None,
        chat_id=message.chat_id,
        message_id=message.id,
        text=message.text or "",
    )
