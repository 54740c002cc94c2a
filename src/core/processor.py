"""Core message rewriting pipeline.

This module is integration-agnostic. It only relies on ports for title lookups
and message edits, enabling other chat hosts without changes here.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from core.config import ConfigStore
from core.models import MessageContext
from core.ports import MessageEditorPort, TitleResolverPort
from core.scope import in_scope

LOGGER = logging.getLogger(__name__)


class MessageRewriter:
    """Applies the configured links to a message."""

    def __init__(self, store: ConfigStore, resolver: TitleResolverPort) -> None:
        self._store = store
        self._resolver = resolver

    def rewrite_text(self, text: str, context: Optional[MessageContext] = None) -> str:
        """Apply every link in configuration order.

        Scope is only checked when a context is given.
        """

        # One snapshot for the whole message, even if the config is swapped
        # while lookups are in flight.
        config = self._store.current
        for link in config.all_links:
            if not link.is_compiled:
                continue
            if context is not None and not in_scope(link.scope, context):
                continue
            text = link.replace(text, self._resolver, collapse_batch=config.lookup.collapse_batch)
        return text

    def rewrite(self, context: MessageContext) -> Optional[str]:
        """Return the rewritten text, or None when nothing changed."""

        # Media-only messages without captions are ignored
        if not context.text.strip():
            return None

        rewritten = self.rewrite_text(context.text, context)
        if rewritten == context.text:
            return None
        return rewritten


class MessageProcessor:
    """Rewrites a message and writes the result back through the editor."""

    def __init__(self, rewriter: MessageRewriter, editor: MessageEditorPort) -> None:
        self._rewriter = rewriter
        self._editor = editor

    async def handle(self, context: MessageContext) -> bool:
        """Process one message; return True when it was edited."""

        # Lookups block on the network, so keep them off the event loop.
        rewritten = await asyncio.to_thread(self._rewriter.rewrite, context)
        if rewritten is None:
            return False
        await self._editor.edit(context, rewritten)
        LOGGER.info("Rewrote message %s in %s", context.message_id, context.team)
        return True
