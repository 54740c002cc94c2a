"""Application entry point for autolink."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Iterable, Optional

from art import tprint
from dotenv import load_dotenv
from telethon import events

import settings
from adapters.http_fetcher import UrllibFetcher
from adapters.link_formatting import format_links_markdown
from adapters.telegram_editor import TelegramMessageEditor
from adapters.telegram_mapper import build_context
from client import authorize, build_client
from core.config import AutolinkConfig, ConfigStore, build_config
from core.processor import MessageProcessor, MessageRewriter
from core.titles import TitleResolver

NAME = "AUTOLINK"
FONT = "tarty-1"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _MaskingFormatter(logging.Formatter):
    """Formatter that masks credential values anywhere in the output, tracebacks included."""

    def __init__(self, secrets: Iterable[str] = (), **kwargs) -> None:
        super().__init__(**kwargs)
        # Longest first so a secret that contains another is masked whole.
        self._secrets = sorted({secret for secret in secrets if secret}, key=len, reverse=True)

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        for secret in self._secrets:
            text = text.replace(secret, "***")
        return text


def _secret_values(config: dict) -> list[str]:
    """Values of the environment variables listed under ``redact.patterns``."""

    redact = (config or {}).get("redact") or {}
    if not redact.get("enabled", False):
        return []
    return [os.environ[name] for name in redact.get("patterns", []) if os.environ.get(name)]


def _log_file_handler(file_cfg: dict) -> RotatingFileHandler:
    path = file_cfg.get("path") or "logs/autolink.log"
    if not os.path.isabs(path):
        path = os.path.join(settings.PROJECT_ROOT, path)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    return RotatingFileHandler(
        path,
        maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
        backupCount=int(file_cfg.get("backup_count", 5)),
        encoding="utf-8",
    )


def _log_handlers(config: dict) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []
    if config.get("console", True):
        handlers.append(logging.StreamHandler())
    file_cfg = config.get("file") or {}
    if file_cfg.get("enabled", False):
        handlers.append(_log_file_handler(file_cfg))

    formatter = _MaskingFormatter(_secret_values(config), fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    # Redacted values live in .env; make sure it is loaded before reading them.
    load_dotenv()
    handlers = _log_handlers(config)
    if handlers:
        level = getattr(logging, str(config.get("level", "INFO")).upper(), logging.INFO)
        logging.basicConfig(level=level, handlers=handlers)


class _ConfigReloader:
    """Rebuild the config snapshot when the config file changes on disk."""

    def __init__(self, store: ConfigStore) -> None:
        self._store = store
        self._mtime = settings.config_mtime()

    def refresh(self) -> None:
        try:
            mtime = settings.config_mtime()
            if mtime == self._mtime:
                return
            raw = settings.load_json_config()
        except (OSError, ValueError):
            logging.getLogger(__name__).exception("Config reload failed, keeping the current links")
            return
        self._mtime = mtime
        self._store.install(build_config(raw))


def _build_store() -> ConfigStore:
    config = build_config(settings.CONFIG)
    for error in config.compile_errors:
        logging.getLogger(__name__).error("Link disabled: %s", error)
    return ConfigStore(config)


def _build_rewriter(store: ConfigStore) -> MessageRewriter:
    lookup = store.current.lookup
    fetcher = UrllibFetcher(timeout=lookup.timeout_seconds, max_bytes=lookup.max_bytes)
    return MessageRewriter(store, TitleResolver(fetcher, cache_size=lookup.cache_size))


def _run() -> None:
    _print_banner()
    _configure_logging()
    logger = logging.getLogger(__name__)

    logger.info("Starting autolink")

    store = _build_store()
    reloader = _ConfigReloader(store)
    logger.info("%s links are loaded", len(store.current.all_links))

    client = build_client()
    client.loop.run_until_complete(client.connect())
    client.loop.run_until_complete(authorize(client))

    editor = TelegramMessageEditor(client)
    processor = MessageProcessor(_build_rewriter(store), editor)

    async def _handle(message, edited: bool) -> None:
        try:
            context = build_context(message)
            # Our own edits come back as MessageEdited events.
            if editor.consume_own_edit(context):
                return
            await asyncio.to_thread(reloader.refresh)
            if edited and not store.current.enable_on_update:
                return
            await processor.handle(context)
        except Exception:
            logger.exception("Error while rewriting message")

    # Only the user's own messages can be edited, so only those are watched.
    @client.on(events.NewMessage(outgoing=True))
    async def on_new_message(event) -> None:
        await _handle(event.message, edited=False)

    @client.on(events.MessageEdited(outgoing=True))
    async def on_message_edited(event) -> None:
        await _handle(event.message, edited=True)

    client.start()
    logger.info("Client connected. Rewriting outgoing messages...")
    client.run_until_disconnected()


def _login() -> None:
    _print_banner()
    _configure_logging()
    client = build_client()

    async def _run_login() -> None:
        await client.connect()
        await authorize(client)
        await client.disconnect()

    client.loop.run_until_complete(_run_login())


def _list(config: AutolinkConfig) -> None:
    print(format_links_markdown(config.sorted().all_links), end="")


def _test(store: ConfigStore, message: str) -> None:
    print(_build_rewriter(store).rewrite_text(message))


def _export(config: AutolinkConfig) -> None:
    print(json.dumps(config.to_config(), indent=2))


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="autolink")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Rewrite outgoing Telegram messages")
    subparsers.add_parser("login", help="Authorize the Telegram session")
    subparsers.add_parser("list", help="Print the configured links as markdown")
    test_parser = subparsers.add_parser("test", help="Print a message rewritten by every link")
    test_parser.add_argument("message", nargs="+")
    subparsers.add_parser("export", help="Print the links in their persisted form")

    args = parser.parse_args(argv)
    if args.command == "login":
        _login()
        return
    if args.command in {"list", "test", "export"}:
        _configure_logging()
        store = _build_store()
        if args.command == "list":
            _list(store.current)
        elif args.command == "test":
            _test(store, " ".join(args.message))
        else:
            _export(store.current)
        return
    _run()


if __name__ == "__main__":
    main()
