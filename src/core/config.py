"""Core configuration dataclasses.

We keep config file parsing outside the core, but these dataclasses define the
shape the core expects. A configuration is an immutable snapshot; changes are
made by building a new one and swapping it into a ConfigStore.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
import logging
import threading
from typing import Any, Optional

from core.autolink import Autolink, compile_links
from core.errors import AutolinkCompileError

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class LookupConfig:
    """Limits for lookup URL fetches."""

    timeout_seconds: float = 10.0
    max_bytes: int = 1024 * 1024
    cache_size: int = 256
    collapse_batch: bool = False


@dataclass(frozen=True)
class AutolinkConfig:
    """A compiled, read-only configuration snapshot."""

    enable_on_update: bool = False
    enable_visa_card: bool = False
    enable_master_card: bool = False
    enable_ssn: bool = False
    links: tuple[Autolink, ...] = ()
    builtin_links: tuple[Autolink, ...] = ()
    lookup: LookupConfig = LookupConfig()
    compile_errors: tuple[AutolinkCompileError, ...] = field(default=(), compare=False)

    @property
    def all_links(self) -> tuple[Autolink, ...]:
        return self.links + self.builtin_links

    def to_config(self) -> dict[str, Any]:
        """Export the user-editable part of the config as primitives.

        Built-in links are regenerated from the Enable* flags on load and are
        not exported.
        """

        return {
            "EnableOnUpdate": self.enable_on_update,
            "EnableVisaCard": self.enable_visa_card,
            "EnableMasterCard": self.enable_master_card,
            "EnableSSN": self.enable_ssn,
            "Links": [link.to_config() for link in self.links],
        }

    def sorted(self) -> "AutolinkConfig":
        """Return a copy with links ordered by display name."""

        return replace(self, links=tuple(sorted(self.links, key=lambda link: link.display_name())))


def builtin_links(enable_visa_card: bool, enable_master_card: bool, enable_ssn: bool) -> list[Autolink]:
    """Masking links for card and social security numbers."""

    return [
        Autolink(
            name="VisaCard",
            pattern=(
                r"(?P<VISA>(?P<part1>4\d{3})[ -]?(?P<part2>\d{4})[ -]?"
                r"(?P<part3>\d{4})[ -]?(?P<LastFour>[0-9]{4}))"
            ),
            template="VISA XXXX-XXXX-XXXX-$LastFour",
            disabled=not enable_visa_card,
        ),
        Autolink(
            name="MasterCard",
            pattern=(
                r"(?P<MasterCard>(?P<part1>5[1-5]\d{2})[ -]?(?P<part2>\d{4})[ -]?"
                r"(?P<part3>\d{4})[ -]?(?P<LastFour>[0-9]{4}))"
            ),
            template="MasterCard XXXX-XXXX-XXXX-$LastFour",
            disabled=not enable_master_card,
        ),
        Autolink(
            name="SSN",
            pattern=r"(?P<SSN>(?P<part1>\d{3})[ -]?(?P<part2>\d{2})[ -]?(?P<LastFour>[0-9]{4}))",
            template="XXX-XX-$LastFour",
            disabled=not enable_ssn,
        ),
    ]


def _build_lookup(raw: dict[str, Any]) -> LookupConfig:
    defaults = LookupConfig()
    return LookupConfig(
        timeout_seconds=float(raw.get("timeout_seconds", defaults.timeout_seconds)),
        max_bytes=int(raw.get("max_bytes", defaults.max_bytes)),
        cache_size=int(raw.get("cache_size", defaults.cache_size)),
        collapse_batch=bool(raw.get("collapse_batch", defaults.collapse_batch)),
    )


def build_config(raw: dict[str, Any]) -> AutolinkConfig:
    """Normalize a raw config dict and compile every link.

    Links that fail to compile are kept inert and their errors recorded, so
    one bad pattern never disables the rest.
    """

    enable_visa_card = bool(raw.get("EnableVisaCard", False))
    enable_master_card = bool(raw.get("EnableMasterCard", False))
    enable_ssn = bool(raw.get("EnableSSN", False))

    user_links = [Autolink.from_config(entry) for entry in raw.get("Links", []) or []]
    links, errors = compile_links(user_links)
    builtins, builtin_errors = compile_links(builtin_links(enable_visa_card, enable_master_card, enable_ssn))

    return AutolinkConfig(
        enable_on_update=bool(raw.get("EnableOnUpdate", False)),
        enable_visa_card=enable_visa_card,
        enable_master_card=enable_master_card,
        enable_ssn=enable_ssn,
        links=tuple(links),
        builtin_links=tuple(builtins),
        lookup=_build_lookup(raw.get("lookup", {}) or {}),
        compile_errors=tuple(errors + builtin_errors),
    )


class ConfigStore:
    """Holds the current configuration snapshot.

    Readers take ``current`` without locking. Writers build the next snapshot
    first and then swap the reference, so a rewrite in progress keeps using
    the snapshot it started with.
    """

    def __init__(self, config: Optional[AutolinkConfig] = None) -> None:
        self._config = config or AutolinkConfig()
        self._write_lock = threading.Lock()

    @property
    def current(self) -> AutolinkConfig:
        return self._config

    def install(self, config: AutolinkConfig) -> AutolinkConfig:
        """Swap in ``config`` and return the snapshot it replaced."""

        with self._write_lock:
            previous = self._config
            self._config = config
        LOGGER.info(
            "Installed config: %s links, %s compile errors",
            len(config.all_links),
            len(config.compile_errors),
        )
        return previous
