"""Link compilation and message replacement (core domain).

An ``Autolink`` is the user-authored description of one pattern. ``compile()``
weaves boundary handling into the pattern and returns a copy carrying a
``Matcher``; ``replace()`` applies that matcher to a message.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace as dataclass_replace
import logging
import re
from typing import Any, Optional, Sequence

from core.errors import AutolinkCompileError, LookupFailure
from core.ports import TitleResolverPort
from core.templates import expand, substitute_all

LOGGER = logging.getLogger(__name__)

PREFIX_GROUP = "AutolinkNonWordPrefix"
SUFFIX_GROUP = "AutolinkNonWordSuffix"

_NON_WORD_PREFIX = rf"(?P<{PREFIX_GROUP}>(^|\s))"
_NON_WORD_SUFFIX = rf"(?P<{SUFFIX_GROUP}>\Z|[\s\.\!\?\,\)])"


@dataclass(frozen=True)
class Matcher:
    """Compiled state derived from an Autolink. Never persisted."""

    regex: re.Pattern
    template: str
    lookup_url_template: str
    can_replace_all: bool
    boundary_groups: tuple[str, ...] = ()


@dataclass(frozen=True)
class Autolink:
    """A pattern to autolink."""

    name: str = ""
    disabled: bool = False
    pattern: str = ""
    template: str = ""
    lookup_url_template: str = ""
    scope: tuple[str, ...] = ()
    word_match: bool = False
    disable_non_word_prefix: bool = False
    disable_non_word_suffix: bool = False
    matcher: Optional[Matcher] = field(default=None, compare=False, repr=False)

    def display_name(self) -> str:
        if self.name:
            return self.name
        return self.pattern

    @property
    def is_compiled(self) -> bool:
        return self.matcher is not None

    def compile(self) -> "Autolink":
        """Return a copy of this link carrying a compiled matcher.

        Disabled links and links without a pattern or template compile to an
        inert copy. Raises AutolinkCompileError when the effective pattern is
        not a valid regular expression.
        """

        if self.disabled or not self.pattern or not self.template:
            return dataclass_replace(self, matcher=None)

        # `\b` does not consume characters, so every match can be handled in a
        # single substitution pass. Captured whitespace/punctuation can be
        # shared by neighbouring matches and forces one match at a time.
        can_replace_all = False
        pattern = self.pattern
        template = self.template
        boundary_groups: list[str] = []

        if not self.disable_non_word_prefix:
            if self.word_match:
                pattern = r"\b" + pattern
                can_replace_all = True
            else:
                pattern = _NON_WORD_PREFIX + pattern
                template = "${" + PREFIX_GROUP + "}" + template
                boundary_groups.append(PREFIX_GROUP)
        if not self.disable_non_word_suffix:
            if self.word_match:
                pattern += r"\b"
                can_replace_all = True
            else:
                pattern += _NON_WORD_SUFFIX
                template += "${" + SUFFIX_GROUP + "}"
                boundary_groups.append(SUFFIX_GROUP)

        try:
            regex = re.compile(pattern)
        except re.error as err:
            reason = str(err)
            for group in boundary_groups:
                if f"(?P<{group}>" in self.pattern:
                    reason = f"group name {group} is reserved"
            raise AutolinkCompileError(self.pattern, reason) from err

        matcher = Matcher(
            regex=regex,
            template=template,
            lookup_url_template=self.lookup_url_template,
            can_replace_all=can_replace_all,
            boundary_groups=tuple(boundary_groups),
        )
        return dataclass_replace(self, matcher=matcher)

    def replace(
        self,
        message: str,
        resolver: Optional[TitleResolverPort] = None,
        *,
        collapse_batch: bool = False,
    ) -> str:
        """Substitute every match in ``message``.

        With a lookup URL template each match becomes ``[title](url)``, the
        title coming from ``resolver``. Without one the match is rewritten with
        the template (e.g. masking a card number). A match whose lookup fails
        is left as it was.

        ``collapse_batch`` keeps the historical word-match behavior where all
        matches of a message are folded into one lookup URL and the whole
        message becomes a single link.
        """

        matcher = self.matcher
        if matcher is None:
            return message
        if matcher.lookup_url_template and resolver is None:
            raise ValueError(f"link {self.display_name()!r} needs a title resolver")

        if matcher.can_replace_all:
            if collapse_batch and matcher.lookup_url_template:
                return self._replace_collapsed(message, resolver)
            return matcher.regex.sub(lambda match: self._render(match, resolver), message)

        # Replace one at a time. Each search runs on the unprocessed remainder
        # so `^` in the prefix group anchors right after the previous match.
        out: list[str] = []
        cursor = 0
        while cursor < len(message):
            remaining = message[cursor:]
            match = matcher.regex.search(remaining)
            if match is None:
                break
            start, end = match.span()
            out.append(remaining[:start])
            out.append(self._render(match, resolver))
            if end == start:
                if end == len(remaining):
                    cursor = len(message)
                    break
                out.append(remaining[end])
                end += 1
            cursor += end
        out.append(message[cursor:])
        return "".join(out)

    def _render(self, match: re.Match, resolver: Optional[TitleResolverPort]) -> str:
        matcher = self.matcher
        if not matcher.lookup_url_template:
            return expand(matcher.template, match)

        word = match.group(0).strip()
        lookup_url = substitute_all(matcher.regex, matcher.lookup_url_template, word)
        try:
            title = resolver.resolve(lookup_url)
        except LookupFailure as err:
            LOGGER.warning("Leaving %r unlinked (%s): %s", word, self.display_name(), err)
            return match.group(0)

        prefix = _boundary(matcher, match, PREFIX_GROUP)
        suffix = _boundary(matcher, match, SUFFIX_GROUP)
        return f"{prefix}[{_link_text(title)}]({lookup_url}){suffix}"

    def _replace_collapsed(self, message: str, resolver: TitleResolverPort) -> str:
        matcher = self.matcher
        if matcher.regex.search(message) is None:
            return message
        lookup_url = substitute_all(matcher.regex, matcher.lookup_url_template, message)
        try:
            title = resolver.resolve(lookup_url)
        except LookupFailure as err:
            LOGGER.warning("Leaving message unlinked (%s): %s", self.display_name(), err)
            return message
        return f"[{_link_text(title)}]({lookup_url})"

    def to_config(self) -> dict[str, Any]:
        """Return the link as a flat map of primitives and string lists."""

        return {
            "Name": self.name,
            "Disabled": self.disabled,
            "Pattern": self.pattern,
            "Template": self.template,
            "LookupUrlTemplate": self.lookup_url_template,
            "Scope": list(self.scope),
            "WordMatch": self.word_match,
            "DisableNonWordPrefix": self.disable_non_word_prefix,
            "DisableNonWordSuffix": self.disable_non_word_suffix,
        }

    @classmethod
    def from_config(cls, raw: dict[str, Any]) -> "Autolink":
        """Build an (uncompiled) link from its persisted map form."""

        scope: Sequence[str] = raw.get("Scope") or ()
        return cls(
            name=str(raw.get("Name") or ""),
            disabled=bool(raw.get("Disabled", False)),
            pattern=str(raw.get("Pattern") or ""),
            template=str(raw.get("Template") or ""),
            lookup_url_template=str(raw.get("LookupUrlTemplate") or ""),
            scope=tuple(str(entry) for entry in scope),
            word_match=bool(raw.get("WordMatch", False)),
            disable_non_word_prefix=bool(raw.get("DisableNonWordPrefix", False)),
            disable_non_word_suffix=bool(raw.get("DisableNonWordSuffix", False)),
        )


def _boundary(matcher: Matcher, match: re.Match, name: str) -> str:
    # Only groups woven in by compile(); a user group of the same name in a
    # word-match pattern is part of the match, not a boundary.
    if name not in matcher.boundary_groups:
        return ""
    return match.group(name) or ""


def _link_text(title: str) -> str:
    """Fold a page title onto one line and escape the brackets of link text."""

    text = " ".join(title.split())
    return text.replace("[", r"\[").replace("]", r"\]")


def compile_links(links: Sequence[Autolink]) -> tuple[list[Autolink], list[AutolinkCompileError]]:
    """Compile a rule set.

    A link that fails to compile is logged and kept in its inert form so the
    rest of the set still works.
    """

    compiled: list[Autolink] = []
    errors: list[AutolinkCompileError] = []
    for link in links:
        try:
            compiled.append(link.compile())
        except AutolinkCompileError as err:
            LOGGER.error("Error creating autolinker %s: %s", link.display_name(), err)
            errors.append(err)
            compiled.append(dataclass_replace(link, matcher=None))
    return compiled, errors
