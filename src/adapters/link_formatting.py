"""Markdown rendering of links for listings.

Keeping formatting here prevents drift between the CLI and any chat-facing
listing and keeps the output consistent.
"""

from __future__ import annotations

from typing import Iterable

from core.autolink import Autolink


def format_link_markdown(link: Autolink, index: int = 0) -> str:
    """Render a link as a markdown list element.

    ``index`` is shown as a prefix when greater than zero.
    """

    text = "- "
    if index > 0:
        text += f"{index}: "
    if link.name:
        if link.disabled:
            text += f"~~{link.name}~~"
        else:
            text += link.name
    if link.disabled:
        text += " **Disabled**"
    text += "\n"

    text += f"  - Pattern: `{link.pattern}`\n"
    text += f"  - Template: `{link.template}`\n"

    if link.lookup_url_template:
        text += f"  - LookupUrlTemplate: `{link.lookup_url_template}`\n"
    if link.disable_non_word_prefix:
        text += "  - DisableNonWordPrefix: `true`\n"
    if link.disable_non_word_suffix:
        text += "  - DisableNonWordSuffix: `true`\n"
    if link.scope:
        text += f"  - Scope: `{', '.join(link.scope)}`\n"
    if link.word_match:
        text += "  - WordMatch: `true`\n"
    return text


def format_links_markdown(links: Iterable[Autolink]) -> str:
    """Render a numbered markdown list of links."""

    rendered = [format_link_markdown(link, index) for index, link in enumerate(links, start=1)]
    if not rendered:
        return "No links configured.\n"
    return "".join(rendered)
