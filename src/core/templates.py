"""Substitution templates that reference regex capture groups.

Placeholders:
- ``$name`` / ``${name}``: named group
- ``$0`` .. ``$n``: numbered group (``$0`` is the whole match)
- ``$$``: a literal dollar sign

A bare name is the longest run of ASCII letters, digits and underscores, so
``$1x`` refers to a group called ``1x``. Unknown groups and groups that did not
take part in the match expand to an empty string. A ``$`` that does not start a
valid placeholder is copied as-is.
"""

from __future__ import annotations

import re

_PLACEHOLDER = re.compile(r"\$(?:(?P<dollar>\$)|\{(?P<braced>[A-Za-z0-9_]+)\}|(?P<bare>[A-Za-z0-9_]+))")


def _group_value(match: re.Match, name: str) -> str:
    if name.isdigit():
        index = int(name)
        if index > match.re.groups:
            return ""
        value = match.group(index)
    elif name in match.re.groupindex:
        value = match.group(name)
    else:
        return ""
    return value or ""


def expand(template: str, match: re.Match) -> str:
    """Expand ``template`` against a single match."""

    def _replace(placeholder: re.Match) -> str:
        if placeholder.group("dollar"):
            return "$"
        name = placeholder.group("braced") or placeholder.group("bare")
        return _group_value(match, name)

    return _PLACEHOLDER.sub(_replace, template)


def substitute_all(pattern: re.Pattern, template: str, text: str) -> str:
    """Replace every match of ``pattern`` in ``text`` with the expanded template."""

    return pattern.sub(lambda match: expand(template, match), text)
