from __future__ import annotations

import pytest

from core.autolink import Autolink
from core.config import builtin_links
from core.errors import LookupFetchError


class StubResolver:
    def __init__(self, title: str = "Task 1", failing: "set[str] | None" = None) -> None:
        self.title = title
        self.failing = failing or set()
        self.urls: list[str] = []

    def resolve(self, url: str) -> str:
        self.urls.append(url)
        if url in self.failing:
            raise LookupFetchError(url, "connection refused")
        return self.title


def _lookup_link(**overrides) -> Autolink:
    fields = {
        "name": "task",
        "pattern": r"(?P<task>T\d+)",
        "template": "$task",
        "lookup_url_template": "https://example.test/$task",
    }
    fields.update(overrides)
    return Autolink(**fields).compile()


def test_word_match_replaces_match_and_keeps_text() -> None:
    link = Autolink(
        pattern=r"\bT\d+\b",
        template="$0",
        lookup_url_template="https://example.test/$0",
        word_match=True,
    ).compile()
    resolver = StubResolver()

    result = link.replace("I found T298595 today", resolver)

    assert result == "I found [Task 1](https://example.test/T298595) today"
    assert resolver.urls == ["https://example.test/T298595"]


def test_word_match_replaces_each_match_independently() -> None:
    link = _lookup_link(word_match=True)
    result = link.replace("T1, then T2.", StubResolver(title="t"))
    assert result == "[t](https://example.test/T1), then [t](https://example.test/T2)."


def test_collapsed_batch_mode_folds_message_into_one_link() -> None:
    # Historical behavior: every match is substituted into the lookup template
    # in one pass and the whole message becomes a single link, dropping the
    # surrounding text. Kept behind collapse_batch and documented here.
    link = _lookup_link(word_match=True)
    resolver = StubResolver(title="t")

    result = link.replace("see T1 and T2", resolver, collapse_batch=True)

    expected_url = "see https://example.test/T1 and https://example.test/T2"
    assert result == f"[t]({expected_url})"
    assert resolver.urls == [expected_url]


def test_collapsed_batch_mode_without_match_is_a_no_op() -> None:
    link = _lookup_link(word_match=True)
    resolver = StubResolver()
    assert link.replace("nothing here", resolver, collapse_batch=True) == "nothing here"
    assert resolver.urls == []


def test_sequential_mode_preserves_text_between_matches() -> None:
    link = _lookup_link()
    message = "see T1 T22 now"

    result = link.replace(message, StubResolver(title="t"))

    assert result == "see [t](https://example.test/T1) [t](https://example.test/T22) now"
    link_one = "[t](https://example.test/T1)"
    link_two = "[t](https://example.test/T22)"
    assert len(result) - len(message) == (len(link_one) - len("T1")) + (len(link_two) - len("T22"))


def test_sequential_mode_re_emits_punctuation_boundaries() -> None:
    link = _lookup_link()
    result = link.replace("ask (about T123), or T7!", StubResolver(title="t"))
    assert result == "ask (about [t](https://example.test/T123)), or [t](https://example.test/T7)!"


def test_sequential_mode_requires_a_boundary() -> None:
    link = _lookup_link()
    resolver = StubResolver()
    assert link.replace("xT1 T1x (T1", resolver) == "xT1 T1x (T1"
    assert resolver.urls == []


def test_whole_match_reference_uses_trimmed_text() -> None:
    link = _lookup_link(lookup_url_template="https://example.test/$0")
    result = link.replace("go T5 go", StubResolver(title="t"))
    assert result == "go [t](https://example.test/T5) go"


def test_failed_lookup_leaves_match_and_continues() -> None:
    link = _lookup_link()
    resolver = StubResolver(title="t", failing={"https://example.test/T1"})

    result = link.replace("T1 and T2", resolver)

    assert result == "T1 and [t](https://example.test/T2)"
    assert resolver.urls == ["https://example.test/T1", "https://example.test/T2"]


def test_failed_lookup_in_word_mode_leaves_match() -> None:
    link = _lookup_link(word_match=True)
    resolver = StubResolver(failing={"https://example.test/T1"})
    assert link.replace("T1 is down", resolver) == "T1 is down"


def test_lookup_link_needs_resolver() -> None:
    with pytest.raises(ValueError):
        _lookup_link().replace("T1")


def test_template_masking_without_lookup_url() -> None:
    visa = builtin_links(True, False, False)[0].compile()
    result = visa.replace("card 4111 1111 1111 1234, thanks")
    assert result == "card VISA XXXX-XXXX-XXXX-1234, thanks"


def test_template_masking_handles_adjacent_matches() -> None:
    link = Autolink(pattern=r"(?P<id>\d{3})", template="<$id>").compile()
    assert link.replace("123 456 789") == "<123> <456> <789>"


def test_zero_width_matches_always_advance() -> None:
    link = Autolink(
        pattern=r"(?=x)",
        template="|",
        disable_non_word_prefix=True,
        disable_non_word_suffix=True,
    ).compile()
    assert link.replace("axbx") == "a|xb|x"


def test_message_without_match_is_unchanged() -> None:
    link = _lookup_link()
    resolver = StubResolver()
    assert link.replace("plain text", resolver) == "plain text"
    assert link.replace("", resolver) == ""
    assert resolver.urls == []


def test_user_group_named_like_a_boundary_is_not_reemitted() -> None:
    link = Autolink(
        pattern=r"(?P<AutolinkNonWordPrefix>T)(?P<n>\d+)",
        template="$0",
        lookup_url_template="https://example.test/$n",
        word_match=True,
    ).compile()

    result = link.replace("see T5 now", StubResolver(title="t"))

    assert result == "see [t](https://example.test/5) now"


def test_title_is_folded_and_brackets_escaped() -> None:
    link = _lookup_link(word_match=True)

    result = link.replace("T1", StubResolver(title="a [b]\n  c"))

    assert result == r"[a \[b\] c](https://example.test/T1)"


def test_sequential_mode_escapes_title_between_boundaries() -> None:
    link = _lookup_link()

    result = link.replace("fix T7.", StubResolver(title="]x["))

    assert result == r"fix [\]x\[](https://example.test/T7)."


def test_collapsed_batch_mode_escapes_title() -> None:
    link = _lookup_link(word_match=True)

    result = link.replace("T1", StubResolver(title="[draft]\r\nT1"), collapse_batch=True)

    assert result == r"[\[draft\] T1](https://example.test/T1)"
