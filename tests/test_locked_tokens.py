"""Tests for anchor and frozen phrase token protection."""

from collections import Counter

import pytest

from anchor_humanizer.locked_tokens import (
    TokenCounter,
    count_tokens,
    extract_anchors,
    protect_anchors,
    protect_block,
    protect_frozen_phrases,
    restore_chunks,
    tokens_intact,
    validate_anchors_preserved,
)
from anchor_humanizer.models import ChunkKind


class TestTokenCounter:
    """Tests for per-invocation token numbering."""

    def test_sequences_are_independent(self):
        """Anchor and phrase numbers increase separately."""
        counter = TokenCounter()
        assert counter.next_anchor() == "[[ANCHOR_1]]"
        assert counter.next_phrase() == "[[PHRASE_1]]"
        assert counter.next_anchor() == "[[ANCHOR_2]]"

    def test_counters_do_not_share_state(self):
        """Two runs never see each other's numbers."""
        first, second = TokenCounter(), TokenCounter()
        first.next_anchor()
        first.next_anchor()
        assert second.next_anchor() == "[[ANCHOR_1]]"


class TestProtectAnchors:
    """Tests for anchor tokenization."""

    def test_replaces_full_anchor_element(self, anchor_html):
        """The whole element, attributes included, becomes one chunk."""
        text = f"See {anchor_html} today."
        protected, chunks = protect_anchors(text, TokenCounter())

        assert protected == "See [[ANCHOR_1]] today."
        assert len(chunks) == 1
        assert chunks[0].original_markup == anchor_html
        assert chunks[0].kind is ChunkKind.ANCHOR

    def test_multiple_anchors_numbered_in_order(self):
        """Anchors are numbered left to right."""
        text = '<a href="/a">A</a> and <A HREF="/b">B</A>'
        protected, chunks = protect_anchors(text, TokenCounter())

        assert protected == "[[ANCHOR_1]] and [[ANCHOR_2]]"
        assert [c.original_markup for c in chunks] == ['<a href="/a">A</a>', '<A HREF="/b">B</A>']

    def test_other_tags_starting_with_a_untouched(self):
        """<abbr> and <article> are not anchors."""
        text = "<abbr>SEO</abbr> in an <article>x</article>"
        protected, chunks = protect_anchors(text, TokenCounter())

        assert protected == text
        assert chunks == []

    def test_block_index_recorded(self):
        """Chunks remember the block they came from."""
        _, chunks = protect_anchors('<a href="/x">x</a>', TokenCounter(), block_index=4)
        assert chunks[0].block_index == 4


class TestProtectFrozenPhrases:
    """Tests for frozen phrase tokenization."""

    def test_case_insensitive_keeps_source_spelling(self):
        """Matches ignore case; the chunk keeps the text as written."""
        protected, chunks = protect_frozen_phrases(
            "We love ACME tools.", ["Acme Tools"], TokenCounter()
        )
        assert protected == "We love [[PHRASE_1]]."
        assert chunks[0].original_markup == "ACME tools"
        assert chunks[0].kind is ChunkKind.PHRASE

    def test_every_occurrence_tokenized(self):
        """Each occurrence gets its own token."""
        protected, chunks = protect_frozen_phrases(
            "Acme here, Acme there.", ["Acme"], TokenCounter()
        )
        assert protected == "[[PHRASE_1]] here, [[PHRASE_2]] there."
        assert len(chunks) == 2

    @pytest.mark.parametrize("phrase", ["", "   ", "\t\n"])
    def test_blank_phrases_ignored(self, phrase):
        """Empty and whitespace-only phrases never match."""
        protected, chunks = protect_frozen_phrases("Some text here", [phrase], TokenCounter())
        assert protected == "Some text here"
        assert chunks == []

    def test_phrase_inside_anchor_not_tokenized(self, anchor_html):
        """A phrase inside anchor text is covered by the anchor chunk alone."""
        protected, chunks = protect_block(
            f"Try {anchor_html} now.", ["Acme Tools"], TokenCounter()
        )
        assert protected == "Try [[ANCHOR_1]] now."
        assert len(chunks) == 1
        assert chunks[0].is_anchor

    def test_phrase_never_matches_inside_tokens(self):
        """A phrase resembling token text does not corrupt existing tokens."""
        protected, chunks = protect_frozen_phrases(
            "[[ANCHOR_1]] and anchor", ["anchor"], TokenCounter()
        )
        assert protected == "[[ANCHOR_1]] and [[PHRASE_1]]"
        assert len(chunks) == 1

    def test_phrase_never_matches_inside_tags(self):
        """Attribute values are not text."""
        protected, chunks = protect_frozen_phrases(
            '<span title="Acme">Acme</span>', ["Acme"], TokenCounter()
        )
        assert protected == '<span title="Acme">[[PHRASE_1]]</span>'
        assert len(chunks) == 1


class TestRestoreChunks:
    """Tests for restoring tokens to original markup."""

    def test_round_trip(self, anchor_html):
        """Restoring right after protecting yields the input."""
        original = f"<strong>Acme Tools</strong> sells via {anchor_html}."
        protected, chunks = protect_block(original, ["Acme Tools"], TokenCounter())
        assert restore_chunks(protected, chunks) == original

    def test_ten_restored_before_one(self):
        """[[ANCHOR_1]] never eats the prefix of [[ANCHOR_10]]."""
        counter = TokenCounter()
        text = " ".join(f'<a href="/{i}">{i}</a>' for i in range(1, 11))
        protected, chunks = protect_anchors(text, counter)

        assert "[[ANCHOR_10]]" in protected
        assert restore_chunks(protected, chunks) == text

    def test_lowercased_tokens_restored(self):
        """Rewriters sometimes change token case."""
        protected, chunks = protect_anchors('<a href="/x">x</a>', TokenCounter())
        assert restore_chunks(protected.lower(), chunks) == '<a href="/x">x</a>'

    def test_zero_padded_tokens_restored(self, anchor_html):
        """Any token count_tokens accepts is also restored."""
        protected, chunks = protect_block(
            f"Try Acme Tools or {anchor_html}.", ["Acme Tools"], TokenCounter()
        )
        assert protected == "Try [[PHRASE_1]] or [[ANCHOR_1]]."

        rewritten = "Go with [[PHRASE_01]] or [[anchor_001]]."
        assert tokens_intact(rewritten, chunks)
        assert restore_chunks(rewritten, chunks) == f"Go with Acme Tools or {anchor_html}."

    def test_unknown_tokens_left_alone(self):
        """Tokens without a chunk are not touched."""
        _, chunks = protect_anchors('<a href="/x">x</a>', TokenCounter())
        assert restore_chunks("[[ANCHOR_1]] [[ANCHOR_2]]", chunks) == '<a href="/x">x</a> [[ANCHOR_2]]'

    def test_backslashes_in_markup_kept_literally(self):
        """Markup is inserted verbatim, never as a regex template."""
        markup = r'<a href="/x\1">x\g<0></a>'
        protected, chunks = protect_anchors(markup, TokenCounter())
        assert restore_chunks(protected, chunks) == markup


class TestTokenCounting:
    """Tests for exactly-once token checks."""

    def test_count_tokens_normalizes_case(self):
        """Tokens are counted in canonical spelling."""
        counts = count_tokens("[[anchor_1]] [[ANCHOR_1]] [[Phrase_2]]")
        assert counts == Counter({"[[ANCHOR_1]]": 2, "[[PHRASE_2]]": 1})

    def test_tokens_intact(self):
        """Own tokens once, nothing else."""
        _, chunks = protect_anchors('<a href="/x">x</a>', TokenCounter())
        assert tokens_intact("Read [[ANCHOR_1]].", chunks)
        assert not tokens_intact("Read this.", chunks)
        assert not tokens_intact("[[ANCHOR_1]] [[ANCHOR_1]]", chunks)
        assert not tokens_intact("[[ANCHOR_1]] [[ANCHOR_2]]", chunks)


class TestAnchorValidation:
    """Tests for BeautifulSoup anchor comparison."""

    def test_extract_anchors(self, anchor_html):
        """Anchors come back as (href, text)."""
        assert extract_anchors(f"<p>{anchor_html}</p>") == [
            ("https://acme.example/tools", "Acme Tools")
        ]

    def test_identical_anchors_pass(self, anchor_html):
        """Same anchors in different prose is fine."""
        assert validate_anchors_preserved(
            f"<p>Old {anchor_html}</p>", f"<p>New words {anchor_html}</p>"
        ) == []

    def test_lost_anchor_reported(self, anchor_html):
        """A missing anchor is a problem."""
        problems = validate_anchors_preserved(f"<p>{anchor_html}</p>", "<p>Acme Tools</p>")
        assert problems == [("https://acme.example/tools", "Acme Tools")]

    def test_duplicated_anchor_reported(self, anchor_html):
        """Two copies where there was one is a problem."""
        problems = validate_anchors_preserved(
            f"<p>{anchor_html}</p>", f"<p>{anchor_html} {anchor_html}</p>"
        )
        assert len(problems) == 1
