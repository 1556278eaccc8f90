# -*- coding: utf-8 -*-
"""
Locked Token Protection for anchors and frozen phrases.

This module protects the monetized anchor link and brand/keyword phrases
while article text passes through an external humanizing rewrite.

The Problem:
- Rewriters paraphrase brand names ("Acme Tools" -> "the Acme toolkit")
- Anchor elements get their text reworded, their href dropped, or vanish
- Any broken or missing backlink in published content is a hard failure

The Solution:
1. BEFORE the rewrite: replace each <a>...</a> with [[ANCHOR_n]] and each
   frozen phrase occurrence with [[PHRASE_m]]
2. DURING the rewrite: tokens are opaque and should be copied verbatim
3. AFTER the rewrite: restore original markup for every token, checking
   each one comes back exactly once

Usage:
    counter = TokenCounter()
    protected, chunks = protect_block(inner_html, ["Acme Tools"], counter)
    # ... rewrite protected text ...
    final = restore_chunks(rewritten, chunks)
"""

import re
from collections import Counter
from dataclasses import dataclass
from typing import Iterable

from bs4 import BeautifulSoup

from .models import ChunkKind, ProtectedChunk


# =============================================================================
# PATTERNS
# =============================================================================
# Anchors are assumed non-nested in generated content: the lazy body match
# stops at the first closing tag.

ANCHOR_PATTERN = re.compile(r"<a\b[^>]*>.*?</a\s*>", re.IGNORECASE | re.DOTALL)

# Any token this module can emit, in any letter case the rewriter returns
TOKEN_PATTERN = re.compile(r"\[\[(ANCHOR|PHRASE)_(\d+)\]\]", re.IGNORECASE)

# Spans phrase matching must never look inside: markup and existing tokens
_OPAQUE_SPAN = re.compile(r"(<[^>]*>|\[\[(?:ANCHOR|PHRASE)_\d+\]\])", re.IGNORECASE)


@dataclass
class TokenCounter:
    """
    Per-invocation token numbering.

    One counter is shared by every block of a single pipeline run so
    tokens are unique across the whole document, and never shared between
    runs.
    """
    anchors: int = 0
    phrases: int = 0

    def next_anchor(self) -> str:
        self.anchors += 1
        return f"[[ANCHOR_{self.anchors}]]"

    def next_phrase(self) -> str:
        self.phrases += 1
        return f"[[PHRASE_{self.phrases}]]"


def normalize_token(kind: str, number: str) -> str:
    """Canonical spelling of a token, whatever case the rewriter used."""
    return f"[[{kind.upper()}_{int(number)}]]"


def protect_anchors(
    text: str,
    counter: TokenCounter,
    block_index: int = -1,
) -> tuple[str, list[ProtectedChunk]]:
    """
    Replace every anchor element with an [[ANCHOR_n]] token.

    Args:
        text: HTML fragment (usually one block's inner content).
        counter: Per-invocation counter.
        block_index: Flattened index of the block the text belongs to.

    Returns:
        Tuple of (protected_text, anchor_chunks).
    """
    chunks: list[ProtectedChunk] = []

    def _replace(match: re.Match) -> str:
        token = counter.next_anchor()
        chunks.append(ProtectedChunk(
            token=token,
            original_markup=match.group(0),
            kind=ChunkKind.ANCHOR,
            block_index=block_index,
        ))
        return token

    return ANCHOR_PATTERN.sub(_replace, text), chunks


def protect_frozen_phrases(
    text: str,
    frozen_phrases: Iterable[str],
    counter: TokenCounter,
    block_index: int = -1,
) -> tuple[str, list[ProtectedChunk]]:
    """
    Replace frozen phrase occurrences with [[PHRASE_m]] tokens.

    Matching is case-insensitive, left-to-right and non-overlapping, one
    pass per phrase. Markup and tokens already in the text are skipped, so
    a phrase inside a protected anchor is covered by the anchor chunk alone.

    Args:
        text: Text with anchors already tokenized.
        frozen_phrases: Phrases to protect; blank entries are ignored.
        counter: Per-invocation counter.
        block_index: Flattened index of the block the text belongs to.

    Returns:
        Tuple of (protected_text, phrase_chunks).
    """
    chunks: list[ProtectedChunk] = []
    result = text

    for phrase in frozen_phrases:
        if not phrase or not phrase.strip():
            continue

        phrase_regex = re.compile(re.escape(phrase.strip()), re.IGNORECASE)

        def _replace(match: re.Match) -> str:
            token = counter.next_phrase()
            chunks.append(ProtectedChunk(
                token=token,
                original_markup=match.group(0),
                kind=ChunkKind.PHRASE,
                block_index=block_index,
            ))
            return token

        parts = _OPAQUE_SPAN.split(result)
        # Odd indices are the captured opaque spans
        for i in range(0, len(parts), 2):
            parts[i] = phrase_regex.sub(_replace, parts[i])
        result = "".join(parts)

    return result, chunks


def protect_block(
    content: str,
    frozen_phrases: Iterable[str],
    counter: TokenCounter,
    block_index: int = -1,
) -> tuple[str, list[ProtectedChunk]]:
    """
    Protect anchors, then frozen phrases, in one block's content.

    Returns:
        Tuple of (protected_text, chunks) with anchor chunks first.
    """
    protected, anchor_chunks = protect_anchors(content, counter, block_index)
    protected, phrase_chunks = protect_frozen_phrases(
        protected, frozen_phrases, counter, block_index
    )
    return protected, anchor_chunks + phrase_chunks


def restore_chunks(text: str, chunks: Iterable[ProtectedChunk]) -> str:
    """
    Restore original markup for every token in text.

    Tokens are matched whole and looked up in canonical spelling, the same
    rule count_tokens uses, so [[anchor_01]] restores [[ANCHOR_1]] and
    [[ANCHOR_1]] can never eat the prefix of [[ANCHOR_10]]. Tokens with no
    chunk are left as they are.

    Args:
        text: Text containing tokens.
        chunks: Chunks whose tokens should be restored.

    Returns:
        Text with original markup restored.
    """
    if not text:
        return text

    markup_by_token = {chunk.token: chunk.original_markup for chunk in chunks}

    def _restore(match: re.Match) -> str:
        token = normalize_token(match.group(1), match.group(2))
        return markup_by_token.get(token, match.group(0))

    return TOKEN_PATTERN.sub(_restore, text)


def count_tokens(text: str) -> Counter:
    """Multiset of canonical tokens found in text."""
    return Counter(
        normalize_token(m.group(1), m.group(2)) for m in TOKEN_PATTERN.finditer(text or "")
    )


def tokens_intact(text: str, chunks: list[ProtectedChunk]) -> bool:
    """
    Check that text holds each chunk token exactly once and nothing else.

    A missing token means lost markup, an extra one means a duplicated or
    foreign anchor; both make the text unusable.
    """
    expected = Counter(chunk.token for chunk in chunks)
    return count_tokens(text) == expected


# =============================================================================
# VALIDATION FUNCTIONS
# =============================================================================

def extract_anchors(html: str) -> list[tuple[str, str]]:
    """
    List (href, text) for every anchor element in html.

    Args:
        html: HTML string.

    Returns:
        Anchors in document order.
    """
    if not html:
        return []

    soup = BeautifulSoup(html, "html.parser")
    return [(a.get("href") or "", a.get_text()) for a in soup.find_all("a")]


def validate_anchors_preserved(original: str, processed: str) -> list[tuple[str, str]]:
    """
    Check that processed html carries exactly the anchors of original.

    Args:
        original: Source HTML.
        processed: HTML after humanization.

    Returns:
        Anchors whose count differs (lost, duplicated or introduced).
        Empty list means success.
    """
    original_anchors = Counter(extract_anchors(original))
    processed_anchors = Counter(extract_anchors(processed))

    problems = []
    for anchor in original_anchors.keys() | processed_anchors.keys():
        if original_anchors[anchor] != processed_anchors[anchor]:
            problems.append(anchor)

    return sorted(problems)
