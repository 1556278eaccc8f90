"""
Block parser for article HTML.

Splits article HTML into an ordered sequence of StructuralBlocks
(headings, paragraphs, lists with their items). Open and close tags are
kept exactly as written so the reconstructor can re-emit attributes
byte-for-byte; this is why a string scanner is used here rather than a
DOM parser, which would re-serialize tags.

Malformed input never aborts parsing: a block whose closing tag cannot be
found is skipped and its text is left in the inter-block gap.
"""

import logging
import re
from typing import Iterator, Optional

from .models import StructuralBlock

logger = logging.getLogger(__name__)


# Top-level block openers. The lookahead keeps <pre>, <param>, <output> out.
BLOCK_OPEN_PATTERN = re.compile(
    r"<(h[1-6]|p|ul|ol)(?=[\s>/])[^>]*>",
    re.IGNORECASE,
)

LIST_ITEM_OPEN_PATTERN = re.compile(r"<li(?=[\s>/])[^>]*>", re.IGNORECASE)


def _tag_pattern(tag: str) -> re.Pattern:
    """Opening or closing tag of one element name."""
    return re.compile(rf"<(/?){tag}(?=[\s>/])[^>]*>", re.IGNORECASE)


def find_matching_close(html: str, tag: str, pos: int) -> Optional[tuple[int, int]]:
    """
    Find the closing tag matching an already-consumed opening tag.

    Nested opens of the same tag raise the depth, closes lower it; the
    match is the close that brings depth back to zero.

    Args:
        html: Source HTML.
        tag: Element name, e.g. "p" or "li".
        pos: Offset just past the opening tag.

    Returns:
        (start, end) of the closing tag, or None if unterminated.
    """
    depth = 1
    for match in _tag_pattern(tag).finditer(html, pos):
        if match.group(1):
            depth -= 1
            if depth == 0:
                return match.start(), match.end()
        elif not match.group(0).endswith("/>"):
            depth += 1
    return None


def _parse_list_items(html: str, start: int, end: int) -> list[StructuralBlock]:
    """Parse <li> children between start and end (container content range)."""
    items: list[StructuralBlock] = []
    pos = start

    while pos < end:
        open_match = LIST_ITEM_OPEN_PATTERN.search(html, pos, end)
        if not open_match:
            break

        close = find_matching_close(html[:end], "li", open_match.end())
        if close is None:
            logger.debug(f"Unterminated <li> at offset {open_match.start()}, skipping")
            pos = open_match.end()
            continue

        items.append(StructuralBlock(
            tag="li",
            original_open_tag=open_match.group(0),
            raw_inner_content=html[open_match.end():close[0]],
            original_close_tag=html[close[0]:close[1]],
            start=open_match.start(),
            end=close[1],
        ))
        pos = close[1]

    return items


def parse_blocks(html: str) -> list[StructuralBlock]:
    """
    Parse article HTML into top-level structural blocks.

    Args:
        html: Article body or fragment.

    Returns:
        Blocks in document order. Unterminated blocks are dropped.
    """
    blocks: list[StructuralBlock] = []
    if not html:
        return blocks

    pos = 0
    while True:
        open_match = BLOCK_OPEN_PATTERN.search(html, pos)
        if not open_match:
            break

        tag = open_match.group(1).lower()
        if open_match.group(0).endswith("/>"):
            # Self-closing <p/> has no content to humanize
            pos = open_match.end()
            continue

        close = find_matching_close(html, tag, open_match.end())
        if close is None:
            logger.debug(f"Unterminated <{tag}> at offset {open_match.start()}, skipping")
            pos = open_match.end()
            continue

        block = StructuralBlock(
            tag=tag,
            original_open_tag=open_match.group(0),
            raw_inner_content=html[open_match.end():close[0]],
            original_close_tag=html[close[0]:close[1]],
            start=open_match.start(),
            end=close[1],
        )
        if block.is_list_container:
            block.list_items = _parse_list_items(html, open_match.end(), close[0])

        blocks.append(block)
        pos = close[1]

    logger.debug(f"Parsed {len(blocks)} top-level blocks")
    return blocks


def flatten_blocks(blocks: list[StructuralBlock]) -> Iterator[StructuralBlock]:
    """Yield blocks in marker order: each list container, then its items."""
    for block in blocks:
        yield block
        if block.is_list_container:
            yield from block.list_items
