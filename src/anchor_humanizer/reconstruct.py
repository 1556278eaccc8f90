"""
Reconstruction of humanized text into the original block structure.

The rewrite service returns plain text that may have kept, dropped, merged
or reordered the [[BLOCK:tag]] markers. This module maps that text back
onto the parsed blocks with an ordered list of strategies:

1. MarkerAlignmentStrategy - match marker segments to blocks by tag
2. ParagraphCountStrategy - zip blank-line paragraphs positionally
3. OriginalContentStrategy - rebuild the source unmodified

Each strategy returns a ReconstructionResult or None; the first result wins.
A segment is only ever used for a block when it carries exactly that
block's tokens, so a lost or duplicated anchor never reaches the output.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional, Sequence

from .locked_tokens import restore_chunks, tokens_intact
from .models import (
    PipelineDocument,
    ReconstructionResult,
    ReconstructionStatus,
    StructuralBlock,
)
from .text_repair import clean_html, fix_html_tag_spacing, remove_excessive_bold

logger = logging.getLogger(__name__)


MARKER_PATTERN = re.compile(r"\[\[BLOCK:([a-z0-9]+)\]\]", re.IGNORECASE)

PARAGRAPH_BREAK = re.compile(r"\n[ \t]*\n")


def block_marker(tag: str) -> str:
    return f"[[BLOCK:{tag}]]"


def split_marked_segments(text: str) -> list[tuple[str, str]]:
    """
    Cut rewritten text into (tag, text) segments at every block marker.

    Text before the first marker has no owner and is dropped.
    """
    matches = list(MARKER_PATTERN.finditer(text or ""))
    if matches and matches[0].start() > 0 and text[:matches[0].start()].strip():
        logger.debug(f"Dropping {matches[0].start()} chars before the first marker")

    segments = []
    for i, match in enumerate(matches):
        end = matches[i + 1].start() if i + 1 < len(matches) else len(text)
        segments.append((match.group(1).lower(), text[match.end():end].strip()))
    return segments


def render_blocks(
    html: str,
    blocks: list[StructuralBlock],
    inner_by_index: dict[int, str],
) -> str:
    """
    Re-emit the source HTML with new inner content per flattened block.

    Everything outside the blocks, and inside list containers outside their
    items, is copied from the source unchanged. Blocks missing from
    inner_by_index keep their original content.
    """
    out: list[str] = []
    pos = 0
    index = 0

    for block in blocks:
        out.append(html[pos:block.start])

        if block.is_list_container:
            index += 1
            out.append(block.original_open_tag)
            cursor = block.content_start
            for item in block.list_items:
                out.append(html[cursor:item.start])
                out.append(item.render(inner_by_index.get(index, item.raw_inner_content)))
                cursor = item.end
                index += 1
            out.append(html[cursor:block.end - len(block.original_close_tag)])
            out.append(block.original_close_tag)
        else:
            out.append(block.render(inner_by_index.get(index, block.raw_inner_content)))
            index += 1

        pos = block.end

    out.append(html[pos:])
    return "".join(out)


@dataclass
class ReconstructionContext:
    """Inputs shared by every strategy."""
    rewritten: str
    document: PipelineDocument
    cleanup: bool = True

    def merged_blocks(self, block_index: int, segment: str) -> int:
        """Number of paragraph breaks in segment beyond the block's own."""
        own = len(PARAGRAPH_BREAK.findall(self.document.segments[block_index]))
        return max(0, len(PARAGRAPH_BREAK.findall(segment.strip())) - own)

    def resolve(self, block_index: int, segment: str) -> Optional[str]:
        """
        Turn one rewritten segment into inner HTML for a block.

        Returns:
            New inner content, or None if the segment cannot be used.
        """
        text = segment.strip()
        if not text:
            return None

        if self.merged_blocks(block_index, text):
            logger.debug(f"Block {block_index}: segment spans several blocks, keeping original")
            return None

        chunks = self.document.chunks_for_block(block_index)
        if not tokens_intact(text, chunks):
            logger.debug(f"Block {block_index}: token mismatch, keeping original")
            return None

        block = self.document.flat_blocks[block_index]
        if text == self.document.segments[block_index]:
            return block.raw_inner_content

        if self.cleanup:
            text = clean_html(text)
            text = fix_html_tag_spacing(text)
            text = remove_excessive_bold(text)
        return restore_chunks(text, chunks)

    def build(
        self,
        inner_by_index: dict[int, str],
        strategy: str,
    ) -> ReconstructionResult:
        """Render the output and tag it with a status."""
        text_blocks = self.document.text_block_indices
        humanized = sum(1 for i in text_blocks if i in inner_by_index)
        fallback = len(text_blocks) - humanized

        if humanized == 0:
            status = ReconstructionStatus.FAILED
        elif fallback:
            status = ReconstructionStatus.DEGRADED
        else:
            status = ReconstructionStatus.SUCCESS

        html = render_blocks(self.document.source_html, self.document.blocks, inner_by_index)
        return ReconstructionResult(
            html=html,
            status=status,
            strategy=strategy,
            humanized_blocks=humanized,
            fallback_blocks=fallback,
        )


class ReconstructionStrategy:
    """One way to map rewritten text back onto blocks."""

    name = "base"

    def attempt(self, context: ReconstructionContext) -> Optional[ReconstructionResult]:
        raise NotImplementedError


class MarkerAlignmentStrategy(ReconstructionStrategy):
    """
    Match marker segments to blocks by tag, in order.

    For each block the next segment with the same tag is taken; failing
    that, the first later segment with that tag. A list container only
    consumes its own marker when it sits at the current position, so a
    dropped container marker cannot make its items skip ahead.

    A segment that swallowed the following blocks (their markers dropped,
    their text joined on blank lines) belongs to none of them: the block and
    the swallowed blocks keep their original content, and the swallowed
    blocks consume no segments.
    """

    name = "markers"

    def attempt(self, context: ReconstructionContext) -> Optional[ReconstructionResult]:
        segments = split_marked_segments(context.rewritten)
        if not segments:
            logger.debug("No block markers in rewritten text")
            return None

        document = context.document
        inner_by_index: dict[int, str] = {}
        cursor = 0
        swallowed = 0

        for index, block in enumerate(document.flat_blocks):
            if block.is_list_container:
                if cursor < len(segments) and segments[cursor][0] == block.tag:
                    cursor += 1
                continue

            if swallowed:
                swallowed -= 1
                logger.debug(f"Block {index} <{block.tag}>: merged into an earlier segment")
                continue

            position = self._find_segment(segments, block.tag, cursor)
            if position is None:
                logger.debug(f"Block {index} <{block.tag}>: no marker left, keeping original")
                continue

            if position > cursor:
                logger.debug(f"Block {index} <{block.tag}>: skipped {position - cursor} segments")
            cursor = position + 1
            swallowed = context.merged_blocks(index, segments[position][1])

            if not document.is_text_bearing(index):
                continue

            inner = context.resolve(index, segments[position][1])
            if inner is not None:
                inner_by_index[index] = inner

        if not inner_by_index:
            return None

        if len(segments) != document.marker_count:
            logger.info(
                f"Marker count changed: sent {document.marker_count}, got {len(segments)}"
            )
        return context.build(inner_by_index, self.name)

    @staticmethod
    def _find_segment(segments: list[tuple[str, str]], tag: str, start: int) -> Optional[int]:
        for position in range(start, len(segments)):
            if segments[position][0] == tag:
                return position
        return None


class ParagraphCountStrategy(ReconstructionStrategy):
    """
    Zip blank-line separated paragraphs onto text blocks positionally.

    Only used when the paragraph count equals the text block count.
    """

    name = "paragraphs"

    def attempt(self, context: ReconstructionContext) -> Optional[ReconstructionResult]:
        stripped = MARKER_PATTERN.sub("", context.rewritten or "")
        paragraphs = [p.strip() for p in PARAGRAPH_BREAK.split(stripped) if p.strip()]
        text_blocks = context.document.text_block_indices

        if len(paragraphs) != len(text_blocks):
            logger.debug(
                f"Paragraph count {len(paragraphs)} != text block count {len(text_blocks)}"
            )
            return None

        inner_by_index: dict[int, str] = {}
        for index, paragraph in zip(text_blocks, paragraphs):
            inner = context.resolve(index, paragraph)
            if inner is not None:
                inner_by_index[index] = inner

        if not inner_by_index:
            return None
        return context.build(inner_by_index, self.name)


class OriginalContentStrategy(ReconstructionStrategy):
    """Rebuild the source unmodified. Always succeeds."""

    name = "original"

    def attempt(self, context: ReconstructionContext) -> Optional[ReconstructionResult]:
        return context.build({}, self.name)


DEFAULT_STRATEGIES: tuple[ReconstructionStrategy, ...] = (
    MarkerAlignmentStrategy(),
    ParagraphCountStrategy(),
    OriginalContentStrategy(),
)


def reconstruct(
    rewritten: str,
    document: PipelineDocument,
    cleanup: bool = True,
    strategies: Optional[Sequence[ReconstructionStrategy]] = None,
) -> ReconstructionResult:
    """
    Map rewritten text back onto the document's blocks.

    Args:
        rewritten: Text returned by the rewrite service.
        document: The document that was sent.
        cleanup: Apply clean_html to humanized segments before token restore.
        strategies: Strategies to try in order (defaults to all three tiers).

    Returns:
        The first strategy result, or the original content if none applies.
    """
    context = ReconstructionContext(rewritten=rewritten, document=document, cleanup=cleanup)

    for strategy in strategies or DEFAULT_STRATEGIES:
        result = strategy.attempt(context)
        if result is not None:
            logger.info(
                f"Reconstructed with '{result.strategy}': {result.humanized_blocks} humanized, "
                f"{result.fallback_blocks} kept original ({result.status.value})"
            )
            return result

    return OriginalContentStrategy().attempt(context)
