"""
Anchor-protected humanization pipeline.

Orchestrates one humanization request:
1. Parse the HTML into structural blocks
2. Tokenize anchors and frozen phrases per block (one counter per run)
3. Send the marker document through the rewrite transform (chunked)
4. Reconstruct the block structure and restore tokens
5. Verify every anchor survived, else return the original

Humanization is best-effort: any failure along the way returns the input
HTML untouched with status FAILED.
"""

import logging
from typing import Iterable, Optional, Sequence

from .block_parser import flatten_blocks, parse_blocks
from .config import HumanizeConfig
from .humanize_client import RewriteFn, rewrite_in_chunks
from .locked_tokens import TokenCounter, protect_block, validate_anchors_preserved
from .models import (
    SEGMENT_SEPARATOR,
    HumanizeResult,
    PipelineDocument,
    ProtectedChunk,
    ReconstructionStatus,
)
from .reconstruct import ReconstructionStrategy, block_marker, reconstruct

logger = logging.getLogger(__name__)


def build_document(html: str, frozen_phrases: Iterable[str] = ()) -> PipelineDocument:
    """
    Parse and tokenize HTML into the marker document sent for rewriting.

    Args:
        html: Article HTML.
        frozen_phrases: Phrases to protect from paraphrasing.

    Returns:
        PipelineDocument with one marked segment per flattened block.
    """
    phrases = [p for p in frozen_phrases if p and p.strip()]
    blocks = parse_blocks(html)
    flat_blocks = list(flatten_blocks(blocks))

    counter = TokenCounter()
    segments: list[str] = []
    chunks: list[ProtectedChunk] = []

    for index, block in enumerate(flat_blocks):
        if block.is_list_container:
            segments.append("")
            continue
        protected, block_chunks = protect_block(block.raw_inner_content, phrases, counter, index)
        segments.append(protected.strip())
        chunks.extend(block_chunks)

    text = SEGMENT_SEPARATOR.join(
        f"{block_marker(block.tag)}{segment}" for block, segment in zip(flat_blocks, segments)
    )

    logger.debug(
        f"Built document: {len(flat_blocks)} markers, {counter.anchors} anchors, "
        f"{counter.phrases} phrases, {len(text)} chars"
    )
    return PipelineDocument(
        text=text,
        source_html=html,
        blocks=blocks,
        flat_blocks=flat_blocks,
        segments=segments,
        chunks=chunks,
    )


class HumanizationPipeline:
    """
    Runs the humanize transform over article HTML without losing anchors.

    Example:
        pipeline = HumanizationPipeline(AIHumanizeClient(config), config)
        result = pipeline.run(html, frozen_phrases=["Acme Tools"])
    """

    def __init__(
        self,
        rewrite: RewriteFn,
        config: Optional[HumanizeConfig] = None,
        strategies: Optional[Sequence[ReconstructionStrategy]] = None,
    ):
        """
        Initialize the pipeline.

        Args:
            rewrite: Transform taking the marker document, returning rewritten text.
            config: Pipeline configuration.
            strategies: Reconstruction strategies to try, in order.
        """
        self.rewrite = rewrite
        self.config = config or HumanizeConfig()
        self.strategies = strategies

    def run(self, html: str, frozen_phrases: Iterable[str] = ()) -> HumanizeResult:
        """
        Humanize one article.

        Args:
            html: Article HTML.
            frozen_phrases: Phrases to protect from paraphrasing.

        Returns:
            HumanizeResult. On any failure html is the input, unchanged.
        """
        if not html or not html.strip():
            return HumanizeResult(html=html, status=ReconstructionStatus.FAILED)

        try:
            document = build_document(html, frozen_phrases)
        except Exception as e:
            logger.error(f"Failed to prepare document for humanizing: {e}")
            return HumanizeResult(html=html, status=ReconstructionStatus.FAILED, error=str(e))

        if not document.text_block_indices:
            logger.info("No text blocks found, nothing to humanize")
            return HumanizeResult(
                html=html,
                status=ReconstructionStatus.FAILED,
                chunks=document.chunks,
            )

        words_before = getattr(self.rewrite, "words_used", 0)

        try:
            rewritten = rewrite_in_chunks(document.text, self.rewrite, self.config)
        except Exception as e:
            logger.error(f"Humanize transform failed: {e}")
            return self._failed(html, document, e, words_before)

        try:
            result = reconstruct(
                rewritten,
                document,
                cleanup=self.config.apply_cleanup,
                strategies=self.strategies,
            )
        except Exception as e:
            logger.error(f"Reconstruction failed: {e}")
            return self._failed(html, document, e, words_before)

        output = result.html
        status = result.status

        if self.config.validate_anchors and status is not ReconstructionStatus.FAILED:
            problems = validate_anchors_preserved(html, output)
            if problems:
                logger.warning(f"Anchor check failed for {problems}, returning original HTML")
                return HumanizeResult(
                    html=html,
                    status=ReconstructionStatus.FAILED,
                    strategy=result.strategy,
                    chunks=document.chunks,
                    words_used=self._words_used(words_before),
                    remaining_words=getattr(self.rewrite, "remaining_words", 0),
                    error=f"Anchor validation failed: {len(problems)} anchor(s) changed",
                )

        if status is ReconstructionStatus.DEGRADED:
            logger.warning(
                f"Humanization degraded: {result.fallback_blocks} of "
                f"{result.humanized_blocks + result.fallback_blocks} blocks kept original text"
            )

        return HumanizeResult(
            html=output,
            status=status,
            strategy=result.strategy,
            chunks=document.chunks,
            words_used=self._words_used(words_before),
            remaining_words=getattr(self.rewrite, "remaining_words", 0),
        )

    def _words_used(self, words_before: int) -> int:
        return getattr(self.rewrite, "words_used", 0) - words_before

    def _failed(
        self,
        html: str,
        document: PipelineDocument,
        error: Exception,
        words_before: int,
    ) -> HumanizeResult:
        return HumanizeResult(
            html=html,
            status=ReconstructionStatus.FAILED,
            chunks=document.chunks,
            words_used=self._words_used(words_before),
            remaining_words=getattr(self.rewrite, "remaining_words", 0),
            error=str(error),
            user_message=getattr(error, "user_message", None),
        )


def humanize_html(
    html: str,
    frozen_phrases: Iterable[str],
    rewrite: RewriteFn,
    config: Optional[HumanizeConfig] = None,
) -> HumanizeResult:
    """
    Convenience function to humanize one article.

    Args:
        html: Article HTML.
        frozen_phrases: Phrases to protect from paraphrasing.
        rewrite: Transform to apply.
        config: Optional configuration.

    Returns:
        HumanizeResult.
    """
    return HumanizationPipeline(rewrite, config).run(html, frozen_phrases)
