"""
Anchor Humanizer

Humanizes AI-generated article HTML through an external rewrite service
while keeping the monetized anchor link and brand phrases intact:
- Tokenizes anchors and frozen phrases before the rewrite
- Maps the rewritten text back onto the original block structure
- Falls back to the original HTML whenever an anchor could be lost
"""

__version__ = "1.0.0"
__author__ = "Anchor Humanizer Team"

from .config import HumanizeConfig, HumanizeModel, HumanizeProvider

from .models import (
    ChunkKind,
    ProtectedChunk,
    StructuralBlock,
    PipelineDocument,
    ReconstructionStatus,
    ReconstructionResult,
    HumanizeResult,
)

# Anchor and frozen phrase protection
from .locked_tokens import (
    TokenCounter,
    protect_anchors,
    protect_frozen_phrases,
    protect_block,
    restore_chunks,
    count_tokens,
    validate_anchors_preserved,
)

from .block_parser import parse_blocks, flatten_blocks

from .humanize_client import (
    AIHumanizeClient,
    LLMHumanizer,
    HumanizeTransformError,
    HumanizeServiceError,
    HumanizeConfigError,
    chunk_text_for_humanization,
    rewrite_in_chunks,
)

from .reconstruct import (
    MarkerAlignmentStrategy,
    ParagraphCountStrategy,
    OriginalContentStrategy,
    reconstruct,
    split_marked_segments,
)

from .text_repair import clean_html, strip_code_fences

from .pipeline import HumanizationPipeline, build_document, humanize_html

__all__ = [
    # Configuration
    "HumanizeConfig",
    "HumanizeModel",
    "HumanizeProvider",
    # Models
    "ChunkKind",
    "ProtectedChunk",
    "StructuralBlock",
    "PipelineDocument",
    "ReconstructionStatus",
    "ReconstructionResult",
    "HumanizeResult",
    # Token protection
    "TokenCounter",
    "protect_anchors",
    "protect_frozen_phrases",
    "protect_block",
    "restore_chunks",
    "count_tokens",
    "validate_anchors_preserved",
    # Block parsing
    "parse_blocks",
    "flatten_blocks",
    # Transforms
    "AIHumanizeClient",
    "LLMHumanizer",
    "HumanizeTransformError",
    "HumanizeServiceError",
    "HumanizeConfigError",
    "chunk_text_for_humanization",
    "rewrite_in_chunks",
    # Reconstruction
    "MarkerAlignmentStrategy",
    "ParagraphCountStrategy",
    "OriginalContentStrategy",
    "reconstruct",
    "split_marked_segments",
    # Cleanup
    "clean_html",
    "strip_code_fences",
    # Pipeline
    "HumanizationPipeline",
    "build_document",
    "humanize_html",
]
