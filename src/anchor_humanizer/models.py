"""
Data models for the anchor-protected humanization pipeline.

Contains the core dataclasses used throughout the pipeline:
- ProtectedChunk: a token standing in for an anchor or frozen phrase
- StructuralBlock: one heading, paragraph, list or list item of the source HTML
- PipelineDocument: the marker-delimited text sent to the rewrite service
- ReconstructionResult / HumanizeResult: tagged outcomes of a pipeline run
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Optional


# Tags the block parser recognizes
BlockTag = Literal[
    "h1", "h2", "h3", "h4", "h5", "h6",  # Heading levels
    "p",    # Paragraph
    "ul",   # Unordered list container
    "ol",   # Ordered list container
    "li",   # List item
]

HEADING_TAGS: frozenset[str] = frozenset({"h1", "h2", "h3", "h4", "h5", "h6"})
LIST_CONTAINER_TAGS: frozenset[str] = frozenset({"ul", "ol"})

# Separator between marked segments in a PipelineDocument
SEGMENT_SEPARATOR = "\n\n"


class ChunkKind(Enum):
    """What a protected chunk stands in for."""
    ANCHOR = "anchor"  # Full <a ...>...</a> element
    PHRASE = "phrase"  # Literal frozen phrase text


@dataclass
class ProtectedChunk:
    """
    A placeholder token and the original markup it replaces.

    Anchors carry the full element markup (every attribute included),
    frozen phrases carry the literal text as it appeared in the source.
    """
    token: str
    original_markup: str
    kind: ChunkKind
    block_index: int = -1  # Flattened index of the owning block

    @property
    def is_anchor(self) -> bool:
        return self.kind is ChunkKind.ANCHOR


@dataclass
class StructuralBlock:
    """
    A top-level structural block of the article HTML.

    The opening and closing tags are kept verbatim so attributes survive
    any rewrite. List containers own their items in `list_items`.
    """
    tag: BlockTag
    original_open_tag: str
    raw_inner_content: str
    original_close_tag: str = ""
    start: int = 0  # Offset of the opening tag in the source HTML
    end: int = 0  # Offset just past the closing tag
    list_items: list["StructuralBlock"] = field(default_factory=list)

    @property
    def is_list_container(self) -> bool:
        return self.tag in LIST_CONTAINER_TAGS

    @property
    def is_heading(self) -> bool:
        return self.tag in HEADING_TAGS

    @property
    def content_start(self) -> int:
        """Offset of the inner content in the source HTML."""
        return self.start + len(self.original_open_tag)

    @property
    def outer_html(self) -> str:
        """The block exactly as it appeared in the source."""
        return f"{self.original_open_tag}{self.raw_inner_content}{self.original_close_tag}"

    def render(self, inner: str) -> str:
        """Wrap new inner content in the original tags."""
        return f"{self.original_open_tag}{inner}{self.original_close_tag}"


@dataclass
class PipelineDocument:
    """
    The flattened, tokenized, marker-delimited text for the rewrite service.

    `segments[i]` is the tokenized text of `flat_blocks[i]`; list containers
    contribute an empty segment so every block has exactly one marker.
    `source_html` and the top-level `blocks` are kept for reconstruction.
    """
    text: str
    source_html: str = ""
    blocks: list[StructuralBlock] = field(default_factory=list)
    flat_blocks: list[StructuralBlock] = field(default_factory=list)
    segments: list[str] = field(default_factory=list)
    chunks: list[ProtectedChunk] = field(default_factory=list)

    @property
    def marker_count(self) -> int:
        return len(self.flat_blocks)

    @property
    def text_block_indices(self) -> list[int]:
        """Flattened indices of blocks with text to humanize."""
        return [i for i in range(len(self.flat_blocks)) if self.is_text_bearing(i)]

    def is_text_bearing(self, block_index: int) -> bool:
        """Headings, paragraphs and list items with non-blank content."""
        block = self.flat_blocks[block_index]
        return not block.is_list_container and bool(self.segments[block_index].strip())

    def chunks_for_block(self, block_index: int) -> list[ProtectedChunk]:
        """Chunks owned by the flattened block at `block_index`."""
        return [c for c in self.chunks if c.block_index == block_index]


class ReconstructionStatus(Enum):
    """How much humanized text made it into the output."""
    SUCCESS = "success"    # Every text block humanized
    DEGRADED = "degraded"  # Some blocks fell back to original content
    FAILED = "failed"      # No humanization applied, original structure intact


@dataclass
class ReconstructionResult:
    """Tagged result of one reconstruction strategy."""
    html: str
    status: ReconstructionStatus
    strategy: str
    humanized_blocks: int = 0
    fallback_blocks: int = 0


@dataclass
class HumanizeResult:
    """Final result of a humanization request."""
    html: str
    status: ReconstructionStatus
    strategy: str = ""
    chunks: list[ProtectedChunk] = field(default_factory=list)
    words_used: int = 0
    remaining_words: int = 0
    error: Optional[str] = None
    user_message: Optional[str] = None

    @property
    def was_humanized(self) -> bool:
        return self.status is not ReconstructionStatus.FAILED

    @property
    def anchor_count(self) -> int:
        return sum(1 for c in self.chunks if c.is_anchor)

    @property
    def phrase_count(self) -> int:
        return sum(1 for c in self.chunks if not c.is_anchor)
