# -*- coding: utf-8 -*-
"""
Centralized configuration for the humanization pipeline.

This module provides a unified configuration dataclass that controls the
external rewrite service (model, credentials, request limits), chunking of
long documents, and the post-processing steps applied on reconstruction.
"""

import os
from dataclasses import dataclass
from typing import Literal, Optional


# Type alias for the AIHumanize rewrite model
# - 0: "quality"  - slowest, closest to the source meaning
# - 1: "balance"  - default trade-off
# - 2: "enhanced" - strongest rewrite, most likely to disturb markers
HumanizeModel = Literal[0, 1, 2]

HUMANIZE_MODEL_NAMES = {0: "quality", 1: "balance", 2: "enhanced"}

# Which transform backs the pipeline
HumanizeProvider = Literal["aihumanize", "anthropic"]

DEFAULT_BASE_URL = "https://aihumanize.io/api/v1"
DEFAULT_ANTHROPIC_MODEL = "claude-sonnet-4-20250514"


@dataclass
class HumanizeConfig:
    """
    Central configuration for humanization behavior.

    Attributes:
        model: AIHumanize rewrite model (0 quality, 1 balance, 2 enhanced).
        registered_email: Account email the AIHumanize API bills against.
        api_key: AIHumanize API key. None means read AIHUMANIZE_API_KEY.
        base_url: AIHumanize API root.
        timeout_seconds: Per-request timeout for the rewrite service.

        Request limits (enforced by the service):
            min_text_chars: Shortest text the service accepts.
            max_text_chars: Longest text the service accepts.

        Chunking (documents longer than max_chunk_chars are split at
        segment boundaries):
            max_chunk_chars: Target upper bound for one chunk.
            min_chunk_chars: A chunk is never closed before this size.
            chunk_delay_seconds: Pause between chunk requests.

        Post-processing:
            apply_cleanup: Run the cleanup normalizer on humanized text.
            validate_anchors: Revert to the original HTML if the output's
                anchors differ from the input's.

        anthropic_model: Model used when the Anthropic transform is selected.
    """

    model: HumanizeModel = 1
    registered_email: Optional[str] = None
    api_key: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL
    timeout_seconds: float = 60.0

    # Service limits
    min_text_chars: int = 100
    max_text_chars: int = 10000

    # Chunking
    max_chunk_chars: int = 9000
    min_chunk_chars: int = 1000
    chunk_delay_seconds: float = 0.5

    # Post-processing
    apply_cleanup: bool = True
    validate_anchors: bool = True

    anthropic_model: str = DEFAULT_ANTHROPIC_MODEL

    @property
    def model_name(self) -> str:
        """Human-readable name of the rewrite model."""
        return HUMANIZE_MODEL_NAMES[self.model]

    @property
    def has_credentials(self) -> bool:
        """Check if both the API key and the account email are set."""
        return bool(self.api_key) and bool(self.registered_email)

    def __post_init__(self):
        """Validate configuration values."""
        if self.model not in HUMANIZE_MODEL_NAMES:
            raise ValueError(f"model must be 0, 1, or 2, got {self.model!r}")
        if self.min_text_chars < 1:
            raise ValueError(f"min_text_chars must be >= 1, got {self.min_text_chars}")
        if self.max_text_chars <= self.min_text_chars:
            raise ValueError(
                f"max_text_chars ({self.max_text_chars}) must be > "
                f"min_text_chars ({self.min_text_chars})"
            )
        if self.max_chunk_chars > self.max_text_chars:
            raise ValueError(
                f"max_chunk_chars ({self.max_chunk_chars}) must be <= "
                f"max_text_chars ({self.max_text_chars})"
            )
        if self.min_chunk_chars < 0 or self.min_chunk_chars >= self.max_chunk_chars:
            raise ValueError(
                f"min_chunk_chars ({self.min_chunk_chars}) must be >= 0 and < "
                f"max_chunk_chars ({self.max_chunk_chars})"
            )
        if self.chunk_delay_seconds < 0:
            raise ValueError(
                f"chunk_delay_seconds must be >= 0, got {self.chunk_delay_seconds}"
            )
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")

    @classmethod
    def from_env(cls, **overrides) -> "HumanizeConfig":
        """Create config from AIHUMANIZE_* environment variables.

        Reads AIHUMANIZE_API_KEY, AIHUMANIZE_EMAIL and AIHUMANIZE_MODEL.
        Explicit overrides win over the environment.

        Args:
            **overrides: Override any config values.

        Returns:
            HumanizeConfig populated from the environment.
        """
        defaults: dict = {
            "api_key": os.environ.get("AIHUMANIZE_API_KEY"),
            "registered_email": os.environ.get("AIHUMANIZE_EMAIL"),
        }
        model = os.environ.get("AIHUMANIZE_MODEL")
        if model is not None and model.strip():
            defaults["model"] = int(model)
        defaults.update(overrides)
        return cls(**defaults)

    @classmethod
    def offline(cls, **overrides) -> "HumanizeConfig":
        """Create config for local transforms (tests, dry runs).

        No chunk delay, no credentials.
        """
        defaults = {
            "chunk_delay_seconds": 0.0,
        }
        defaults.update(overrides)
        return cls(**defaults)
