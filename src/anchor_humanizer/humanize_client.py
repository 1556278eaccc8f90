"""
Humanize transform clients.

A transform is any callable taking the marker-delimited document text and
returning rewritten text; a failure is any raised exception. This module
provides two real transforms:

- AIHumanizeClient: the AIHumanize.io rewrite API (word-metered)
- LLMHumanizer: a Claude (Anthropic) rewrite with marker-keeping prompts

plus chunking helpers for documents longer than one request allows.
"""

import logging
import re
import time
from dataclasses import dataclass
from typing import Callable, Optional

import anthropic
import httpx

from .config import HumanizeConfig
from .text_repair import strip_code_fences

logger = logging.getLogger(__name__)

# A transform: rewritten = rewrite(text)
RewriteFn = Callable[[str], str]


class HumanizeTransformError(Exception):
    """Raised when the external rewrite fails."""
    pass


class HumanizeConfigError(HumanizeTransformError):
    """Raised when the rewrite service is not configured."""
    pass


# User-facing messages for AIHumanize API error codes
AIHUMANIZE_ERROR_MESSAGES = {
    1001: "Humanize service is not configured. Please contact support.",
    1002: "Too many requests. Try again in a few minutes.",
    1003: "Invalid API key. Please check your configuration.",
    1004: "Invalid request parameters. Please try again.",
    1005: "Humanizing works only for English text right now.",
    1006: "Your Humanize balance is empty. Please top up or switch off Humanize.",
    1007: "Humanize service is temporarily unavailable. Please try again later.",
    1008: "Invalid email configuration. Please check your settings.",
}

DEFAULT_USER_MESSAGE = "An error occurred while humanizing text. Please try again."

# Error code the API returns when the word balance is used up
BALANCE_EMPTY_CODE = 1006


class HumanizeServiceError(HumanizeTransformError):
    """Raised when the AIHumanize API answers with a non-200 code."""

    def __init__(self, code: int, message: str, user_message: str):
        super().__init__(f"AIHumanize error {code}: {message}")
        self.code = code
        self.message = message
        self.user_message = user_message

    @classmethod
    def from_code(cls, code: int, message: Optional[str] = None) -> "HumanizeServiceError":
        """Map an API error code to an error with a user-facing message."""
        return cls(
            code=code,
            message=message or "Unknown error",
            user_message=AIHUMANIZE_ERROR_MESSAGES.get(code, DEFAULT_USER_MESSAGE),
        )

    @property
    def is_balance_empty(self) -> bool:
        return self.code == BALANCE_EMPTY_CODE


@dataclass
class HumanizeResponse:
    """One rewrite call's result."""
    text: str
    words_used: int = 0
    remaining_words: int = 0


class AIHumanizeClient:
    """
    Client for the AIHumanize.io rewrite API.

    Instances are callable, so they plug straight into the pipeline as a
    transform. Word usage accumulates across calls on one instance.
    """

    def __init__(
        self,
        config: Optional[HumanizeConfig] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        """
        Initialize the AIHumanize client.

        Args:
            config: Humanize configuration. If None, read from the environment.
            http_client: Optional preconfigured httpx client (tests, proxies).
        """
        self.config = config or HumanizeConfig.from_env()

        if not self.config.api_key:
            raise HumanizeConfigError(
                "No API key provided. Set AIHUMANIZE_API_KEY environment variable "
                "or pass api_key in HumanizeConfig."
            )
        if not self.config.registered_email:
            raise HumanizeConfigError(
                "No registered email provided. Set AIHUMANIZE_EMAIL environment "
                "variable or pass registered_email in HumanizeConfig."
            )

        self._owns_http = http_client is None
        self.http = http_client or httpx.Client(
            timeout=httpx.Timeout(self.config.timeout_seconds, connect=30.0),
            follow_redirects=True,
        )
        self.words_used = 0
        self.remaining_words = 0

    def __call__(self, text: str) -> str:
        return self.humanize(text).text

    def __enter__(self) -> "AIHumanizeClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_http:
            self.http.close()

    def humanize(self, text: str) -> HumanizeResponse:
        """
        Rewrite one piece of text.

        Args:
            text: Text within the service's length limits.

        Returns:
            HumanizeResponse with rewritten text and word accounting.

        Raises:
            HumanizeTransformError: On length violations, network errors or
                malformed responses.
            HumanizeServiceError: On API error codes.
        """
        if len(text) < self.config.min_text_chars:
            raise HumanizeTransformError(
                f"Text must be at least {self.config.min_text_chars} characters"
            )
        if len(text) > self.config.max_text_chars:
            raise HumanizeTransformError(
                f"Text must be at most {self.config.max_text_chars} characters. "
                "Please chunk the text first."
            )

        payload = self._post("rewrite", {
            "model": self.config.model,
            "mail": self.config.registered_email,
            "data": text,
        })

        rewritten = payload.get("data")
        if not isinstance(rewritten, str):
            raise HumanizeTransformError("AIHumanize returned no text")

        response = HumanizeResponse(
            text=rewritten,
            words_used=int(payload.get("words_used") or 0),
            remaining_words=int(payload.get("remaining_words") or 0),
        )
        self.words_used += response.words_used
        self.remaining_words = response.remaining_words
        logger.debug(
            f"AIHumanize rewrite: {len(text)} chars in, {len(rewritten)} out, "
            f"{response.words_used} words used"
        )
        return response

    def get_balance(self) -> int:
        """
        Get the remaining word balance for the registered email.

        Returns:
            Remaining words.
        """
        payload = self._post("surplus", {"mail": self.config.registered_email})
        try:
            return int(payload.get("data"))
        except (TypeError, ValueError):
            raise HumanizeTransformError("AIHumanize returned a malformed balance")

    def _post(self, endpoint: str, body: dict) -> dict:
        """POST to the API and return the decoded payload of a code-200 answer."""
        url = f"{self.config.base_url.rstrip('/')}/{endpoint}"
        try:
            response = self.http.post(
                url,
                json=body,
                headers={"Authorization": self.config.api_key},
            )
            payload = response.json()
        except httpx.HTTPError as e:
            raise HumanizeTransformError(f"AIHumanize request failed: {e}")
        except ValueError as e:
            raise HumanizeTransformError(f"AIHumanize returned invalid JSON: {e}")

        if not isinstance(payload, dict):
            raise HumanizeTransformError("AIHumanize returned an unexpected payload")

        code = payload.get("code")
        if code != 200:
            raise HumanizeServiceError.from_code(code, payload.get("msg"))
        return payload


# System prompt for the Claude-backed rewrite
HUMANIZE_SYSTEM_PROMPT = """You are a professional editor who makes AI-written articles read as if a person wrote them.

REWRITE GOALS:
1. Vary sentence length and rhythm naturally
2. Use different transitions and word choices
3. Keep the same meaning, tone and overall structure
4. Do not invent facts, statistics or claims

SERVICE MARKERS - MUST FOLLOW:
5. The text is split into blocks, each starting with a marker like [[BLOCK:h2]], [[BLOCK:p]] or [[BLOCK:li]]
6. Keep EVERY block marker exactly as written, in the same order - never add, remove, merge or split blocks
7. Tokens like [[ANCHOR_1]] or [[PHRASE_2]] stand for links and brand names
8. Copy every token exactly once, unchanged, inside the same block it came from
9. A block that holds only a marker (such as [[BLOCK:ul]]) stays empty

OUTPUT FORMAT:
- Return ONLY the rewritten text with its markers
- Do NOT use Markdown, HTML, or code fences
- Do NOT include any explanation or commentary"""


class LLMHumanizer:
    """
    Claude-backed humanize transform.

    Used when no AIHumanize account is configured, or as a cheaper
    alternative for drafts.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        client=None,
        max_tokens: int = 8000,
        temperature: float = 0.6,
    ):
        """
        Initialize the LLM humanizer.

        Args:
            api_key: Anthropic API key. If None, the SDK reads ANTHROPIC_API_KEY.
            model: Model identifier to use.
            client: Optional preconfigured anthropic.Anthropic client.
            max_tokens: Maximum tokens in response.
            temperature: Sampling temperature.
        """
        self.model = model or HumanizeConfig().anthropic_model
        self.max_tokens = max_tokens
        self.temperature = temperature

        if client is not None:
            self.client = client
        else:
            # Longer timeouts than the SDK default for full-article rewrites
            http_client = httpx.Client(
                timeout=httpx.Timeout(120.0, connect=30.0),
                follow_redirects=True,
            )
            self.client = anthropic.Anthropic(api_key=api_key, http_client=http_client)

    def __call__(self, text: str) -> str:
        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                system=HUMANIZE_SYSTEM_PROMPT,
                messages=[{"role": "user", "content": f"Text to rewrite:\n\n{text}"}],
            )
            rewritten = response.content[0].text
        except Exception as e:
            raise HumanizeTransformError(f"LLM humanize call failed: {e}")

        if not rewritten or not rewritten.strip():
            raise HumanizeTransformError("Empty response from LLM humanizer")

        return strip_code_fences(rewritten)


# =============================================================================
# CHUNKING
# =============================================================================

# Split points: the blank line in front of a block marker
SEGMENT_BOUNDARY = re.compile(r"\n\n(?=\[\[BLOCK:)", re.IGNORECASE)


def chunk_text_for_humanization(
    text: str,
    max_chars: int = 9000,
    min_chars: int = 1000,
) -> list[str]:
    """
    Split a marker document into request-sized chunks.

    Splits happen only in front of a block marker, so no segment is ever
    cut in half. A chunk is closed once adding the next segment would pass
    max_chars and it already holds at least min_chars.

    Args:
        text: Marker-delimited document.
        max_chars: Target upper bound per chunk.
        min_chars: Minimum size before a chunk may be closed.

    Returns:
        Chunks which joined with a blank line rebuild the input.
    """
    if len(text) <= max_chars:
        return [text]

    chunks: list[str] = []
    current = ""

    for segment in SEGMENT_BOUNDARY.split(text):
        candidate = f"{current}\n\n{segment}" if current else segment
        if current and len(candidate) > max_chars and len(current) >= min_chars:
            chunks.append(current)
            current = segment
        else:
            current = candidate

    if current:
        chunks.append(current)

    return chunks


def rewrite_in_chunks(
    text: str,
    rewrite: RewriteFn,
    config: Optional[HumanizeConfig] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> str:
    """
    Run a transform over a document, one chunk per call.

    A single-chunk document is always sent. In a multi-chunk document,
    chunks shorter than the service minimum are kept as-is rather than
    sent. Any failing chunk fails the whole call.

    Args:
        text: Marker-delimited document.
        rewrite: Transform to apply.
        config: Chunking limits and delay.
        sleep: Delay function (injected by tests).

    Returns:
        Rewritten chunks joined with a blank line.
    """
    config = config or HumanizeConfig()
    chunks = chunk_text_for_humanization(
        text, config.max_chunk_chars, config.min_chunk_chars
    )

    if len(chunks) == 1:
        return rewrite(chunks[0])

    logger.info(f"Document exceeds {config.max_chunk_chars} chars, split into {len(chunks)} chunks")

    rewritten: list[str] = []
    for i, chunk in enumerate(chunks):
        if len(chunk) < config.min_text_chars:
            logger.debug(f"Chunk {i + 1}/{len(chunks)} below service minimum, kept as-is")
            rewritten.append(chunk)
            continue

        logger.debug(f"Humanizing chunk {i + 1}/{len(chunks)} ({len(chunk)} chars)")
        rewritten.append(rewrite(chunk))

        if i < len(chunks) - 1 and config.chunk_delay_seconds > 0:
            sleep(config.chunk_delay_seconds)

    return "\n\n".join(rewritten)
