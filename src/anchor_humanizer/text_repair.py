# -*- coding: utf-8 -*-
"""
Cleanup normalization for humanized article text.

Handles:
- Invisible Unicode characters injected by LLMs (zero-width, bidi, selectors)
- Unicode space variants and stray control characters
- Residual Markdown syntax (emphasis, links, inline code, headings, fences)
- "AI-signature" typography (em dash, smart quotes, ellipsis)
- Horizontal whitespace runs
- Inline tags glued to neighbouring words, and overused <b> bold
  (fix_html_tag_spacing, remove_excessive_bold; humanized blocks only)

Everything except invisible/control/space cleanup is applied to text
between tags only, so tag syntax and attribute values are never touched.
"""

import re

# Removed outright: zero-width spaces/joiners, directionality marks and
# isolates, word joiner and invisible operators, variation selectors,
# grapheme joiner, soft hyphen, filler characters, byte-order mark.
INVISIBLE_CHARS_PATTERN = re.compile(
    "["
    "\u00ad"
    "\u034f"
    "\u115f\u1160"
    "\u17b4\u17b5"
    "\u180b-\u180d"
    "\u200b-\u200f"
    "\u202a-\u202e"
    "\u2060-\u2064"
    "\u2066-\u206f"
    "\ufe00-\ufe0f"
    "\ufeff"
    "]"
)

# Space variants -> regular space
SPACE_VARIANTS_PATTERN = re.compile(
    "[\u00a0\u1680\u180e\u2000-\u200a\u202f\u205f"
    "\u2800\u3000\u3164\uffa0]"
)

# C0/C1 controls except tab, newline and carriage return
CONTROL_CHARS_PATTERN = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")

# Smart quotes to normalize (using Unicode code points)
SMART_QUOTE_MAP = {
    '\u2018': "'",   # Left single quotation mark
    '\u2019': "'",   # Right single quotation mark
    '\u201a': "'",   # Single low-9 quotation mark
    '\u201b': "'",   # Single high-reversed-9 quotation mark
    '\u201c': '"',   # Left double quotation mark
    '\u201d': '"',   # Right double quotation mark
    '\u201e': '"',   # Double low-9 quotation mark
    '\u201f': '"',   # Double high-reversed-9 quotation mark
    '\u2039': "'",   # Single left-pointing angle quotation mark
    '\u203a': "'",   # Single right-pointing angle quotation mark
}

# Dash variants to normalize (em dash handled separately, it eats spaces)
DASH_MAP = {
    '\u2013': "-",    # En dash
    '\u2212': "-",    # Minus sign
    '\u2026': "...",  # Horizontal ellipsis
}

EM_DASH_PATTERN = re.compile(r"[ \t]*(?:\u2014[ \t]*)+")


TAG_PATTERN = re.compile(r"(<[^>]*>)")

HORIZONTAL_WS_RUN = re.compile(r"[ \t]{2,}")

# Markdown rules, applied in order until nothing changes
MARKDOWN_RULES: list[tuple[re.Pattern, str]] = [
    # ```html fences on their own line
    (re.compile(r"^[ \t]*```[\w-]*[ \t]*$\n?", re.MULTILINE), ""),
    # ATX headings: "## Title"
    (re.compile(r"^[ \t]*#{1,6}[ \t]+", re.MULTILINE), ""),
    # Links and images: [text](url), ![alt](url)
    (re.compile(r"!?\[([^\[\]\n]+)\]\(([^()\s]+)\)"), r"\1"),
    # Bold: **text**, __text__
    (re.compile(r"\*\*(?=\S)(.+?)(?<=\S)\*\*"), r"\1"),
    (re.compile(r"__(?=\S)(.+?)(?<=\S)__"), r"\1"),
    # Italic: *text*, _text_
    (re.compile(r"(?<![*\w])\*(?=\S)([^*\n]+?)(?<=\S)\*(?![*\w])"), r"\1"),
    (re.compile(r"(?<![_\w])_(?=\S)([^_\n]+?)(?<=\S)_(?![_\w])"), r"\1"),
    # Inline code: `text`
    (re.compile(r"`([^`\n]+)`"), r"\1"),
]


def remove_invisible_chars(text: str) -> str:
    """
    Remove invisible characters and normalize space variants.

    Args:
        text: Text to clean.

    Returns:
        Text without zero-width/bidi/selector characters or stray controls,
        with NBSP and other Unicode spaces turned into regular spaces.
    """
    if not text:
        return text

    result = INVISIBLE_CHARS_PATTERN.sub("", text)

    # Unicode line/paragraph separators become real line breaks
    result = result.replace('\u2028', '\n')
    result = result.replace('\u2029', '\n\n')

    result = SPACE_VARIANTS_PATTERN.sub(" ", result)
    result = CONTROL_CHARS_PATTERN.sub("", result)
    return result


def normalize_quotes(text: str) -> str:
    """
    Normalize smart quotes, dashes and the ellipsis glyph to ASCII.

    Em dashes become ", " with surrounding spaces absorbed, so
    "fast -- and cheap" written with a real em dash reads "fast, and cheap".
    """
    if not text:
        return text

    result = EM_DASH_PATTERN.sub(", ", text)

    for smart, ascii_char in SMART_QUOTE_MAP.items():
        result = result.replace(smart, ascii_char)

    for fancy, simple in DASH_MAP.items():
        result = result.replace(fancy, simple)

    return result


def strip_markdown(text: str) -> str:
    """
    Convert residual Markdown syntax to plain prose.

    Marker characters are dropped and the enclosed text kept. Rules run
    until a fixpoint so nested or stacked markers are fully removed.
    """
    if not text:
        return text

    result = text
    while True:
        previous = result
        for pattern, replacement in MARKDOWN_RULES:
            result = pattern.sub(replacement, result)
        if result == previous:
            return result


def normalize_whitespace(text: str) -> str:
    """Collapse runs of 2+ spaces/tabs into one space."""
    if not text:
        return text
    return HORIZONTAL_WS_RUN.sub(" ", text)


def _clean_text_node(text: str) -> str:
    """Typography, Markdown and whitespace rules for one text node."""
    result = text
    while True:
        previous = result
        result = normalize_quotes(result)
        result = strip_markdown(result)
        result = normalize_whitespace(result)
        if result == previous:
            return result


def clean_html(text: str) -> str:
    """
    Full cleanup pipeline for humanized text or HTML.

    Applies, in order:
    1. Invisible character, space variant and control character cleanup
    2. Typography normalization (text between tags only)
    3. Markdown stripping (text between tags only)
    4. Whitespace run collapsing (text between tags only)

    The result is stable: clean_html(clean_html(x)) == clean_html(x).

    Args:
        text: Text or HTML to clean.

    Returns:
        Cleaned text.
    """
    if not text:
        return text

    result = remove_invisible_chars(text)

    parts = TAG_PATTERN.split(result)
    # Odd indices are tags and stay untouched
    for i in range(0, len(parts), 2):
        parts[i] = _clean_text_node(parts[i])

    return "".join(parts)


# Inline elements whose tags must not glue onto neighbouring words. Anchor
# tokens count as anchors: they become <a> elements on restore.
_INLINE_TAGS = r"(?:strong|b|a|span|em|i|u|mark|code|kbd|samp|var)"
_INLINE_OPEN = rf"(?:<{_INLINE_TAGS}(?:\s[^>]*)?>|\[\[ANCHOR_\d+\]\])"
_INLINE_CLOSE = rf"(?:</{_INLINE_TAGS}\s*>|\[\[ANCHOR_\d+\]\])"

WORD_BEFORE_INLINE = re.compile(rf"([A-Za-z0-9])({_INLINE_OPEN})", re.IGNORECASE)
WORD_AFTER_INLINE = re.compile(rf"({_INLINE_CLOSE})([A-Za-z0-9])", re.IGNORECASE)
PUNCT_BEFORE_LINK = re.compile(
    r"([.,;:!?])(<(?:a|strong|b)(?:\s[^>]*)?>|\[\[ANCHOR_\d+\]\])", re.IGNORECASE
)

MAX_BOLD_PER_BLOCK = 3

BOLD_ELEMENT = re.compile(r"<b(?:\s[^>]*)?>(.*?)</b\s*>", re.IGNORECASE | re.DOTALL)
ADJACENT_BOLD = re.compile(r"</b\s*>\s*<b(?:\s[^>]*)?>", re.IGNORECASE)
SHORT_BOLD_WORD = re.compile(r"<b(?:\s[^>]*)?>([A-Za-z]{1,2})</b\s*>", re.IGNORECASE)

# Short words that stay bold
SHORT_TECH_TERMS = {"AI", "UI", "UX", "IT", "HR"}


def fix_html_tag_spacing(text: str) -> str:
    """
    Put a space between inline elements and the words they touch.

    "but<strong>completion</strong>is" -> "but <strong>completion</strong> is"

    Only text outside tags changes. Anchor tokens are spaced like <a>
    elements, so this runs before token restore and never touches anchor
    markup.
    """
    if not text:
        return text

    result = WORD_BEFORE_INLINE.sub(r"\1 \2", text)
    result = WORD_AFTER_INLINE.sub(r"\1 \2", result)
    return PUNCT_BEFORE_LINK.sub(r"\1 \2", result)


def remove_excessive_bold(text: str) -> str:
    """
    Tone down bold in one block of humanized HTML.

    Adjacent <b> elements are merged, only the first three keep their bold,
    and bold is dropped from one or two letter words other than common
    abbreviations like AI.
    """
    if not text:
        return text

    result = ADJACENT_BOLD.sub(" ", text)

    count = 0

    def _limit(match: re.Match) -> str:
        nonlocal count
        count += 1
        return match.group(0) if count <= MAX_BOLD_PER_BLOCK else match.group(1)

    result = BOLD_ELEMENT.sub(_limit, result)

    def _short(match: re.Match) -> str:
        word = match.group(1)
        return match.group(0) if word.upper() in SHORT_TECH_TERMS else word

    return SHORT_BOLD_WORD.sub(_short, result)


def strip_code_fences(text: str) -> str:
    """
    Remove a Markdown code fence wrapping a whole LLM response.

    "```html\\n<p>x</p>\\n```" -> "<p>x</p>"
    """
    if not text:
        return text

    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = re.sub(r"^```[\w-]*\s*", "", cleaned)
        cleaned = re.sub(r"\s*```$", "", cleaned)
    return cleaned.strip()
