"""
Pytest fixtures and configuration for Anchor Humanizer tests.
"""

import re

import pytest

from anchor_humanizer.config import HumanizeConfig
from anchor_humanizer.humanize_client import HumanizeTransformError


ANCHOR_HTML = '<a href="https://acme.example/tools" rel="sponsored" class="cta">Acme Tools</a>'


@pytest.fixture
def anchor_html() -> str:
    """The monetized anchor used across tests."""
    return ANCHOR_HTML


@pytest.fixture
def sample_article_html() -> str:
    """Article with headings, paragraphs, a list and an anchor."""
    return (
        '<h1 class="title">Choosing Garden Tools</h1>\n'
        '<p>Good tools make gardening easier. Many gardeners trust '
        f'{ANCHOR_HTML} for durable equipment.</p>\n'
        '<h2 id="basics">The Basics</h2>\n'
        '<ul class="checklist">\n'
        '  <li>A sturdy spade</li>\n'
        '  <li>Pruning shears from Acme Tools</li>\n'
        '</ul>\n'
        '<p>Start small and add tools as your garden grows.</p>'
    )


@pytest.fixture
def offline_config() -> HumanizeConfig:
    """Config with no delays and no credentials."""
    return HumanizeConfig.offline()


@pytest.fixture
def echo_transform():
    """Transform returning its input unchanged."""
    return lambda text: text


@pytest.fixture
def upper_transform():
    """Transform uppercasing prose but leaving markers and tokens alone."""
    protected = re.compile(r"(\[\[[^\]]+\]\]|<[^>]*>)")

    def _rewrite(text: str) -> str:
        parts = protected.split(text)
        return "".join(p if protected.fullmatch(p) else p.upper() for p in parts)

    return _rewrite


@pytest.fixture
def uppercase_everything_transform():
    """Transform uppercasing the whole text, markers and tokens included."""
    return str.upper


@pytest.fixture
def strip_markers_transform():
    """Transform that drops every block marker."""
    return lambda text: re.sub(r"\[\[BLOCK:[a-z0-9]+\]\]", "", text)


@pytest.fixture
def failing_transform():
    """Transform that always fails."""
    def _rewrite(text: str) -> str:
        raise HumanizeTransformError("service unavailable")
    return _rewrite
