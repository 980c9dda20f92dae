# =============================================================================
# HTML to Plain Text
# =============================================================================
# Derives the plain-text alternative sent alongside every HTML email.
#
# inscriptis is a battle-tested HTML-to-text converter that handles:
#   - Complex table layouts (common in email HTML)
#   - Proper whitespace and line break handling
#   - Lists, headings, and other semantic elements
#
# If inscriptis fails on some input, we fall back to stripping tags with a
# regex. The result is worse but still better than sending no text part.
# =============================================================================

import logging
import re
from dataclasses import dataclass

from inscriptis import get_text
from inscriptis.css_profiles import CSS_PROFILES
from inscriptis.model.config import ParserConfig

logger = logging.getLogger(__name__)

TAG_PATTERN = re.compile(r"<[^>]+>")


@dataclass
class TextRenderOptions:
    """
    Options for text rendering.

    Attributes:
        display_links: Append link targets after link text.
        display_images: Show image alt text as [alt].
    """
    display_links: bool = False
    display_images: bool = False


class TextRenderer:
    """
    Renders HTML email bodies as plain text using inscriptis.

    Usage:
        >>> renderer = TextRenderer()
        >>> renderer.render("<p>Hello <b>World</b></p>")
        'Hello World'
    """

    def __init__(self, options: TextRenderOptions | None = None) -> None:
        """
        Initialize the text renderer.

        Args:
            options: Rendering options.
        """
        self.options = options or TextRenderOptions()

        # Configure inscriptis
        self._config = ParserConfig(
            css=CSS_PROFILES['strict'],  # Better whitespace handling
            display_links=self.options.display_links,
            display_images=self.options.display_images,
            display_anchors=False,  # Don't show anchor names
        )

    def render(self, html_content: str) -> str:
        """
        Convert HTML to plain text.

        Args:
            html_content: HTML content to render.

        Returns:
            Plain text. Empty string for empty input.
        """
        if not html_content or not html_content.strip():
            return ""

        # Pre-clean HTML
        html_content = self._preclean_html(html_content)

        # Use inscriptis for conversion
        text = get_text(html_content, self._config)

        return self._clean_output(text)

    def _preclean_html(self, html: str) -> str:
        """Pre-clean HTML before parsing to remove problematic content."""
        # Remove style tags
        html = re.sub(r'<style[^>]*>.*?</style>', '', html, flags=re.DOTALL | re.IGNORECASE)

        # Remove script tags (shouldn't be in email but just in case)
        html = re.sub(r'<script[^>]*>.*?</script>', '', html, flags=re.DOTALL | re.IGNORECASE)

        return html

    def _clean_output(self, text: str) -> str:
        """Clean up the rendered output."""
        # Remove zero-width characters
        text = re.sub(r'[\u200b\u200c\u200d\u2060\ufeff]+', '', text)

        # Normalize multiple blank lines to max 2
        text = re.sub(r'\n{3,}', '\n\n', text)

        # Remove trailing whitespace from lines
        lines = [line.rstrip() for line in text.split('\n')]
        text = '\n'.join(lines)

        # Remove leading/trailing blank lines
        return text.strip()


_default_renderer = TextRenderer()


def strip_tags(html_content: str) -> str:
    """Naive fallback: drop everything that looks like a tag."""
    return TAG_PATTERN.sub("", html_content)


def extract_plain_text(html_content: str, renderer: TextRenderer | None = None) -> str:
    """
    Best-effort plain-text rendering of an HTML body.

    Args:
        html_content: HTML to convert.
        renderer: Renderer to use. Defaults to a shared TextRenderer.

    Returns:
        The rendered text, or the tag-stripped HTML if rendering failed.
    """
    renderer = renderer or _default_renderer
    try:
        return renderer.render(html_content)
    except Exception as e:
        logger.warning(f"HTML to text rendering failed, stripping tags instead: {e}")
        return strip_tags(html_content)
