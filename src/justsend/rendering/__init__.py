# =============================================================================
# Rendering Module
# =============================================================================
# Turns the composed HTML body into the plain-text alternative that is sent
# with every email:
#   - inscriptis-based HTML→text conversion
#   - regex tag stripping as a fallback
# =============================================================================

from justsend.rendering.text import (
    TextRenderOptions,
    TextRenderer,
    extract_plain_text,
    strip_tags,
)

__all__ = ["TextRenderOptions", "TextRenderer", "extract_plain_text", "strip_tags"]
