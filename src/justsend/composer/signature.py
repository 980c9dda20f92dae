# =============================================================================
# Signature Blocks
# =============================================================================
# A sender's signature is appended to the HTML body as:
#
#     <br><br>--<br>line one<br>line two
#
# When the sender changes, the old block is removed only if the body still
# ends with exactly that text. Any edit after the signature (or an editor
# that re-serializes the HTML) breaks the match and the old block stays.
# =============================================================================

SIGNATURE_SEPARATOR = "<br><br>--<br>"


def render_signature(signature: str) -> str:
    """
    Returns the HTML block for a plain-text signature.

    Example:
        >>> render_signature("Best,\\nAnna")
        '<br><br>--<br>Best,<br>Anna'
    """
    return SIGNATURE_SEPARATOR + signature.replace("\n", "<br>")


def strip_signature(body: str, signature: str | None) -> str:
    """
    Remove a trailing signature block from the body.

    Returns the body unchanged if the signature is empty or the body
    doesn't end with its exact block.
    """
    if not signature:
        return body

    block = render_signature(signature)
    if body.endswith(block):
        return body[: -len(block)]
    return body


def append_signature(body: str, signature: str | None) -> str:
    """Append a signature block, or return the body as-is if there's no signature."""
    if not signature:
        return body
    return body + render_signature(signature)
