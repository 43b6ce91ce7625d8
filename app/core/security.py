"""
Output escaping for user-supplied text rendered into HTML (emails, slips).
"""
import html
import re

_SCRIPT_BLOCK = re.compile(r"<script\b[^>]*>.*?</script\s*>", re.IGNORECASE | re.DOTALL)


def sanitize_input(text):
    """Drop <script> blocks, then HTML-escape what is left. Non-strings pass through."""
    if not isinstance(text, str):
        return text
    return html.escape(_SCRIPT_BLOCK.sub("", text).strip(), quote=True)
