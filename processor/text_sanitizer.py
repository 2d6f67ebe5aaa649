"""Reduce markdown-flavoured event descriptions to plain paragraphs."""
import html
import re
from typing import List, Optional


BULLET = '• '

# Everything from a --- line onwards holds link references and metadata
FOOTER_PATTERN = re.compile(r'\n\s*---.*\Z', re.DOTALL)
ESCAPED_CHAR_PATTERN = re.compile(r"\\([*'_])")
LINK_DEFINITION_PATTERN = re.compile(r'^[ \t]*\[\d+\]:.*$', re.MULTILINE)
REFERENCE_LINK_PATTERN = re.compile(r'\[([^\]]+)\]\[\d+\]')
INLINE_LINK_PATTERN = re.compile(r'\[([^\]]+)\]\([^)]+\)')
BARE_URL_LINE_PATTERN = re.compile(r'^[ \t]*https?://\S+[ \t]*$', re.MULTILINE)
BULLET_PATTERN = re.compile(r'^[ \t]*\*[ \t]+', re.MULTILINE)
PARAGRAPH_BREAK_PATTERN = re.compile(r'\s*\n\s*\n\s*')


def strip_markdown(text: str) -> str:
    """
    Remove markdown artefacts while keeping the readable text.

    Args:
        text: Raw description text from the feed

    Returns:
        Plain text, not yet HTML-escaped
    """
    cleaned = FOOTER_PATTERN.sub('', text)
    cleaned = ESCAPED_CHAR_PATTERN.sub(r'\1', cleaned)
    cleaned = LINK_DEFINITION_PATTERN.sub('', cleaned)
    cleaned = REFERENCE_LINK_PATTERN.sub(r'\1', cleaned)
    cleaned = INLINE_LINK_PATTERN.sub(r'\1', cleaned)
    cleaned = BARE_URL_LINE_PATTERN.sub('', cleaned)
    cleaned = BULLET_PATTERN.sub(BULLET, cleaned)
    return cleaned


def sanitize_description(text: Optional[str]) -> List[str]:
    """
    Convert a description into HTML-safe paragraph units.

    Paragraphs are separated by blank lines. Single newlines inside a
    paragraph are kept so a renderer can turn them into soft breaks.

    Args:
        text: Description text, possibly None or empty

    Returns:
        List of escaped paragraphs, empty when there is nothing to show
    """
    if not text:
        return []

    escaped = html.escape(strip_markdown(text), quote=False)

    return [
        paragraph
        for paragraph in PARAGRAPH_BREAK_PATTERN.split(escaped)
        if ' '.join(paragraph.split())
    ]
