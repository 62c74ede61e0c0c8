"""
Input Sanitization Utilities

HTML cleaning for rich text field values and plain-text cleaning for
values collected from public forms.
"""

import re
from typing import Optional, List

import bleach


# Tags a richtext field may keep
RICH_CONTENT_TAGS = [
    'p', 'br', 'strong', 'em', 'u', 's', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6',
    'blockquote', 'code', 'pre', 'hr', 'ul', 'ol', 'li', 'a', 'img',
    'table', 'thead', 'tbody', 'tr', 'th', 'td', 'div', 'span', 'figure', 'figcaption'
]

RICH_CONTENT_ATTRS = {
    'a': ['href', 'title', 'target', 'rel'],
    'img': ['src', 'alt', 'title', 'width', 'height'],
    'code': ['class'],
    'pre': ['class'],
    'div': ['class'],
    'span': ['class'],
    'table': ['class'],
}

ALLOWED_PROTOCOLS = ['http', 'https', 'mailto', 'tel']


def sanitize_html(
    text: Optional[str],
    tags: Optional[List[str]] = None,
    attributes: Optional[dict] = None,
) -> str:
    """
    Sanitize HTML content to prevent XSS attacks.

    Args:
        text: The HTML text to sanitize
        tags: Allowed HTML tags (default: RICH_CONTENT_TAGS)
        attributes: Allowed attributes per tag (default: RICH_CONTENT_ATTRS)

    Returns:
        Sanitized HTML string
    """
    if text is None:
        return ""

    return bleach.clean(
        text,
        tags=tags if tags is not None else RICH_CONTENT_TAGS,
        attributes=attributes if attributes is not None else RICH_CONTENT_ATTRS,
        protocols=ALLOWED_PROTOCOLS,
        strip=True,
    )


def sanitize_plain_text(text: Optional[str]) -> str:
    """Strip all HTML tags and collapse whitespace."""
    if text is None:
        return ""

    cleaned = bleach.clean(text, tags=[], strip=True)
    return re.sub(r'\s+', ' ', cleaned).strip()


def sanitize_email(email: Optional[str]) -> str:
    if not email:
        return ""
    return sanitize_plain_text(email).lower()


def escape_like(pattern: str, escape_char: str = "\\") -> str:
    """Escape LIKE wildcards so a search term matches literally."""
    return (
        pattern.replace(escape_char, escape_char * 2)
        .replace("%", f"{escape_char}%")
        .replace("_", f"{escape_char}_")
    )
