"""
Input Sanitization Utilities

Provides HTML sanitization for markup stored by html fields and the
protocol check used by url fields.
"""

import bleach
from typing import Optional, List
import re


# Allowed tags for rich content (like blog posts/articles)
RICH_CONTENT_TAGS = [
    'p', 'br', 'strong', 'em', 'u', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6',
    'blockquote', 'code', 'pre', 'hr', 'ul', 'ol', 'li', 'a', 'img',
    'table', 'thead', 'tbody', 'tr', 'th', 'td', 'div', 'span'
]

# Allowed attributes for rich content
RICH_CONTENT_ATTRS = {
    'a': ['href', 'title', 'target', 'rel'],
    'img': ['src', 'alt', 'title', 'width', 'height'],
    'code': ['class'],
    'pre': ['class'],
    'div': ['class'],
    'span': ['class'],
    'table': ['class'],
}

# Allowed protocols for URLs
ALLOWED_PROTOCOLS = ['http', 'https', 'mailto']


def sanitize_html(
    text: Optional[str],
    tags: Optional[List[str]] = None,
    attributes: Optional[dict] = None,
    strip: bool = False
) -> str:
    """
    Sanitize HTML content to prevent XSS attacks.

    Args:
        text: The HTML text to sanitize
        tags: List of allowed HTML tags (default: RICH_CONTENT_TAGS)
        attributes: Dict of allowed attributes per tag (default: RICH_CONTENT_ATTRS)
        strip: If True, strip all HTML tags

    Returns:
        Sanitized HTML string
    """
    if text is None:
        return ""

    if strip:
        return bleach.clean(text, tags=[], strip=True)

    allowed_tags = tags if tags is not None else RICH_CONTENT_TAGS
    allowed_attrs = attributes if attributes is not None else RICH_CONTENT_ATTRS

    return bleach.clean(
        text,
        tags=allowed_tags,
        attributes=allowed_attrs,
        protocols=ALLOWED_PROTOCOLS,
        strip=True
    )


# Schemes a url field never stores
DANGEROUS_PROTOCOLS = ['javascript:', 'data:', 'vbscript:', 'file:']


def is_safe_url(url: Optional[str]) -> bool:
    """
    Check a URL against script-capable protocols.

    Args:
        url: The URL to check

    Returns:
        False if the URL uses a dangerous protocol
    """
    if not url:
        return True

    # Browsers ignore embedded whitespace and control characters in schemes
    url_lower = re.sub(r'[\s\x00-\x1f]+', '', url).lower()

    return not any(url_lower.startswith(proto) for proto in DANGEROUS_PROTOCOLS)
