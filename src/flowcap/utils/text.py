"""Naming helpers shared by the recorder, the tree builder and the manifest store."""

import re
from urllib.parse import urlparse

from flowcap.constants import HOME_STEP_NAME, SLUG_MAX_LENGTH

_NON_SLUG_CHARS = re.compile(r"[^\w\s-]", re.ASCII)
_WHITESPACE = re.compile(r"\s+")


def slugify(text: str) -> str:
    """Lowercase, drop punctuation, hyphenate whitespace, truncate.

    >>> slugify("Step 2: Checkout!")
    'step-2-checkout'
    """
    slug = _NON_SLUG_CHARS.sub("", text.lower())
    slug = _WHITESPACE.sub("-", slug)
    return slug[:SLUG_MAX_LENGTH]


def step_name_from_url(url: str) -> str:
    """Derive a display name for a crawled page from its path.

    ``/`` becomes "Home"; ``/docs/intro/`` becomes "docs - intro".
    """
    path = urlparse(url).path
    if path in ("", "/"):
        return HOME_STEP_NAME
    name = path.strip("/").replace("/", " - ")
    return name or HOME_STEP_NAME
