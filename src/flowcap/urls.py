"""URL normalization and crawl admissibility.

The normalized form produced here is the deduplication key for a whole crawl:
two URLs that differ only by fragment or by a trailing slash are one page.
"""

from typing import Iterable, Optional
from urllib.parse import urljoin, urlsplit, urlunsplit

from flowcap.constants import SKIP_EXTENSIONS, SKIP_SCHEMES

_DEFAULT_PORTS = {"http": 80, "https": 443}


def normalize_url(url: Optional[str]) -> Optional[str]:
    """Normalize URL by removing the fragment and trailing slashes.

    Scheme and host are lowercased and default ports dropped, so the result
    is stable: normalizing a normalized URL returns it unchanged.

    Args:
        url: URL to normalize

    Returns:
        Normalized URL, or None if the URL is malformed
    """
    if not url or not isinstance(url, str):
        return None

    try:
        parts = urlsplit(url.strip())
        port = parts.port
    except ValueError:
        return None

    scheme = parts.scheme.lower()
    if not scheme:
        return None

    if scheme not in _DEFAULT_PORTS:
        # Opaque or non-web URLs (mailto:, data:, ...) only lose their fragment
        return urlunsplit((scheme, parts.netloc, parts.path, parts.query, ""))

    if not parts.hostname:
        return None

    host = parts.hostname
    if ":" in host:
        host = f"[{host}]"
    netloc = host
    if port is not None and port != _DEFAULT_PORTS[scheme]:
        netloc = f"{host}:{port}"
    if "@" in parts.netloc:
        netloc = parts.netloc.rsplit("@", 1)[0] + "@" + netloc

    # Remove trailing slash (except for root)
    path = parts.path.rstrip("/") or "/"

    return urlunsplit((scheme, netloc, path, parts.query, ""))


def origin_of(url: str) -> Optional[str]:
    """Return ``scheme://host[:port]`` for a URL, omitting default ports.

    Args:
        url: Absolute URL

    Returns:
        Origin string, or None for URLs without a host
    """
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError:
        return None

    if not parts.scheme or not parts.hostname:
        return None

    scheme = parts.scheme.lower()
    host = parts.hostname
    if ":" in host:
        host = f"[{host}]"
    if port is not None and port != _DEFAULT_PORTS.get(scheme):
        return f"{scheme}://{host}:{port}"
    return f"{scheme}://{host}"


def resolve_link(base_url: str, href: Optional[str]) -> Optional[str]:
    """Resolve an anchor href against the page it was found on.

    Args:
        base_url: URL of the current page
        href: Raw href attribute value

    Returns:
        Absolute URL, or None if the href is empty or cannot be resolved
    """
    if not href or not href.strip():
        return None
    try:
        return urljoin(base_url, href.strip())
    except ValueError:
        return None


def has_skipped_extension(path: str) -> bool:
    """Check if a URL path points at a download or media file."""
    path_lower = path.lower()
    return any(path_lower.endswith(ext) for ext in SKIP_EXTENSIONS)


def is_admissible(url: Optional[str], base_origin: str, exclude_patterns: Iterable[str] = ()) -> bool:
    """Decide whether a discovered URL may be crawled.

    A URL is admissible when it has the same origin as the crawl, is not a
    javascript:/mailto:/tel:/data: link, does not end in a download or media
    extension and contains none of the exclude patterns as a substring.

    Args:
        url: Candidate URL
        base_origin: Origin of the seed URL (see origin_of)
        exclude_patterns: Plain substrings, not regular expressions

    Returns:
        True if the URL should be crawled
    """
    if not url:
        return False

    try:
        parts = urlsplit(url)
    except ValueError:
        return False

    if parts.scheme.lower() in SKIP_SCHEMES:
        return False

    if origin_of(url) != base_origin:
        return False

    if has_skipped_extension(parts.path):
        return False

    for pattern in exclude_patterns:
        if pattern and pattern in url:
            return False

    return True
