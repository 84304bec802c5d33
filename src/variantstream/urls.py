"""URL helpers shared by the manifest parsers."""

from typing import Optional
from urllib.parse import urljoin, urlparse


def base_dir(url: str) -> str:
    if url.endswith("/"):
        return url
    if "/" not in url:
        return url + "/"
    return url.rsplit("/", 1)[0] + "/"


def resolve_url(base: Optional[str], relative: str) -> str:
    """Resolve ``relative`` against ``base``; absolute URLs are returned as-is."""
    parsed = urlparse(relative)
    if parsed.scheme or not base:
        return relative
    return urljoin(base, relative)
