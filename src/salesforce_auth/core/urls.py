"""URL helpers for building provider links and vetting redirect targets."""

import logging
from typing import Optional
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)


def join_links(*parts: str) -> str:
    """Join URL fragments with single slashes.

    Query strings found in any fragment are collected and appended to the
    end of the joined path, so ``join_links(base, "?a=b")`` attaches the query
    to ``base`` without inserting a slash.

    Example:
        >>> join_links("https://site.test/", "/salesforce-auth", "callback")
        'https://site.test/salesforce-auth/callback'
    """
    result = ""
    queries: list[str] = []
    fragment: Optional[str] = None

    for part in parts:
        if not part:
            continue

        part = str(part)
        if "#" in part:
            part, fragment = part.split("#", 1)
        if "?" in part:
            part, query = part.split("?", 1)
            if query:
                queries.append(query)
        if not part:
            continue

        if result and not result.endswith("/") and not part.startswith("/"):
            result += "/" + part
        elif result.endswith("/") and part.startswith("/"):
            result += part.lstrip("/")
        else:
            result += part

    if queries:
        result += "?" + "&".join(queries)
    if fragment:
        result += "#" + fragment

    return result


def absolute_base_url(configured: Optional[str], request_base_url: str) -> str:
    """Return the site's absolute base URL, always ending with a slash.

    Args:
        configured: Explicit base URL from settings (wins when set)
        request_base_url: Base URL of the incoming request

    Returns:
        Absolute base URL
    """
    url = configured or request_base_url
    if not url.endswith("/"):
        url += "/"
    return url


def is_site_url(url: Optional[str], base_url: str) -> bool:
    """Check whether a redirect target stays on this site.

    Relative paths are site URLs. Absolute URLs must be http(s) and point at
    the same host and port as ``base_url``. Protocol-relative URLs
    (``//host/path``) are rejected since browsers resolve them off-site.

    Args:
        url: Candidate redirect target
        base_url: Absolute base URL of the site

    Returns:
        True if the URL may be followed after login
    """
    if not url or not isinstance(url, str):
        return False

    # Browsers normalise "\" to "/" and drop control characters
    if "\\" in url or any(ord(char) < 32 or ord(char) == 127 for char in url):
        return False

    try:
        target = urlsplit(url)
        base = urlsplit(base_url)

        if not target.scheme and not target.netloc:
            return True

        if target.scheme.lower() not in ("http", "https") or not target.netloc:
            return False

        return (
            (target.hostname or "").lower() == (base.hostname or "").lower()
            and target.port == base.port
        )

    except ValueError:
        logger.warning(f"Unparseable redirect target rejected: {url!r}")
        return False
