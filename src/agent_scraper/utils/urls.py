"""
URL helpers for the agent directory.

Profile URLs are the identity of an agent, so every URL read from a page
goes through canonical_url before it is compared or stored.
"""

from urllib.parse import parse_qsl, urlencode, urljoin, urlparse, urlunparse


DEFAULT_BASE_URL = "https://www.zillow.com"

PAGE_PARAM = "page"


def canonical_url(href: str, base_url: str | None = None) -> str:
    """
    Resolve and normalize a link for consistent comparison.

    - Resolves relative and protocol-relative links against base_url
    - Lowercases scheme and host
    - Removes default ports
    - Removes trailing slashes (except root)
    - Drops query string and fragment

    Args:
        href: Link as found on the page
        base_url: URL of the page the link came from

    Returns:
        Canonical absolute URL
    """
    href = (href or "").strip()
    if not base_url or not base_url.startswith(("http://", "https://")):
        base_url = DEFAULT_BASE_URL

    absolute = urljoin(base_url, href)
    parsed = urlparse(absolute)

    scheme = parsed.scheme.lower()
    netloc = parsed.netloc.lower()

    if netloc.endswith(":80") and scheme == "http":
        netloc = netloc[:-3]
    elif netloc.endswith(":443") and scheme == "https":
        netloc = netloc[:-4]

    path = parsed.path or "/"
    if path != "/" and path.endswith("/"):
        path = path.rstrip("/")

    return urlunparse((scheme, netloc, path, "", "", ""))


def build_page_url(base_url: str, page: int) -> str:
    """
    URL of a directory page.

    Page 1 is the bare base URL; later pages carry a page query parameter
    appended after the existing query.

    Example:
        >>> build_page_url("https://x.test/agents/?isTopAgent=true", 3)
        'https://x.test/agents/?isTopAgent=true&page=3'
    """
    if page <= 1:
        return base_url

    parsed = urlparse(base_url)
    params = [
        (key, value)
        for key, value in parse_qsl(parsed.query, keep_blank_values=True)
        if key != PAGE_PARAM
    ]
    params.append((PAGE_PARAM, str(page)))

    return urlunparse(parsed._replace(query=urlencode(params)))
