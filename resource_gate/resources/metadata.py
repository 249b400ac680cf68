"""Resource metadata for roadmap previews: classification, embeds and page scraping."""

import html
import logging
from urllib.parse import parse_qs, urljoin, urlsplit

import httpx
from bs4 import BeautifulSoup

from resource_gate.api.models import ResourceMetadata
from resource_gate.exceptions import MetadataFetchError, ResourceNotPermittedError
from resource_gate.security.validator import ResourceUrlValidator

logger = logging.getLogger(__name__)

USER_AGENT = "ResourceGate/1.0 (learning resource preview)"

VIDEO_DOMAINS = ("youtube.com", "youtu.be", "vimeo.com")
INTERACTIVE_DOMAINS = ("codepen.io", "codesandbox.io", "replit.com", "jsfiddle.net")
DOCS_DOMAINS = (
    "developer.mozilla.org",
    "docs.python.org",
    "nodejs.org",
    "reactjs.org",
    "w3schools.com",
)

PREVIEW_PARAGRAPHS = 3
PREVIEW_PARAGRAPH_CHARS = 400
REDIRECT_STATUSES = {301, 302, 303, 307, 308}


def _host_in(hostname: str, domains: tuple[str, ...]) -> bool:
    return any(hostname == d or hostname.endswith(f".{d}") for d in domains)


def classify_resource(url: str) -> tuple[str, bool]:
    """Return (resource type, can_embed) for a URL based on its host."""
    hostname = (urlsplit(url).hostname or "").lower()
    if _host_in(hostname, VIDEO_DOMAINS):
        return "video", True
    if _host_in(hostname, INTERACTIVE_DOMAINS):
        return "interactive", True
    if _host_in(hostname, DOCS_DOMAINS):
        return "docs", False
    return "article", False


def embed_url_for(url: str, resource_type: str) -> str | None:
    """Build an iframe-safe embed URL for YouTube videos and CodePen pens."""
    parts = urlsplit(url)
    hostname = (parts.hostname or "").lower()

    if resource_type == "video" and _host_in(hostname, ("youtube.com", "youtu.be")):
        video_id = parse_qs(parts.query).get("v", [""])[0]
        if not video_id:
            video_id = parts.path.rstrip("/").split("/")[-1]
        if video_id and video_id not in ("watch", "embed"):
            return f"https://www.youtube.com/embed/{video_id}?autoplay=0"
        return None

    if resource_type == "interactive" and _host_in(hostname, ("codepen.io",)):
        path_parts = parts.path.split("/")
        # /<user>/pen/<id>
        if len(path_parts) >= 4 and path_parts[1] and path_parts[3]:
            return (
                f"https://codepen.io/{path_parts[1]}/embed/{path_parts[3]}"
                "?default-tab=result"
            )
    return None


def _meta_content(soup: BeautifulSoup, **attrs: str) -> str:
    tag = soup.find("meta", attrs=attrs)
    if tag and tag.get("content"):
        return " ".join(str(tag["content"]).split())
    return ""


def parse_page(markup: str, hostname: str) -> dict[str, str]:
    """Extract title, description and a small escaped HTML preview from a page."""
    soup = BeautifulSoup(markup, "html.parser")

    title = _meta_content(soup, property="og:title")
    if not title and soup.title and soup.title.string:
        title = " ".join(soup.title.string.split())
    description = _meta_content(soup, property="og:description") or _meta_content(
        soup, name="description"
    )

    paragraphs = []
    for p in soup.find_all("p"):
        text = " ".join(p.get_text(" ", strip=True).split())
        if len(text) < 40:
            continue
        paragraphs.append(f"<p>{html.escape(text[:PREVIEW_PARAGRAPH_CHARS])}</p>")
        if len(paragraphs) >= PREVIEW_PARAGRAPHS:
            break

    return {
        "title": title or hostname,
        "description": description,
        "preview_html": "".join(paragraphs),
    }


class MetadataFetcher:
    """Fetches preview metadata for a resource URL after it passes validation.

    Redirects are followed by hand so every hop goes through the validator.
    """

    def __init__(
        self,
        validator: ResourceUrlValidator,
        client: httpx.AsyncClient,
        max_redirects: int = 3,
        max_bytes: int = 1_000_000,
        timeout: float = 10.0,
    ) -> None:
        self.validator = validator
        self.client = client
        self.max_redirects = max_redirects
        self.max_bytes = max_bytes
        self.timeout = timeout

    async def _ensure_permitted(self, url: str) -> None:
        result = await self.validator.validate(url)
        if not result.valid:
            raise ResourceNotPermittedError(url, result.reason.value)

    async def _read_capped(self, response: httpx.Response) -> str:
        chunks: list[bytes] = []
        size = 0
        async for chunk in response.aiter_bytes():
            chunks.append(chunk)
            size += len(chunk)
            if size >= self.max_bytes:
                break
        body = b"".join(chunks)[: self.max_bytes]
        return body.decode(response.encoding or "utf-8", errors="replace")

    async def fetch_page(self, url: str) -> str:
        """Return the HTML body of ``url``, validating it and every redirect target."""
        await self._ensure_permitted(url)
        return await self._follow(url)

    async def _follow(self, url: str) -> str:
        # ``url`` has already been validated; redirect targets are checked here.
        current = url
        for hop in range(self.max_redirects + 1):
            if hop:
                await self._ensure_permitted(current)
            request = self.client.build_request(
                "GET",
                current,
                headers={"User-Agent": USER_AGENT, "Accept": "text/html"},
                timeout=self.timeout,
            )
            response = await self.client.send(request, stream=True)
            try:
                if response.status_code in REDIRECT_STATUSES:
                    location = response.headers.get("location")
                    if not location:
                        raise MetadataFetchError("Redirect without Location", url=current)
                    current = urljoin(current, location)
                    logger.debug("following_redirect", extra={"url": current, "hop": hop + 1})
                    continue
                if response.status_code >= 400:
                    raise MetadataFetchError(
                        f"Upstream returned status {response.status_code}", url=current
                    )
                content_type = response.headers.get("content-type", "")
                if content_type and "html" not in content_type:
                    return ""
                return await self._read_capped(response)
            finally:
                await response.aclose()
        raise MetadataFetchError("Too many redirects", url=url)

    async def fetch(self, url: str) -> ResourceMetadata:
        """Build preview metadata for ``url``.

        Raises ResourceNotPermittedError if the URL (or a redirect target) fails
        validation. Network and upstream errors fall back to a minimal record.
        """
        # Unparseable URLs are rejected here, before any host is read from them.
        await self._ensure_permitted(url)

        hostname = (urlsplit(url).hostname or "").lower()
        resource_type, can_embed = classify_resource(url)
        page = {"title": hostname, "description": "", "preview_html": ""}

        try:
            markup = await self._follow(url)
            if markup:
                page = parse_page(markup, hostname)
        except (httpx.HTTPError, httpx.InvalidURL, MetadataFetchError) as e:
            logger.warning(
                "metadata_fetch_failed",
                extra={"url": url, "exc_type": type(e).__name__, "error": str(e)},
            )

        return ResourceMetadata(
            type=resource_type,
            title=page["title"],
            description=page["description"],
            hostname=hostname,
            preview_html=page["preview_html"],
            can_embed=can_embed,
            url=url,
            embed_url=embed_url_for(url, resource_type),
        )
