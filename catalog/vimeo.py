"""Read-only client for the Vimeo API.

Used to look up externally hosted videos, their thumbnails, and to turn the
many shapes of Vimeo links an editor may paste into a canonical numeric id.
The bearer token is read from ``VIMEO_TOKEN`` on every call.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import NamedTuple

import requests
from decouple import config
from django.conf import settings

from .errors import AuthError, CatalogError, ConfigurationError, ProviderError

logger = logging.getLogger(__name__)

API_BASE = "https://api.vimeo.com"
ACCEPT = "application/vnd.vimeo.*+json;version=3.4"
MAX_PER_PAGE = 100

_MANAGE_WITH_HASH = re.compile(r"vimeo\.com/manage/videos/(\d+)/([a-f0-9]+)", re.IGNORECASE)
_MANAGE = re.compile(r"vimeo\.com/manage/videos/(\d+)", re.IGNORECASE)
_WATCH_WITH_HASH = re.compile(r"vimeo\.com/(\d+)/([a-f0-9]+)", re.IGNORECASE)
_BARE_ID = re.compile(r"^\d+$")
_WATCH_OR_EMBED = re.compile(r"(?:player\.vimeo\.com/video/|vimeo\.com/)(\d+)", re.IGNORECASE)
_API_URI = re.compile(r"/videos/(\d+)")


class VimeoRef(NamedTuple):
    id: str
    hash: str | None = None


@dataclass
class FetchResult:
    videos: list = field(default_factory=list)
    complete: bool = True


def resolve_id(value: str) -> VimeoRef:
    """Normalize a Vimeo id or URL to ``VimeoRef(id, hash)``.

    Accepted shapes, tried in this order:
        - https://vimeo.com/manage/videos/123456789/ab8ee4cce4
        - https://vimeo.com/manage/videos/123456789
        - https://vimeo.com/123456789/ab8ee4cce4 (unlisted)
        - 123456789
        - https://vimeo.com/123456789, https://player.vimeo.com/video/123456789
        - /videos/123456789 (API uri)

    Anything else comes back unchanged as the id with no hash; this is a
    best-effort parse, not a validity check.
    """
    text = (value or "").strip()

    match = _MANAGE_WITH_HASH.search(text)
    if match:
        return VimeoRef(match.group(1), match.group(2))

    match = _MANAGE.search(text)
    if match:
        return VimeoRef(match.group(1))

    match = _WATCH_WITH_HASH.search(text)
    if match:
        return VimeoRef(match.group(1), match.group(2))

    if _BARE_ID.match(text):
        return VimeoRef(text)

    match = _WATCH_OR_EMBED.search(text) or _API_URI.search(text)
    if match:
        return VimeoRef(match.group(1))

    return VimeoRef(value)


def _token() -> str:
    token = config("VIMEO_TOKEN", default="")
    if not token:
        raise ConfigurationError("VIMEO_TOKEN", detail="VIMEO_TOKEN environment variable is not set")
    return token


def _get(path: str, params: dict | None = None) -> requests.Response:
    headers = {
        "Authorization": f"Bearer {_token()}",
        "Accept": ACCEPT,
    }
    try:
        return requests.get(
            f"{API_BASE}{path}",
            headers=headers,
            params=params,
            timeout=getattr(settings, "VIMEO_TIMEOUT", 15),
        )
    except requests.RequestException as exc:
        logger.error("Vimeo API request to %s failed: %s", path, exc)
        raise ProviderError(f"Vimeo API request failed: {exc}") from exc


def _raise_for_status(response: requests.Response, context: str):
    if 200 <= response.status_code < 300:
        return
    logger.error("Vimeo API error (%s): %s %s", context, response.status_code, response.text)
    if response.status_code == 401:
        raise AuthError(upstream_status=401)
    raise ProviderError(
        f"Vimeo API error: {response.status_code} - {response.text}",
        upstream_status=response.status_code,
    )


def _json(response: requests.Response):
    try:
        return response.json()
    except ValueError as exc:
        raise ProviderError("Vimeo API returned invalid JSON", upstream_status=response.status_code) from exc


def fetch_by_id(video_id: str) -> dict | None:
    """Fetch one video; returns None when Vimeo reports 404."""
    numeric_id = resolve_id(str(video_id)).id
    response = _get(f"/videos/{numeric_id}")

    if response.status_code == 404:
        logger.warning("Vimeo video %s not found", numeric_id)
        return None

    _raise_for_status(response, f"video {numeric_id}")
    return _json(response)


def fetch_page(per_page: int = 25, page: int = 1) -> dict:
    per_page = max(1, min(int(per_page), MAX_PER_PAGE))
    response = _get("/me/videos", params={"page": page, "per_page": per_page})
    _raise_for_status(response, f"page {page}")
    return _json(response)


def fetch_all(per_page: int = 25, max_pages: int = 10) -> FetchResult:
    """Walk the account listing page by page.

    A failure on the first page propagates. A failure on a later page ends
    the walk and returns what was collected with ``complete=False``, as does
    reaching ``max_pages`` while Vimeo still reports more.
    """
    per_page = max(1, min(int(per_page), MAX_PER_PAGE))
    videos = []
    page = 1

    while page <= max_pages:
        try:
            listing = fetch_page(per_page, page)
        except CatalogError as exc:
            if page == 1:
                raise
            logger.warning("Stopped fetching Vimeo videos at page %s due to error: %s", page, exc)
            return FetchResult(videos, complete=False)

        batch = listing.get("data") or []
        videos.extend(batch)

        has_next = bool((listing.get("paging") or {}).get("next"))
        if len(batch) < per_page or not has_next:
            logger.info("Fetched %s videos from Vimeo (%s page(s))", len(videos), page)
            return FetchResult(videos, complete=True)
        page += 1

    logger.info("Fetched %s videos from Vimeo, stopped at max_pages=%s", len(videos), max_pages)
    return FetchResult(videos, complete=False)


def extract_thumbnail(video: dict) -> str | None:
    sizes = ((video or {}).get("pictures") or {}).get("sizes") or []
    if not sizes:
        return None
    largest = max(sizes, key=lambda size: (size.get("width") or 0) * (size.get("height") or 0))
    return largest.get("link") or None


def verify_connection() -> dict:
    try:
        listing = fetch_page(per_page=1, page=1)
    except CatalogError as exc:
        return {"success": False, "message": str(exc.detail)}
    except Exception as exc:
        logger.exception("Unexpected error verifying the Vimeo connection")
        return {"success": False, "message": str(exc) or "Unknown error"}

    data = listing.get("data") or []
    return {
        "success": True,
        "message": "Vimeo API connection successful",
        "videoCount": listing.get("total", len(data)),
    }
