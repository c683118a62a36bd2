"""
Listing preview image scraper.

Fetches a lead's source page and extracts a representative image from its
Open Graph / Twitter card metadata. Best effort: every failure is logged and
swallowed so lead creation never depends on it.
"""

import re
from typing import Callable, Optional
from urllib.parse import urljoin

import httpx
from sqlalchemy.orm import Session

from core.config import settings
from core.logging import get_logger
from lead_explorer.repository import LeadRepository

logger = get_logger("lead_explorer_preview", domain="lead_explorer")

USER_AGENT = "Mozilla/5.0 (compatible; CarLeadBot/1.0)"

# Tried in order, first match wins
IMAGE_PATTERNS = [
    re.compile(r"<meta[^>]+property=[\"']og:image[\"'][^>]*content=[\"']([^\"']+)[\"']", re.IGNORECASE),
    re.compile(r"<meta[^>]+content=[\"']([^\"']+)[\"'][^>]*property=[\"']og:image[\"']", re.IGNORECASE),
    re.compile(r"<meta[^>]+property=[\"']og:image:url[\"'][^>]*content=[\"']([^\"']+)[\"']", re.IGNORECASE),
    re.compile(r"<meta[^>]+name=[\"']twitter:image[\"'][^>]*content=[\"']([^\"']+)[\"']", re.IGNORECASE),
    re.compile(r"<link[^>]+rel=[\"']image_src[\"'][^>]*href=[\"']([^\"']+)[\"']", re.IGNORECASE),
]


def extract_preview_image(html: str, page_url: str) -> Optional[str]:
    """Return the absolute preview image URL found in the page, if any"""
    for pattern in IMAGE_PATTERNS:
        match = pattern.search(html)
        if match:
            return urljoin(page_url, match.group(1).strip())
    return None


async def fetch_preview_image(
    url: str,
    timeout: Optional[float] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Optional[str]:
    """
    Fetch a page and extract its preview image

    Args:
        url: Listing URL
        timeout: Request timeout in seconds, defaults to the configured value
        transport: Optional httpx transport (used for testing)

    Returns:
        Absolute image URL, or None when the page has none or the fetch failed
    """
    try:
        async with httpx.AsyncClient(
            timeout=timeout or settings.preview_fetch_timeout_seconds,
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
            transport=transport,
        ) as client:
            response = await client.get(url)
            response.raise_for_status()
            return extract_preview_image(response.text, str(response.url))
    except (httpx.HTTPError, ValueError) as e:
        logger.warning(f"Preview fetch failed for {url}: {e}")
        return None


async def update_lead_preview(
    lead_id: str,
    url: str,
    session_factory: Callable[[], Session],
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> None:
    """Background task: store the preview image on the lead in a fresh session"""
    image_url = await fetch_preview_image(url, transport=transport)
    if not image_url:
        return

    db = session_factory()
    try:
        if LeadRepository(db).set_preview_image(lead_id, image_url):
            logger.info(f"Stored preview image for lead {lead_id}")
    except Exception as e:
        db.rollback()
        logger.warning(f"Failed to store preview image for lead {lead_id}: {e}")
    finally:
        db.close()
