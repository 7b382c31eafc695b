import logging
from typing import Optional

import httpx

from calsnap.constants import SCRAPER_SETTINGS
from calsnap.errors import PageFetchError

logger = logging.getLogger(__name__)


async def fetch_page(url: str, client: Optional[httpx.AsyncClient] = None) -> str:
    """
    Fetch a web page with browser-like headers.

    Args:
        url: Page URL
        client: Optional shared client (tests inject one backed by MockTransport)

    Returns:
        Page markup as text

    Raises:
        PageFetchError: network failure, timeout or non-2xx status
    """
    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient(
            headers=SCRAPER_SETTINGS.REQUEST_HEADERS,
            timeout=SCRAPER_SETTINGS.FETCH_TIMEOUT_SECONDS,
            follow_redirects=True,
        )

    try:
        response = await client.get(url)
    except httpx.HTTPError as e:
        logger.warning("Page fetch failed for %s: %s", url, e)
        raise PageFetchError(f"Could not fetch {url}: {e}") from e
    finally:
        if owns_client:
            await client.aclose()

    if not response.is_success:
        logger.warning("Page fetch for %s returned HTTP %s", url, response.status_code)
        raise PageFetchError(f"{url} returned HTTP {response.status_code}")

    logger.debug("Fetched %s (%d bytes)", url, len(response.content))
    return response.text
