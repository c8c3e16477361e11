"""
Optional visual assets (the cover logo).

Assets are resolved once, before layout starts. A missing asset is never an
error: the caller gets ``None`` and the Logo block draws its text fallback.
"""

import logging
from typing import Optional

import httpx

logger = logging.getLogger("credit-report.assets")


async def fetch_logo(url: str, timeout: float = 10,
                     transport: Optional[httpx.AsyncBaseTransport] = None) -> Optional[bytes]:
    """Download a logo image, or return None if it cannot be fetched."""
    async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
        try:
            resp = await client.get(url)
            resp.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(f"Logo unavailable at {url}: {e}")
            return None
    if not resp.content:
        logger.warning(f"Logo at {url} is empty")
        return None
    return resp.content


def load_logo(path: str) -> Optional[bytes]:
    """Read a logo image from disk, or return None if it cannot be read."""
    try:
        with open(path, 'rb') as f:
            return f.read()
    except OSError as e:
        logger.warning(f"Logo unavailable at {path}: {e}")
        return None
