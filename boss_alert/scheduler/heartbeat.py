from __future__ import annotations

from typing import Optional

import httpx
from loguru import logger

DEFAULT_TIMEOUT = 30  # seconds


def ping(url: str, timeout: float = DEFAULT_TIMEOUT) -> Optional[int]:
    """Issue one GET to ``url`` and log the response.

    Returns:
        The HTTP status code, or None if the request failed.
    """
    try:
        with httpx.Client(timeout=timeout) as client:
            response = client.get(url)
            body = response.text
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.error(f"Error making request to {url}: {e}")
        return None

    logger.info(f"Response status: {response.status_code} {response.reason_phrase}")
    logger.info(f"Response body: {body}")
    return response.status_code
