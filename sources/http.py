"""Shared HTTP helper for event source adapters."""
import logging
import time
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)


def get_json_with_retry(
    url: str,
    params: Optional[Dict[str, Any]] = None,
    timeout: int = 10,
    max_retries: int = 3,
    base_delay: float = 1,
    allow_not_found: bool = False
) -> Any:
    """
    GET a JSON document with exponential backoff on failures.

    Args:
        url: Request URL
        params: Query string parameters
        timeout: HTTP request timeout in seconds
        max_retries: Total number of attempts
        base_delay: Delay before the first retry, doubled on each attempt
        allow_not_found: Return None for a 404 instead of raising

    Returns:
        Decoded JSON body, or None for an allowed 404

    Raises:
        requests.RequestException: If all retry attempts fail
    """
    for attempt in range(max_retries):
        try:
            logger.debug(f"GET {url} (attempt {attempt + 1}/{max_retries})")
            response = requests.get(
                url,
                params=params,
                headers={'Accept': 'application/json'},
                timeout=timeout
            )
            if allow_not_found and response.status_code == 404:
                return None
            response.raise_for_status()
            return response.json()

        except requests.RequestException as e:
            if attempt < max_retries - 1:
                delay = base_delay * (2 ** attempt)
                logger.warning(
                    f"Request failed (attempt {attempt + 1}/{max_retries}): {e}. "
                    f"Retrying in {delay} seconds..."
                )
                time.sleep(delay)
            else:
                logger.error(
                    f"All {max_retries} retry attempts failed. Last error: {e}"
                )
                raise
