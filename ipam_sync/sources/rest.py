"""REST source - a single GET returning a JSON array."""
import logging

import requests

from ipam_sync.core.errors import FetchError, InvalidResponseShape
from ipam_sync.sources.base import HTTPSource

logger = logging.getLogger(__name__)


class RestSource(HTTPSource):
    """
    Source for generic REST endpoints.

    Config:
    {
        "api_url": "https://cmdb.example.com/api/libraries",
        "headers": {"X-Api-Key": "..."},
        "timeout": 30
    }
    """

    def __init__(self, config: dict):
        super().__init__(config)
        self.url = config.get("api_url", "")
        self.headers = dict(config.get("headers") or {})

    def fetch_records(self) -> list[dict]:
        if not self.url:
            raise FetchError("API URL is not configured")

        try:
            response = self.session.get(self.url, headers=self.headers, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"REST source {self.url} unreachable: {e}")
            raise FetchError(f"API request failed: {e}") from e

        if not response.ok:
            raise FetchError(f"API request failed: {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise InvalidResponseShape("API response is not valid JSON") from e

        if not isinstance(data, list):
            raise InvalidResponseShape("API response is not an array")

        logger.debug(f"REST source {self.url} returned {len(data)} records")
        return data
