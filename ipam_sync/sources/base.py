"""Base classes for external record sources."""
from abc import ABC, abstractmethod
from typing import Any, Optional

import requests

from ipam_sync.config import settings


class SourceAdapter(ABC):
    """Abstract base class for external record sources.

    An adapter turns one connection into an ordered list of flat records
    (field name -> scalar or list). It makes a single attempt; any failure
    raises FetchError and aborts the run.
    """

    @abstractmethod
    def fetch_records(self) -> list[dict[str, Any]]:
        """
        Fetch every record from the source, in source order.

        Returns:
            List of raw records

        Raises:
            FetchError: the upstream call failed or returned an unusable body
        """
        pass

    def close(self):
        """Clean up resources (optional)."""
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class HTTPSource(SourceAdapter):
    """Shared requests.Session handling for HTTP-backed sources."""

    def __init__(self, config: dict):
        self.timeout = config.get("timeout", settings.SOURCE_TIMEOUT_SECONDS)
        self._session: Optional[requests.Session] = None

    @property
    def session(self) -> requests.Session:
        """Lazy initialization of requests session."""
        if self._session is None:
            self._session = requests.Session()
        return self._session

    @staticmethod
    def _error_text(response) -> str:
        """Best-effort error text from a failed response."""
        try:
            body = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        if isinstance(body, dict):
            return body.get("details") or body.get("error") or f"HTTP {response.status_code}"
        return f"HTTP {response.status_code}"

    def close(self):
        """Close the session."""
        if self._session:
            self._session.close()
            self._session = None
