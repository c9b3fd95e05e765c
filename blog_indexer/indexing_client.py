"""Google Indexing API client wrapper for authenticated access."""

import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp
import google.auth.transport.requests
from google.oauth2 import service_account

from blog_indexer.config import INDEXING_SCOPE, Config
from blog_indexer.exceptions import ConfigurationError, IndexingApiError

logger = logging.getLogger(__name__)

INDEXING_API_BASE = "https://indexing.googleapis.com/v3/urlNotifications"

URL_UPDATED = "URL_UPDATED"
URL_DELETED = "URL_DELETED"


def _error_message(status: int, body: Any, fallback: str) -> str:
    """Pull the human-readable message out of a Google API error body."""
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            parts = [str(error.get("status") or ""), str(error.get("message") or "")]
            message = " ".join(p for p in parts if p).strip()
            if message:
                return message
        elif isinstance(error, str):
            return error
    return fallback or f"HTTP {status}"


class IndexingClient:
    """
    Wrapper around the Indexing API with service-account authentication.

    Credentials and the HTTP session are created lazily; ``reset`` drops
    both so the next call starts from a fresh credential and connection.
    """

    def __init__(self, config: Config, request_timeout_sec: float = 30.0):
        """
        Initialize the indexing client with configuration.

        Args:
            config: Application configuration with service-account credentials
            request_timeout_sec: Total timeout for one API request
        """
        self.config = config
        self.request_timeout_sec = request_timeout_sec
        self._credentials: Optional[service_account.Credentials] = None
        self._session: Optional[aiohttp.ClientSession] = None

    def _build_credentials(self) -> service_account.Credentials:
        if self.config.service_account_file:
            return service_account.Credentials.from_service_account_file(
                self.config.service_account_file, scopes=[INDEXING_SCOPE]
            )
        if not (self.config.service_account_email and self.config.private_key):
            raise ConfigurationError("Missing Google service account credentials")
        return service_account.Credentials.from_service_account_info(
            self.config.credentials_info(), scopes=[INDEXING_SCOPE]
        )

    async def _get_token(self) -> str:
        if self._credentials is None:
            logger.info("Initializing indexing service credentials")
            self._credentials = self._build_credentials()
        if not self._credentials.valid:
            request = google.auth.transport.requests.Request()
            # google-auth refresh is blocking
            await asyncio.to_thread(self._credentials.refresh, request)
        return self._credentials.token

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.request_timeout_sec)
            )
        return self._session

    async def _request(self, method: str, url: str, **kwargs: Any) -> Dict[str, Any]:
        token = await self._get_token()
        session = await self._get_session()
        headers = {"Authorization": f"Bearer {token}"}

        async with session.request(method, url, headers=headers, **kwargs) as response:
            try:
                body = await response.json(content_type=None)
            except ValueError:
                body = None
            if response.status >= 400:
                text = body if body is not None else await response.text()
                raise IndexingApiError(
                    _error_message(response.status, text, response.reason or ""),
                    status=response.status,
                )
            return body or {}

    async def publish(self, url: str, notification_type: str = URL_UPDATED) -> Dict[str, Any]:
        """
        Notify the indexing service that ``url`` was updated or deleted.

        Args:
            url: Absolute URL of the page
            notification_type: ``URL_UPDATED`` or ``URL_DELETED``

        Returns:
            Decoded response body

        Raises:
            IndexingApiError: If the service returned an error response
        """
        if notification_type not in (URL_UPDATED, URL_DELETED):
            raise ValueError(f"Unknown notification type: {notification_type}")
        return await self._request(
            "POST",
            f"{INDEXING_API_BASE}:publish",
            json={"url": url, "type": notification_type},
        )

    async def get_metadata(self, url: str) -> Dict[str, Any]:
        """Fetch the latest notification metadata the service holds for ``url``."""
        return await self._request("GET", f"{INDEXING_API_BASE}/metadata", params={"url": url})

    async def reset(self) -> None:
        """Discard credentials and close the HTTP session."""
        logger.info("Resetting indexing client credentials and session")
        self._credentials = None
        await self.close()

    async def close(self) -> None:
        """Close the HTTP session and release resources."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
