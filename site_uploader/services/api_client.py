"""HTTP adapter for hosting API operations."""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import httpx

from ..exceptions import APIError
from ..models import DEFAULT_MAX_RETRIES, MAX_TIMEOUT

logger = logging.getLogger(__name__)


class HTTPAPIClient:
    """
    HTTP client adapter for API calls.

    Implements ISiteAPIClient protocol. Sends a bearer token with every
    request and retries 5xx responses and transport errors up to
    ``max_retries`` attempts.
    """

    def __init__(
        self,
        base_url: str,
        api_token: str,
        timeout: int = MAX_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = 0.5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._api_token = api_token
        self._timeout = timeout / 1000  # config carries milliseconds
        self._max_retries = max(1, max_retries)
        self._retry_delay = retry_delay
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            headers={"Authorization": f"Bearer {self._api_token}"},
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args):
        if self._client:
            await self._client.aclose()
            self._client = None

    async def get(self, endpoint: str, params: Optional[Dict[str, str]] = None) -> httpx.Response:
        return await self._request(
            "GET",
            endpoint,
            params=params,
            headers={"Content-Type": "application/json"},
        )

    async def post_file(
        self,
        endpoint: str,
        file_path: Path,
        params: Optional[Dict[str, str]] = None,
        data: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        """POST ``file_path`` as multipart field ``file``."""
        return await self._request("POST", endpoint, params=params, data=data, file_path=Path(file_path))

    async def _request(
        self,
        method: str,
        endpoint: str,
        file_path: Optional[Path] = None,
        **kwargs: Any,
    ) -> httpx.Response:
        if not self._client:
            raise RuntimeError("HTTPAPIClient not initialized. Use 'async with' context.")

        last_exception = None

        for attempt in range(self._max_retries):
            try:
                if file_path is not None:
                    # Stream is consumed by each attempt, reopen it every time
                    with file_path.open("rb") as fh:
                        response = await self._client.request(
                            method, endpoint, files={"file": (file_path.name, fh)}, **kwargs
                        )
                else:
                    response = await self._client.request(method, endpoint, **kwargs)

                if response.status_code >= 500 and attempt < self._max_retries - 1:
                    logger.debug(
                        "%s %s returned %s, retrying (%d/%d)",
                        method, endpoint, response.status_code, attempt + 1, self._max_retries,
                    )
                    await asyncio.sleep(self._retry_delay * (attempt + 1))
                    continue

                if response.status_code >= 400:
                    try:
                        error_detail = response.json()
                    except Exception:
                        error_detail = response.text
                    raise APIError(
                        response.status_code,
                        f"API error {response.status_code} on {method} {endpoint}: {error_detail}",
                        detail=error_detail,
                    )

                return response
            except (httpx.RequestError, httpx.TimeoutException) as exc:
                last_exception = exc
                if attempt < self._max_retries - 1:
                    logger.debug("%s %s failed: %s, retrying", method, endpoint, exc)
                    await asyncio.sleep(self._retry_delay * (attempt + 1))
                    continue
                raise

        if last_exception:
            raise last_exception
        raise RuntimeError(f"Failed to {method} {endpoint} after {self._max_retries} attempts")
