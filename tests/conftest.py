"""Shared fixtures for site uploader tests."""
import re
from typing import List, Optional, Set

import httpx
import pytest

from site_uploader.models import UploadConfig
from site_uploader.services.api_client import HTTPAPIClient

BASE_URL = "https://api.test"

_FILENAME_RE = re.compile(rb'name="file"; filename="([^"]+)"')


class FakeSiteAPI:
    """
    In-memory hosting API served through httpx.MockTransport.

    Records every request; uploads listed in ``fail_uploads`` (by relative
    path) answer with ``fail_status``.
    """

    def __init__(self, list_status: int = 200, fail_uploads: Optional[Set[str]] = None, fail_status: int = 500):
        self.list_status = list_status
        self.fail_uploads = fail_uploads or set()
        self.fail_status = fail_status
        self.requests: List[httpx.Request] = []
        self.uploaded: List[str] = []
        self.on_upload = None

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "GET":
            if self.list_status >= 400:
                return httpx.Response(self.list_status, json={"message": "probe rejected"})
            return httpx.Response(200, json={"files": []})

        match = _FILENAME_RE.search(request.content)
        filename = match.group(1).decode() if match else ""
        path = request.url.params.get("path", "")
        relative = f"{path}/{filename}" if path else filename

        if self.on_upload is not None:
            await self.on_upload(relative)

        if relative in self.fail_uploads:
            return httpx.Response(self.fail_status, json={"message": "storage unavailable"})

        self.uploaded.append(relative)
        return httpx.Response(200, json={"path": relative})

    @property
    def upload_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == "POST"]

    def client_factory(self, config: UploadConfig) -> HTTPAPIClient:
        return HTTPAPIClient(
            config.api_base_url,
            config.api_token,
            timeout=config.timeout,
            max_retries=config.max_retries,
            retry_delay=0,
            transport=self.transport,
        )


@pytest.fixture
def fake_api():
    return FakeSiteAPI()


@pytest.fixture
def site_dir(tmp_path):
    """dist/index.html (10 bytes) and dist/css/style.css (20 bytes)."""
    root = tmp_path / "dist"
    (root / "css").mkdir(parents=True)
    (root / "index.html").write_bytes(b"<html/>   ")
    (root / "css" / "style.css").write_bytes(b"body { margin: 0; } ")
    return root


@pytest.fixture
def config(site_dir):
    return UploadConfig(
        api_token="secret-token",
        site_id="site-42",
        api_base_url=BASE_URL,
        source_dir=str(site_dir),
    )


@pytest.fixture
def make_api():
    return FakeSiteAPI
