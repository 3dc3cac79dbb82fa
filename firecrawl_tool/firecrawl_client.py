from typing import Any, Callable, Optional

import aiohttp
from loguru import logger

from firecrawl_tool.errors import ConfigurationError, RemoteJobFailure
from firecrawl_tool.job_poller import CrawlJobPoller
from firecrawl_tool.models import (
    CrawlRequest,
    CrawlStatusResponse,
    ExtractRequest,
    FirecrawlCredentials,
    JobHandle,
    MapRequest,
    PollingConfig,
    ScrapeRequest,
    SearchRequest,
)
from firecrawl_tool.request_builder import (
    build_crawl_body,
    build_extract_body,
    build_map_body,
    build_scrape_body,
    build_search_body,
)
from firecrawl_tool.settings import MISSING_API_KEY_MESSAGE

API_PREFIX = "/v2"


class FirecrawlClient:
    """Authenticated JSON client for the Firecrawl v2 API.

    Scrape, map, search and extract are a single request each. Crawl submits a
    job and, unless the caller opted out of waiting, hands the job id to a
    :class:`CrawlJobPoller`. HTTP errors are logged and re-raised unchanged.
    """

    def __init__(
        self,
        credentials: FirecrawlCredentials,
        config: Optional[PollingConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
        on_status_change: Optional[Callable[[CrawlStatusResponse], Any]] = None,
    ):
        if not credentials.api_key.get_secret_value():
            raise ConfigurationError(MISSING_API_KEY_MESSAGE)

        self.credentials = credentials
        self.base_url = credentials.api_host.rstrip("/")
        self.config = config or PollingConfig()
        self.logger = logger
        self.on_status_change = on_status_change
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "FirecrawlClient":
        if self._session is None:
            self._session = aiohttp.ClientSession()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            raise RuntimeError(
                "FirecrawlClient has no open session; use it as an async context manager"
            )
        return self._session

    def _headers(self, with_body: bool) -> dict:
        headers = {
            "Authorization": f"Bearer {self.credentials.api_key.get_secret_value()}"
        }
        if with_body:
            headers["Content-Type"] = "application/json"
        return headers

    async def _request(self, method: str, path: str, body: Optional[dict] = None) -> Any:
        """Sends one JSON request and returns the decoded response body"""
        url = f"{self.base_url}{API_PREFIX}{path}"
        self.logger.debug(f"{method} {url}")

        try:
            async with self._get_session().request(
                method, url, json=body, headers=self._headers(body is not None)
            ) as response:
                response.raise_for_status()
                return await response.json()
        except aiohttp.ClientResponseError as e:
            self.logger.error(f"HTTP error {e.status} at {url}: {e.message}")
            raise
        except aiohttp.ClientError as e:
            self.logger.error(f"Request to {url} failed: {e}")
            raise

    async def _post(self, path: str, body: dict) -> Any:
        return await self._request("POST", path, body)

    async def scrape(self, request: ScrapeRequest) -> Any:
        return await self._post("/scrape", build_scrape_body(request))

    async def map(self, request: MapRequest) -> Any:
        return await self._post("/map", build_map_body(request))

    async def search(self, request: SearchRequest) -> Any:
        return await self._post("/search", build_search_body(request))

    async def extract(self, request: ExtractRequest) -> Any:
        return await self._post("/extract", build_extract_body(request))

    async def start_crawl(self, request: CrawlRequest) -> dict:
        """Submits a crawl job and returns the raw submission response"""
        response = await self._post("/crawl", build_crawl_body(request))
        self.logger.info(f"Crawl job submitted for {request.url}: {response.get('id')}")
        return response

    async def get_crawl_status(self, job_id: str) -> dict:
        return await self._request("GET", f"/crawl/{job_id}")

    def _poller(self) -> CrawlJobPoller:
        return CrawlJobPoller(
            self.get_crawl_status,
            config=self.config,
            on_status_change=self.on_status_change,
        )

    async def crawl(self, request: CrawlRequest) -> dict:
        """Submit a crawl job and, when asked to, wait for its terminal status"""
        submission = await self.start_crawl(request)
        if not request.options.wait_for_completion:
            return submission

        job_id = submission.get("id")
        if not job_id:
            raise RemoteJobFailure("Crawl job submission returned no job id")

        return await self._poller().poll_until_complete(JobHandle(id=str(job_id)))
