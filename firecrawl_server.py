import itertools
from typing import Optional

from aiohttp import web
from loguru import logger


class FirecrawlServer:
    """Local stand-in for the Firecrawl v2 API.

    ``crawl_statuses`` is replayed one entry per status query; the last entry
    repeats once the list is exhausted. Every request is recorded in
    ``requests`` as ``(method, path, json_body)``.
    """

    def __init__(
        self,
        api_key: str = "fc-test-key",
        crawl_statuses: Optional[list] = None,
        crawl_error: Optional[str] = None,
        error_status: Optional[int] = None,
    ):
        self.api_key = api_key
        self.crawl_statuses = crawl_statuses or ["completed"]
        self.crawl_error = crawl_error
        self.error_status = error_status
        self.requests = []
        self._job_ids = itertools.count(1)
        self._status_calls = 0
        self.app = web.Application(middlewares=[self._auth_middleware])
        self.app.router.add_post("/v2/scrape", self.handle_scrape)
        self.app.router.add_post("/v2/crawl", self.handle_crawl)
        self.app.router.add_get("/v2/crawl/{job_id}", self.handle_crawl_status)
        self.app.router.add_post("/v2/map", self.handle_map)
        self.app.router.add_post("/v2/search", self.handle_search)
        self.app.router.add_post("/v2/extract", self.handle_extract)
        self.logger = logger
        self._runner = None
        self.base_url = None

    @property
    def status_queries(self) -> int:
        return self._status_calls

    @web.middleware
    async def _auth_middleware(self, request, handler):
        body = await request.json() if request.can_read_body else None
        self.requests.append((request.method, request.path, body))

        if request.headers.get("Authorization") != f"Bearer {self.api_key}":
            return web.json_response(
                {"success": False, "error": "Unauthorized"}, status=401
            )
        if self.error_status is not None:
            return web.json_response(
                {"success": False, "error": "Injected failure"},
                status=self.error_status,
            )
        return await handler(request)

    async def handle_scrape(self, request):
        body = await request.json()
        return web.json_response(
            {
                "success": True,
                "data": {
                    "markdown": "# Example Domain",
                    "metadata": {"sourceURL": body["url"], "statusCode": 200},
                },
            }
        )

    async def handle_crawl(self, request):
        job_id = f"job{next(self._job_ids)}"
        self.logger.info(f"Accepted crawl job {job_id}")
        return web.json_response(
            {"success": True, "id": job_id, "url": f"{request.url}/{job_id}"}
        )

    async def handle_crawl_status(self, request):
        index = min(self._status_calls, len(self.crawl_statuses) - 1)
        status = self.crawl_statuses[index]
        self._status_calls += 1
        self.logger.info(f"Returning {status} status (query {self._status_calls})")

        payload = {"status": status, "total": 2, "completed": 0}
        if status == "completed":
            payload.update(
                completed=2,
                data=[
                    {"markdown": "# Home", "metadata": {"sourceURL": "https://example.com"}},
                    {"markdown": "# About", "metadata": {"sourceURL": "https://example.com/about"}},
                ],
            )
        if status == "failed" and self.crawl_error is not None:
            payload["error"] = self.crawl_error
        return web.json_response(payload)

    async def handle_map(self, request):
        body = await request.json()
        base = body["url"].rstrip("/")
        return web.json_response(
            {"success": True, "links": [{"url": base}, {"url": f"{base}/about"}]}
        )

    async def handle_search(self, request):
        body = await request.json()
        return web.json_response(
            {
                "success": True,
                "data": {
                    "web": [
                        {"url": "https://example.com", "title": f"Result for {body['query']}"}
                    ]
                },
            }
        )

    async def handle_extract(self, request):
        body = await request.json()
        return web.json_response(
            {"success": True, "data": {"urls": body["urls"], "prompt": body["prompt"]}}
        )

    async def start(self, port: int = 8080):
        self._runner = web.AppRunner(self.app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, "localhost", port)
        await site.start()
        self.base_url = f"http://localhost:{port}"
        self.logger.info(f"Fake Firecrawl server started on port {port}")
        return site

    async def stop(self):
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
