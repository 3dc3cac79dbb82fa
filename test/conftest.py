from typing import AsyncGenerator

import pytest
import pytest_asyncio
from firecrawl_server import FirecrawlServer
from firecrawl_tool.firecrawl_client import FirecrawlClient
from firecrawl_tool.models import FirecrawlCredentials, PollingConfig

API_KEY = "fc-test-key"


@pytest_asyncio.fixture
async def server(unused_tcp_port_factory) -> AsyncGenerator[FirecrawlServer, None]:
    """Start and yield a fake Firecrawl server on a random port."""
    port = unused_tcp_port_factory()
    server_instance = FirecrawlServer(api_key=API_KEY)
    await server_instance.start(port=port)
    try:
        yield server_instance
    finally:
        await server_instance.stop()


@pytest.fixture
def config() -> PollingConfig:
    """Polling policy with no real waiting between status queries."""
    return PollingConfig(poll_interval=0.0, max_attempts=5)


@pytest.fixture
def credentials(server) -> FirecrawlCredentials:
    return FirecrawlCredentials(api_key=API_KEY, api_host=server.base_url)


@pytest_asyncio.fixture
async def client(credentials, config) -> AsyncGenerator[FirecrawlClient, None]:
    async with FirecrawlClient(credentials, config=config) as firecrawl_client:
        yield firecrawl_client
