import asyncio

from firecrawl_server import FirecrawlServer
from firecrawl_tool.dispatcher import OperationDispatcher
from firecrawl_tool.firecrawl_client import FirecrawlClient
from firecrawl_tool.models import FirecrawlCredentials, PollingConfig


async def status_changed(status_response):
    print(f"Crawl status changed to: {status_response.status}")
    print(f"Elapsed time: {status_response.elapsed_time:.6f}s")


async def main():
    PORT = 8000
    server = FirecrawlServer(
        api_key="fc-demo-key", crawl_statuses=["scraping", "scraping", "completed"]
    )
    await server.start(port=PORT)
    print(f"Server started on {server.base_url}")

    credentials = FirecrawlCredentials(api_key="fc-demo-key", api_host=server.base_url)
    config = PollingConfig(poll_interval=1.0, max_attempts=10)

    async with FirecrawlClient(
        credentials, config, on_status_change=status_changed
    ) as client:
        scrape = OperationDispatcher(client, "scrape", continue_on_fail=True)
        for record in await scrape.execute(
            [
                {"url": "https://example.com", "formats": ["markdown"]},
                {"url": "https://example.com", "formats": ["pdf"]},
            ]
        ):
            print(f"Scrape result: {record}")

        crawl = OperationDispatcher(client, "crawl")
        try:
            [job] = await crawl.execute(
                [
                    {
                        "crawlUrl": "https://example.com",
                        "crawlOptions": {"limit": 10, "waitForCompletion": True},
                    }
                ]
            )
            print(f"Crawl finished with {len(job['data'])} pages")
        except TimeoutError as e:
            print(f"Polling timed out: {e}")
        except Exception as e:
            print(f"Error occurred: {e}")

    await server.stop()


if __name__ == "__main__":
    asyncio.run(main())
