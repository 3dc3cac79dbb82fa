import aiohttp
import pytest
from firecrawl_tool.dispatcher import OperationDispatcher, run_batch
from firecrawl_tool.errors import ConfigurationError, RemoteJobFailure, ValidationError
from firecrawl_tool.firecrawl_client import FirecrawlClient
from firecrawl_tool.models import FirecrawlCredentials
from firecrawl_tool.settings import FirecrawlSettings


def extract_item(schema=None):
    options = {"schema": schema} if schema is not None else {}
    return {
        "extractUrls": "https://example.com/a,https://example.com/b",
        "extractPrompt": "Extract the product name",
        "extractOptions": options,
    }


def crawl_item(url="https://example.com"):
    return {"crawlUrl": url, "crawlOptions": {"waitForCompletion": True}}


@pytest.mark.asyncio
async def test_scrape_unwraps_data(server, client):
    dispatcher = OperationDispatcher(client, "scrape")

    records = await dispatcher.execute(
        [{"url": "https://example.com", "formats": ["markdown"]}]
    )

    assert records == [
        {
            "markdown": "# Example Domain",
            "metadata": {"sourceURL": "https://example.com", "statusCode": 200},
        }
    ]


@pytest.mark.asyncio
async def test_map_and_crawl_are_returned_verbatim(server, client):
    map_records = await OperationDispatcher(client, "map").execute(
        [{"mapUrl": "https://example.com"}]
    )
    crawl_records = await OperationDispatcher(client, "crawl").execute(
        [crawl_item()]
    )

    assert map_records[0]["success"] is True
    assert len(map_records[0]["links"]) == 2
    assert crawl_records[0]["status"] == "completed"
    assert len(crawl_records[0]["data"]) == 2


@pytest.mark.asyncio
async def test_crawl_without_wait_flag_returns_job_submission(server, client):
    records = await OperationDispatcher(client, "crawl").execute(
        [{"crawlUrl": "https://example.com", "crawlOptions": {"limit": 5}}]
    )

    assert records == [
        {"success": True, "id": "job1", "url": f"{server.base_url}/v2/crawl/job1"}
    ]
    assert server.status_queries == 0


@pytest.mark.asyncio
async def test_search_unwraps_data(server, client):
    records = await OperationDispatcher(client, "search").execute(
        [{"searchQuery": "firecrawl"}]
    )

    assert records == [
        {"web": [{"url": "https://example.com", "title": "Result for firecrawl"}]}
    ]


@pytest.mark.asyncio
async def test_results_keep_input_order(server, client):
    dispatcher = OperationDispatcher(client, "scrape")
    urls = [f"https://example.com/{n}" for n in range(3)]

    results = await dispatcher.run([{"url": url} for url in urls])

    assert [result.index for result in results] == [0, 1, 2]
    assert [result.json_["metadata"]["sourceURL"] for result in results] == urls


@pytest.mark.asyncio
async def test_failure_aborts_batch_by_default(server, client):
    dispatcher = OperationDispatcher(client, "extract")

    with pytest.raises(ValidationError, match="Invalid JSON schema provided"):
        await dispatcher.execute([extract_item(), extract_item("{oops"), extract_item()])

    assert len(server.requests) == 1


@pytest.mark.asyncio
async def test_continue_on_fail_records_error_and_keeps_going(server, client):
    dispatcher = OperationDispatcher(client, "extract", continue_on_fail=True)

    results = await dispatcher.run(
        [extract_item(), extract_item("{oops"), extract_item('{"name": "string"}')]
    )

    assert [result.ok for result in results] == [True, False, True]
    assert results[1].to_record() == {"error": "Invalid JSON schema provided"}
    assert results[2].json_["urls"] == ["https://example.com/a", "https://example.com/b"]
    # The invalid item never reached the API.
    assert len(server.requests) == 2


@pytest.mark.asyncio
async def test_continue_on_fail_captures_remote_job_failure(server, client):
    server.crawl_statuses = ["failed"]
    server.crawl_error = "Site blocked crawler"
    dispatcher = OperationDispatcher(client, "crawl", continue_on_fail=True)

    records = await dispatcher.execute([crawl_item()])

    assert records == [{"error": "Site blocked crawler"}]


@pytest.mark.asyncio
async def test_remote_job_failure_aborts_by_default(server, client):
    server.crawl_statuses = ["failed"]

    with pytest.raises(RemoteJobFailure):
        await OperationDispatcher(client, "crawl").execute(
            [crawl_item(), crawl_item("https://example.org")]
        )

    assert server.status_queries == 1


@pytest.mark.asyncio
async def test_continue_on_fail_captures_transport_error(server, client):
    server.error_status = 500
    dispatcher = OperationDispatcher(client, "map", continue_on_fail=True)

    results = await dispatcher.run([{"mapUrl": "https://example.com"}] * 2)

    assert [result.ok for result in results] == [False, False]
    assert "500" in results[0].error


def test_unknown_operation_is_rejected():
    client = FirecrawlClient(FirecrawlCredentials(api_key="fc-test-key"))

    with pytest.raises(ValidationError, match="Unknown operation: screenshot"):
        OperationDispatcher(client, "screenshot")


@pytest.mark.asyncio
async def test_run_batch_requires_api_key():
    settings = FirecrawlSettings(api_key="", api_host="http://localhost:1")

    with pytest.raises(ConfigurationError):
        await run_batch([{"url": "https://example.com"}], "scrape", settings=settings)


@pytest.mark.asyncio
async def test_run_batch_uses_settings(server):
    settings = FirecrawlSettings(
        api_key="fc-test-key",
        api_host=server.base_url,
        poll_interval=0.0,
    )
    server.crawl_statuses = ["scraping", "completed"]

    records = await run_batch(
        [crawl_item(), crawl_item("https://example.org")],
        "crawl",
        settings=settings,
    )

    assert [record["status"] for record in records] == ["completed", "completed"]


@pytest.mark.asyncio
async def test_run_batch_propagates_transport_errors(server):
    settings = FirecrawlSettings(api_key="fc-test-key", api_host=server.base_url)
    server.error_status = 503

    with pytest.raises(aiohttp.ClientResponseError):
        await run_batch([{"searchQuery": "firecrawl"}], "search", settings=settings)
