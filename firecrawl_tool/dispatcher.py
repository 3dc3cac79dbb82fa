from typing import Any, Iterable, Mapping, Optional

from loguru import logger

from firecrawl_tool.errors import ValidationError
from firecrawl_tool.firecrawl_client import FirecrawlClient
from firecrawl_tool.models import ItemResult, Operation
from firecrawl_tool.request_builder import parse_request
from firecrawl_tool.results import normalize_result
from firecrawl_tool.settings import FirecrawlSettings


class OperationDispatcher:
    """Runs one operation over a batch of parameter mappings, in order.

    By default the first failing item aborts the batch. With
    ``continue_on_fail`` the failure is recorded as that item's error and the
    remaining items still run.
    """

    def __init__(
        self,
        client: FirecrawlClient,
        operation: str,
        continue_on_fail: bool = False,
    ):
        try:
            self.operation = Operation(operation)
        except ValueError as e:
            raise ValidationError(f"Unknown operation: {operation}") from e

        self.client = client
        self.continue_on_fail = continue_on_fail
        self.logger = logger
        self._handlers = {
            Operation.scrape: client.scrape,
            Operation.crawl: client.crawl,
            Operation.map: client.map,
            Operation.search: client.search,
            Operation.extract: client.extract,
        }

    async def _run_item(self, params: Mapping[str, Any]) -> Any:
        request = parse_request(self.operation, params)
        response = await self._handlers[self.operation](request)
        return normalize_result(self.operation, response)

    async def run(self, items: Iterable[Mapping[str, Any]]) -> list[ItemResult]:
        results = []
        for index, params in enumerate(items):
            try:
                output = await self._run_item(params)
            except Exception as e:
                if not self.continue_on_fail:
                    raise
                self.logger.warning(
                    f"{self.operation.value} failed for item {index}, continuing: {e}"
                )
                results.append(ItemResult(index=index, error=str(e)))
                continue

            results.append(ItemResult(index=index, json=output))
        return results

    async def execute(self, items: Iterable[Mapping[str, Any]]) -> list[Any]:
        """Run the batch and return one plain output record per input item"""
        return [result.to_record() for result in await self.run(items)]


async def run_batch(
    items: Iterable[Mapping[str, Any]],
    operation: str,
    continue_on_fail: bool = False,
    settings: Optional[FirecrawlSettings] = None,
) -> list[Any]:
    """Run ``operation`` over ``items`` with credentials read from settings."""
    settings = settings or FirecrawlSettings()
    credentials = settings.credentials()

    async with FirecrawlClient(credentials, settings.polling_config()) as client:
        dispatcher = OperationDispatcher(client, operation, continue_on_fail)
        return await dispatcher.execute(items)
