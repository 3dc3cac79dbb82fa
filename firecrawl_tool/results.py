from typing import Any

from firecrawl_tool.models import Operation

# Operations whose responses wrap the useful payload in a ``data`` field.
UNWRAPPED_OPERATIONS = frozenset({Operation.scrape, Operation.search, Operation.extract})


def normalize_result(operation: Operation, response: Any) -> Any:
    """Return ``response["data"]`` for scrape/search/extract, else the response itself.

    Crawl and map responses are returned verbatim: the job record and the
    discovered link list are the meaningful unit there.
    """
    if Operation(operation) not in UNWRAPPED_OPERATIONS:
        return response
    if isinstance(response, dict) and response.get("data"):
        return response["data"]
    return response
