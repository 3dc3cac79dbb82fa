"""Translate operation parameters into Firecrawl v2 request bodies.

Only fields the caller actually supplied end up in a body; empty or absent
options are left out rather than sent as null or as a default.
"""

import json
from typing import Any, Mapping, Optional

import pydantic

from firecrawl_tool.errors import ValidationError
from firecrawl_tool.models import (
    REQUEST_MODELS,
    CrawlRequest,
    DescriptiveText,
    ExtractRequest,
    JsonExtraction,
    MapRequest,
    Operation,
    OperationRequest,
    ScrapeRequest,
    SearchRequest,
    StructuredSchema,
)

SEARCH_SCRAPE_OPTIONS = {"formats": ["markdown"], "onlyMainContent": True}


def split_list(text: Optional[str]) -> list[str]:
    """Split comma-separated text, trimming each entry and dropping empty ones."""
    if not text:
        return []
    return [part.strip() for part in text.split(",") if part.strip()]


def parse_json_extraction(value: Any) -> JsonExtraction:
    """Parse the scrape JSON-extraction option, falling back to a text prompt."""
    if isinstance(value, (dict, list)):
        return StructuredSchema(value=value)
    try:
        parsed = json.loads(value)
    except (TypeError, ValueError):
        return DescriptiveText(prompt=str(value))
    if isinstance(parsed, (dict, list)):
        return StructuredSchema(value=parsed)
    return DescriptiveText(prompt=str(value))


def parse_json_field(value: Any, message: str) -> Any:
    """Strictly parse a JSON option that has no text fallback."""
    if isinstance(value, (dict, list)):
        return value
    try:
        return json.loads(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(message) from e


def parse_request(operation: Operation, params: Mapping[str, Any]) -> OperationRequest:
    """Validate raw item parameters into the request model for ``operation``."""
    operation = Operation(operation)
    model = REQUEST_MODELS[operation]
    try:
        return model.model_validate(dict(params))
    except pydantic.ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        raise ValidationError(
            f"Invalid parameters for {operation.value}: {problems}"
        ) from e


def build_scrape_body(request: ScrapeRequest) -> dict:
    options = request.options
    formats: list[Any] = [fmt.value for fmt in request.formats]
    body: dict[str, Any] = {"url": request.url}

    if options.only_main_content is not None:
        body["onlyMainContent"] = options.only_main_content
    if options.max_age:
        body["maxAge"] = options.max_age
    if options.wait_for:
        body["waitFor"] = options.wait_for
    if options.remove_base64_images is not None:
        body["removeBase64Images"] = options.remove_base64_images
    if options.mobile:
        body["mobile"] = True
    if options.include_tags:
        body["includeTags"] = split_list(options.include_tags)
    if options.exclude_tags:
        body["excludeTags"] = split_list(options.exclude_tags)
    if options.json_extraction:
        formats.append(parse_json_extraction(options.json_extraction).to_format())
    if options.actions:
        body["actions"] = parse_json_field(
            options.actions, "Invalid JSON provided for scrape actions"
        )

    if formats:
        body["formats"] = formats
    return body


def build_crawl_body(request: CrawlRequest) -> dict:
    options = request.options
    body: dict[str, Any] = {"url": request.url}

    if options.limit:
        body["limit"] = options.limit
    if options.max_depth:
        body["maxDepth"] = options.max_depth
    if options.prompt:
        body["prompt"] = options.prompt
    if options.include_paths:
        body["includePaths"] = split_list(options.include_paths)
    if options.exclude_paths:
        body["excludePaths"] = split_list(options.exclude_paths)
    if options.allow_external_links:
        body["allowExternalLinks"] = True
    if options.ignore_sitemap:
        body["ignoreSitemap"] = True
    return body


def build_map_body(request: MapRequest) -> dict:
    options = request.options
    body: dict[str, Any] = {"url": request.url}

    if options.limit:
        body["limit"] = options.limit
    if options.search:
        body["search"] = options.search
    if options.include_subdomains:
        body["includeSubdomains"] = True
    return body


def build_search_body(request: SearchRequest) -> dict:
    options = request.options
    body: dict[str, Any] = {"query": request.query}

    if options.limit:
        body["limit"] = options.limit
    if options.sources:
        body["sources"] = [source.value for source in options.sources]
    if options.location:
        body["location"] = options.location
    if options.scrape_results:
        body["scrapeOptions"] = dict(SEARCH_SCRAPE_OPTIONS)
    return body


def build_extract_body(request: ExtractRequest) -> dict:
    options = request.options
    urls = split_list(request.urls)
    if not urls:
        raise ValidationError("At least one URL is required for extract")

    body: dict[str, Any] = {"urls": urls, "prompt": request.prompt}

    if options.schema_:
        body["schema"] = parse_json_field(options.schema_, "Invalid JSON schema provided")
    if options.allow_external_links:
        body["allowExternalLinks"] = True
    if options.enable_web_search:
        body["enableWebSearch"] = True
    return body


BODY_BUILDERS = {
    Operation.scrape: build_scrape_body,
    Operation.crawl: build_crawl_body,
    Operation.map: build_map_body,
    Operation.search: build_search_body,
    Operation.extract: build_extract_body,
}


def build_request_body(operation: Operation, params: Mapping[str, Any]) -> dict:
    """Validate ``params`` and assemble the JSON body for ``operation``."""
    operation = Operation(operation)
    request = parse_request(operation, params)
    return BODY_BUILDERS[operation](request)
