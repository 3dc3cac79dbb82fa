from enum import Enum
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

DEFAULT_API_HOST = "https://api.firecrawl.dev"
DEFAULT_POLL_INTERVAL = 5.0
DEFAULT_MAX_ATTEMPTS = 60  # 5 minutes at the default interval


class Operation(str, Enum):
    scrape = "scrape"
    crawl = "crawl"
    map = "map"
    search = "search"
    extract = "extract"


class JobStatus(str, Enum):
    scraping = "scraping"
    pending = "pending"
    running = "running"
    completed = "completed"
    failed = "failed"


class ScrapeFormat(str, Enum):
    markdown = "markdown"
    html = "html"
    summary = "summary"
    screenshot = "screenshot"
    links = "links"


class SearchSource(str, Enum):
    web = "web"
    news = "news"
    images = "images"


class FirecrawlCredentials(BaseModel):
    api_key: SecretStr
    api_host: str = DEFAULT_API_HOST

    @field_validator("api_host", mode="before")
    @classmethod
    def _default_host(cls, value: Any) -> Any:
        return value or DEFAULT_API_HOST


class PollingConfig(BaseModel):
    poll_interval: float = Field(DEFAULT_POLL_INTERVAL, ge=0)
    max_attempts: int = Field(DEFAULT_MAX_ATTEMPTS, ge=1)


class JobHandle(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str


class PollState(BaseModel):
    job_id: str
    attempt_count: int = Field(0, ge=0)
    started_at: float

    def elapsed(self, now: float) -> float:
        return now - self.started_at


class CrawlStatusResponse(BaseModel):
    status: Optional[str]
    raw_response: dict
    elapsed_time: float


class StructuredSchema(BaseModel):
    """JSON-extraction option that parsed as JSON; sent as its own format entry."""

    kind: Literal["schema"] = "schema"
    value: Union[dict, list]

    def to_format(self) -> Any:
        return self.value


class DescriptiveText(BaseModel):
    """JSON-extraction option that is free text; sent as a prompt-only json format."""

    kind: Literal["text"] = "text"
    prompt: str

    def to_format(self) -> dict:
        return {"type": "json", "prompt": self.prompt}


JsonExtraction = Union[StructuredSchema, DescriptiveText]


class _Options(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class ScrapeOptions(_Options):
    only_main_content: Optional[bool] = Field(None, alias="onlyMainContent")
    max_age: Optional[int] = Field(None, alias="maxAge")
    wait_for: Optional[int] = Field(None, alias="waitFor")
    json_extraction: Optional[Any] = Field(None, alias="jsonExtraction")
    actions: Optional[Any] = None
    remove_base64_images: Optional[bool] = Field(None, alias="removeBase64Images")
    mobile: Optional[bool] = None
    include_tags: Optional[str] = Field(None, alias="includeTags")
    exclude_tags: Optional[str] = Field(None, alias="excludeTags")


class CrawlOptions(_Options):
    limit: Optional[int] = None
    max_depth: Optional[int] = Field(None, alias="maxDepth")
    prompt: Optional[str] = None
    include_paths: Optional[str] = Field(None, alias="includePaths")
    exclude_paths: Optional[str] = Field(None, alias="excludePaths")
    allow_external_links: Optional[bool] = Field(None, alias="allowExternalLinks")
    ignore_sitemap: Optional[bool] = Field(None, alias="ignoreSitemap")
    wait_for_completion: Optional[bool] = Field(None, alias="waitForCompletion")


class MapOptions(_Options):
    limit: Optional[int] = None
    search: Optional[str] = None
    include_subdomains: Optional[bool] = Field(None, alias="includeSubdomains")


class SearchOptions(_Options):
    limit: Optional[int] = None
    sources: Optional[list[SearchSource]] = None
    scrape_results: Optional[bool] = Field(None, alias="scrapeResults")
    location: Optional[str] = None


class ExtractOptions(_Options):
    schema_: Optional[Any] = Field(None, alias="schema")
    allow_external_links: Optional[bool] = Field(None, alias="allowExternalLinks")
    enable_web_search: Optional[bool] = Field(None, alias="enableWebSearch")


class _Request(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        frozen=True,
        str_strip_whitespace=True,
    )


class ScrapeRequest(_Request):
    url: str = Field(min_length=1)
    formats: list[ScrapeFormat] = Field(default_factory=lambda: [ScrapeFormat.markdown])
    options: ScrapeOptions = Field(default_factory=ScrapeOptions, alias="scrapeOptions")


class CrawlRequest(_Request):
    url: str = Field(min_length=1, alias="crawlUrl")
    options: CrawlOptions = Field(default_factory=CrawlOptions, alias="crawlOptions")


class MapRequest(_Request):
    url: str = Field(min_length=1, alias="mapUrl")
    options: MapOptions = Field(default_factory=MapOptions, alias="mapOptions")


class SearchRequest(_Request):
    query: str = Field(min_length=1, alias="searchQuery")
    options: SearchOptions = Field(default_factory=SearchOptions, alias="searchOptions")


class ExtractRequest(_Request):
    urls: str = Field(min_length=1, alias="extractUrls")
    prompt: str = Field(min_length=1, alias="extractPrompt")
    options: ExtractOptions = Field(default_factory=ExtractOptions, alias="extractOptions")


OperationRequest = Union[
    ScrapeRequest, CrawlRequest, MapRequest, SearchRequest, ExtractRequest
]

REQUEST_MODELS: dict[Operation, type[BaseModel]] = {
    Operation.scrape: ScrapeRequest,
    Operation.crawl: CrawlRequest,
    Operation.map: MapRequest,
    Operation.search: SearchRequest,
    Operation.extract: ExtractRequest,
}


class ItemResult(BaseModel):
    index: int
    json_: Optional[Any] = Field(None, alias="json")
    error: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_record(self) -> Any:
        if self.error is not None:
            return {"error": self.error}
        return self.json_
