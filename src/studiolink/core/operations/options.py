"""
Validated operation options.

One model per family, each carrying only the fields that family's
submit endpoint accepts. `to_payload()` builds the request body.
"""

from __future__ import annotations

import json
from abc import abstractmethod
import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from studiolink.core.config.models import OutputFormat


logger = logging.getLogger(__name__)


DEFAULT_MAX_PAGES = 25
DEFAULT_SEARCH_LIMIT = 10


def coerce_schema(raw: Any) -> dict[str, Any]:
    """Turn user-supplied schema input into a schema object.

    Accepts a mapping or JSON text. Anything that does not parse to a
    JSON object degrades to an empty object so a schema typo never
    fails the submission; the degradation is logged.
    """
    if raw is None:
        return {}

    if isinstance(raw, (str, bytes)):
        text = raw.decode("utf-8") if isinstance(raw, bytes) else raw
        if not text.strip():
            return {}
        try:
            raw = json.loads(text)
        except ValueError as e:
            logger.warning(f"Schema is not valid JSON, using empty schema: {e}")
            return {}

    if not isinstance(raw, dict):
        logger.warning(f"Schema must be a JSON object, got {type(raw).__name__}; using empty schema")
        return {}

    return raw


class OperationOptions(BaseModel):
    """Base class for per-family options."""

    model_config = ConfigDict(extra="forbid")

    @abstractmethod
    def to_payload(self) -> dict[str, Any]:
        """Request body for the family's submit endpoint."""
        pass


class FormattedOptions(OperationOptions):
    """Options shared by families that take a URL and an output format."""

    url: str = Field(min_length=1, description="Target or starting URL")
    output_format: OutputFormat = Field(default=OutputFormat.MARKDOWN)
    openapi_schema: dict[str, Any] | None = Field(
        default=None,
        description="OpenAPI schema of the output, used with the json format",
    )

    @field_validator("openapi_schema", mode="before")
    @classmethod
    def lenient_schema(cls, v: Any) -> Any:
        return None if v is None else coerce_schema(v)

    @model_validator(mode="after")
    def json_requires_schema(self) -> "FormattedOptions":
        if self.output_format is OutputFormat.JSON and self.openapi_schema is None:
            self.openapi_schema = {}
        return self

    def _add_schema(self, payload: dict[str, Any]) -> dict[str, Any]:
        if self.output_format is OutputFormat.JSON:
            payload["openapi_schema"] = self.openapi_schema or {}
        return payload


class ScrapeOptions(FormattedOptions):
    """Single-page extraction."""

    render_html: bool = Field(default=False, description="Render JavaScript first")

    def to_payload(self) -> dict[str, Any]:
        return self._add_schema({
            "url": self.url,
            "output_format": self.output_format.value,
            "render_html": self.render_html,
        })


class CrawlOptions(FormattedOptions):
    """Multi-page crawl from a starting URL."""

    crawl_prompt: str = Field(default="", description="What to extract from crawled pages")
    max_pages: int = Field(
        default=DEFAULT_MAX_PAGES,
        description="Result limit; the service enforces its own maximum",
    )
    render_html: bool = Field(default=False)

    def to_payload(self) -> dict[str, Any]:
        # The crawl endpoint names its starting URL "domain"
        return self._add_schema({
            "domain": self.url,
            "output_format": self.output_format.value,
            "auxiliary_prompt": self.crawl_prompt,
            "render_html": self.render_html,
            "return_sources_limit": self.max_pages,
        })


class BrowseOptions(FormattedOptions):
    """Browser agent session."""

    browse_prompt: str = Field(default="", description="Actions for the browser agent")

    def to_payload(self) -> dict[str, Any]:
        return self._add_schema({
            "url": self.url,
            "output_format": self.output_format.value,
            "auxiliary_prompt": self.browse_prompt,
        })


class SearchOptions(OperationOptions):
    """Web search with optional content retrieval."""

    query: str = Field(min_length=1)
    limit: int | None = Field(
        default=DEFAULT_SEARCH_LIMIT,
        description="Result limit; the service enforces its own maximum",
    )
    render_javascript: bool | None = Field(default=False)
    return_content: bool | None = Field(default=True)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"query": self.query}
        if self.limit is not None:
            payload["limit"] = self.limit
        if self.render_javascript is not None:
            payload["render_html"] = self.render_javascript
        if self.return_content is not None:
            payload["return_content"] = self.return_content
        return payload
