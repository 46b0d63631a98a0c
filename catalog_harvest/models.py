"""Data models for the catalog harvester."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class PageRequest(BaseModel):
    """Request descriptor for one search results page."""
    model_config = ConfigDict(frozen=True)

    page_id: int
    url: str
    headers: dict[str, str] = Field(default_factory=dict)


class SearchResultsPayload(BaseModel):
    """JSON body returned by the search endpoint."""
    results: str  # HTML fragment with the catalog entries


class PageReport(BaseModel):
    """Terminal outcome of one page."""
    page_id: int
    state: Literal["succeeded", "failed"]
    errors: list[str] = []


class HarvestResult(BaseModel):
    """Everything a finished harvest hands back to the caller."""
    links: list[str] = []
    failure_summary: dict[str, int] = {}
    pages: list[PageReport] = []

    @property
    def succeeded(self) -> int:
        return sum(1 for p in self.pages if p.state == "succeeded")

    @property
    def failed(self) -> int:
        return sum(1 for p in self.pages if p.state == "failed")
