"""Run configuration for a harvest."""

import os

from pydantic import BaseModel, Field

from .fetcher import DEFAULT_TIMEOUT
from .request_builder import DEFAULT_BASE_URL

# Number of search result pages in the catalog
DEFAULT_PAGE_COUNT = 824
DEFAULT_RETRY_BUDGET = 3


def default_workers() -> int:
    return os.cpu_count() or 1


class HarvestConfig(BaseModel):
    """Settings for one harvest run."""
    page_count: int = Field(default=DEFAULT_PAGE_COUNT, ge=0)
    workers: int = Field(default_factory=default_workers, ge=1)
    retry_budget: int = Field(default=DEFAULT_RETRY_BUDGET, ge=1)
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    base_url: str = DEFAULT_BASE_URL
    search_category: str = "title"
    output_path: str = "output.txt"
    errors_path: str = "errors.json"
    sort_links: bool = False
