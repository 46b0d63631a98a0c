"""Catalog harvester package."""

from .config import HarvestConfig
from .errors import (
    DecodeError,
    FetchError,
    LatchUnderflowError,
    QueueClosedError,
    StatusError,
    TransportError,
)
from .extractor import extract_links
from .fetcher import FetchOutcome, PageFetcher
from .models import HarvestResult, PageReport, PageRequest, SearchResultsPayload
from .pipeline import HarvestPipeline
from .queue import ClosableQueue, CompletionLatch, ItemState, WorkItem
from .request_builder import build_request

__all__ = [
    "HarvestConfig",
    "DecodeError",
    "FetchError",
    "LatchUnderflowError",
    "QueueClosedError",
    "StatusError",
    "TransportError",
    "extract_links",
    "FetchOutcome",
    "PageFetcher",
    "HarvestResult",
    "PageReport",
    "PageRequest",
    "SearchResultsPayload",
    "HarvestPipeline",
    "ClosableQueue",
    "CompletionLatch",
    "ItemState",
    "WorkItem",
    "build_request",
]
