"""Concurrent fetch, retry and aggregate pipeline for catalog search pages."""

import logging
import threading
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional, Protocol

from .config import HarvestConfig
from .errors import FetchError
from .extractor import extract_links
from .fetcher import FetchOutcome
from .models import HarvestResult, PageReport, PageRequest
from .queue import ClosableQueue, CompletionLatch, ItemState, WorkItem
from .request_builder import build_request

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, int], None]


class Fetcher(Protocol):
    def fetch(self, request: PageRequest) -> FetchOutcome:
        ...


def generate_work(
    work_queue: ClosableQueue,
    page_count: int,
    build: Callable[[int], PageRequest] = build_request,
) -> int:
    """Queue one pending work item per page.

    Args:
        work_queue: Queue with capacity for at least ``page_count`` items
        page_count: Number of pages to fetch
        build: Request builder for a page number

    Returns:
        Number of items queued
    """
    for page_id in range(1, page_count + 1):
        work_queue.put(WorkItem(page_id=page_id, request=build(page_id)))
    logger.debug(f"Queued {page_count} pages")
    return page_count


class ResponseAggregator:
    """Collects links from successfully fetched pages in arrival order."""

    def __init__(
        self,
        total: int,
        extract: Callable[[str], list[str]] = extract_links,
        progress: Optional[ProgressCallback] = None,
    ):
        self.total = total
        self.extract = extract
        self.progress = progress
        self.links: list[str] = []
        self.reports: list[PageReport] = []

    @property
    def processed(self) -> int:
        return len(self.reports)

    def consume(self, success_queue: ClosableQueue):
        """Drain the success queue until it is closed."""
        for item in success_queue:
            self.add(item)

    def add(self, item: WorkItem):
        self.links.extend(self.extract(item.payload.results))
        self.reports.append(
            PageReport(
                page_id=item.page_id,
                state="succeeded",
                errors=[str(e) for e in item.attempt_errors],
            )
        )

        logger.info(
            f"Processed {self.processed}/{self.total} pages, "
            f"collected {len(self.links)} links"
        )
        if self.progress:
            self.progress(self.processed, self.total, len(self.links))


class FailureAggregator:
    """Tallies the attempt errors of permanently failed pages."""

    def __init__(self):
        self.summary: Counter = Counter()
        self.reports: list[PageReport] = []

    def consume(self, failure_queue: ClosableQueue):
        """Drain the failure queue until it is closed."""
        for item in failure_queue:
            self.add(item)

    def add(self, item: WorkItem):
        messages = [str(e) for e in item.attempt_errors]
        self.summary.update(messages)
        self.reports.append(
            PageReport(page_id=item.page_id, state="failed", errors=messages)
        )


class HarvestPipeline:
    """Fetches every page with a fixed worker pool and aggregates the results.

    Workers pull items from a shared work queue. A failed attempt goes back
    on the same queue until the item has used its retry budget. Each item
    counts down the completion latch exactly once, when it succeeds or
    fails for good. A supervisor closes all queues once the latch reaches
    zero, which ends the worker loops and both aggregators.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        page_count: int,
        workers: int = 1,
        retry_budget: int = 3,
        build: Callable[[int], PageRequest] = build_request,
        extract: Callable[[str], list[str]] = extract_links,
        progress: Optional[ProgressCallback] = None,
    ):
        if page_count < 0:
            raise ValueError(f"page_count must not be negative, got {page_count}")
        if workers < 1:
            raise ValueError(f"workers must be at least 1, got {workers}")
        if retry_budget < 1:
            raise ValueError(f"retry_budget must be at least 1, got {retry_budget}")

        self.fetcher = fetcher
        self.page_count = page_count
        self.workers = workers
        self.retry_budget = retry_budget
        self.build = build
        self.extract = extract
        self.progress = progress

    @classmethod
    def from_config(
        cls,
        config: HarvestConfig,
        fetcher: Fetcher,
        progress: Optional[ProgressCallback] = None,
    ) -> "HarvestPipeline":
        def build(page_id: int) -> PageRequest:
            return build_request(
                page_id,
                base_url=config.base_url,
                search_category=config.search_category,
            )

        return cls(
            fetcher,
            page_count=config.page_count,
            workers=config.workers,
            retry_budget=config.retry_budget,
            build=build,
            progress=progress,
        )

    def run(self) -> HarvestResult:
        """Fetch all pages and return the collected links and failures."""
        # Items leave the work queue before they are requeued, so occupancy
        # never exceeds page_count.
        capacity = max(self.page_count, 1)
        work_queue = ClosableQueue(capacity)
        success_queue = ClosableQueue(capacity)
        failure_queue = ClosableQueue(capacity)
        latch = CompletionLatch(self.page_count)

        generate_work(work_queue, self.page_count, self.build)
        logger.info(
            f"Fetching {self.page_count} pages with {self.workers} workers "
            f"(retry budget {self.retry_budget})"
        )

        responses = ResponseAggregator(self.page_count, self.extract, self.progress)
        failures = FailureAggregator()

        supervisor = threading.Thread(
            target=self._supervise,
            args=(latch, work_queue, success_queue, failure_queue),
            name="harvest-supervisor",
            daemon=True,
        )
        failure_thread = threading.Thread(
            target=failures.consume,
            args=(failure_queue,),
            name="harvest-failures",
            daemon=True,
        )

        with ThreadPoolExecutor(
            max_workers=self.workers, thread_name_prefix="harvest-worker"
        ) as executor:
            futures = [
                executor.submit(
                    self._work, work_queue, success_queue, failure_queue, latch
                )
                for _ in range(self.workers)
            ]
            supervisor.start()
            failure_thread.start()

            responses.consume(success_queue)

            failure_thread.join()
            supervisor.join()
            for future in futures:
                future.result()

        if failures.summary:
            logger.warning(
                f"{len(failures.reports)} pages failed after "
                f"{self.retry_budget} attempts each"
            )

        return HarvestResult(
            links=responses.links,
            failure_summary=dict(failures.summary.most_common()),
            pages=sorted(
                responses.reports + failures.reports, key=lambda p: p.page_id
            ),
        )

    def _supervise(
        self,
        latch: CompletionLatch,
        work_queue: ClosableQueue,
        success_queue: ClosableQueue,
        failure_queue: ClosableQueue,
    ):
        """Close every queue once all items reached a terminal state."""
        latch.wait()
        logger.debug("All pages finished, closing queues")
        work_queue.close()
        success_queue.close()
        failure_queue.close()

    def _work(
        self,
        work_queue: ClosableQueue,
        success_queue: ClosableQueue,
        failure_queue: ClosableQueue,
        latch: CompletionLatch,
    ):
        """Worker loop: process items until the work queue is closed."""
        for item in work_queue:
            self.process_item(item, work_queue, success_queue, failure_queue, latch)

    def process_item(
        self,
        item: WorkItem,
        work_queue: ClosableQueue,
        success_queue: ClosableQueue,
        failure_queue: ClosableQueue,
        latch: CompletionLatch,
    ):
        """Run one fetch attempt and route the item to its next queue.

        Args:
            item: WorkItem held exclusively by the calling worker
            work_queue: Queue that retried items go back to
            success_queue: Queue for items that produced a payload
            failure_queue: Queue for items that used their retry budget
            latch: Counted down when the item reaches a terminal state
        """
        item.state = ItemState.IN_FLIGHT

        try:
            outcome = self.fetcher.fetch(item.request)
        except Exception as e:
            logger.error(
                f"Unexpected error fetching page {item.page_id}: {e}", exc_info=True
            )
            outcome = FetchOutcome.failure(
                FetchError(f"unexpected error: {type(e).__name__}: {e}")
            )

        if outcome.ok:
            item.payload = outcome.payload
            item.state = ItemState.SUCCEEDED
            success_queue.put(item)
            latch.count_down()
            return

        failed_attempts = item.record_error(outcome.error)
        if failed_attempts < self.retry_budget:
            logger.warning(
                f"Page {item.page_id} attempt {failed_attempts}/{self.retry_budget} "
                f"failed: {outcome.error}; retrying"
            )
            item.state = ItemState.PENDING
            work_queue.put(item)
            return

        logger.error(
            f"Page {item.page_id} failed after {failed_attempts} attempts: "
            f"{outcome.error}"
        )
        item.state = ItemState.FAILED
        failure_queue.put(item)
        latch.count_down()
