"""Fetches search result pages and classifies their failures."""

import logging
import time
from dataclasses import dataclass
from typing import Optional

import httpx
from pydantic import ValidationError

from .errors import DecodeError, FetchError, StatusError, TransportError
from .models import PageRequest, SearchResultsPayload

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 20.0


@dataclass
class FetchOutcome:
    """Result of one fetch attempt: a payload or a classified error."""

    payload: Optional[SearchResultsPayload] = None
    error: Optional[FetchError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, payload: SearchResultsPayload) -> "FetchOutcome":
        return cls(payload=payload)

    @classmethod
    def failure(cls, error: FetchError) -> "FetchOutcome":
        return cls(error=error)


def _describe_validation_error(exc: ValidationError) -> str:
    """Condense a pydantic error into a stable, countable message."""
    first = exc.errors()[0]
    loc = ".".join(str(part) for part in first["loc"]) or "body"
    return f"decode error: {loc}: {first['msg']}"


class PageFetcher:
    """Performs one network round-trip per request.

    A single ``httpx.Client`` is shared by every worker thread. If no client
    is passed in, the fetcher owns one and closes it in ``close()``.
    """

    def __init__(self, client: Optional[httpx.Client] = None, timeout: float = DEFAULT_TIMEOUT):
        self.timeout = timeout
        self._owns_client = client is None
        self.client = client or httpx.Client(follow_redirects=True, timeout=timeout)

    def fetch(self, request: PageRequest) -> FetchOutcome:
        """Fetch a results page.

        Args:
            request: Request descriptor for the page

        Returns:
            FetchOutcome with the decoded payload, or with a TransportError,
            StatusError or DecodeError. Never raises for fetch failures.
        """
        try:
            return FetchOutcome.success(self._execute(request))
        except FetchError as e:
            logger.debug(f"Page {request.page_id} attempt failed: {e}")
            return FetchOutcome.failure(e)

    def _execute(self, request: PageRequest) -> SearchResultsPayload:
        # httpx timeouts bound each network operation; the deadline bounds
        # the whole round-trip including the body download.
        deadline = time.monotonic() + self.timeout
        try:
            with self.client.stream(
                "GET", request.url, headers=request.headers, timeout=self.timeout
            ) as response:
                if response.status_code != httpx.codes.OK:
                    raise StatusError(
                        f"status {response.status_code}: {response.reason_phrase}",
                        status_code=response.status_code,
                    )

                body = bytearray()
                self._check_deadline(deadline)
                for chunk in response.iter_bytes():
                    body.extend(chunk)
                    self._check_deadline(deadline)
        except httpx.TimeoutException as e:
            raise TransportError(f"timeout: {e}") from e
        except httpx.RequestError as e:
            raise TransportError(f"{type(e).__name__}: {e}") from e

        try:
            return SearchResultsPayload.model_validate_json(bytes(body))
        except ValidationError as e:
            raise DecodeError(_describe_validation_error(e)) from e

    def _check_deadline(self, deadline: float):
        if time.monotonic() > deadline:
            raise TransportError(f"timeout: deadline of {self.timeout:g}s exceeded")

    def close(self):
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> "PageFetcher":
        return self

    def __exit__(self, *exc_info):
        self.close()
