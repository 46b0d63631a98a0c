"""Builds the search request for a single results page."""

from urllib.parse import urlencode

from .models import PageRequest

DEFAULT_BASE_URL = "https://librivox.org/search/get_results"

# The endpoint only answers with the JSON payload for XHR requests
XHR_HEADERS = {"X-Requested-With": "XMLHttpRequest"}


def build_request(
    page_id: int,
    base_url: str = DEFAULT_BASE_URL,
    search_category: str = "title",
) -> PageRequest:
    """Build the request descriptor for a results page.

    Args:
        page_id: 1-based page number
        base_url: Search endpoint URL
        search_category: Catalog field the search is ordered by

    Returns:
        PageRequest targeting the page

    Raises:
        ValueError: If page_id is not a positive page number
    """
    if page_id < 1:
        raise ValueError(f"page_id must be >= 1, got {page_id}")

    query = urlencode({"search_category": search_category, "search_page": page_id})
    return PageRequest(
        page_id=page_id,
        url=f"{base_url}?{query}",
        headers=dict(XHR_HEADERS),
    )
