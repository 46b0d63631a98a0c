"""Extracts catalog entry links from a search results fragment."""

from bs4 import BeautifulSoup

ENTRY_SELECTOR = "li.catalog-result"
COVER_LINK_SELECTOR = "a.book-cover"


def extract_links(fragment: str) -> list[str]:
    """Extract the cover link of every catalog entry in an HTML fragment.

    Only the first cover anchor of each entry is considered. Entries whose
    cover anchor is missing or has no href are skipped.

    Args:
        fragment: HTML snippet from the ``results`` field of a payload

    Returns:
        List of href values in document order
    """
    soup = BeautifulSoup(fragment, "lxml")

    links = []
    for entry in soup.select(ENTRY_SELECTOR):
        cover = entry.select_one(COVER_LINK_SELECTOR)
        if cover is None:
            continue
        href = cover.get("href")
        if href is not None:
            links.append(href)

    return links
