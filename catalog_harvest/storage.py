"""Writes harvest results to disk."""

import json
import logging
from pathlib import Path
from typing import Iterable, Mapping

logger = logging.getLogger(__name__)


def save_links(links: Iterable[str], path: str, sort: bool = False) -> str:
    """Write links to a text file, one per line.

    Args:
        links: Links in arrival order
        path: Output file path
        sort: Sort links first, for reproducible output

    Returns:
        Path to saved file
    """
    links = sorted(links) if sort else list(links)
    filepath = Path(path)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    with open(filepath, "w", encoding="utf-8") as f:
        f.write("\n".join(links))

    logger.info(f"Saved {len(links)} links to {filepath}")
    return str(filepath)


def save_failure_summary(summary: Mapping[str, int], path: str) -> str:
    """Save failure message counts as JSON, most frequent first.

    Args:
        summary: Mapping of error message to occurrence count
        path: Output file path

    Returns:
        Path to saved file
    """
    ordered = dict(sorted(summary.items(), key=lambda kv: (-kv[1], kv[0])))
    filepath = Path(path)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(ordered, f, indent=2, ensure_ascii=False)

    logger.info(f"Saved {len(ordered)} failure messages to {filepath}")
    return str(filepath)
