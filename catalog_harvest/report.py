"""Console summary of a finished harvest."""

import sys
from typing import TextIO

from .models import HarvestResult


def display_summary(result: HarvestResult, stream: TextIO = sys.stdout):
    """Print page totals and the failure messages of a harvest."""
    total = len(result.pages)

    def out(line: str = ""):
        print(line, file=stream)

    out("\n" + "=" * 80)
    out("Harvest summary")
    out("=" * 80)
    out(f"  Pages:      {total}")
    out(f"  Succeeded:  {result.succeeded}")
    out(f"  Failed:     {result.failed}")
    out(f"  Links:      {len(result.links)}")

    retried = sum(1 for p in result.pages if p.state == "succeeded" and p.errors)
    if retried:
        out(f"  Retried:    {retried} pages succeeded after failed attempts")

    if result.failure_summary:
        out("\n" + "-" * 80)
        out(f"{'Count':<8} {'Error':<72}")
        out("-" * 80)
        for message, count in result.failure_summary.items():
            # Truncate message if too long
            display = message[:69] + "..." if len(message) > 72 else message
            out(f"{count:<8} {display:<72}")

    out("=" * 80 + "\n")
