"""Console output formatting utilities for the Jenkins exporter."""

from __future__ import annotations

import sys
from typing import Optional

from ..model import Category, Job


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
        """
        self.debug = debug

    def print_scan_started(self, root: str, workers: int, ignore: list[str]) -> None:
        """Print scan start information."""
        print("\nSCAN STARTED")
        print(f"Jenkins path: {root}")
        print(f"Workers: {workers}")
        if ignore:
            print(f"Ignoring: {', '.join(ignore)}")
        print()

    def print_job(self, job: Job) -> None:
        """
        Print one job: its last build plus the number of every category.

        Categories without a build are shown as "-".
        """
        last = job.last_build
        result = last.result or "UNKNOWN"
        print(f"{job.folder}  {job.name}  #{last.number} {result}")
        if self.debug:
            cells = []
            for category in Category:
                build = job.build_for(category)
                cells.append(f"{category.label}={build.number if build else '-'}")
            print(f"  {' '.join(cells)}")

    def print_scan_summary(
        self,
        up: bool,
        job_count: int,
        traversal_errors: int,
        duration: Optional[float] = None,
    ) -> None:
        """Print final scan summary."""
        print("\n" + "=" * 40)
        print("SUMMARY")
        print("=" * 40)
        print(f"  Tree valid: {'yes' if up else 'no'}")
        print(f"  Jobs: {job_count}")
        print(f"  Skipped subtrees: {traversal_errors}")
        if duration is not None:
            print(f"  Duration: {duration:.2f}s")

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        print(f"\nERROR: {title}", file=sys.stderr)
        print(f"{message}", file=sys.stderr)
        if details:
            for detail in details:
                print(f"  {detail}", file=sys.stderr)
        if suggestion:
            print(f"\n{suggestion}", file=sys.stderr)

    def print_exception(self, exc: Exception) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exc()
        else:
            print(f"Error: {exc}", file=sys.stderr)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        print(message)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            print(f"[DEBUG] {message}", file=sys.stderr)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
