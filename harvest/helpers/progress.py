"""Shared progress bar utilities for Rich console displays."""

from __future__ import annotations

from contextlib import contextmanager

from typing import TYPE_CHECKING

from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)


if TYPE_CHECKING:
    from collections.abc import Iterator

    from rich.console import Console


def create_standard_progress(
    console: Console | None = None,
    *,
    expand: bool = False,
    disable: bool = False,
) -> Progress:
    """Create a progress bar with time remaining estimation.

    Args:
        console: Rich console instance (optional)
        expand: Whether to expand the progress bar to full width
        disable: Render nothing

    Returns:
        Configured Progress instance with spinner, description, bar,
        M of N counter, elapsed and remaining time
    """
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TextColumn("•"),
        TimeElapsedColumn(),
        TextColumn("•"),
        TimeRemainingColumn(),
        console=console,
        expand=expand,
        disable=disable,
    )


@contextmanager
def track_progress(
    description: str,
    total: int,
    console: Console | None = None,
    *,
    disable: bool = False,
) -> Iterator[tuple[Progress, TaskID]]:
    """Context manager for tracking progress with automatic cleanup.

    Args:
        description: Task description to display
        total: Total number of units (blocks, addresses) to process
        console: Rich console instance (optional)
        disable: Render nothing (tests, non-interactive runs)

    Yields:
        Tuple of (Progress instance, TaskID) for updating progress

    Example:
        ```python
        from harvest.helpers.progress import track_progress

        with track_progress("Scanning blocks", total=block_range.span) as (progress, task):
            scanner = RangeScanner(
                log_query,
                on_chunk=lambda chunk, _: progress.advance(task, chunk.span),
            )
        ```
    """
    progress = create_standard_progress(console, disable=disable)

    with progress:
        task_id = progress.add_task(description, total=total)
        yield progress, task_id


__all__ = [
    "TaskID",
    "create_standard_progress",
    "track_progress",
]
