"""Base class for pipeline stages."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import ClassVar

from pydantic import BaseModel
from rich.console import Console


class StageBase(ABC):
    """Abstract base class for pipeline stages.

    Provides common functionality for all stages including:
    - Console initialization for progress display
    - Output directory and artifact paths
    - Completion check used to resume a pipeline stage by stage

    Subclasses must set ``output_name`` and implement ``run()``.
    """

    output_name: ClassVar[str]

    def __init__(
        self,
        output_dir: Path | str,
        *,
        console: Console | None = None,
        show_progress: bool = True,
    ) -> None:
        """Initialize stage with common configuration.

        Args:
            output_dir: Directory holding every artifact of the run
            console: Rich console used for summaries and progress bars
            show_progress: Whether progress bars are rendered
        """
        self.output_dir = Path(output_dir)
        self.console = console or Console()
        self.show_progress = show_progress

    def path(self, name: str) -> Path:
        """Path of an artifact inside the output directory."""
        return self.output_dir / name

    @property
    def output_path(self) -> Path:
        """Artifact written by this stage."""
        return self.path(self.output_name)

    def is_complete(self) -> bool:
        """True when the stage's artifact already exists."""
        return self.output_path.exists()

    @abstractmethod
    async def run(self) -> BaseModel:
        """Run the stage and return its report."""
        ...


__all__ = ["StageBase"]
