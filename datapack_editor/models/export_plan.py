"""Data models used while exporting a datapack."""
from dataclasses import dataclass, field
from typing import Callable


@dataclass(frozen=True)
class PlannedEntry:
    """An entry slated for the output archive.

    Attributes
    ----------
    source_path : str
        The path in the original archive or in the overlay.
    target_path : str
        The path written to the output archive, after renaming.
    is_directory : bool
        Whether an empty directory marker is emitted instead of content.

    """

    source_path: str
    target_path: str
    is_directory: bool


@dataclass
class ExportPlan:
    """Ordered, deduplicated set of entries of the output archive."""

    entries: list[PlannedEntry] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    @property
    def target_paths(self) -> list[str]:
        return [entry.target_path for entry in self.entries]


@dataclass(frozen=True)
class ExportProgress:
    """One progress report: completion percentage and current item label."""

    percent: float
    label: str


ProgressCallback = Callable[[ExportProgress], None]
