"""Pending edits shadowing the original archive."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from datapack_editor.helpers import canonical_path


Content = str | bytes


@dataclass
class OverlayEntry:
    """An edited or added entry.

    Attributes
    ----------
    path : str
        The original (pre-rename) archive path.
    content : str or bytes
        Text as edited in a text/CSV editor, or binary image data.

    """

    path: str
    content: Content

    @property
    def is_binary(self) -> bool:
        return isinstance(self.content, bytes)


class OverlayStore:
    """Mapping from archive path to pending content.

    Last write wins per path. Paths are stored in canonical form, so
    ``Pack//teams.csv`` and ``Pack/teams.csv`` are the same entry. Entries
    are only dropped when the store itself is replaced, i.e. when another
    archive is loaded.
    """

    def __init__(self) -> None:
        self._entries: dict[str, OverlayEntry] = {}

    def write(self, path: str, content: Content | bytearray | memoryview) -> None:
        if isinstance(content, (bytearray, memoryview)):
            content = bytes(content)
        elif not isinstance(content, (str, bytes)):
            raise TypeError(
                f"Overlay content must be str or bytes, not {type(content).__name__}"
            )

        path = canonical_path(path)
        entry = self._entries.get(path)
        if entry is None:
            self._entries[path] = OverlayEntry(path=path, content=content)
        else:
            entry.content = content

    def read(self, path: str) -> Content | None:
        entry = self._entries.get(canonical_path(path))
        return entry.content if entry else None

    def has(self, path: str) -> bool:
        return canonical_path(path) in self._entries

    __contains__ = has

    def all_paths(self) -> set[str]:
        return set(self._entries)

    def entries(self) -> Iterator[OverlayEntry]:
        return iter(list(self._entries.values()))

    def __len__(self) -> int:
        return len(self._entries)
