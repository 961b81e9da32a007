"""Transient handles for image previews."""
from __future__ import annotations

import uuid
from dataclasses import dataclass

from verboselogs import VerboseLogger


@dataclass(frozen=True)
class PreviewHandle:
    """A displayable image, valid until released."""

    handle_id: str
    path: str
    data: bytes


class PreviewRegistry:
    """Hand out preview handles and take them back.

    Handles are never released implicitly: whoever acquires one releases it
    when the preview is superseded or its view is closed.
    """

    def __init__(self, logger: VerboseLogger) -> None:
        self.logger = logger
        self._handles: dict[str, PreviewHandle] = {}

    def acquire(self, path: str, content: str | bytes) -> PreviewHandle:
        data = content.encode() if isinstance(content, str) else bytes(content)
        handle = PreviewHandle(handle_id=uuid.uuid4().hex, path=path, data=data)
        self._handles[handle.handle_id] = handle
        self.logger.spam(f"Acquired preview {handle.handle_id} for {path}")
        return handle

    def get(self, handle_id: str) -> PreviewHandle | None:
        return self._handles.get(handle_id)

    def release(self, handle: PreviewHandle | str) -> None:
        handle_id = handle if isinstance(handle, str) else handle.handle_id
        if self._handles.pop(handle_id, None) is not None:
            self.logger.spam(f"Released preview {handle_id}")

    def release_all(self) -> None:
        if self._handles:
            self.logger.debug(f"Releasing {len(self._handles)} previews")
        self._handles.clear()

    def __len__(self) -> int:
        return len(self._handles)
