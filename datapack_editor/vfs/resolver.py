"""Read path: overlay first, original archive second."""
from __future__ import annotations

import asyncio
from pathlib import PurePosixPath

from verboselogs import VerboseLogger

from datapack_editor.config import Settings
from datapack_editor.errors import EntryNotFoundError
from datapack_editor.models import ArchiveWrapper, DirectoryContents
from datapack_editor.vfs.overlay import Content, OverlayStore
from datapack_editor.helpers import normalize_path


class ContentResolver:
    """Single entry point for reading entry content.

    Callers never need to know whether content comes from an edit or from
    the archive. Reads don't mutate the overlay or the archive reader, so
    concurrent resolutions of the same path are safe.

    Parameters
    ----------
    archive : ArchiveWrapper
        The original archive.
    overlay : OverlayStore
        The pending edits.
    settings : Settings
        Image extensions and text encoding.
    logger : VerboseLogger
        The program's logger.

    """

    def __init__(
        self,
        archive: ArchiveWrapper,
        overlay: OverlayStore,
        settings: Settings,
        logger: VerboseLogger,
    ) -> None:
        self.archive = archive
        self.overlay = overlay
        self.settings = settings
        self.logger = logger
        self._image_extensions = {ext.lower() for ext in settings.image_extensions}

    async def resolve(self, path: str) -> Content | DirectoryContents:
        """Resolve a file to its content, or a folder to its images.

        Raises
        ------
        datapack_editor.errors.EntryNotFoundError
            If the path is neither in the overlay nor in the archive.

        """
        if self.overlay.has(path):
            return self.overlay.read(path)  # type: ignore[return-value]

        if path.endswith("/") or (
            not self.archive.has(path) and self.is_directory(path)
        ):
            return await self.resolve_directory(path)

        return await self.resolve_file(path)

    async def resolve_file(self, path: str) -> Content:
        content = self.overlay.read(path)
        if content is not None:
            self.logger.spam(f"Resolved {path} from overlay")
            return content

        try:
            data = self.archive.read_bytes(path)
        except KeyError as err:
            raise EntryNotFoundError(path) from err

        self.logger.spam(f"Resolved {path} from archive ({len(data)} bytes)")
        # Let other tasks run between two decompressions.
        await asyncio.sleep(0)
        return data

    async def resolve_text(self, path: str) -> str:
        """Resolve a file for the text/CSV editors."""
        content = await self.resolve_file(path)
        if isinstance(content, str):
            return content

        try:
            return content.decode(self.settings.text_encoding)
        except UnicodeDecodeError:
            self.logger.warning(f"{path} is not valid {self.settings.text_encoding}")
            return content.decode(self.settings.text_encoding, errors="ignore")

    def is_directory(self, path: str) -> bool:
        prefix = f"{normalize_path(path)}/"
        return self.archive.is_directory(path) or any(
            other.startswith(prefix) for other in self.overlay.all_paths()
        )

    def is_image(self, path: str) -> bool:
        return PurePosixPath(path).suffix.lower() in self._image_extensions

    def image_children(self, path: str) -> list[str]:
        """List the image files directly inside a folder."""
        prefix = f"{normalize_path(path)}/"
        overlay_only = sorted(self.overlay.all_paths() - set(self.archive.namelist()))
        children: list[str] = []

        for name in self.archive.namelist() + overlay_only:
            if name.endswith("/") or not name.startswith(prefix):
                continue
            if "/" in name[len(prefix):] or not self.is_image(name):
                continue
            children.append(name)

        return children

    async def resolve_directory(self, path: str) -> DirectoryContents:
        """Resolve every image of a folder concurrently.

        One failed child doesn't abort the others: it is logged and left out
        of the result, which is then flagged as partial.

        Raises
        ------
        datapack_editor.errors.EntryNotFoundError
            If the folder doesn't exist.

        """
        if not self.is_directory(path):
            raise EntryNotFoundError(path)

        contents = DirectoryContents(path=f"{normalize_path(path)}/")
        children = self.image_children(path)

        results = await asyncio.gather(
            *(self.resolve_file(child) for child in children),
            return_exceptions=True,
        )

        for child, result in zip(children, results):
            if isinstance(result, Exception):
                self.logger.warning(f"Failed to resolve {child}: {result}")
                contents.failed[child] = str(result)
            elif isinstance(result, BaseException):
                raise result
            else:
                contents.items[child] = result

        if contents.partial:
            self.logger.warning(
                f"Resolved {len(contents.items)} of {contents.expected} images "
                f"in {contents.path}"
            )
        else:
            self.logger.verbose(f"Resolved {len(contents.items)} images in {contents.path}")

        return contents
