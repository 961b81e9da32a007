"""Datapack editing session component."""
from __future__ import annotations

import re
from pathlib import Path

from verboselogs import VerboseLogger

from datapack_editor.config import Settings
from datapack_editor.errors import EntryNotFoundError
from datapack_editor.helpers import normalize_path
from datapack_editor.models import ArchiveWrapper, DirectoryContents, ProgressCallback, TreeNode
from datapack_editor.vfs import (
    ContentResolver,
    ExportPipeline,
    OverlayStore,
    PathTree,
    PathTreeBuilder,
    PreviewHandle,
    PreviewRegistry,
    RenameRewriter,
    detect_root_rename,
)
from datapack_editor.vfs.overlay import Content

ZIP_SUFFIX = re.compile(r"\.zip$", re.IGNORECASE)


class DatapackSession:
    """Orchestrates browsing, editing and exporting one datapack.

    Every path taken or returned by the public methods is a display path,
    i.e. with the root rename applied. Edits are stored under the original
    archive path.
    """

    def __init__(
        self,
        tree_builder: PathTreeBuilder,
        previews: PreviewRegistry,
        logger: VerboseLogger,
        settings: Settings | None = None,
    ):
        self.tree_builder = tree_builder
        self.previews = previews
        self.logger = logger
        self.settings = settings or Settings()

        self.archive: ArchiveWrapper | None = None
        self.tree: PathTree | None = None
        self.overlay = OverlayStore()
        self.rewriter = RenameRewriter()
        self.datapack_name = ""
        self._folder_handles: dict[str, PreviewHandle] = {}

    def load(self, data: bytes, filename: str) -> PathTree:
        """Open a datapack, replacing the current one and its edits.

        Raises
        ------
        NotImplementedError
            If the file is not a ``.zip``.
        datapack_editor.errors.MalformedArchiveError
            If the blob is not a readable archive. The current datapack, if
            any, is kept.

        """
        self.logger.info(f"Loading: {filename} ...")

        archive = ArchiveWrapper.from_bytes(data, filename)
        tree = self.tree_builder.build(archive.entries())

        self.close()

        self.archive = archive
        self.tree = tree
        self.overlay = OverlayStore()
        self.rewriter = RenameRewriter()
        self.datapack_name = ZIP_SUFFIX.sub("", Path(filename).name)

        self.logger.info(
            f"Loaded '{filename}' ({len(archive.namelist())} entries, "
            f"{len(tree.roots)} top-level items)."
        )
        return tree

    @property
    def loaded(self) -> bool:
        return self.archive is not None

    def _require_archive(self) -> tuple[ArchiveWrapper, PathTree]:
        if self.archive is None or self.tree is None:
            raise RuntimeError("No datapack loaded.")
        return self.archive, self.tree

    @property
    def resolver(self) -> ContentResolver:
        archive, _ = self._require_archive()
        return ContentResolver(archive, self.overlay, self.settings, self.logger)

    def set_datapack_name(self, name: str) -> None:
        """Choose the exported datapack name, renaming the root folder if possible."""
        _, tree = self._require_archive()

        name = name.strip()
        if not name:
            raise ValueError("Datapack name can't be empty.")

        rename = detect_root_rename(tree, name)
        self.close_image_folder()
        self.rewriter = RenameRewriter(rename)
        self.datapack_name = name

        if rename:
            self.logger.info(
                f"Renaming root folder {rename.original_prefix} to {rename.display_prefix}"
            )
        else:
            self.logger.verbose(f"Datapack name set to '{name}', root folder unchanged")

    @property
    def export_filename(self) -> str:
        return f"{self.datapack_name}.zip"

    def display_tree(self) -> list[TreeNode]:
        _, tree = self._require_archive()
        return self.rewriter.display_tree(tree.roots)

    def initial_expanded(self) -> set[str]:
        """Top-level folders, expanded when the tree is first shown."""
        return {node.path for node in self.display_tree() if node.is_directory}

    def to_original(self, display_path: str) -> str:
        return self.rewriter.to_original(normalize_path(display_path))

    def find(self, display_path: str) -> TreeNode | None:
        _, tree = self._require_archive()
        return tree.get(self.to_original(display_path))

    def is_image_folder(self, display_path: str) -> bool:
        node = self.find(display_path)
        return bool(
            node and node.is_directory and node.name in self.settings.image_folder_names
        )

    async def open(self, display_path: str) -> Content | DirectoryContents:
        path = self.to_original(display_path)
        if display_path.endswith("/"):
            path = f"{path}/"

        content = await self.resolver.resolve(path)
        if isinstance(content, DirectoryContents):
            return DirectoryContents(
                path=self.rewriter.to_display(content.path),
                items={self.rewriter.to_display(k): v for k, v in content.items.items()},
                failed={self.rewriter.to_display(k): v for k, v in content.failed.items()},
            )
        return content

    async def open_text(self, display_path: str) -> str:
        return await self.resolver.resolve_text(self.to_original(display_path))

    def edit(self, display_path: str, content: Content) -> str:
        """Record new content for an entry and return its original path.

        Raises
        ------
        IsADirectoryError
            If the path is a folder.
        NotADirectoryError
            If a parent of the path is a file.

        """
        _, tree = self._require_archive()
        path = self.to_original(display_path)

        node = tree.get(path)
        if not path or (node is not None and node.is_directory):
            raise IsADirectoryError(f"Can't write content to folder '{display_path}'")

        parent = self._file_ancestor(tree, path)
        if parent is not None:
            raise NotADirectoryError(
                f"Can't write '{display_path}': {self.rewriter.to_display(parent)} is a file"
            )

        self.overlay.write(path, content)
        kind = "bytes" if isinstance(content, bytes) else "chars"
        self.logger.verbose(f"Edited {path} ({len(content)} {kind})")
        return path

    def _file_ancestor(self, tree: PathTree, path: str) -> str | None:
        """Return the first parent of ``path`` that is a file, if any."""
        parts = path.split("/")
        for i in range(1, len(parts)):
            parent = "/".join(parts[:i])
            node = tree.get(parent)
            if (node is not None and not node.is_directory) or self.overlay.has(parent):
                return parent
        return None

    def add_image(
        self, folder: str, identifier: str, image_format: str, data: bytes
    ) -> str:
        """Add an image to a folder under a caller-chosen identifier.

        Parameters
        ----------
        folder : str
            The display path of the destination folder.
        identifier : str
            The file stem, e.g. a club id.
        image_format : str
            One of the configured new image formats.
        data : bytes
            The encoded image.

        Returns
        -------
        str
            The display path of the new entry.

        """
        resolver = self.resolver
        image_format = image_format.lower().lstrip(".")
        identifier = identifier.strip()

        if image_format not in self.settings.new_image_formats:
            raise ValueError(f"Unsupported image format: {image_format}")
        if not identifier or "/" in identifier:
            raise ValueError(f"Invalid image identifier: {identifier!r}")

        folder_path = self.to_original(folder)
        if not resolver.is_directory(folder_path):
            raise EntryNotFoundError(folder)

        display_path = self.rewriter.to_display(f"{folder_path}/{identifier}.{image_format}")
        self.replace_image(display_path, data)
        return display_path

    def replace_image(self, display_path: str, data: bytes) -> None:
        """Save an edited image and refresh its preview if one is shown."""
        self.edit(display_path, data)

        old = self._folder_handles.pop(display_path, None)
        if old is not None:
            self.previews.release(old)
            self._folder_handles[display_path] = self.previews.acquire(display_path, data)

    async def open_image_folder(self, display_path: str) -> dict[str, PreviewHandle]:
        """Resolve a folder's images into preview handles.

        Handles from the previously opened folder are released first.
        """
        self.close_image_folder()

        contents = await self.resolver.resolve_directory(self.to_original(display_path))
        for path, content in contents.items.items():
            shown = self.rewriter.to_display(path)
            self._folder_handles[shown] = self.previews.acquire(shown, content)

        if contents.partial:
            self.logger.warning(
                f"{len(contents.failed)} of {contents.expected} images in "
                f"{display_path} could not be loaded"
            )
        return dict(self._folder_handles)

    def close_image_folder(self) -> None:
        for handle in self._folder_handles.values():
            self.previews.release(handle)
        self._folder_handles.clear()

    async def export(self, on_progress: ProgressCallback | None = None) -> bytes:
        """Build the edited datapack.

        Raises
        ------
        datapack_editor.errors.ExportFailedError
            If the archive can't be produced. Edits are kept for a retry.

        """
        archive, _ = self._require_archive()
        pipeline = ExportPipeline(
            archive, self.overlay, self.rewriter, self.settings, self.logger
        )
        return await pipeline.export(on_progress)

    def close(self) -> None:
        self.close_image_folder()
        self.previews.release_all()
        if self.archive:
            self.archive.close()
            self.archive = None
            self.tree = None
