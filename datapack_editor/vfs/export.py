"""Merge the original archive and the overlay into a new archive."""
from __future__ import annotations

import asyncio

from verboselogs import VerboseLogger

from datapack_editor.config import Settings
from datapack_editor.errors import ExportFailedError
from datapack_editor.models import (
    READ_ERRORS,
    ArchiveWrapper,
    ExportPlan,
    ExportProgress,
    PlannedEntry,
    ProgressCallback,
)
from datapack_editor.vfs.builder import ArchiveBuilder
from datapack_editor.vfs.overlay import OverlayStore
from datapack_editor.vfs.rename import RenameRewriter


class ExportPipeline:
    """Two-phase export: gather every entry, then compress.

    Both phases report through the same callback; only the labels tell them
    apart. The event loop gets control back every ``export_yield_every``
    entries so a host UI stays responsive on large datapacks.

    Parameters
    ----------
    archive : ArchiveWrapper
        The original archive.
    overlay : OverlayStore
        The pending edits, keyed by original path.
    rewriter : RenameRewriter
        The active root rename, if any.
    settings : Settings
        Compression and cooperative yield settings.
    logger : VerboseLogger
        The program's logger.

    """

    def __init__(
        self,
        archive: ArchiveWrapper,
        overlay: OverlayStore,
        rewriter: RenameRewriter,
        settings: Settings,
        logger: VerboseLogger,
    ) -> None:
        self.archive = archive
        self.overlay = overlay
        self.rewriter = rewriter
        self.settings = settings
        self.logger = logger

    def build_plan(self) -> ExportPlan:
        """Union of archive and overlay paths, renamed and deduplicated.

        Archive entries keep their order; overlay-only paths follow, sorted.
        Both sides are keyed by canonical path, so an edit of
        ``Pack//teams.csv`` replaces the archive entry instead of adding a
        second one.
        """
        plan = ExportPlan()
        seen: set[str] = set()

        names = self.archive.namelist()
        overlay_only = sorted(self.overlay.all_paths() - set(names))

        for source in names + overlay_only:
            target = self.rewriter.to_display(source)
            if target in seen:
                continue
            seen.add(target)

            # A path written to the overlay is always content.
            is_directory = source.endswith("/") and not self.overlay.has(source)
            plan.entries.append(PlannedEntry(source, target, is_directory))

        return plan

    async def export(self, on_progress: ProgressCallback | None = None) -> bytes:
        """Produce the merged archive.

        Returns
        -------
        bytes
            The new archive.

        Raises
        ------
        datapack_editor.errors.ExportFailedError
            If an entry can't be read or the archive can't be serialized.
            The overlay and tree are left as they were.

        """
        plan = self.build_plan()
        self.logger.info(
            f"Exporting {len(plan)} entries from {self.archive.filename} "
            f"({len(self.overlay)} edited)"
        )

        builder = ArchiveBuilder(
            self.logger,
            compression=self.settings.compression,
            compress_level=self.settings.compress_level,
        )

        await self._gather(plan, builder, on_progress)
        data = await builder.generate(on_progress, self.settings.export_yield_every)

        self.logger.info(f"Export complete ({len(data)} bytes)")
        return data

    async def _gather(
        self,
        plan: ExportPlan,
        builder: ArchiveBuilder,
        on_progress: ProgressCallback | None,
    ) -> None:
        total = len(plan)
        yield_every = self.settings.export_yield_every

        for index, entry in enumerate(plan):
            if on_progress is not None:
                on_progress(
                    ExportProgress(index * 100 / total, f"Preparing {entry.target_path}")
                )

            if entry.is_directory:
                builder.add_directory(
                    entry.target_path, self.archive.date_time(entry.source_path)
                )
            elif self.overlay.has(entry.source_path):
                builder.add_file(entry.target_path, self._read(entry.source_path))
            else:
                builder.add_file(
                    entry.target_path,
                    self._read(entry.source_path),
                    self.archive.date_time(entry.source_path),
                )

            if yield_every > 0 and (index + 1) % yield_every == 0:
                await asyncio.sleep(0)

        if on_progress is not None:
            on_progress(ExportProgress(100, f"Prepared {total} entries"))

    def _read(self, path: str) -> bytes:
        content = self.overlay.read(path)
        if content is not None:
            self.logger.debug(f"Using edited content for {path}")
            if isinstance(content, bytes):
                return content

            try:
                return content.encode(self.settings.text_encoding)
            except UnicodeEncodeError as err:
                self.logger.error(
                    f"Can't encode {path} as {self.settings.text_encoding}: {err}"
                )
                raise ExportFailedError(err, path=path) from err

        try:
            return self.archive.read_bytes(path)
        except READ_ERRORS as err:
            self.logger.error(f"Failed to read {path} from archive: {err}")
            raise ExportFailedError(err, path=path) from err
