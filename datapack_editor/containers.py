"""Dependency injection containers for the datapack editor."""

from __future__ import annotations

from dependency_injector import containers, providers
from verboselogs import VerboseLogger

from datapack_editor.config import Settings
from datapack_editor.helpers import init_logger
from datapack_editor.services.datapack_session import DatapackSession
from datapack_editor.vfs import PathTreeBuilder, PreviewRegistry


class VfsContainer(containers.DeclarativeContainer):
    """Container for the virtual filesystem components."""

    logger = providers.Dependency(instance_of=VerboseLogger)

    tree_builder = providers.Singleton(PathTreeBuilder, logger=logger)
    previews = providers.Factory(PreviewRegistry, logger=logger)


class AppContainer(containers.DeclarativeContainer):
    """Main application container."""

    config = providers.Singleton(Settings)
    logger = providers.Singleton(init_logger, "datapack_editor", "INFO")

    vfs = providers.Container(
        VfsContainer,
        logger=logger,
    )

    session = providers.Factory(
        DatapackSession,
        tree_builder=vfs.tree_builder,
        previews=vfs.previews,
        logger=logger,
        settings=config,
    )
