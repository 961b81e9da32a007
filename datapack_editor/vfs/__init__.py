"""
Virtual filesystem over a datapack archive.

The original archive is never modified: edits live in an overlay, reads go
through the overlay first, and exporting merges both into a new archive.
"""
from .builder import ArchiveBuilder
from .export import ExportPipeline
from .overlay import OverlayEntry, OverlayStore
from .previews import PreviewHandle, PreviewRegistry
from .rename import RenameRewriter, detect_root_rename
from .resolver import ContentResolver
from .tree_builder import PathTree, PathTreeBuilder

__all__ = [
    "ArchiveBuilder",
    "ContentResolver",
    "ExportPipeline",
    "OverlayEntry",
    "OverlayStore",
    "PathTree",
    "PathTreeBuilder",
    "PreviewHandle",
    "PreviewRegistry",
    "RenameRewriter",
    "detect_root_rename",
]
