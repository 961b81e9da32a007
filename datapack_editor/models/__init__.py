"""Module that contains data models."""
from .archive_wrapper import READ_ERRORS, ArchiveWrapper
from .directory_contents import DirectoryContents
from .export_plan import ExportPlan, ExportProgress, PlannedEntry, ProgressCallback
from .root_rename import RootRename
from .tree_node import TreeNode

__all__ = [
    "READ_ERRORS",
    "ArchiveWrapper",
    "DirectoryContents",
    "ExportPlan",
    "ExportProgress",
    "PlannedEntry",
    "ProgressCallback",
    "RootRename",
    "TreeNode",
]
