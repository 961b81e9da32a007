"""Root folder renaming shared by display, lookups and export."""
from __future__ import annotations

from datapack_editor.models import RootRename, TreeNode
from datapack_editor.vfs.tree_builder import PathTree


def detect_root_rename(tree: PathTree, display_name: str | None) -> RootRename | None:
    """Return the rename to apply for a desired datapack name.

    Renaming is only available when the archive holds exactly one top-level
    folder and the name differs from that folder's.

    Raises
    ------
    ValueError
        If the name contains a path separator.

    """
    name = (display_name or "").strip().strip("/").strip()
    if "/" in name:
        raise ValueError(f"Datapack name can't contain '/': {display_name!r}")

    root = tree.single_root
    if root is None or not name or name == root.name:
        return None

    return RootRename(original_prefix=f"{root.path}/", display_prefix=f"{name}/")


def _swap(path: str, source: str, target: str) -> str:
    if path == source.rstrip("/"):
        return target.rstrip("/")
    if path.startswith(source):
        return target + path[len(source):]
    return path


class RenameRewriter:
    """Map paths between what the user sees and what the archive stores.

    Every boundary between the two (tree rendering, opening a node, writing
    an edit, exporting) goes through the same instance so the display never
    diverges from what is written. Identity when no rename is active.
    """

    def __init__(self, rename: RootRename | None = None) -> None:
        self.rename = rename

    @property
    def active(self) -> bool:
        return self.rename is not None

    def to_display(self, path: str) -> str:
        if self.rename is None:
            return path
        return _swap(path, self.rename.original_prefix, self.rename.display_prefix)

    def to_original(self, path: str) -> str:
        if self.rename is None:
            return path
        return _swap(path, self.rename.display_prefix, self.rename.original_prefix)

    def display_tree(self, roots: list[TreeNode]) -> list[TreeNode]:
        """Copy a tree with renamed paths, leaving the original untouched."""
        return [self._display_node(node) for node in roots]

    def _display_node(self, node: TreeNode) -> TreeNode:
        path = self.to_display(node.path)
        return TreeNode(
            path=path,
            name=path.rsplit("/", 1)[-1],
            is_directory=node.is_directory,
            children=[self._display_node(child) for child in node.children],
        )
