"""Rebuild a directory tree from the flat entry listing of an archive."""
from __future__ import annotations

from typing import Iterable, Iterator

from verboselogs import VerboseLogger

from datapack_editor.helpers import normalize_path
from datapack_editor.models import TreeNode


def sort_key(node: TreeNode) -> tuple[bool, str]:
    """Directories first, then case-insensitive name order."""
    return (not node.is_directory, node.name.casefold())


class PathTree:
    """Nodes of an archive, indexed by normalized path.

    Parameters
    ----------
    roots : list of TreeNode
        The top-level nodes, sorted.
    index : dict
        Every node of the tree by normalized path.

    """

    def __init__(self, roots: list[TreeNode], index: dict[str, TreeNode]) -> None:
        self.roots = roots
        self._index = index

    def get(self, path: str) -> TreeNode | None:
        return self._index.get(normalize_path(path))

    def __contains__(self, path: str) -> bool:
        return normalize_path(path) in self._index

    def __len__(self) -> int:
        return len(self._index)

    def walk(self) -> Iterator[TreeNode]:
        """Yield every node depth-first, in display order."""
        stack = list(reversed(self.roots))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    @property
    def single_root(self) -> TreeNode | None:
        """The only top-level node when it is a directory."""
        if len(self.roots) == 1 and self.roots[0].is_directory:
            return self.roots[0]
        return None


class PathTreeBuilder:
    """Turn ``(path, is_directory)`` pairs into a ``PathTree``.

    A node first seen as a file is promoted to a directory as soon as an
    entry below it shows up; a directory is never demoted.
    """

    def __init__(self, logger: VerboseLogger) -> None:
        self.logger = logger

    def build(self, entries: Iterable[tuple[str, bool]]) -> PathTree:
        nodes: dict[str, TreeNode] = {}
        count = 0

        for path, is_directory in entries:
            count += 1
            self._insert(nodes, path, is_directory)

        roots = self._link(nodes)
        self._sort(roots)

        self.logger.debug(
            f"Built tree of {len(nodes)} nodes ({len(roots)} roots) "
            f"from {count} entries."
        )
        return PathTree(roots, nodes)

    def _insert(
        self, nodes: dict[str, TreeNode], path: str, is_directory: bool
    ) -> None:
        parts = [part for part in path.split("/") if part]
        if not parts:
            self.logger.spam(f"Ignoring empty entry path {path!r}")
            return

        current = ""
        last = len(parts) - 1

        for i, part in enumerate(parts):
            current = f"{current}/{part}" if current else part
            as_directory = i < last or is_directory

            node = nodes.get(current)
            if node is None:
                nodes[current] = TreeNode(
                    path=current, name=part, is_directory=as_directory
                )
            elif as_directory and not node.is_directory:
                self.logger.spam(f"Promoting {current} to directory")
                node.is_directory = True

    def _link(self, nodes: dict[str, TreeNode]) -> list[TreeNode]:
        roots: list[TreeNode] = []

        # One node per normalized path, so each is linked exactly once.
        for node in nodes.values():
            parent_path = node.parent_path
            if parent_path is None:
                roots.append(node)
            else:
                # Parents are always created while walking the segments.
                nodes[parent_path].children.append(node)

        return roots

    def _sort(self, level: list[TreeNode]) -> None:
        level.sort(key=sort_key)
        for node in level:
            if node.children:
                self._sort(node.children)
