"""Data model to define the nodes of a datapack file tree."""
from dataclasses import dataclass, field


@dataclass
class TreeNode:
    """Class defining a file or directory of the archive tree.

    Attributes
    ----------
    path : str
        The normalized entry path, without trailing slash.
    name : str
        The last segment of the path.
    is_directory : bool
        Whether the node is a directory. Once set it is never reset.
    children : list of TreeNode
        The node's children, unique by path.

    """

    path: str
    name: str
    is_directory: bool = False
    children: list["TreeNode"] = field(default_factory=list)

    @property
    def archive_path(self) -> str:
        """The path as written in a zip listing."""
        return f"{self.path}/" if self.is_directory else self.path

    @property
    def parent_path(self) -> str | None:
        if "/" not in self.path:
            return None
        return self.path.rsplit("/", 1)[0]
