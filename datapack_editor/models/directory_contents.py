"""Data model to define the result of resolving an image folder."""
from dataclasses import dataclass, field


@dataclass
class DirectoryContents:
    """Class defining the contents resolved for a folder.

    A failure on one child does not abort the others: the failed path is
    recorded in ``failed`` and left out of ``items``.

    Attributes
    ----------
    path : str
        The resolved folder, with trailing slash.
    items : dict
        Resolved child path to its content (``str`` or ``bytes``).
    failed : dict
        Child path to the error message for each failed resolution.

    """

    path: str
    items: dict[str, str | bytes] = field(default_factory=dict)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def expected(self) -> int:
        return len(self.items) + len(self.failed)

    @property
    def partial(self) -> bool:
        return bool(self.failed)
