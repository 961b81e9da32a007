"""Data model to define the renaming of a datapack's root folder."""
from dataclasses import dataclass


@dataclass(frozen=True)
class RootRename:
    """Prefix substitution applied to every path under the root folder.

    Attributes
    ----------
    original_prefix : str
        The root folder path in the archive, with trailing slash.
    display_prefix : str
        The user-chosen replacement, with trailing slash.

    """

    original_prefix: str
    display_prefix: str

    def __post_init__(self) -> None:
        for prefix in (self.original_prefix, self.display_prefix):
            if not prefix.endswith("/") or prefix == "/":
                raise ValueError(f"Invalid root prefix: '{prefix}'")
