"""Centralized configuration management using Pydantic Settings."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class Settings(BaseSettings):
    """Defines application settings, loaded from environment variables or .env file.

    Attributes
    ----------
    image_extensions : list of str
        File extensions treated as images when a folder is opened.
    image_folder_names : list of str
        Folder names that open as an image gallery instead of a plain folder.
    new_image_formats : list of str
        Formats accepted when a new image is added to a folder.
    export_yield_every : int
        Number of entries processed between two cooperative yields.
    compression : str
        Output compression method, ``deflated`` or ``stored``.
    compress_level : int, optional
        Deflate level, ``None`` for the zlib default.
    text_encoding : str
        Encoding used for text entries.
    """

    image_extensions: List[str] = [".png", ".jpg", ".jpeg", ".webp"]
    image_folder_names: List[str] = ["adboards", "club_logos", "competition_logos"]
    new_image_formats: List[str] = ["png", "webp"]

    export_yield_every: int = Field(default=20, ge=0)
    compression: str = "deflated"
    compress_level: Optional[int] = Field(default=None, ge=0, le=9)

    text_encoding: str = "utf-8"

    @field_validator("compression")
    @classmethod
    def _known_compression(cls, value: str) -> str:
        value = value.lower()
        if value not in ("deflated", "stored"):
            raise ValueError(f"compression must be deflated or stored, not {value}")
        return value

    @field_validator("image_extensions")
    @classmethod
    def _dotted_extensions(cls, value: List[str]) -> List[str]:
        return [ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in value]

    model_config = SettingsConfigDict(
        env_prefix="DATAPACK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
