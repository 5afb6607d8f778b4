from typing import Literal

from pydantic import AliasChoices, BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ApplicationSettings(BaseModel):
    version: str = "local"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_json: bool = False
    max_results_cap: int = 40


class ProviderSettings(BaseModel):
    google_books_url: str = "https://www.googleapis.com/books/v1/volumes"
    openlibrary_url: str = "https://openlibrary.org"
    openlibrary_covers_url: str = "https://covers.openlibrary.org"

    search_timeout: float = 8.0
    """Timeout in seconds for bulk search requests"""
    lookup_timeout: float = 5.0
    """Timeout in seconds for single book lookups (backfill, volume by id)"""


class RankingSettings(BaseModel):
    common_surnames: list[str] = [
        "king",
        "smith",
        "brown",
        "white",
        "black",
        "green",
        "stone",
        "wood",
        "hill",
    ]
    """Last names that double as ordinary words and are never used for a last-name-only author match"""


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="BOOKSEARCH_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    app: ApplicationSettings = ApplicationSettings()
    providers: ProviderSettings = ProviderSettings()
    ranking: RankingSettings = RankingSettings()

    google_books_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "BOOKSEARCH_GOOGLE_BOOKS_API_KEY", "GOOGLE_BOOKS_API_KEY"
        ),
    )
