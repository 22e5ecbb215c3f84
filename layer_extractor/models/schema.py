"""Pydantic models describing the YAML configuration file."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class CatalogModel(BaseModel):
    """One language catalog."""

    model_config = ConfigDict(extra="forbid")

    language: str = Field(description="Language code of the catalog, e.g. 'en' or 'fr'")
    base_url: str = Field(description="Map service base URL; layer index and query are appended")
    layer_names: str | list[str] = Field(
        description="Ordered layer names (comma-separated string or list); entry N names layer N+1"
    )
    output_dir: str = Field(description="Directory for raw JSON layers; CSV goes to its 'csv' subdirectory")


class ExtractorConfiguration(BaseModel):
    """Layer extractor configuration."""

    model_config = ConfigDict(extra="forbid")

    layers: str | int = Field(description="Layer indices to fetch, e.g. '1,3-7'")
    catalogs: list[CatalogModel] = Field(min_length=1)
    prompt_for_run: bool = Field(default=False, description="Wait for Enter before starting and before closing")
    file_logging: bool = Field(default=False, description="Also write log entries to log_file")
    log_file: str = Field(default="log.txt")
    request_timeout: float = Field(default=300, gt=0, description="Total timeout per layer request, seconds")
    csv_escaping: Literal["legacy", "rfc4180"] = Field(
        default="legacy",
        description="'legacy' joins cells verbatim; 'rfc4180' escapes quotes and delimiters",
    )
