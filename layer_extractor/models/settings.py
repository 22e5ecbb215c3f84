"""Resolved run settings built from a validated configuration file."""

from dataclasses import dataclass, field
from pathlib import Path

from layer_extractor.core.config import DEFAULT_LOG_FILE, DOWNLOAD_TIMEOUT, ESCAPING_LEGACY
from layer_extractor.core.layer_spec import expand_layer_spec
from layer_extractor.models.catalog import Catalog


@dataclass
class ExtractorSettings:
    """Everything one extraction run needs, already resolved."""

    layers: str
    catalogs: list[Catalog] = field(default_factory=list)
    prompt_for_run: bool = False
    file_logging: bool = False
    log_file: Path = Path(DEFAULT_LOG_FILE)
    request_timeout: float = DOWNLOAD_TIMEOUT
    csv_escaping: str = ESCAPING_LEGACY

    @property
    def layer_ids(self) -> list[int]:
        return expand_layer_spec(self.layers)

    @classmethod
    def from_dict(cls, data: dict, config_dir: Path | None = None) -> "ExtractorSettings":
        """
        Deserialize from YAML config.

        Args:
            data: Validated configuration dictionary
            config_dir: Directory containing config file (for resolving relative paths)

        Returns:
            ExtractorSettings instance
        """
        log_file = Path(data.get("log_file", DEFAULT_LOG_FILE))
        if config_dir and not log_file.is_absolute():
            log_file = config_dir / log_file

        return cls(
            layers=str(data["layers"]),
            catalogs=[Catalog.from_dict(c, config_dir=config_dir) for c in data["catalogs"]],
            prompt_for_run=data.get("prompt_for_run", False),
            file_logging=data.get("file_logging", False),
            log_file=log_file,
            request_timeout=data.get("request_timeout", DOWNLOAD_TIMEOUT),
            csv_escaping=data.get("csv_escaping", ESCAPING_LEGACY),
        )
