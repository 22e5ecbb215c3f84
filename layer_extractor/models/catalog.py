"""Catalog model: one language's layer service configuration."""

from dataclasses import dataclass, field
from pathlib import Path

from layer_extractor.core.config import CSV_SUBDIRECTORY, RAW_LAYER_EXTENSION
from layer_extractor.core.layer_spec import split_name_list


@dataclass
class Catalog:
    """Base URL, layer name table and output directory for one language."""

    language: str
    base_url: str
    layer_names: list[str] = field(default_factory=list)
    output_dir: Path = Path(".")

    def __post_init__(self):
        """Normalize the catalog."""
        if isinstance(self.output_dir, str):
            self.output_dir = Path(self.output_dir)

        if isinstance(self.layer_names, str):
            self.layer_names = split_name_list(self.layer_names)

    @property
    def csv_dir(self) -> Path:
        return self.output_dir / CSV_SUBDIRECTORY

    def layer_name(self, layer_id: int) -> str:
        """
        Look up the output file base name for a layer.

        Args:
            layer_id: 1-based layer identifier

        Returns:
            Layer name from the name table

        Raises:
            LookupError: If the identifier has no entry in the name table
        """
        if layer_id < 1 or layer_id > len(self.layer_names):
            raise LookupError(
                f"Layer {layer_id} has no entry in the {self.language} name table "
                f"({len(self.layer_names)} names)"
            )
        return self.layer_names[layer_id - 1]

    def raw_layer_path(self, layer_id: int) -> Path:
        """Path of the raw JSON document for a layer."""
        return self.output_dir / f"{self.layer_name(layer_id)}{RAW_LAYER_EXTENSION}"

    @classmethod
    def from_dict(cls, data: dict, config_dir: Path | None = None) -> "Catalog":
        """
        Deserialize from YAML config.

        Args:
            data: Catalog dictionary
            config_dir: Directory containing config file (for resolving relative paths)

        Returns:
            Catalog instance
        """
        output_dir = Path(data["output_dir"])

        # Resolve relative paths relative to config file directory
        if config_dir and not output_dir.is_absolute():
            output_dir = config_dir / output_dir

        return cls(
            language=data["language"],
            base_url=data["base_url"],
            layer_names=split_name_list(data["layer_names"]),
            output_dir=output_dir,
        )
