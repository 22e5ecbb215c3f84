"""Conversion of layer JSON documents into comma-delimited tables."""

import json
import logging
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional

from layer_extractor.core.config import (
    CSV_DELIMITER,
    CSV_EXTENSION,
    CSV_LINE_TERMINATOR,
    CSV_SUBDIRECTORY,
    ESCAPING_LEGACY,
    ESCAPING_MODES,
    ESCAPING_RFC4180,
)
from layer_extractor.models.field_type import FieldDescriptor, RenderCategory

logger = logging.getLogger(__name__)

_SPECIAL_CHARACTERS = (CSV_DELIMITER, '"', "\n", "\r")


class LayerDocumentError(ValueError):
    """A layer document is not shaped like a fields-plus-features response."""


class UnknownFieldError(LookupError):
    """A feature attribute has no matching field descriptor."""


def load_layer_document(path: Path) -> dict:
    """
    Parse a layer file.

    Floats are parsed as Decimal so their text is written back exactly as the
    service rendered it.

    Raises:
        LayerDocumentError: If the document is not a JSON object
        json.JSONDecodeError: If the file is not valid JSON
    """
    text = path.read_text(encoding="utf-8-sig")
    document = json.loads(text, parse_float=Decimal)
    if not isinstance(document, dict):
        raise LayerDocumentError(f"Expected a JSON object, got {type(document).__name__}")
    return document


def value_to_text(value: Any) -> str:
    """Textual form of a raw attribute value."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, (int, Decimal)):
        return str(value)
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)


def format_value(descriptor: FieldDescriptor, value: Any, escaping: str = ESCAPING_LEGACY) -> str:
    """
    Format one attribute value as a CSV cell according to its field type.

    Args:
        descriptor: Schema entry of the attribute's field
        value: Raw attribute value from the document
        escaping: "legacy" joins text verbatim, "rfc4180" escapes quotes and delimiters

    Returns:
        Cell text
    """
    category = descriptor.type.render_category

    if category is RenderCategory.DROPPED:
        return ""

    text = value_to_text(value)

    if category is RenderCategory.QUOTED_TEXT:
        text = text.strip()
        if escaping == ESCAPING_RFC4180:
            text = text.replace('"', '""')
        return f'"{text}"'

    if escaping == ESCAPING_RFC4180 and any(c in text for c in _SPECIAL_CHARACTERS):
        return '"' + text.replace('"', '""') + '"'
    return text


def csv_path_for(source: Path) -> Path:
    """Output path of the table converted from a source file."""
    return source.parent / CSV_SUBDIRECTORY / f"{source.name}{CSV_EXTENSION}"


@dataclass
class ConversionResult:
    """Outcome of converting one file."""

    source: Path
    output: Path
    rows: int = 0  # data rows written, header excluded
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class LayerConverter:
    """Converts layer documents into CSV tables."""

    def __init__(self, escaping: str = ESCAPING_LEGACY, log: Optional[logging.Logger] = None):
        """
        Initialize layer converter.

        Args:
            escaping: CSV escaping mode ("legacy" or "rfc4180")
            log: Logger receiving progress and error entries
        """
        if escaping not in ESCAPING_MODES:
            raise ValueError(f"Escaping must be one of {ESCAPING_MODES}, got {escaping}")
        self.escaping = escaping
        self.log = log or logger

    def build_rows(self, document: dict, rows: list[list[str]]) -> None:
        """
        Append the header and one row per feature to ``rows``.

        Rows are appended as they are completed, so on failure ``rows`` holds
        everything built before the offending feature.

        Raises:
            LayerDocumentError: If ``fields`` or ``features`` is missing, a field
                name repeats or a feature has no ``attributes`` object
            UnknownFieldError: If an attribute has no entry in the schema
        """
        fields = document.get("fields")
        features = document.get("features")
        if not isinstance(fields, list):
            raise LayerDocumentError("Document has no 'fields' array")
        if not isinstance(features, list):
            raise LayerDocumentError("Document has no 'features' array")

        descriptors: dict[str, FieldDescriptor] = {}
        header = []
        for field_data in fields:
            descriptor = FieldDescriptor.from_dict(field_data)
            if descriptor.name in descriptors:
                raise LayerDocumentError(f"Duplicate field name '{descriptor.name}'")
            descriptors[descriptor.name] = descriptor
            header.append(descriptor.name)
        rows.append(header)

        for feature in features:
            attributes = feature.get("attributes") if isinstance(feature, dict) else None
            if not isinstance(attributes, dict):
                raise LayerDocumentError(f"Feature {len(rows)} has no 'attributes' object")
            row = []
            # Attribute order is trusted to match schema order
            for name, value in attributes.items():
                if name not in descriptors:
                    raise UnknownFieldError(f"Attribute '{name}' has no field descriptor")
                row.append(format_value(descriptors[name], value, self.escaping))
            rows.append(row)

    @staticmethod
    def render(rows: list[list[str]]) -> str:
        """Join cells with the delimiter and terminate every row with a newline."""
        return "".join(CSV_DELIMITER.join(row) + CSV_LINE_TERMINATOR for row in rows)

    def convert_json_file(self, source: Path) -> ConversionResult:
        """
        Convert one layer file to ``<dir>/csv/<name>.csv``.

        Errors never propagate: a schema or record error stops row building
        and whatever rows were built are still written; write errors are
        logged.

        Args:
            source: Layer JSON file

        Returns:
            ConversionResult describing the outcome
        """
        source = Path(source)
        output = csv_path_for(source)
        result = ConversionResult(source=source, output=output)
        rows: list[list[str]] = []

        try:
            self.build_rows(load_layer_document(source), rows)
        except Exception as e:
            result.error = str(e)
            self.log.error(f"Error building CSV rows from file: {source}: {e}")

        try:
            output.write_text(self.render(rows), encoding="utf-8", newline="")
        except (OSError, ValueError) as e:
            result.error = str(e)
            self.log.error(f"Error writing CSV file: {output}: {e}")
            return result

        result.rows = max(len(rows) - 1, 0)
        self.log.debug(f"Wrote {result.rows} rows to {output}")
        return result

    def convert_directory(self, directory: Path) -> list[ConversionResult]:
        """
        Convert every file directly inside a directory.

        Args:
            directory: Directory holding layer files

        Returns:
            One ConversionResult per file, in file name order
        """
        directory = Path(directory)
        csv_dir = directory / CSV_SUBDIRECTORY

        try:
            csv_dir.mkdir(parents=True, exist_ok=True)
            sources = sorted(p for p in directory.iterdir() if p.is_file())
        except OSError as e:
            self.log.error(f"Error preparing CSV conversion of directory: {directory}: {e}")
            return [ConversionResult(source=directory, output=csv_dir, error=str(e))]

        results = [self.convert_json_file(source) for source in sources]

        failed = [r for r in results if not r.ok]
        self.log.info(f"Converted {len(results) - len(failed)}/{len(results)} files in {directory}")
        return results
