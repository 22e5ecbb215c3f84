"""Field type model for map-service layer schemas."""

from dataclasses import dataclass
from enum import Enum


class RenderCategory(Enum):
    """How values of a field are written to a CSV cell."""

    QUOTED_TEXT = "quoted_text"  # trimmed and wrapped in double quotes
    DROPPED = "dropped"  # binary/complex payloads, always empty
    PLAIN = "plain"  # textual form as-is


class FieldType(Enum):
    """
    Field types declared by the map service.

    The set is open: type strings the service may add later map to UNKNOWN
    and are rendered like numbers (plain passthrough).
    """

    STRING = "esriFieldTypeString"
    DATE = "esriFieldTypeDate"
    GUID = "esriFieldTypeGUID"
    BLOB = "esriFieldTypeBlob"
    RASTER = "esriFieldTypeRaster"
    XML = "esriFieldTypeXML"
    GEOMETRY = "esriFieldTypeGeometry"
    DOUBLE = "esriFieldTypeDouble"
    SINGLE = "esriFieldTypeSingle"
    INTEGER = "esriFieldTypeInteger"
    SMALL_INTEGER = "esriFieldTypeSmallInteger"
    OID = "esriFieldTypeOID"
    GLOBAL_ID = "esriFieldTypeGlobalID"
    UNKNOWN = "unknown"

    @classmethod
    def from_esri(cls, value: str | None) -> "FieldType":
        """Map a service type string to a FieldType, UNKNOWN if unrecognized."""
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN

    @property
    def render_category(self) -> RenderCategory:
        if self in _QUOTED_TYPES:
            return RenderCategory.QUOTED_TEXT
        if self in _DROPPED_TYPES:
            return RenderCategory.DROPPED
        return RenderCategory.PLAIN


_QUOTED_TYPES = frozenset({FieldType.STRING, FieldType.DATE, FieldType.GUID})
_DROPPED_TYPES = frozenset({FieldType.BLOB, FieldType.RASTER, FieldType.XML, FieldType.GEOMETRY})


@dataclass(frozen=True)
class FieldDescriptor:
    """Schema entry for one field of a layer."""

    name: str
    type: FieldType
    raw_type: str | None = None
    alias: str | None = None
    length: int | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "FieldDescriptor":
        """
        Create a descriptor from one entry of a layer document's ``fields`` array.

        Args:
            data: Field dictionary with at least a ``name`` key

        Returns:
            FieldDescriptor instance

        Raises:
            ValueError: If the entry has no name
        """
        if not isinstance(data, dict) or "name" not in data:
            raise ValueError(f"Field descriptor without a name: {data!r}")

        raw_type = data.get("type")
        length = data.get("length")
        return cls(
            name=str(data["name"]),
            type=FieldType.from_esri(raw_type),
            raw_type=raw_type,
            alias=data.get("alias"),
            length=int(length) if length is not None else None,
        )
