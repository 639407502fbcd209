"""Field mapping - source records to normalized entity fields.

A mapping table is ``{target_field: source_field}``. Target fields come from
a closed, per-entity schema; anything else is rejected before a run starts.
"""
import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

from ipam_sync.core.errors import InvalidFieldMapping

logger = logging.getLogger(__name__)

# Field kinds
TEXT = "text"
DATE = "date"
FLOAT = "float"
INT = "int"
ARRAY = "array"


@dataclass(frozen=True)
class FieldSpec:
    name: str
    kind: str = TEXT
    default: Any = ""


@dataclass(frozen=True)
class EntitySchema:
    """Closed set of mappable target fields of one entity type."""

    entity_type: str
    natural_key: str
    fields: tuple[FieldSpec, ...]

    @property
    def field_names(self) -> set[str]:
        return {self.natural_key} | {f.name for f in self.fields}

    def spec(self, name: str) -> Optional[FieldSpec]:
        for f in self.fields:
            if f.name == name:
                return f
        return None


@dataclass(frozen=True)
class Skip:
    """A record the mapper refuses; counted as skipped, never fatal."""

    reason: str


SCHEMAS: dict[str, EntitySchema] = {
    "devices": EntitySchema(
        entity_type="devices",
        natural_key="name",
        fields=(
            FieldSpec("device_type", default="server"),
            FieldSpec("manufacturer"),
            FieldSpec("model"),
            FieldSpec("serial_number"),
            FieldSpec("description"),
        ),
    ),
    "libraries": EntitySchema(
        entity_type="libraries",
        natural_key="name",
        fields=(
            FieldSpec("version", default="-"),
            FieldSpec("vendor", default="-"),
            FieldSpec("product_type", default="software"),
            FieldSpec("description"),
            FieldSpec("device_name"),
            FieldSpec("process_name"),
            FieldSpec("install_path"),
            FieldSpec("install_date", DATE, None),
            FieldSpec("license_type"),
            FieldSpec("license_expiry", DATE, None),
            FieldSpec("last_update", DATE, None),
            FieldSpec("security_patch_level"),
            FieldSpec("vulnerability_status", default="unknown"),
            FieldSpec("cpu_usage", FLOAT, None),
            FieldSpec("memory_usage", INT, None),
            FieldSpec("disk_usage", INT, None),
            FieldSpec("tags", ARRAY, None),
        ),
    ),
    "contacts": EntitySchema(
        entity_type="contacts",
        natural_key="email",
        fields=(
            FieldSpec("name"),
            FieldSpec("phone"),
            FieldSpec("mobile"),
            FieldSpec("title"),
            FieldSpec("department"),
            FieldSpec("office_location"),
            FieldSpec("responsibilities", ARRAY, None),
        ),
    ),
}


def get_schema(entity_type: str) -> EntitySchema:
    try:
        return SCHEMAS[entity_type]
    except KeyError:
        raise ValueError(f"Unknown sync target: {entity_type}") from None


def validate_mapping(entity_type: str, mapping: Any) -> dict[str, str]:
    """Check a mapping table against the entity schema.

    Returns the mapping with blank source fields dropped.

    Raises:
        InvalidFieldMapping: unknown target fields, or a malformed table
    """
    schema = get_schema(entity_type)

    if mapping is None:
        return {}
    if not isinstance(mapping, dict):
        raise InvalidFieldMapping(entity_type, ["<mapping must be an object>"])

    unknown = sorted(k for k in mapping if k not in schema.field_names)
    if unknown:
        raise InvalidFieldMapping(entity_type, unknown)

    bad_values = sorted(k for k, v in mapping.items() if v is not None and not isinstance(v, str))
    if bad_values:
        raise InvalidFieldMapping(entity_type, bad_values)

    return {k: v for k, v in mapping.items() if v}


def _to_float(value: Any) -> Optional[float]:
    if not value:
        return None
    try:
        return float(str(value))
    except ValueError:
        return None


def _to_int(value: Any) -> Optional[int]:
    if not value:
        return None
    try:
        return int(float(str(value)))
    except (ValueError, OverflowError):
        return None


def coerce(spec: FieldSpec, value: Any) -> Any:
    """Coerce one mapped value according to its field kind."""
    if spec.kind == FLOAT:
        return _to_float(value)
    if spec.kind == INT:
        return _to_int(value)
    if spec.kind == ARRAY:
        if not value:
            return None
        return value if isinstance(value, list) else [value]
    if spec.kind == DATE:
        return value or None
    return value or spec.default


class FieldMapper:
    """Applies one connection's mapping to raw source records."""

    def __init__(self, entity_type: str, mapping: Optional[dict] = None):
        self.schema = get_schema(entity_type)
        self.mapping = validate_mapping(entity_type, mapping)

    @property
    def natural_key(self) -> str:
        return self.schema.natural_key

    def map(self, raw: Any) -> Union[dict[str, Any], Skip]:
        """Normalize one raw record.

        Only mapped fields whose source column is present in the record are
        populated; a key present with a null value still counts as present.
        """
        if not isinstance(raw, dict):
            return Skip("record is not an object")

        key = self.natural_key
        source_key = self.mapping.get(key)
        key_value = raw.get(source_key) if source_key else None
        key_value = "" if key_value is None else str(key_value).strip()
        if not key_value:
            return Skip(f"missing mandatory field ({key})")

        record: dict[str, Any] = {key: key_value}
        for target, source in self.mapping.items():
            if target == key or source not in raw:
                continue
            record[target] = coerce(self.schema.spec(target), raw[source])

        return record
