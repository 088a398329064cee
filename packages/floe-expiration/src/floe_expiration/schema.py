"""Schema field lookup for expiration policies.

This module provides:
- FieldTypeId: Classification of Iceberg field types
- SUPPORTED_FIELD_TYPES: Types an expiration field may have
- FieldResolver: Protocol for (table, field) -> NestedField lookups
- find_field: Null-returning field lookup on a PyIceberg Schema
- schema_field_resolver / catalog_field_resolver: FieldResolver factories

Policies never hold a schema. Callers resolve the expiration field through
one of these resolvers and pass the result to DataExpirationConfig.is_valid().
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Mapping, Protocol

from pyiceberg.exceptions import NoSuchTableError
from pyiceberg.types import (
    BinaryType,
    BooleanType,
    DateType,
    DecimalType,
    DoubleType,
    FixedType,
    FloatType,
    IntegerType,
    ListType,
    LongType,
    MapType,
    StringType,
    StructType,
    TimestampType,
    TimestamptzType,
    TimeType,
    UUIDType,
)

from floe_expiration.observability import get_logger

if TYPE_CHECKING:
    from pyiceberg.catalog import Catalog
    from pyiceberg.schema import Schema
    from pyiceberg.types import IcebergType, NestedField


class FieldTypeId(str, Enum):
    """Semantic classification of an Iceberg field type.

    Timestamps with and without zone both classify as TIMESTAMP.
    """

    BOOLEAN = "boolean"
    INT = "int"
    LONG = "long"
    FLOAT = "float"
    DOUBLE = "double"
    DECIMAL = "decimal"
    DATE = "date"
    TIME = "time"
    TIMESTAMP = "timestamp"
    STRING = "string"
    UUID = "uuid"
    FIXED = "fixed"
    BINARY = "binary"
    STRUCT = "struct"
    LIST = "list"
    MAP = "map"
    UNKNOWN = "unknown"


SUPPORTED_FIELD_TYPES: tuple[FieldTypeId, ...] = (
    FieldTypeId.TIMESTAMP,
    FieldTypeId.STRING,
    FieldTypeId.LONG,
)
"""Field types usable for data expiration, in display order."""

_TYPE_IDS: dict[type, FieldTypeId] = {
    BooleanType: FieldTypeId.BOOLEAN,
    IntegerType: FieldTypeId.INT,
    LongType: FieldTypeId.LONG,
    FloatType: FieldTypeId.FLOAT,
    DoubleType: FieldTypeId.DOUBLE,
    DecimalType: FieldTypeId.DECIMAL,
    DateType: FieldTypeId.DATE,
    TimeType: FieldTypeId.TIME,
    TimestampType: FieldTypeId.TIMESTAMP,
    TimestamptzType: FieldTypeId.TIMESTAMP,
    StringType: FieldTypeId.STRING,
    UUIDType: FieldTypeId.UUID,
    FixedType: FieldTypeId.FIXED,
    BinaryType: FieldTypeId.BINARY,
    StructType: FieldTypeId.STRUCT,
    ListType: FieldTypeId.LIST,
    MapType: FieldTypeId.MAP,
}


def field_type_id(field_type: IcebergType) -> FieldTypeId:
    """Classify an Iceberg type.

    Args:
        field_type: PyIceberg type instance (e.g. ``TimestampType()``).

    Returns:
        The matching FieldTypeId, or UNKNOWN for types not listed.

    Example:
        >>> field_type_id(LongType())
        <FieldTypeId.LONG: 'long'>
    """
    return _TYPE_IDS.get(type(field_type), FieldTypeId.UNKNOWN)


def is_supported_type(field_type: IcebergType) -> bool:
    """Return True if the type can drive data expiration."""
    return field_type_id(field_type) in SUPPORTED_FIELD_TYPES


class FieldResolver(Protocol):
    """Resolve a table's field by name.

    Returns None when the field (or the table) does not exist.
    """

    def __call__(self, table_name: str, field_name: str) -> NestedField | None: ...


def find_field(schema: Schema, field_name: str | None) -> NestedField | None:
    """Look up a field in a schema without raising.

    Dotted names address nested struct fields ("payload.event_ts").

    Args:
        schema: PyIceberg Schema to search.
        field_name: Field name, may be None or blank.

    Returns:
        The NestedField, or None if the name is blank or not in the schema.
    """
    if field_name is None or not field_name.strip():
        return None
    try:
        return schema.find_field(field_name)
    except ValueError:
        return None


def schema_field_resolver(schemas: Mapping[str, Schema]) -> FieldResolver:
    """Create a resolver over an in-memory mapping of table name to schema.

    Unknown tables resolve every field to None.

    Example:
        >>> resolver = schema_field_resolver({"db.events": schema})
        >>> resolver("db.events", "event_ts")
        NestedField(field_id=1, name='event_ts', ...)
    """

    def resolve(table_name: str, field_name: str) -> NestedField | None:
        schema = schemas.get(table_name)
        if schema is None:
            return None
        return find_field(schema, field_name)

    return resolve


def catalog_field_resolver(catalog: Catalog) -> FieldResolver:
    """Create a resolver that loads table schemas from a PyIceberg catalog.

    Missing tables resolve to None and are logged at debug level. Any other
    catalog error propagates to the caller.

    Args:
        catalog: PyIceberg Catalog (REST, SQL, Glue, ...).

    Returns:
        FieldResolver backed by the catalog's current table schemas.
    """
    logger = get_logger()

    def resolve(table_name: str, field_name: str) -> NestedField | None:
        try:
            table = catalog.load_table(table_name)
        except NoSuchTableError:
            logger.debug("expiration_table_not_found", table=table_name)
            return None
        return find_field(table.schema(), field_name)

    return resolve
