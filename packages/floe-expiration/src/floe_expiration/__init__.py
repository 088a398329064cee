"""floe-expiration: Data-expiration policies for Iceberg tables.

This package provides:
- DataExpirationConfig: Immutable expiration policy parsed from table properties
- Policy validation against the table schema (field presence and type)
- Field resolvers backed by PyIceberg schemas or catalogs
- ExpirationValidator: Per-table check with OpenTelemetry tracing

Scanning, planning and deleting expired files is left to the caller.

Example:
    >>> from floe_expiration import DataExpirationConfig, schema_field_resolver
    >>> from floe_expiration import ExpirationValidator
    >>>
    >>> config = DataExpirationConfig.from_properties(
    ...     {
    ...         "data-expire.enabled": "true",
    ...         "data-expire.field": "event_ts",
    ...         "data-expire.retention-time": "1d",
    ...     }
    ... )
    >>> validator = ExpirationValidator(schema_field_resolver({"db.events": schema}))
    >>> validator.is_enabled("db.events", config)
    True
"""

from __future__ import annotations

__version__ = "0.1.0"

# Public API exports
__all__ = [
    # Validator
    "ExpirationValidator",
    # Configuration models
    "DataExpirationConfig",
    "DataExpirationConfigBuilder",
    "ExpireLevel",
    "Since",
    "parse_retention_time",
    # Schema lookup
    "FieldTypeId",
    "FieldResolver",
    "SUPPORTED_FIELD_TYPES",
    "field_type_id",
    "is_supported_type",
    "find_field",
    "schema_field_resolver",
    "catalog_field_resolver",
    # Exceptions
    "FloeExpirationError",
    "InvalidConfigValueError",
]


def __getattr__(name: str) -> object:
    """Lazy import of public API members."""
    if name == "ExpirationValidator":
        from floe_expiration.validation import ExpirationValidator

        return ExpirationValidator
    if name in (
        "DataExpirationConfig",
        "DataExpirationConfigBuilder",
        "ExpireLevel",
        "Since",
        "parse_retention_time",
    ):
        from floe_expiration import config as config_module

        return getattr(config_module, name)
    if name in (
        "FieldTypeId",
        "FieldResolver",
        "SUPPORTED_FIELD_TYPES",
        "field_type_id",
        "is_supported_type",
        "find_field",
        "schema_field_resolver",
        "catalog_field_resolver",
    ):
        from floe_expiration import schema as schema_module

        return getattr(schema_module, name)
    if name in ("FloeExpirationError", "InvalidConfigValueError"):
        from floe_expiration import errors as errors_module

        return getattr(errors_module, name)
    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
