"""ExpirationValidator: decide whether expiration runs for a table.

This module provides the ExpirationValidator class, the per-table entry
point used by expiration schedulers. It resolves the policy's expiration
field through an injected FieldResolver and delegates the decision to
DataExpirationConfig.is_valid().
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping

from floe_expiration.config import DataExpirationConfig
from floe_expiration.observability import get_logger, get_tracer, span

if TYPE_CHECKING:
    from opentelemetry.trace import Tracer
    from structlog.stdlib import BoundLogger

    from floe_expiration.schema import FieldResolver


class ExpirationValidator:
    """Check expiration policies against live table schemas.

    The field is only resolved when the policy is enabled and names a
    field, so disabled tables never hit the catalog.

    Example:
        >>> from floe_expiration import ExpirationValidator, catalog_field_resolver
        >>>
        >>> validator = ExpirationValidator(catalog_field_resolver(catalog))
        >>> config, valid = validator.from_properties("db.events", table.properties)
        >>> if valid:
        ...     executor.expire("db.events", config)
    """

    def __init__(
        self,
        resolver: FieldResolver,
        *,
        tracer: Tracer | None = None,
        logger: BoundLogger | None = None,
    ) -> None:
        """Initialize ExpirationValidator.

        Args:
            resolver: Field lookup by (table_name, field_name).
            tracer: Optional OpenTelemetry tracer for custom tracing.
            logger: Optional structlog logger for custom logging.
        """
        self._resolver = resolver
        self._tracer = tracer or get_tracer()
        self._logger = logger or get_logger()

    def is_enabled(self, table_name: str, config: DataExpirationConfig) -> bool:
        """Return True if expiration should run for the table.

        Args:
            table_name: Fully qualified table name.
            config: The table's expiration policy.

        Returns:
            Result of config.is_valid() for the resolved field.
        """
        attrs: dict[str, Any] = {"expiration.table": table_name}
        if config.expiration_field:
            attrs["expiration.field"] = config.expiration_field
        if config.expiration_level is not None:
            attrs["expiration.level"] = config.expiration_level.value
        if config.since is not None:
            attrs["expiration.since"] = config.since.value

        with span(
            "expiration.validate",
            attributes=attrs,
            tracer=self._tracer,
            logger=self._logger,
        ) as s:
            field = None
            field_name = config.expiration_field
            if config.enabled and field_name is not None and field_name.strip():
                field = self._resolver(table_name, field_name)
            valid = config.is_valid(field, table_name)
            s.set_attribute("expiration.valid", valid)
            return valid

    def from_properties(
        self, table_name: str, properties: Mapping[str, Any]
    ) -> tuple[DataExpirationConfig, bool]:
        """Parse a table's properties and check the resulting policy.

        Raises:
            InvalidConfigValueError: If a data-expire.* value cannot be parsed.
        """
        config = DataExpirationConfig.from_properties(properties)
        return config, self.is_enabled(table_name, config)
