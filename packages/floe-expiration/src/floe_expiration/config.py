"""Pydantic models for table data-expiration policies.

This module provides:
- ExpireLevel: Granularity of expiration (partition or file)
- Since: Reference point that data age is measured from
- DataExpirationConfig: Immutable expiration policy with validation
- DataExpirationConfigBuilder: Chained-setter construction path
- parse_retention_time: Duration parsing for data-expire.retention-time

Policies arrive as flat table properties:

    data-expire.enabled = true
    data-expire.field = event_ts
    data-expire.level = partition
    data-expire.retention-time = 30d
    data-expire.since = current_timestamp
"""

from __future__ import annotations

import re
from datetime import timedelta
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Mapping, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from floe_expiration.errors import InvalidConfigValueError
from floe_expiration.observability import get_logger
from floe_expiration.schema import (
    SUPPORTED_FIELD_TYPES,
    FieldTypeId,
    field_type_id,
    is_supported_type,
)

if TYPE_CHECKING:
    from pyiceberg.types import NestedField

# Table property keys
ENABLED_KEY = "data-expire.enabled"
FIELD_KEY = "data-expire.field"
LEVEL_KEY = "data-expire.level"
RETENTION_TIME_KEY = "data-expire.retention-time"
DATETIME_STRING_PATTERN_KEY = "data-expire.datetime-string-pattern"
DATETIME_NUMBER_FORMAT_KEY = "data-expire.datetime-number-format"
SINCE_KEY = "data-expire.since"

# Defaults applied by from_properties() when a key is absent
DEFAULT_ENABLED = "false"
DEFAULT_LEVEL = "partition"
DEFAULT_RETENTION_TIME = "0"
DEFAULT_DATETIME_STRING_PATTERN = "yyyy-MM-dd"
DEFAULT_DATETIME_NUMBER_FORMAT = "TIMESTAMP_MS"
DEFAULT_SINCE = "latest_snapshot"

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

_DURATION_PATTERN = re.compile(r"^\s*([+-]?\d+)\s*([a-zA-Z]*)\s*$")

_UNIT_MILLIS: dict[str, int] = {
    "": 1,
    "ms": 1,
    "milli": 1,
    "millis": 1,
    "millisecond": 1,
    "milliseconds": 1,
    "s": 1000,
    "sec": 1000,
    "secs": 1000,
    "second": 1000,
    "seconds": 1000,
    "m": 60_000,
    "min": 60_000,
    "mins": 60_000,
    "minute": 60_000,
    "minutes": 60_000,
    "h": 3_600_000,
    "hour": 3_600_000,
    "hours": 3_600_000,
    "d": 86_400_000,
    "day": 86_400_000,
    "days": 86_400_000,
}

_T = TypeVar("_T")


class ExpireLevel(str, Enum):
    """Granularity at which data expiration is evaluated.

    - PARTITION: Whole partitions expire once all their data is too old
    - FILE: Individual data files expire based on their column bounds
    """

    PARTITION = "partition"
    FILE = "file"

    @classmethod
    def from_string(cls, level: str | None) -> ExpireLevel:
        """Parse a level from its case-insensitive name.

        Args:
            level: Level name, e.g. "partition", "File" or "FILE".

        Returns:
            The matching ExpireLevel.

        Raises:
            InvalidConfigValueError: If level is None or not a known name.

        Example:
            >>> ExpireLevel.from_string("Partition")
            <ExpireLevel.PARTITION: 'partition'>
        """
        if level is None:
            msg = f"{LEVEL_KEY} is invalid: null"
            raise InvalidConfigValueError(msg)
        if not isinstance(level, str):
            msg = f"Invalid level type: {level}"
            raise InvalidConfigValueError(msg, value=str(level))
        try:
            return cls.__members__[level.upper()]
        except KeyError as e:
            msg = f"Invalid level type: {level}"
            raise InvalidConfigValueError(msg, value=level) from e


class Since(str, Enum):
    """Reference point that data age is measured from.

    - LATEST_SNAPSHOT: Commit time of the table's latest snapshot
    - CURRENT_TIMESTAMP: Wall-clock time when expiration runs
    """

    LATEST_SNAPSHOT = "latest_snapshot"
    CURRENT_TIMESTAMP = "current_timestamp"

    @classmethod
    def from_string(cls, since: str | None) -> Since:
        """Parse a time basis from its case-insensitive name.

        Raises:
            InvalidConfigValueError: If since is None or not a known name.
        """
        if since is None:
            msg = f"{SINCE_KEY} is invalid: null"
            raise InvalidConfigValueError(msg)
        if not isinstance(since, str):
            msg = f"Unable to expire data since: {since}"
            raise InvalidConfigValueError(msg, value=str(since))
        try:
            return cls.__members__[since.upper()]
        except KeyError as e:
            msg = f"Unable to expire data since: {since}"
            raise InvalidConfigValueError(msg, value=since) from e


def parse_retention_time(value: str | int) -> int:
    """Parse a retention time into milliseconds.

    Accepts a plain integer (milliseconds) or a duration string made of an
    integer amount and a unit (ms, s, min, h, d and their long forms).

    Args:
        value: Raw retention time, e.g. 86400000, "86400000", "30d", "12 hours".

    Returns:
        Retention time in milliseconds.

    Raises:
        InvalidConfigValueError: If the value cannot be parsed or does not
            fit a signed 64-bit integer.

    Example:
        >>> parse_retention_time("1d")
        86400000
    """
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        msg = f"Invalid retention time: {value}"
        raise InvalidConfigValueError(msg, value=str(value), key=RETENTION_TIME_KEY)
    if isinstance(value, int):
        millis = value
    else:
        match = _DURATION_PATTERN.match(value)
        unit = match.group(2).lower() if match else None
        if match is None or unit not in _UNIT_MILLIS:
            msg = f"Invalid retention time: {value}"
            raise InvalidConfigValueError(msg, value=value, key=RETENTION_TIME_KEY)
        millis = int(match.group(1)) * _UNIT_MILLIS[unit]

    if not INT64_MIN <= millis <= INT64_MAX:
        msg = f"Retention time out of range: {value}"
        raise InvalidConfigValueError(msg, value=str(value), key=RETENTION_TIME_KEY)
    return millis


def _parse_enabled(value: str | bool) -> bool:
    if isinstance(value, bool):
        return value
    if not isinstance(value, str):
        msg = f"Invalid boolean value: {value}"
        raise InvalidConfigValueError(msg, value=str(value), key=ENABLED_KEY)
    normalized = value.strip().lower()
    if normalized == "true":
        return True
    if normalized == "false":
        return False
    msg = f"Invalid boolean value: {value}"
    raise InvalidConfigValueError(msg, value=value, key=ENABLED_KEY)


def _parse_text(value: str | None) -> str | None:
    if value is None or isinstance(value, str):
        return value
    msg = f"Invalid string value: {value}"
    raise InvalidConfigValueError(msg, value=str(value))


def _parse_property(key: str, parser: Callable[[Any], _T], raw: Any) -> _T:
    """Run parser on raw, attaching the property key to parse failures."""
    try:
        return parser(raw)
    except InvalidConfigValueError as e:
        if e.key is not None:
            raise
        raise InvalidConfigValueError(e.message, value=e.value, key=key) from e


class DataExpirationConfig(BaseModel):
    """Data-expiration policy for a single table.

    A policy only takes effect when is_valid() accepts it for the table's
    current schema. The policy holds no schema reference; the resolved
    expiration field is passed in at validation time.

    Equality and hashing are structural over all seven fields, so callers
    can compare policies across configuration reloads.

    Attributes:
        enabled: Master on/off switch.
        expiration_field: Name of the field used to compute data age.
        expiration_level: Granularity of expiration (partition or file).
        retention_time: Maximum data age in milliseconds.
        date_time_pattern: Pattern for string-typed expiration fields.
        number_date_format: Encoding for numeric expiration fields.
        since: Reference point data age is measured from.

    Example:
        >>> config = DataExpirationConfig(
        ...     enabled=True,
        ...     expiration_field="event_ts",
        ...     expiration_level=ExpireLevel.PARTITION,
        ...     retention_time=86_400_000,
        ...     since=Since.LATEST_SNAPSHOT,
        ... )
        >>> config.is_valid(schema.find_field("event_ts"), "db.events")
        True
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    enabled: bool = Field(
        default=False,
        strict=True,
        description="Master on/off switch",
    )
    expiration_field: str | None = Field(
        default=None,
        description="Schema field used to compute data age",
    )
    expiration_level: ExpireLevel | None = Field(
        default=None,
        description="Granularity at which expiration is evaluated",
    )
    retention_time: int = Field(
        default=0,
        strict=True,
        ge=INT64_MIN,
        le=INT64_MAX,
        description="Maximum data age in milliseconds",
    )
    date_time_pattern: str | None = Field(
        default=None,
        description="Pattern for parsing formatted date/time strings",
    )
    number_date_format: str | None = Field(
        default=None,
        description="Encoding of numeric timestamp values",
    )
    since: Since | None = Field(
        default=None,
        description="Reference point data age is measured from",
    )

    @property
    def retention(self) -> timedelta:
        """Return retention_time as a timedelta."""
        return timedelta(milliseconds=self.retention_time)

    @classmethod
    def from_properties(cls, properties: Mapping[str, Any]) -> DataExpirationConfig:
        """Build a policy from table properties.

        Keys outside the data-expire.* set are ignored. Absent keys take
        the table-property defaults (disabled, partition level, latest
        snapshot, "yyyy-MM-dd" strings, millisecond numbers).

        Args:
            properties: Flat property bag, typically Table.properties.

        Returns:
            DataExpirationConfig instance.

        Raises:
            InvalidConfigValueError: If a data-expire.* value cannot be parsed.
        """
        return cls(
            enabled=_parse_property(
                ENABLED_KEY, _parse_enabled, properties.get(ENABLED_KEY, DEFAULT_ENABLED)
            ),
            expiration_field=_parse_property(FIELD_KEY, _parse_text, properties.get(FIELD_KEY)),
            expiration_level=_parse_property(
                LEVEL_KEY, ExpireLevel.from_string, properties.get(LEVEL_KEY, DEFAULT_LEVEL)
            ),
            retention_time=_parse_property(
                RETENTION_TIME_KEY,
                parse_retention_time,
                properties.get(RETENTION_TIME_KEY, DEFAULT_RETENTION_TIME),
            ),
            date_time_pattern=_parse_property(
                DATETIME_STRING_PATTERN_KEY,
                _parse_text,
                properties.get(DATETIME_STRING_PATTERN_KEY, DEFAULT_DATETIME_STRING_PATTERN),
            ),
            number_date_format=_parse_property(
                DATETIME_NUMBER_FORMAT_KEY,
                _parse_text,
                properties.get(DATETIME_NUMBER_FORMAT_KEY, DEFAULT_DATETIME_NUMBER_FORMAT),
            ),
            since=_parse_property(
                SINCE_KEY, Since.from_string, properties.get(SINCE_KEY, DEFAULT_SINCE)
            ),
        )

    def to_properties(self) -> dict[str, str]:
        """Render the policy as table properties, omitting unset fields."""
        properties = {
            ENABLED_KEY: "true" if self.enabled else "false",
            RETENTION_TIME_KEY: str(self.retention_time),
        }
        if self.expiration_field is not None:
            properties[FIELD_KEY] = self.expiration_field
        if self.expiration_level is not None:
            properties[LEVEL_KEY] = self.expiration_level.value
        if self.date_time_pattern is not None:
            properties[DATETIME_STRING_PATTERN_KEY] = self.date_time_pattern
        if self.number_date_format is not None:
            properties[DATETIME_NUMBER_FORMAT_KEY] = self.number_date_format
        if self.since is not None:
            properties[SINCE_KEY] = self.since.value
        return properties

    def is_valid(self, field: NestedField | None, table_name: str) -> bool:
        """Check whether this policy is enabled and usable for a table.

        All of the following must hold, checked in order:
        1. The policy is enabled.
        2. retention_time is strictly positive.
        3. The expiration field is named, exists in the schema and has a
           supported type (timestamp, string or long).

        Field problems are logged as warnings; nothing is raised.

        Args:
            field: The resolved expiration field, or None if the table
                schema has no such field.
            table_name: Table name used in diagnostics.

        Returns:
            True if expiration should run for the table.
        """
        return (
            self.enabled
            and self.retention_time > 0
            and self._validate_expiration_field(field, table_name)
        )

    def _validate_expiration_field(self, field: NestedField | None, table_name: str) -> bool:
        logger = get_logger()
        field_name = self.expiration_field
        if field_name is None or not field_name.strip() or field is None:
            logger.warning(
                "data_expiration_field_illegal",
                table=table_name,
                field=field_name,
            )
            return False

        if not is_supported_type(field.field_type):
            type_id = field_type_id(field.field_type)
            found = type_id.name if type_id is not FieldTypeId.UNKNOWN else str(field.field_type)
            logger.warning(
                "data_expiration_field_type_unsupported",
                table=table_name,
                field=field_name,
                field_type=found,
                supported_types=", ".join(t.name for t in SUPPORTED_FIELD_TYPES),
            )
            return False

        return True


class DataExpirationConfigBuilder:
    """Assemble a DataExpirationConfig field by field.

    Setters return the builder for chaining and never validate; level and
    since strings are parsed case-insensitively when set. build() returns
    a frozen DataExpirationConfig.

    Example:
        >>> config = (
        ...     DataExpirationConfigBuilder()
        ...     .set_enabled(True)
        ...     .set_expiration_field("event_ts")
        ...     .set_expiration_level("partition")
        ...     .set_retention_time(86_400_000)
        ...     .build()
        ... )
    """

    def __init__(self) -> None:
        self._enabled = False
        self._expiration_field: str | None = None
        self._expiration_level: ExpireLevel | None = None
        self._retention_time = 0
        self._date_time_pattern: str | None = None
        self._number_date_format: str | None = None
        self._since: Since | None = None

    @classmethod
    def from_config(cls, config: DataExpirationConfig) -> DataExpirationConfigBuilder:
        """Start a builder holding the fields of an existing policy."""
        return (
            cls()
            .set_enabled(config.enabled)
            .set_expiration_field(config.expiration_field)
            .set_expiration_level(config.expiration_level)
            .set_retention_time(config.retention_time)
            .set_date_time_pattern(config.date_time_pattern)
            .set_number_date_format(config.number_date_format)
            .set_since(config.since)
        )

    @property
    def enabled(self) -> bool:
        return self._enabled

    def set_enabled(self, enabled: bool) -> DataExpirationConfigBuilder:
        self._enabled = enabled
        return self

    @property
    def expiration_field(self) -> str | None:
        return self._expiration_field

    def set_expiration_field(self, expiration_field: str | None) -> DataExpirationConfigBuilder:
        self._expiration_field = expiration_field
        return self

    @property
    def expiration_level(self) -> ExpireLevel | None:
        return self._expiration_level

    def set_expiration_level(
        self, expiration_level: ExpireLevel | str | None
    ) -> DataExpirationConfigBuilder:
        """Set the level from an ExpireLevel or its case-insensitive name.

        Raises:
            InvalidConfigValueError: If a string is not a known level.
        """
        if isinstance(expiration_level, str) and not isinstance(expiration_level, ExpireLevel):
            expiration_level = ExpireLevel.from_string(expiration_level)
        self._expiration_level = expiration_level
        return self

    @property
    def retention_time(self) -> int:
        return self._retention_time

    def set_retention_time(self, retention_time: int) -> DataExpirationConfigBuilder:
        self._retention_time = retention_time
        return self

    @property
    def date_time_pattern(self) -> str | None:
        return self._date_time_pattern

    def set_date_time_pattern(self, date_time_pattern: str | None) -> DataExpirationConfigBuilder:
        self._date_time_pattern = date_time_pattern
        return self

    @property
    def number_date_format(self) -> str | None:
        return self._number_date_format

    def set_number_date_format(
        self, number_date_format: str | None
    ) -> DataExpirationConfigBuilder:
        self._number_date_format = number_date_format
        return self

    @property
    def since(self) -> Since | None:
        return self._since

    def set_since(self, since: Since | str | None) -> DataExpirationConfigBuilder:
        """Set the time basis from a Since or its case-insensitive name.

        Raises:
            InvalidConfigValueError: If a string is not a known time basis.
        """
        if isinstance(since, str) and not isinstance(since, Since):
            since = Since.from_string(since)
        self._since = since
        return self

    def build(self) -> DataExpirationConfig:
        """Return the frozen policy for the current field values."""
        return DataExpirationConfig(
            enabled=self._enabled,
            expiration_field=self._expiration_field,
            expiration_level=self._expiration_level,
            retention_time=self._retention_time,
            date_time_pattern=self._date_time_pattern,
            number_date_format=self._number_date_format,
            since=self._since,
        )
