"""Shared fixtures for floe-expiration tests."""

from __future__ import annotations

import pytest
from pyiceberg.schema import Schema
from pyiceberg.types import (
    BooleanType,
    DoubleType,
    LongType,
    NestedField,
    StringType,
    StructType,
    TimestampType,
    TimestamptzType,
)

from floe_expiration.config import DataExpirationConfig, ExpireLevel, Since

ONE_DAY_MS = 86_400_000


@pytest.fixture
def events_schema() -> Schema:
    """Schema with one field of each interesting type."""
    return Schema(
        NestedField(field_id=1, name="id", field_type=LongType(), required=True),
        NestedField(field_id=2, name="event_ts", field_type=TimestampType(), required=False),
        NestedField(field_id=3, name="event_tstz", field_type=TimestamptzType(), required=False),
        NestedField(field_id=4, name="event_date", field_type=StringType(), required=False),
        NestedField(field_id=5, name="is_deleted", field_type=BooleanType(), required=False),
        NestedField(field_id=6, name="amount", field_type=DoubleType(), required=False),
        NestedField(
            field_id=7,
            name="payload",
            field_type=StructType(
                NestedField(field_id=8, name="sent_at", field_type=LongType(), required=False),
            ),
            required=False,
        ),
    )


@pytest.fixture
def valid_config() -> DataExpirationConfig:
    """Enabled policy on event_ts with a one-day retention."""
    return DataExpirationConfig(
        enabled=True,
        expiration_field="event_ts",
        expiration_level=ExpireLevel.PARTITION,
        retention_time=ONE_DAY_MS,
        date_time_pattern="yyyy-MM-dd",
        number_date_format="TIMESTAMP_MS",
        since=Since.LATEST_SNAPSHOT,
    )
