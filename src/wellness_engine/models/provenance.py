"""Data source and per-field provenance models."""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class DataSource(str, Enum):
    """Where a metric value was imported from."""

    RENPHO = "renpho"
    HEALTH_CONNECT = "health_connect"
    GOOGLE_FIT = "google_fit"
    MI_FITNESS = "mi_fitness"
    MANUAL = "manual"


class FieldProvenance(BaseModel):
    """Source and creation time of one stored field value."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
        frozen=True,
    )

    source: DataSource
    recorded_at: Optional[datetime] = None
