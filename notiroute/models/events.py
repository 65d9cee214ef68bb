"""Inbound event model — the unit of work the router consumes."""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator


class Priority(str, Enum):
    """Business priority attached to an event and copied onto its requests."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class Event(BaseModel):
    """An inbound business occurrence that may produce notifications.

    Frozen once constructed; ``payload`` is a read-only copy of the mapping
    it was built from.  ``event_id``, ``timestamp`` and ``priority``
    are defaulted when the ingestion boundary does not supply them.
    """

    model_config = ConfigDict(frozen=True)

    event_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    event_type: str = Field(min_length=1)
    payload: Mapping[str, Any] = Field(default_factory=lambda: MappingProxyType({}))
    recipient: str = Field(min_length=1)
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    priority: Priority = Priority.MEDIUM

    @model_validator(mode="before")
    @classmethod
    def _drop_null_defaults(cls, data: Any) -> Any:
        """Treat explicit nulls for defaulted fields as absent."""
        if isinstance(data, dict):
            data = {
                key: value
                for key, value in data.items()
                if not (value is None and key in _DEFAULTED_FIELDS)
            }
        return data

    @field_validator("payload", mode="after")
    @classmethod
    def _freeze_payload(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        return MappingProxyType(dict(value))

    @field_serializer("payload")
    def _serialize_payload(self, value: Mapping[str, Any]) -> dict[str, Any]:
        return dict(value)

_DEFAULTED_FIELDS = frozenset({"event_id", "payload", "timestamp", "priority"})
