"""Data models for registered Garage clusters."""

from __future__ import annotations

from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class ClusterRecord(BaseModel):
    """A stored cluster row. Token fields hold ciphertext, never plaintext."""

    id: str
    name: str
    endpoint: str
    admin_token: str
    metric_token: str | None = None
    created_at: str
    updated_at: str

    def __repr__(self) -> str:
        return f"ClusterRecord(id={self.id!r}, name={self.name!r}, endpoint={self.endpoint!r})"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ClusterInfo(_CamelModel):
    """Public cluster information (no secrets)."""

    id: str
    name: str
    endpoint: str
    has_metric_token: bool = False
    created_at: str
    updated_at: str


def _check_endpoint(value: str) -> str:
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("endpoint must be an http(s) URL")
    return value


class ClusterCreateRequest(_CamelModel):
    """Request to register a new cluster."""

    name: str = Field(min_length=1)
    endpoint: str
    admin_token: str = Field(min_length=1)
    metric_token: str | None = None

    @field_validator("endpoint")
    @classmethod
    def _endpoint_is_url(cls, value: str) -> str:
        return _check_endpoint(value)


class ClusterUpdateRequest(_CamelModel):
    """Partial update. An explicit ``metricToken: null`` clears the metric token."""

    name: str | None = Field(default=None, min_length=1)
    endpoint: str | None = None
    admin_token: str | None = Field(default=None, min_length=1)
    metric_token: str | None = None

    @field_validator("endpoint")
    @classmethod
    def _endpoint_is_url(cls, value: str | None) -> str | None:
        return None if value is None else _check_endpoint(value)
