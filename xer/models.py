from __future__ import annotations

import re
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

METRIC_FRAGMENT_RE = re.compile(r"^[A-Za-z0-9_:]+$")


class EndpointType(str, Enum):
    TEXT = "text"
    NUMBER = "number"


class Endpoint(BaseModel):
    """One URL polled for a single named value."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(min_length=1)
    description: str = ""
    url: str = Field(min_length=1)
    type: EndpointType = EndpointType.TEXT
    # numeric endpoints are always exported as gauges
    metric: Literal["gauge"] = "gauge"

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        cleaned = value.strip()
        if not METRIC_FRAGMENT_RE.match(cleaned):
            raise ValueError("endpoint name must contain only letters, digits, '_' or ':'")
        return cleaned

    @property
    def is_numeric(self) -> bool:
        return self.type == EndpointType.NUMBER


class Destination(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    url: str = ""
    method: str = ""

    @field_validator("url")
    @classmethod
    def strip_url(cls, value: str) -> str:
        return value.strip()

    @field_validator("method")
    @classmethod
    def normalize_method(cls, value: str) -> str:
        return value.strip().upper()

    @property
    def enabled(self) -> bool:
        return bool(self.url and self.method)


class CollectionSet(BaseModel):
    """A named group of endpoints polled on one schedule and forwarded to one destination."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(min_length=1)
    frequency: int = Field(default=0, ge=0)
    endpoints: tuple[Endpoint, ...] = ()
    dest: Destination = Field(default_factory=Destination)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("set name cannot be empty")
        return cleaned

    @model_validator(mode="after")
    def validate_unique_endpoints(self) -> "CollectionSet":
        seen: set[str] = set()
        for endpoint in self.endpoints:
            if endpoint.name in seen:
                raise ValueError(f"duplicate endpoint name {endpoint.name!r} in set {self.name!r}")
            seen.add(endpoint.name)
        return self

    @property
    def numeric_endpoints(self) -> list[Endpoint]:
        return [endpoint for endpoint in self.endpoints if endpoint.is_numeric]


class ResultBundle(BaseModel):
    """Latest value of each endpoint in a set; owned and mutated by a single worker."""

    name: str
    results: dict[str, float | str] = Field(default_factory=dict)
