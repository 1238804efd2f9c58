"""Data model shared by the config resolver, the aligner and the adapter.

Input and output rows stay plain ``dict`` mappings because the pipeline hands
the plugin open-ended records. The query plan and the series payloads are
Pydantic models so that malformed API responses fail at the adapter boundary
rather than deep inside the flattening loop.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

InputRow = Dict[str, Any]
OutputRow = Dict[str, Any]


class QueryMode(str, Enum):
    """How queries are built for each input row."""

    TEMPLATED = "templated"
    RAW_QUERY = "raw-query"


class QueryPlan(BaseModel):
    """Validated, immutable view of the plugin configuration.

    Attributes
    ----------
    mode: QueryMode
        Templated per-metric queries or a single raw query.
    metrics: List[str]
        Datadog metric names (templated mode only).
    output_metric_names: List[str]
        Output field per metric. Exactly one entry in raw-query mode.
    tags: List[str]
        Tags to group by (templated) or aggregation tags (raw-query).
    output_tag_names: List[str]
        Output field per entry of ``tags``.
    id_field: str
        Input field carrying the identifier matched against ``id_tag``.
    id_tag: str
        Datadog tag used to scope templated queries to one identifier.
    raw_query: Optional[str]
        Query template with ``<placeholder>`` tokens (raw-query mode only).
    """

    model_config = ConfigDict(frozen=True)

    mode: QueryMode
    metrics: List[str] = Field(default_factory=list)
    output_metric_names: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    output_tag_names: List[str] = Field(default_factory=list)
    id_field: str = "id"
    id_tag: str = "id"
    raw_query: Optional[str] = None

    @property
    def is_raw_query(self) -> bool:
        return self.mode is QueryMode.RAW_QUERY


class SeriesPoint(BaseModel):
    """Single ``(timestamp_ms, value)`` sample of a series."""

    timestamp_ms: int
    value: Optional[float] = None

    @classmethod
    def from_pair(cls, pair: Any) -> "SeriesPoint":
        """Build a point from the API's ``[timestamp_ms, value]`` pair."""
        if isinstance(pair, SeriesPoint):
            return pair
        if isinstance(pair, dict):
            return cls.model_validate(pair)
        timestamp_ms, value = pair[0], pair[1]
        return cls(timestamp_ms=int(timestamp_ms), value=value)


class Series(BaseModel):
    """One series of a query response: its tag set and ordered points."""

    model_config = ConfigDict(populate_by_name=True)

    tag_set: List[str] = Field(default_factory=list, alias="tagSet")
    pointlist: List[SeriesPoint] = Field(default_factory=list)
    metric: Optional[str] = None

    @field_validator("tag_set", mode="before")
    @classmethod
    def _none_tag_set(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("pointlist", mode="before")
    @classmethod
    def _parse_pairs(cls, value: Any) -> Any:
        if value is None:
            return []
        return [SeriesPoint.from_pair(p) for p in value]


class QueryResult(BaseModel):
    """Parsed response of a metrics query."""

    series: List[Series] = Field(default_factory=list)
    query: Optional[str] = None

    @field_validator("series", mode="before")
    @classmethod
    def _none_series(cls, value: Any) -> Any:
        return [] if value is None else value
