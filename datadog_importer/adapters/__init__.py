"""Metrics service interface used by the importer."""

from __future__ import annotations

from typing import Any, Dict, Protocol

from ..domain.models import QueryResult


class MetricsQueryService(Protocol):
    """Protocol for metrics API adapters.

    Implementations translate importer calls to the underlying metrics backend
    and return validated responses. Errors reported by the backend surface as
    :class:`~datadog_importer.domain.errors.MetricsApiError`.
    """

    async def query_metrics(self, query: str, from_s: int, to_s: int) -> QueryResult:
        """Run a time-series query over ``[from_s, to_s]`` (Unix seconds)."""
        raise NotImplementedError

    async def get_metric_metadata(self, metric_name: str) -> Dict[str, Any]:
        """Return metadata for a metric; raises when the metric is unknown."""
        raise NotImplementedError
