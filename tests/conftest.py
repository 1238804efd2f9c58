"""Pytest configuration for test suite.

Ensures the project root is on ``sys.path`` so imports like
``import datadog_importer`` resolve correctly regardless of the working
directory pytest chooses, and provides a fake metrics service.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pytest


def _ensure_project_root_on_syspath() -> None:
    project_root = Path(__file__).resolve().parents[1]
    project_root_str = str(project_root)
    if project_root_str not in sys.path:
        # Prepend to prefer local sources over site-packages
        sys.path.insert(0, project_root_str)


_ensure_project_root_on_syspath()

from datadog_importer.domain.errors import MetricsApiError  # noqa: E402
from datadog_importer.domain.models import QueryResult  # noqa: E402


class FakeMetricsService:
    """In-memory stand-in for the Datadog adapter.

    ``series_by_metric`` maps a metric name to the raw ``series`` payload
    returned for queries on that metric. ``series_by_query`` matches the full
    query string instead and takes precedence.
    """

    def __init__(
        self,
        series_by_metric: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        *,
        series_by_query: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        failing_metrics: Iterable[str] = (),
        metadata_errors: Optional[Dict[str, Exception]] = None,
    ) -> None:
        self.series_by_metric = series_by_metric or {}
        self.series_by_query = series_by_query or {}
        self.failing_metrics = set(failing_metrics)
        self.metadata_errors = metadata_errors or {}
        self.queries: List[Tuple[str, int, int]] = []
        self.metadata_calls: List[str] = []

    async def query_metrics(self, query: str, from_s: int, to_s: int) -> QueryResult:
        self.queries.append((query, from_s, to_s))
        if query in self.series_by_query:
            return QueryResult.model_validate({"series": self.series_by_query[query]})
        for metric in self.failing_metrics:
            if f":{metric}{{" in query:
                raise MetricsApiError(500, ["Internal Server Error"])
        for metric, series in self.series_by_metric.items():
            if f":{metric}{{" in query:
                return QueryResult.model_validate({"series": series})
        return QueryResult()

    async def get_metric_metadata(self, metric_name: str) -> Dict[str, Any]:
        self.metadata_calls.append(metric_name)
        if metric_name in self.metadata_errors:
            raise self.metadata_errors[metric_name]
        return {"type": "gauge"}


@pytest.fixture
def fake_service_cls():
    return FakeMetricsService


@pytest.fixture(autouse=True)
def reset_plugin_registry():
    """Reset plugin registry before each test to avoid cross-test contamination."""
    from datadog_importer.domain.plugins import reset_plugins

    reset_plugins()
    yield
