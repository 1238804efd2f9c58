"""Datadog adapter tests with mocked HTTP.

These tests validate that the DatadogAdapter serializes requests and parses
responses without requiring a live Datadog account.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List

import httpx
import pytest

from datadog_importer.adapters.datadog import DatadogAdapter
from datadog_importer.config.models import EnvSettings
from datadog_importer.domain.errors import MetricsApiError


def _adapter(handler: Callable[[httpx.Request], httpx.Response]) -> DatadogAdapter:
    adapter = DatadogAdapter(site="datadoghq.eu", api_key="api", app_key="app")
    adapter.inject_http_client_for_testing(
        httpx.AsyncClient(
            base_url="https://api.datadoghq.eu",
            transport=httpx.MockTransport(handler),
        )
    )
    return adapter


def test_headers_include_credentials():
    headers = DatadogAdapter._headers("api", "app")
    assert headers["DD-API-KEY"] == "api"
    assert headers["DD-APPLICATION-KEY"] == "app"
    assert headers["Accept"] == "application/json"


def test_headers_without_credentials():
    headers = DatadogAdapter._headers(None, None)
    assert "DD-API-KEY" not in headers
    assert "DD-APPLICATION-KEY" not in headers


def test_from_settings_uses_site():
    settings = EnvSettings(site="us5.datadoghq.com", api_key="k", app_key="a")
    adapter = DatadogAdapter.from_settings(settings)
    assert str(adapter._client.base_url).startswith("https://api.us5.datadoghq.com")
    assert adapter._client.headers["DD-API-KEY"] == "k"


@pytest.mark.asyncio
async def test_query_metrics_parses_series():
    seen: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "status": "ok",
                "res_type": "time_series",
                "series": [
                    {
                        "metric": "system.cpu.user",
                        "tag_set": ["host:i-1", "region:eu"],
                        "pointlist": [[1717995600000.0, 1.5], [1717995610000.0, None]],
                    }
                ],
            },
        )

    adapter = _adapter(handler)
    result = await adapter.query_metrics("avg:system.cpu.user{host:i-1}", 1717995600, 1717995620)

    assert seen[0].url.path == "/api/v1/query"
    assert seen[0].url.params["query"] == "avg:system.cpu.user{host:i-1}"
    assert seen[0].url.params["from"] == "1717995600"
    assert seen[0].url.params["to"] == "1717995620"
    series = result.series[0]
    assert series.tag_set == ["host:i-1", "region:eu"]
    assert series.pointlist[0].timestamp_ms == 1717995600000
    assert series.pointlist[0].value == 1.5
    assert series.pointlist[1].value is None


@pytest.mark.asyncio
async def test_query_metrics_without_series():
    adapter = _adapter(lambda request: httpx.Response(200, json={"status": "ok"}))
    result = await adapter.query_metrics("avg:m{*}", 0, 10)
    assert result.series == []


@pytest.mark.asyncio
async def test_query_metrics_error_status_in_body():
    payload: Dict[str, Any] = {"status": "error", "error": "Error parsing query"}
    adapter = _adapter(lambda request: httpx.Response(200, json=payload))
    with pytest.raises(MetricsApiError) as excinfo:
        await adapter.query_metrics("avg:m{", 0, 10)
    assert excinfo.value.errors == ["Error parsing query"]


@pytest.mark.asyncio
async def test_query_metrics_http_error_carries_status_and_errors():
    adapter = _adapter(
        lambda request: httpx.Response(403, json={"errors": ["Forbidden"]})
    )
    with pytest.raises(MetricsApiError) as excinfo:
        await adapter.query_metrics("avg:m{*}", 0, 10)
    assert excinfo.value.status == 403
    assert excinfo.value.errors == ["Forbidden"]
    assert "403" in str(excinfo.value)


@pytest.mark.asyncio
async def test_get_metric_metadata_ok():
    seen: List[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.path)
        return httpx.Response(200, json={"type": "gauge", "unit": "percent"})

    adapter = _adapter(handler)
    meta = await adapter.get_metric_metadata("system.cpu.user")
    assert meta["type"] == "gauge"
    assert seen == ["/api/v1/metrics/system.cpu.user"]


@pytest.mark.asyncio
async def test_get_metric_metadata_not_found():
    adapter = _adapter(
        lambda request: httpx.Response(404, json={"errors": ["Metric not found"]})
    )
    with pytest.raises(MetricsApiError) as excinfo:
        await adapter.get_metric_metadata("nope")
    assert excinfo.value.is_not_found
    assert excinfo.value.errors == ["Metric not found"]


@pytest.mark.asyncio
async def test_non_json_error_body_is_preserved():
    adapter = _adapter(lambda request: httpx.Response(502, text="Bad Gateway"))
    with pytest.raises(MetricsApiError) as excinfo:
        await adapter.get_metric_metadata("m")
    assert excinfo.value.status == 502
    assert excinfo.value.errors == ["Bad Gateway"]
