"""Datadog metrics API adapter.

This adapter translates importer calls into HTTP requests against the Datadog
v1 metrics API. It encapsulates transport concerns (site, headers, timeouts)
and returns validated Pydantic models.

Notes
-----
- Every call is attempted once. Timeouts are governed by the HTTP client.
- Credentials come from settings and are sent as the ``DD-API-KEY`` and
  ``DD-APPLICATION-KEY`` headers.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from .. import __version__
from ..config.models import EnvSettings
from ..domain.errors import MetricsApiError
from ..domain.models import QueryResult

logger = logging.getLogger(__name__)


class DatadogAdapter:
    """Adapter for the Datadog metrics API.

    Parameters
    ----------
    site: str
        Datadog site (e.g., "datadoghq.com", "datadoghq.eu").
    api_key: Optional[str]
        Datadog API key.
    app_key: Optional[str]
        Datadog application key; required by the query endpoint.
    timeout: int
        Request timeout in seconds for all HTTP operations.

    Attributes
    ----------
    _client: httpx.AsyncClient
        Shared async client configured with base URL, timeout, and headers.
    """

    def __init__(
        self,
        site: str = "datadoghq.com",
        api_key: Optional[str] = None,
        app_key: Optional[str] = None,
        timeout: int = 30,
    ) -> None:
        base_url = f"https://api.{site}"
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers=self._headers(api_key, app_key),
        )
        logger.info(
            "datadog.adapter.init",
            extra={"base_url": base_url, "timeout_seconds": timeout},
        )

    @classmethod
    def from_settings(cls, settings: Optional[EnvSettings] = None) -> "DatadogAdapter":
        """Build an adapter from environment settings."""
        settings = settings or EnvSettings()
        return cls(
            site=settings.site,
            api_key=settings.api_key,
            app_key=settings.app_key,
            timeout=settings.timeout_seconds,
        )

    def inject_http_client_for_testing(self, client: Any) -> None:
        """Replace underlying HTTP client (testing only).

        This allows unit tests to provide a mock compatible with ``get()``.
        """
        self._client = client

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get_json(
        self, path: str, params: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """GET an endpoint and return the parsed JSON body.

        Raises
        ------
        MetricsApiError
            On non-2xx responses, carrying the status and reported errors.
        httpx.HTTPError
            On transport errors.
        """
        logger.debug(
            "datadog.http.get",
            extra={"path": path, "param_keys": list((params or {}).keys())},
        )
        resp = await self._client.get(path, params=params)
        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            errors = _error_messages(exc.response)
            logger.debug(
                "datadog.http.status_error",
                extra={
                    "path": path,
                    "status": exc.response.status_code,
                    "errors": errors,
                },
            )
            raise MetricsApiError(exc.response.status_code, errors) from exc
        return resp.json()

    async def query_metrics(self, query: str, from_s: int, to_s: int) -> QueryResult:
        """Query time series over ``[from_s, to_s]``.

        Parameters
        ----------
        query: str
            Datadog metric query (e.g., ``avg:system.cpu.user{host:i-1}``).
        from_s: int
            Window start, Unix seconds.
        to_s: int
            Window end, Unix seconds.
        """
        data = await self._get_json(
            "/api/v1/query", params={"from": from_s, "to": to_s, "query": query}
        )
        if data.get("status") == "error":
            raise MetricsApiError(None, [str(data.get("error") or "query failed")])
        return QueryResult.model_validate(data)

    async def get_metric_metadata(self, metric_name: str) -> Dict[str, Any]:
        """Fetch metadata for ``metric_name``; 404 means the metric is unknown."""
        return await self._get_json(f"/api/v1/metrics/{metric_name}")

    @staticmethod
    def _headers(api_key: Optional[str], app_key: Optional[str]) -> dict:
        """Build default headers."""
        headers = {
            "Accept": "application/json",
            "User-Agent": f"datadog-importer/{__version__}",
        }
        if api_key:
            headers["DD-API-KEY"] = api_key
        if app_key:
            headers["DD-APPLICATION-KEY"] = app_key
        return headers


def _error_messages(response: httpx.Response) -> List[str]:
    try:
        body = response.json()
    except ValueError:
        text = response.text
        return [text[:500]] if text else []
    if isinstance(body, dict):
        errors = body.get("errors")
        if isinstance(errors, list):
            return [str(e) for e in errors]
        if body.get("error"):
            return [str(body["error"])]
    return []
