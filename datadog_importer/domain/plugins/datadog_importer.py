"""Datadog importer plugin.

Queries Datadog for each input row's time window and turns the returned
series into output rows, one per point. Two query modes are supported:

- Templated: one ``avg:<metric>{<id-tag>:<id>}`` query per configured metric.
  The first metric creates the rows; later metrics are added onto them.
- Raw query: one caller-supplied query whose ``<placeholder>`` tokens are
  filled from the input row or the config.

Configuration errors (including unknown metrics) abort the invocation. Failed
queries are logged and contribute no rows.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from ...adapters import MetricsQueryService
from ..alignment import flatten_series, merge_by_index
from ..config_resolver import resolve_config
from ..errors import ConfigurationError, InputValidationError, MetricsApiError
from ..models import InputRow, OutputRow, QueryPlan, QueryResult
from ..query import build_query, query_window, substitute_placeholders
from ..utils.timestamps import parse_timestamp

logger = logging.getLogger(__name__)


class DatadogImporter:
    """Importer plugin pulling Datadog time series into pipeline rows.

    Parameters
    ----------
    config: Optional[Mapping[str, Any]]
        Flat plugin configuration.
    service: Optional[MetricsQueryService]
        Metrics service to query. When omitted, a :class:`DatadogAdapter` is
        built from environment settings for each ``execute`` call.
    """

    id = "datadog-importer"
    metadata: Dict[str, str] = {"kind": "execute"}

    def __init__(
        self,
        config: Optional[Mapping[str, Any]] = None,
        *,
        service: Optional[MetricsQueryService] = None,
    ) -> None:
        self.config: Dict[str, Any] = dict(config or {})
        self._service = service

    def configure(self, config: Optional[Mapping[str, Any]] = None) -> QueryPlan:
        """Validate the config and return the query plan."""
        return resolve_config(self.config if config is None else config)

    async def execute(
        self,
        inputs: Sequence[InputRow],
        config: Optional[Mapping[str, Any]] = None,
    ) -> List[OutputRow]:
        """Import metrics for every input row.

        Parameters
        ----------
        inputs: Sequence[InputRow]
            Input rows, processed in order. Never mutated.
        config: Optional[Mapping[str, Any]]
            Overrides the config given at construction.

        Returns
        -------
        List[OutputRow]
            Rows ordered by input, then metric, then point.

        Raises
        ------
        ConfigurationError
            On invalid config or when a templated metric does not exist.
            Input rows without a valid ``timestamp`` or ``duration`` are
            logged and skipped instead.
        """
        effective_config: Mapping[str, Any] = self.config if config is None else config
        plan = resolve_config(effective_config)

        service, owned = self._resolve_service()
        try:
            if not plan.is_raw_query:
                await ensure_metrics_exist(service, plan.metrics)

            outputs: List[OutputRow] = []
            for index, row in enumerate(inputs):
                try:
                    validate_input(row, index)
                except InputValidationError as exc:
                    logger.error("Skipping input: %s", exc)
                    continue
                outputs.extend(
                    await self._import_row(service, plan, effective_config, row)
                )
            logger.info(
                "datadog_importer.execute.done",
                extra={
                    "mode": plan.mode.value,
                    "inputs": len(inputs),
                    "outputs": len(outputs),
                },
            )
            return outputs
        finally:
            if owned:
                await service.aclose()  # type: ignore[attr-defined]

    def _resolve_service(self) -> Tuple[MetricsQueryService, bool]:
        if self._service is not None:
            return self._service, False
        from ...adapters.datadog import DatadogAdapter  # noqa: WPS433 (local import)

        return DatadogAdapter.from_settings(), True

    async def _import_row(
        self,
        service: MetricsQueryService,
        plan: QueryPlan,
        config: Mapping[str, Any],
        row: InputRow,
    ) -> List[OutputRow]:
        from_s, to_s = query_window(row)

        if plan.is_raw_query:
            query = substitute_placeholders(plan.raw_query or "", row, config)
            result = await run_query(service, query, from_s, to_s)
            if result is None:
                return []
            return flatten_series(
                result,
                row,
                plan.output_metric_names[0],
                plan.tags,
                plan.output_tag_names,
            )

        row_outputs: List[OutputRow] = []
        for i, (metric, output_metric_name) in enumerate(
            zip(plan.metrics, plan.output_metric_names)
        ):
            query = build_query(row, metric, plan.id_tag, plan.tags, plan.id_field)
            result = await run_query(service, query, from_s, to_s)
            if result is None:
                continue
            if i == 0:
                row_outputs = flatten_series(
                    result,
                    row,
                    output_metric_name,
                    plan.tags,
                    plan.output_tag_names,
                )
            else:
                merge_by_index(result, row_outputs, output_metric_name)
        return row_outputs


def validate_input(row: InputRow, index: int = 0) -> InputRow:
    """Check that a row has a parseable ``timestamp`` and a finite, positive ``duration``."""
    if parse_timestamp(row.get("timestamp")) is None:
        raise InputValidationError(
            f"Input {index}: timestamp {row.get('timestamp')!r} is not a valid ISO8601 instant."
        )
    duration = row.get("duration")
    if (
        isinstance(duration, bool)
        or not isinstance(duration, (int, float))
        or not math.isfinite(duration)
        or duration <= 0
    ):
        raise InputValidationError(
            f"Input {index}: duration must be a positive number of seconds, got {duration!r}."
        )
    return row


async def run_query(
    service: MetricsQueryService, query: str, from_s: int, to_s: int
) -> Optional[QueryResult]:
    """Run a single query; failures are logged and reported as ``None``."""
    logger.debug(
        "datadog_importer.query",
        extra={"query": query, "from": from_s, "to": to_s},
    )
    try:
        return await service.query_metrics(query, from_s, to_s)
    except Exception as exc:
        logger.error('Error executing query "%s": %s', query, exc)
        return None


async def ensure_metrics_exist(
    service: MetricsQueryService, metrics: Sequence[str]
) -> None:
    """Check each metric against the service, in order.

    Raises
    ------
    ConfigurationError
        On the first metric that is missing or cannot be checked.
    """
    for metric in metrics:
        try:
            await service.get_metric_metadata(metric)
        except MetricsApiError as exc:
            if exc.is_not_found:
                raise ConfigurationError(f"Metric {metric} does not exist") from exc
            raise ConfigurationError(
                f"Error determining if metric {metric} exists: {', '.join(exc.errors) or exc}"
            ) from exc
        except Exception as exc:
            raise ConfigurationError(
                f"Unexpected error determining if metric {metric} exists: {exc}"
            ) from exc
