"""Series flattening and multi-metric alignment.

A query result is flattened into one output row per point. Each row copies
the input row, narrows ``timestamp``/``duration`` to the sub-interval that
starts at the point and ends at the next point (or at the end of the input
window for the last point), and carries the configured tag values and the
metric value.

Later metrics of a templated plan are aligned onto the rows of the first
metric by point index only. Series for the same identifier, window and
rollup are expected to share one point list, so no timestamp matching is
done; swap :func:`merge_by_index` for a key-based merge if that assumption
stops holding.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from .models import InputRow, OutputRow, QueryResult
from .utils.timestamps import millis_to_iso8601, parse_timestamp, to_epoch_millis

logger = logging.getLogger(__name__)


def parse_tag(tag: str, tag_set: Sequence[str]) -> str:
    """Return the value of ``tag`` in a ``key:value`` tag set, or ``""``.

    Examples
    --------
    >>> parse_tag("region", ["host:i-1", "region:us-east-1"])
    'us-east-1'
    >>> parse_tag("zone", ["host:i-1"])
    ''
    """
    for pair in tag_set:
        key, _, value = pair.partition(":")
        if key == tag:
            return value.split(":", 1)[0]
    return ""


def assign_metric(row: OutputRow, output_metric_name: str, value: object) -> bool:
    """Write a metric value unless the field name is already taken.

    Returns False (and logs) on a collision; the row is left unchanged.
    """
    if output_metric_name in row:
        logger.error(
            'output-metric-name "%s" is set to a reserved key. '
            "It cannot be any of the following: %s",
            output_metric_name,
            ",".join(row.keys()),
        )
        return False
    row[output_metric_name] = value
    return True


def _window_end_ms(row: InputRow) -> float:
    start = parse_timestamp(row.get("timestamp"))
    if start is None:
        raise ValueError(f"Input timestamp {row.get('timestamp')!r} cannot be parsed")
    return to_epoch_millis(start) + float(row["duration"]) * 1000


def flatten_series(
    result: QueryResult,
    row: InputRow,
    output_metric_name: str,
    tags: Sequence[str] = (),
    output_tag_names: Sequence[str] = (),
) -> List[OutputRow]:
    """Flatten every series of ``result`` into new output rows.

    Parameters
    ----------
    result: QueryResult
        Parsed query response.
    row: InputRow
        Input row the query was issued for. Never mutated.
    output_metric_name: str
        Field receiving each point's value.
    tags: Sequence[str]
        Tag keys to look up in each series' tag set.
    output_tag_names: Sequence[str]
        Output field per tag key, by position.

    Returns
    -------
    List[OutputRow]
        One row per point, series after series, in response order.
    """
    outputs: List[OutputRow] = []

    if not result.series:
        logger.info("Series not found")
        return outputs

    window_end_ms = _window_end_ms(row)

    for series in result.series:
        points = series.pointlist
        if not points:
            logger.info("Points not found")
            continue

        for j, point in enumerate(points):
            if j == len(points) - 1:
                next_ms = window_end_ms
            else:
                next_ms = points[j + 1].timestamp_ms

            output: OutputRow = dict(row)
            output["timestamp"] = millis_to_iso8601(point.timestamp_ms)
            output["duration"] = (next_ms - point.timestamp_ms) / 1000

            for k, tag in enumerate(tags):
                if k < len(output_tag_names):
                    output[output_tag_names[k]] = parse_tag(tag, series.tag_set)

            assign_metric(output, output_metric_name, point.value)
            outputs.append(output)

    return outputs


def merge_by_index(
    result: QueryResult,
    existing: List[OutputRow],
    output_metric_name: str,
) -> None:
    """Add a later metric's values onto rows built for the first metric.

    Point ``j`` lands on ``existing[j]``; points past the end of ``existing``
    are dropped. Rows are updated in place.
    """
    if not result.series:
        logger.info("Series not found")
        return

    for series in result.series:
        points = series.pointlist
        if not points:
            logger.info("Points not found")
            continue

        overflow = len(points) - len(existing)
        if overflow > 0:
            logger.debug(
                "alignment.points_dropped",
                extra={"metric": output_metric_name, "dropped": overflow},
            )

        for point, output in zip(points, existing):
            assign_metric(output, output_metric_name, point.value)
