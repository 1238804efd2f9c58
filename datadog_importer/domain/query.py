"""Query string construction.

Pure text helpers: the templated per-metric query builder, the raw-query
placeholder substitution and the per-row query window.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any, Mapping, Sequence, Tuple

from .errors import InputValidationError
from .models import InputRow
from .utils.timestamps import parse_timestamp, to_epoch_seconds

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"<([^<>\s]+)>")
DURATION_ROLLUP_FIELD = "duration-rollup"


def build_query(
    row: InputRow,
    metric: str,
    id_tag: str,
    tags: Sequence[str],
    id_field: str = "id",
) -> str:
    """Build the templated query for one metric and one input row.

    Examples
    --------
    >>> build_query({"id": "i-1"}, "system.cpu.user", "host", ["az"])
    'avg:system.cpu.user{host:i-1}by{az}'
    >>> build_query({"id": "i-1", "duration-rollup": 60}, "m", "host", [])
    'avg:m{host:i-1}.rollup(60)'
    """
    identifier = row.get(id_field)
    if identifier is None:
        logger.warning(
            "Identifier field %s not found in input; query scope is %s:None",
            id_field,
            id_tag,
        )
    query = f"avg:{metric}{{{id_tag}:{_stringify(identifier)}}}"

    if tags:
        query += f"by{{{','.join(tags)}}}"

    rollup = row.get(DURATION_ROLLUP_FIELD)
    if rollup is not None:
        query += f".rollup({_stringify(rollup)})"

    return query


def substitute_placeholders(
    template: str, row: InputRow, config: Mapping[str, Any]
) -> str:
    """Replace each ``<name>`` token from the row, falling back to the config.

    Tokens found in neither are left untouched and reported with a warning.
    """

    def _replace(match: "re.Match[str]") -> str:
        name = match.group(1)
        if name in row and row[name] is not None:
            return _stringify(row[name])
        if name in config and config[name] is not None:
            return _stringify(config[name])
        logger.warning(
            "Placeholder <%s> not found in input or config; leaving it in the query",
            name,
        )
        return match.group(0)

    return PLACEHOLDER_PATTERN.sub(_replace, template)


def query_window(row: InputRow) -> Tuple[int, int]:
    """Return ``(from, to)`` in Unix seconds for an input row's window."""
    start = parse_timestamp(row.get("timestamp"))
    if start is None:
        raise InputValidationError(
            f"Input timestamp {row.get('timestamp')!r} is not a valid ISO8601 instant."
        )
    from_s = to_epoch_seconds(start)
    return from_s, math.ceil(from_s + float(row["duration"]))


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
