"""Plugin configuration validation.

Turns the flat, string-keyed plugin configuration into a :class:`QueryPlan`.
List-valued keys are comma-separated strings. Every rule is evaluated and all
violations are reported together in a single :class:`ConfigurationError`.
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional

from .errors import ConfigurationError
from .models import QueryMode, QueryPlan

logger = logging.getLogger(__name__)

RAW_QUERY = "raw-query"
OUTPUT_METRIC_NAME = "output-metric-name"
OUTPUT_METRIC_NAMES = "output-metric-names"
METRICS = "metrics"
TAGS = "tags"
OUTPUT_TAG_NAMES = "output-tag-names"
AGGREGATION_TAGS = "aggregation-tags"
AGGREGATION_TAG_OUTPUT_NAMES = "aggregation-tag-output-names"
ID_TAG = "id-tag"
ID_FIELD = "id-field"

DEFAULT_ID_FIELD = "id"


def split_list(value: Any) -> List[str]:
    """Split a comma-separated config value; absent or empty values give ``[]``."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    text = str(value)
    if text == "":
        return []
    return text.split(",")


def has_duplicates(items: List[str]) -> bool:
    return len(set(items)) != len(items)


def _optional_str(config: Mapping[str, Any], key: str) -> Optional[str]:
    value = config.get(key)
    if value is None or value == "":
        return None
    return str(value)


def resolve_config(config: Optional[Mapping[str, Any]]) -> QueryPlan:
    """Validate ``config`` and derive the query plan.

    Parameters
    ----------
    config: Mapping[str, Any] or None
        Plugin configuration as provided by the pipeline.

    Returns
    -------
    QueryPlan
        Immutable plan for either templated or raw-query mode.

    Raises
    ------
    ConfigurationError
        If the config is missing or violates any rule. The message joins every
        violation with a space.
    """
    if not config:
        raise ConfigurationError("Config is not provided.")

    raw_query = _optional_str(config, RAW_QUERY)
    if raw_query:
        plan, errors = _resolve_raw_query(config, raw_query)
    else:
        plan, errors = _resolve_templated(config)

    if errors:
        message = " ".join(errors)
        logger.debug("config.invalid", extra={"violations": errors})
        raise ConfigurationError(message)

    return plan


def _resolve_raw_query(config: Mapping[str, Any], raw_query: str):
    errors: List[str] = []

    single_name = _optional_str(config, OUTPUT_METRIC_NAME)
    many_names = _optional_str(config, OUTPUT_METRIC_NAMES)
    output_metric_names: List[str] = []
    if single_name is None and many_names is None:
        errors.append(
            "output-metric-name or output-metric-names is required when using raw-query."
        )
    elif single_name is not None:
        output_metric_names = split_list(single_name)
        if len(output_metric_names) != 1:
            errors.append(
                "output-metric-name must contain exactly one item when using raw-query."
            )
    else:
        output_metric_names = split_list(many_names)
        if len(output_metric_names) != 1:
            errors.append(
                "output-metric-names must contain exactly one item when using raw-query."
            )

    aggregation_tags = split_list(config.get(AGGREGATION_TAGS))
    aggregation_output_names = split_list(config.get(AGGREGATION_TAG_OUTPUT_NAMES))
    if len(aggregation_tags) != len(aggregation_output_names):
        errors.append(
            "aggregation-tags and aggregation-tag-output-names length must be equal."
        )
    if has_duplicates(aggregation_output_names):
        errors.append("aggregation-tag-output-names contains duplicate values.")

    if errors:
        return None, errors

    id_field = _optional_str(config, ID_FIELD) or DEFAULT_ID_FIELD
    plan = QueryPlan(
        mode=QueryMode.RAW_QUERY,
        raw_query=raw_query,
        output_metric_names=output_metric_names,
        tags=aggregation_tags,
        output_tag_names=aggregation_output_names,
        id_field=id_field,
        id_tag=_optional_str(config, ID_TAG) or id_field,
    )
    return plan, errors


def _resolve_templated(config: Mapping[str, Any]):
    errors: List[str] = []

    metrics_raw = _optional_str(config, METRICS)
    output_names_raw = _optional_str(config, OUTPUT_METRIC_NAMES)
    metrics = split_list(metrics_raw)
    output_metric_names = split_list(output_names_raw)
    tags = split_list(config.get(TAGS))
    output_tag_names = split_list(config.get(OUTPUT_TAG_NAMES))

    if metrics_raw is None or output_names_raw is None:
        errors.append(
            "metrics and output-metric-names are required when raw-query is not provided."
        )
    else:
        if len(metrics) != len(output_metric_names):
            errors.append("metrics and output-metric-names length must be equal.")
        if has_duplicates(output_metric_names):
            errors.append("output-metric-names contains duplicate values.")

    if len(tags) != len(output_tag_names):
        errors.append("tags and output-tag-names length must be equal.")
    if has_duplicates(output_tag_names):
        errors.append("output-tag-names contains duplicate values.")

    if errors:
        return None, errors

    id_field = _optional_str(config, ID_FIELD) or DEFAULT_ID_FIELD
    plan = QueryPlan(
        mode=QueryMode.TEMPLATED,
        metrics=metrics,
        output_metric_names=output_metric_names,
        tags=tags,
        output_tag_names=output_tag_names,
        id_field=id_field,
        id_tag=_optional_str(config, ID_TAG) or id_field,
    )
    return plan, errors
