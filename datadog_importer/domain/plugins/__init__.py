"""Importer plugin registry and base API.

This module defines the minimal protocol that importer plugins implement and
provides a simple in-memory registry so the CLI and pipeline hosts can look
plugins up by identifier.
"""

# pylint: disable=too-few-public-methods

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Type

from ..models import InputRow, OutputRow, QueryPlan

logger = logging.getLogger(__name__)


class Plugin(Protocol):
    """Importer plugin contract.

    A plugin declares:
    - `id`: unique identifier (e.g., "datadog-importer")
    - `metadata`: self-description for the hosting pipeline, with a `kind`

    Implementations validate their config in `configure` and produce output
    rows from input rows in the async `execute` method.
    """

    id: str
    metadata: Dict[str, str]

    def configure(self, config: Optional[Mapping[str, Any]] = None) -> QueryPlan:
        """Validate configuration and return the derived plan."""
        raise NotImplementedError

    async def execute(
        self,
        inputs: List[InputRow],
        config: Optional[Mapping[str, Any]] = None,
    ) -> List[OutputRow]:
        """Transform input rows into output rows.

        Parameters
        ----------
        inputs: List[InputRow]
            Ordered input rows from the pipeline.
        config: Optional[Mapping[str, Any]]
            Optional config override for this call.

        Returns
        -------
        List[OutputRow]
            Ordered output rows.
        """
        raise NotImplementedError


_registry: Dict[str, Type[Plugin]] = {}


def register(plugin_cls: Type[Plugin]) -> None:
    """Register a plugin class by its `id`.

    Parameters
    ----------
    plugin_cls: Type[Plugin]
        Class to be registered. Its `id` must be unique.
    """
    _registry[plugin_cls.id] = plugin_cls
    logger.info(
        "Registered plugin: '%s' (kind: %s)",
        plugin_cls.id,
        plugin_cls.metadata.get("kind"),
    )


def get(plugin_id: str) -> Type[Plugin]:
    """Retrieve a plugin class by `id`.

    Raises
    ------
    KeyError
        If no plugin is registered under the given identifier.
    """
    return _registry[plugin_id]


def create(plugin_id: str, config: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> Plugin:
    """Instantiate the plugin registered under `plugin_id` with `config`."""
    return get(plugin_id)(config, **kwargs)  # type: ignore[call-arg]


def all_plugins() -> Iterable[Type[Plugin]]:
    """Iterate over all registered plugin classes."""
    return _registry.values()


def log_plugin_status() -> None:
    """Log information about registered plugins."""
    if not _registry:
        logger.warning("No plugins registered. No importers available.")
    else:
        logger.info(
            "Plugins loaded: %s\n  - Total plugins: %d",
            ", ".join(f"'{pid}'" for pid in _registry),
            len(_registry),
        )


def reset_plugins() -> None:
    """Reset the registry to the built-in importers.

    Clears the in-memory registry and registers the built-in plugins
    explicitly. Useful for tests to avoid cross-test contamination.
    """
    _registry.clear()
    from .datadog_importer import DatadogImporter  # noqa: WPS433 (local import)

    register(DatadogImporter)


reset_plugins()
