"""Test plugin registration and logging functionality."""

from __future__ import annotations

import logging

import pytest

from datadog_importer.domain.plugins import (
    _registry,
    all_plugins,
    create,
    get,
    log_plugin_status,
    reset_plugins,
)
from datadog_importer.domain.plugins.datadog_importer import DatadogImporter


def test_plugin_registration_includes_datadog_importer():
    """Ensure the Datadog importer is registered automatically."""
    plugin_cls = get("datadog-importer")
    assert plugin_cls is DatadogImporter
    assert plugin_cls.metadata["kind"] == "execute"


def test_create_instantiates_with_config():
    plugin = create("datadog-importer", {"metrics": "m", "output-metric-names": "o"})
    assert isinstance(plugin, DatadogImporter)
    assert plugin.configure().metrics == ["m"]


def test_unknown_plugin_raises_key_error():
    with pytest.raises(KeyError):
        get("does-not-exist")


def test_log_plugin_status_output(caplog):
    """Test that log_plugin_status produces expected log messages."""
    with caplog.at_level(logging.INFO):
        log_plugin_status()

    info_logs = [
        record.getMessage() for record in caplog.records if record.levelname == "INFO"
    ]
    combined_logs = " ".join(info_logs)
    assert "datadog-importer" in combined_logs
    assert "Total plugins: 1" in combined_logs


def test_log_plugin_status_empty_registry(caplog):
    _registry.clear()
    with caplog.at_level(logging.WARNING):
        log_plugin_status()
    assert "No plugins registered" in caplog.text
    reset_plugins()
    assert list(all_plugins()) == [DatadogImporter]
