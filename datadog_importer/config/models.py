"""Config models and loader.

This module defines Pydantic models for file- and environment-based
configuration. JSON parsing prefers `orjson` when available for speed and
falls back to the Python standard library's `json` module.
"""

from __future__ import annotations

import json as _json
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

try:
    import orjson as _orjson_mod  # type: ignore[assignment]
except ImportError:  # pragma: no cover - optional dependency
    _orjson_mod = None  # type: ignore[assignment]
    _loads_orjson: Optional[Callable[[bytes], Any]] = None
else:

    def _loads_orjson(buf: bytes) -> Any:
        loader = getattr(_orjson_mod, "loads")  # type: ignore[assignment]
        return loader(buf)


from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def loads_json(raw: bytes) -> Any:
    """Parse JSON bytes, using `orjson` when installed."""
    if _loads_orjson is not None:
        return _loads_orjson(raw)
    return _json.loads(raw.decode("utf-8"))


class RunConfig(BaseModel):
    """A single importer run as read from a JSON file.

    Attributes
    ----------
    config: Dict[str, Any]
        Flat plugin configuration (``metrics``, ``output-metric-names``, ...).
    inputs: List[Dict[str, Any]]
        Input rows, each with an identifier, ``timestamp`` and ``duration``.
    """

    config: Dict[str, Any] = Field(default_factory=dict)
    inputs: List[Dict[str, Any]] = Field(default_factory=list)

    @staticmethod
    def load(path: Path) -> "RunConfig":
        """Load a run description from a JSON file."""
        return RunConfig.model_validate(loads_json(path.read_bytes()))


class EnvSettings(BaseSettings):
    """Environment-driven settings and .env support.

    Attributes
    ----------
    log_level: str
        Logging level name (e.g., "DEBUG", "INFO"). Defaults to "INFO".
    api_key: Optional[str]
        Datadog API key.
    app_key: Optional[str]
        Datadog application key.
    site: str
        Datadog site hosting the account. Defaults to "datadoghq.com".
    timeout_seconds: int
        HTTP request timeout for metrics API calls.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="DATADOG_IMPORTER_", extra="ignore"
    )

    log_level: str = Field("INFO")
    api_key: Optional[str] = Field(None, description="Datadog API key")
    app_key: Optional[str] = Field(None, description="Datadog application key")
    site: str = Field("datadoghq.com", description="Datadog site")
    timeout_seconds: int = Field(30, ge=1)
