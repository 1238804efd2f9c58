"""Error types raised by the importer and its metrics adapter."""

from __future__ import annotations

from typing import List, Optional


class ConfigurationError(ValueError):
    """Fatal configuration problem.

    Raised for missing or inconsistent plugin configuration and for metrics
    that fail the pre-flight existence check. Aborts the whole invocation.
    """


class InputValidationError(ValueError):
    """Input row missing a parseable ``timestamp`` or a positive ``duration``."""


class MetricsApiError(Exception):
    """Error returned by the metrics API.

    Attributes
    ----------
    status: Optional[int]
        HTTP status code of the failed call, when one was received.
    errors: List[str]
        Error messages reported in the response body.
    """

    def __init__(
        self, status: Optional[int], errors: Optional[List[str]] = None
    ) -> None:
        self.status = status
        self.errors = list(errors or [])
        detail = ", ".join(self.errors) or "no error details"
        super().__init__(f"Datadog API error: {status} - {detail}")

    @property
    def is_not_found(self) -> bool:
        """Return True when the API reported the resource as missing."""
        return self.status == 404
