"""Command-line interface to run the Datadog importer once.

Loads a run file holding the plugin config and the input rows, executes the
importer and writes the output rows as JSON.

Usage
-----
    python -m datadog_importer.cli --run run.json [--output rows.json]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config.models import EnvSettings, RunConfig
from .domain.errors import ConfigurationError
from .domain.models import OutputRow
from .domain.plugins import create, log_plugin_status
from .observability import setup_logging

logger = logging.getLogger(__name__)


async def _run(run_path: Path, plugin_id: str) -> List[OutputRow]:
    """Execute the importer for the run described in ``run_path``."""
    run = RunConfig.load(run_path)
    plugin = create(plugin_id, run.config)
    return await plugin.execute(run.inputs)


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entrypoint; returns the process exit code."""
    parser = argparse.ArgumentParser(description="Datadog importer CLI")
    parser.add_argument("--run", required=True, help="Path to JSON run file")
    parser.add_argument(
        "--plugin", default="datadog-importer", help="Registered plugin id"
    )
    parser.add_argument("--output", help="Write rows to this file instead of stdout")
    parser.add_argument(
        "--log-level",
        dest="log_level",
        choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"],
        help="Logging level (overrides environment)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (once sets DEBUG)",
    )
    args = parser.parse_args(argv)

    env_level = EnvSettings().log_level.upper()
    effective_level = args.log_level or ("DEBUG" if args.verbose > 0 else env_level)
    setup_logging(effective_level)
    log_plugin_status()

    try:
        rows = asyncio.run(_run(Path(args.run), args.plugin))
    except ConfigurationError as exc:
        logger.error("%s: %s", type(exc).__name__, exc)
        return 2

    payload = json.dumps(rows, indent=2, default=str)
    if args.output:
        Path(args.output).write_text(payload + "\n", encoding="utf-8")
    else:
        sys.stdout.write(payload + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
