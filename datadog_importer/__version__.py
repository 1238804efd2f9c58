"""
Version information for the Datadog importer.

The package version is read from pyproject.toml via importlib.metadata so the
project keeps a single source of truth for version management.
"""

try:
    from importlib.metadata import version

    __version__ = version("datadog-importer")
except Exception:
    # Fallback for development (package not installed)
    import tomllib
    from pathlib import Path

    try:
        pyproject_path = Path(__file__).parent.parent / "pyproject.toml"
        with open(pyproject_path, "rb") as f:
            pyproject = tomllib.load(f)
            __version__ = pyproject["project"]["version"]
    except Exception:
        __version__ = "0.0.0-dev"
