"""Version information for the rg-panel server."""

import tomllib
from importlib import metadata
from pathlib import Path

_VERSION: str | None = None


def get_version() -> str:
    """
    Get the server version.

    Reads the installed distribution metadata, falling back to
    pyproject.toml for source checkouts.

    Returns:
        Version string (e.g., "0.1.0")
    """
    global _VERSION

    if _VERSION is not None:
        return _VERSION

    try:
        _VERSION = metadata.version("rg-panel")
        return _VERSION
    except metadata.PackageNotFoundError:
        pass

    pyproject_path = Path(__file__).parent.parent / "pyproject.toml"

    try:
        with open(pyproject_path, "rb") as f:
            pyproject_data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError):
        return "unknown"

    _VERSION = pyproject_data.get("project", {}).get("version", "unknown")
    return _VERSION
