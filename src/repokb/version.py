"""Version lookup: installed distribution metadata first, bundled VERSION file second."""

from __future__ import annotations

from functools import lru_cache
from importlib import metadata, resources

_DISTRIBUTION = "repokb"


@lru_cache(maxsize=1)
def get_version() -> str:
    try:
        return metadata.version(_DISTRIBUTION)
    except metadata.PackageNotFoundError:
        pass
    # Source checkouts that were never installed still ship the VERSION file.
    try:
        return resources.files(__package__).joinpath("VERSION").read_text(encoding="utf-8").strip()
    except (FileNotFoundError, ModuleNotFoundError):
        return "0.0.0+unknown"


__version__ = get_version()

__all__ = ["get_version", "__version__"]
