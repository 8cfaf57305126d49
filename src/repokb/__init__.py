"""
repokb: turn remote source repositories into tagged knowledge bases.

A repository is cloned into a throwaway workspace, its eligible files are
extracted, chunked, tagged with the project name and pushed to a vector
index. The workspace is always removed afterwards.
"""

from .version import __version__

__all__ = ["__version__"]
