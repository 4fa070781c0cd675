"""Concatenate a project's text files into one LLM-friendly artifact."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("export-codebase")
except PackageNotFoundError:
    __version__ = "N/A"
