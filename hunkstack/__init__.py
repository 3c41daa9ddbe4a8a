"""Compose uncommitted hunks into a clean commit stack."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("hunkstack")
except PackageNotFoundError:
    # Fallback for development mode
    __version__ = "0.0.0-dev"
