"""Manifest loading module."""

from .parser import ManifestError, ManifestParser, PackageEntry

__all__ = ["ManifestError", "ManifestParser", "PackageEntry"]
