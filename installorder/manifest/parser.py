"""Manifest parser for extracting package dependency records.

A manifest lists packages and their direct dependencies, either as JSON or
YAML (JSON is read through the YAML loader):

    {
      "packages": [
        {"name": "A", "dependencies": ["B", "C"]},
        {"name": "B", "dependencies": []}
      ]
    }

The parser turns it into ``(name, [dependencies])`` records for
:meth:`installorder.resolver.Resolver.ingest`.
"""

from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

logger = structlog.get_logger(__name__)


class ManifestError(ValueError):
    """Exception raised when a manifest cannot be parsed."""

    def __init__(self, message: str, path: str | Path | None = None):
        """Initialize the exception.

        Args:
            message: Description of the problem
            path: Manifest file the problem was found in, if any
        """
        super().__init__(message)
        self.message = message
        self.path = str(path) if path is not None else None


class PackageEntry(BaseModel):
    """A single manifest entry.

    Attributes:
        name: Package name
        dependencies: Names of the packages it directly depends on
    """

    name: str = Field(description="Package name", min_length=1)
    dependencies: list[str] = Field(
        default_factory=list,
        description="Direct dependencies in declaration order",
    )

    @field_validator("dependencies", mode="before")
    @classmethod
    def validate_dependencies(cls, v: Any) -> Any:
        """Treat a null dependency list as empty."""
        return [] if v is None else v

    @field_validator("dependencies")
    @classmethod
    def validate_dependency_names(cls, v: list[str]) -> list[str]:
        """Strip dependency names and reject empty ones.

        Raises:
            ValueError: If a dependency name is blank
        """
        names = [name.strip() for name in v]
        if not all(names):
            msg = "Dependency names must not be empty"
            raise ValueError(msg)
        return names

    model_config = {"str_strip_whitespace": True}


class ManifestParser:
    """Parser for package manifests.

    The top-level list key and the per-entry keys are configurable so that
    manifests produced by other tools can be read without conversion.
    """

    def __init__(
        self,
        packages_key: str = "packages",
        name_key: str = "name",
        dependencies_key: str = "dependencies",
    ):
        """Initialize the manifest parser.

        Args:
            packages_key: Key holding the list of package entries
            name_key: Key holding a package's name within an entry
            dependencies_key: Key holding a package's dependency list
        """
        self.packages_key = packages_key
        self.name_key = name_key
        self.dependencies_key = dependencies_key

    def load(self, path: str | Path) -> list[tuple[str, list[str]]]:
        """Read and parse a manifest file.

        Args:
            path: Path to a JSON or YAML manifest

        Returns:
            List of ``(name, dependencies)`` records in manifest order

        Raises:
            FileNotFoundError: If the manifest doesn't exist
            ManifestError: If the manifest is malformed
        """
        manifest_path = Path(path)

        if not manifest_path.exists():
            msg = f"Manifest file not found: {manifest_path}"
            raise FileNotFoundError(msg)

        logger.info("loading_manifest", path=str(manifest_path))

        try:
            with manifest_path.open(encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (yaml.YAMLError, UnicodeDecodeError) as e:
            logger.exception("manifest_parse_error", error=str(e), path=str(manifest_path))
            msg = f"Invalid manifest {manifest_path}: {e}"
            raise ManifestError(msg, manifest_path) from e

        try:
            return self.parse_data(data)
        except ManifestError as e:
            e.path = str(manifest_path)
            raise

    def parse_data(self, data: Any) -> list[tuple[str, list[str]]]:
        """Parse an already-decoded manifest.

        Args:
            data: Mapping with a list of package entries under ``packages_key``

        Returns:
            List of ``(name, dependencies)`` records in manifest order

        Raises:
            ManifestError: If the data doesn't have the expected shape

        Examples:
            >>> ManifestParser().parse_data({"packages": [{"name": "A", "dependencies": ["B"]}]})
            [('A', ['B'])]
        """
        if not isinstance(data, dict):
            msg = "Manifest must be a mapping"
            raise ManifestError(msg)

        entries = data.get(self.packages_key)
        if not isinstance(entries, list):
            msg = f"Manifest must contain a '{self.packages_key}' list"
            raise ManifestError(msg)

        records = []
        for index, raw_entry in enumerate(entries):
            entry = self._parse_entry(index, raw_entry)
            records.append((entry.name, entry.dependencies))

        logger.debug(
            "manifest_parsed",
            package_count=len(records),
            dependency_count=sum(len(deps) for _, deps in records),
        )

        return records

    def _parse_entry(self, index: int, raw_entry: Any) -> PackageEntry:
        """Validate one entry, mapping configured keys onto PackageEntry fields."""
        if not isinstance(raw_entry, dict):
            msg = f"Package entry {index} must be a mapping"
            raise ManifestError(msg)

        try:
            return PackageEntry(
                name=raw_entry.get(self.name_key),
                dependencies=raw_entry.get(self.dependencies_key),
            )
        except ValidationError as e:
            msg = f"Invalid package entry {index}: {e}"
            raise ManifestError(msg) from e
