"""
Base interface for dependency listers.

Defines the contract that ecosystem-specific listers must implement.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Union

from ..models import PackageRef


class BaseDependencyLister(ABC):
    """
    Abstract base class for ecosystem-specific dependency listers.

    Each lister is responsible for:
    1. Locating the ecosystem's manifest from a file or directory path
    2. Delegating resolution to the ecosystem's own tooling
    3. Returning the resolved dependencies as an ordered list of PackageRef
    """

    @property
    @abstractmethod
    def ecosystem_name(self) -> str:
        """Return the name of the ecosystem this lister handles."""
        pass

    @property
    @abstractmethod
    def manifest_filename(self) -> str:
        """Return the manifest file name looked up inside a directory."""
        pass

    def locate_manifest(self, manifest_path: Union[str, Path]) -> Path:
        """
        Resolve a directory to the manifest file it contains.

        Args:
            manifest_path: Manifest file or directory containing one

        Returns:
            Path to the manifest file (existence is not checked)
        """
        path = Path(manifest_path)
        if path.is_dir():
            return path / self.manifest_filename
        return path

    @abstractmethod
    def list_packages(self, manifest_path: Union[str, Path], top_level_only: bool = False) -> List[PackageRef]:
        """
        List the resolved dependencies of a project.

        Args:
            manifest_path: Manifest file or directory containing one
            top_level_only: Only return dependencies declared directly by the project

        Returns:
            Dependencies in a stable order, project packages excluded

        Raises:
            ManifestError: If the manifest cannot be located, resolved or parsed
        """
        pass
