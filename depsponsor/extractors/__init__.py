"""Dependency listers backed by each ecosystem's own resolution tooling."""

from .base import BaseDependencyLister
from .cargo import CargoMetadataLister, packages_from_metadata

__all__ = ["BaseDependencyLister", "CargoMetadataLister", "packages_from_metadata"]
