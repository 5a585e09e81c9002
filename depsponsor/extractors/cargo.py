"""
Cargo dependency lister.

Resolution is delegated to ``cargo metadata``; this module only turns its JSON
output into PackageRef records.
"""

import json
import logging
import subprocess
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..models import PackageRef
from ..utils.exceptions import ManifestError
from .base import BaseDependencyLister

logger = logging.getLogger(__name__)


def packages_from_metadata(metadata: Dict[str, Any], top_level_only: bool = False) -> List[PackageRef]:
    """
    Build the dependency list from parsed ``cargo metadata`` output.

    Workspace members are excluded. With top_level_only, only packages named as
    a dependency of some workspace member are kept. Order follows the
    ``packages`` array.

    Raises:
        ManifestError: If the document lacks the expected structure
    """
    if not isinstance(metadata, dict):
        raise ManifestError("cargo metadata output is not a JSON object")

    packages = metadata.get("packages")
    if not isinstance(packages, list):
        raise ManifestError("cargo metadata output has no 'packages' list")

    member_ids = set(metadata.get("workspace_members") or [])
    members = [pkg for pkg in packages if pkg.get("id") in member_ids]
    member_names = {pkg.get("name") for pkg in members}

    direct_names = set()
    if top_level_only:
        for member in members:
            for dep in member.get("dependencies") or []:
                if dep.get("name"):
                    direct_names.add(dep["name"])

    refs = []
    for pkg in packages:
        if pkg.get("id") in member_ids or pkg.get("name") in member_names:
            continue
        if top_level_only and pkg.get("name") not in direct_names:
            continue
        refs.append(
            PackageRef(
                name=pkg["name"],
                version=str(pkg.get("version", "")),
                repository=pkg.get("repository") or None,
                homepage=pkg.get("homepage") or None,
            )
        )
    return refs


class CargoMetadataLister(BaseDependencyLister):
    """Lists Rust dependencies using ``cargo metadata``."""

    def __init__(self, cargo_command: str = "cargo", timeout: Optional[float] = 300):
        self.cargo_command = cargo_command
        self.timeout = timeout

    @property
    def ecosystem_name(self) -> str:
        return "cargo"

    @property
    def manifest_filename(self) -> str:
        return "Cargo.toml"

    def list_packages(self, manifest_path: Union[str, Path], top_level_only: bool = False) -> List[PackageRef]:
        manifest = self.locate_manifest(manifest_path)
        if not manifest.is_file():
            raise ManifestError("Cargo manifest not found", str(manifest))

        metadata = self.read_metadata(manifest)
        refs = packages_from_metadata(metadata, top_level_only=top_level_only)
        logger.info(
            f"Found {len(refs)} {'direct' if top_level_only else 'resolved'} {self.ecosystem_name} dependencies in {manifest}"
        )
        return refs

    def read_metadata(self, manifest: Path) -> Dict[str, Any]:
        """Run ``cargo metadata`` for a manifest and return the parsed JSON."""
        command = [
            self.cargo_command,
            "metadata",
            "--format-version",
            "1",
            "--manifest-path",
            str(manifest),
        ]
        logger.debug(f"Running: {' '.join(command)}")

        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError:
            raise ManifestError(f"'{self.cargo_command}' executable not found; is Rust installed?", str(manifest))
        except subprocess.TimeoutExpired:
            raise ManifestError(f"cargo metadata timed out after {self.timeout}s", str(manifest))

        if result.returncode != 0:
            stderr_lines = [line for line in (result.stderr or "").strip().splitlines() if line.strip()]
            reason = stderr_lines[-1] if stderr_lines else f"exit code {result.returncode}"
            raise ManifestError(f"Failed to get cargo metadata: {reason}", str(manifest))

        try:
            return json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise ManifestError(f"Invalid cargo metadata output: {e}", str(manifest))
