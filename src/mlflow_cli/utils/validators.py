"""Path and input validators for mlflow-cli.

This module provides validation functions that keep artifact uploads inside
their destination and reject malformed key=value arguments.
"""

import os
from pathlib import Path

__all__ = ["parse_key_value", "validate_artifact_path", "validate_safe_path"]


def validate_safe_path(path: Path, base_dir: Path) -> None:
    """Validate that the resolved path is within the base directory.

    This function prevents path traversal by ensuring that the resolved
    absolute path stays within the base directory boundaries. It also checks
    for symlinks between the path and the base directory.

    Args:
        path: Path to validate
        base_dir: Base directory that should contain the path

    Raises:
        ValueError: If path is outside base_dir, contains symlinks, or path resolution fails

    Examples:
        >>> base = Path("/data")
        >>> validate_safe_path(Path("/data/model/weights.bin"), base)  # OK
        >>> validate_safe_path(Path("/data/../etc/passwd"), base)  # Raises ValueError
    """
    try:
        # First resolve both paths to absolute paths
        resolved_path = path.resolve()
        resolved_base = base_dir.resolve()

        # Walk from the path up to the base directory, checking each component
        current = path
        while current != current.parent:
            if current.exists() and current.is_symlink():
                raise ValueError(f"Path contains symlink: {current}")
            try:
                current.relative_to(resolved_base)
            except ValueError:
                # We've gone above the base directory, stop checking
                break
            current = current.parent

        if not str(resolved_path).startswith(str(resolved_base) + os.sep) and resolved_path != resolved_base:
            raise ValueError(f"Path {path} is outside base directory {base_dir}")
    except (ValueError, OSError) as e:
        if isinstance(e, ValueError) and str(e).startswith("Path"):
            raise
        raise ValueError(f"Invalid path: {path}") from e


def validate_artifact_path(artifact_path: str) -> None:
    """Validate an artifact-relative destination path.

    Artifact paths may contain directories (``models/final.pkl``) but must be
    relative and must not contain ``..`` components or null bytes.

    Args:
        artifact_path: Destination path relative to the run's artifact root

    Raises:
        ValueError: If the artifact path is empty, absolute or escapes the root

    Examples:
        >>> validate_artifact_path("models/final.pkl")  # OK
        >>> validate_artifact_path("../outside.txt")  # Raises ValueError
    """
    if not artifact_path:
        raise ValueError("Invalid artifact path: cannot be empty")

    if "\x00" in artifact_path:
        raise ValueError("Invalid artifact path: contains null byte")

    if artifact_path.startswith("/"):
        raise ValueError(f"Invalid artifact path: '{artifact_path}' must be relative")

    if any(part == ".." for part in artifact_path.split("/")):
        raise ValueError(f"Invalid artifact path: '{artifact_path}' cannot contain '..'")


def parse_key_value(item: str, kind: str = "argument") -> tuple[str, str]:
    """Split a ``key=value`` command line argument.

    Args:
        item: Raw argument
        kind: Argument kind used in error messages (e.g. "tag", "parameter")

    Returns:
        Tuple of (key, value). The value may itself contain '='.

    Raises:
        ValueError: If the argument has no '=' or an empty key
    """
    key, sep, value = item.partition("=")
    if not sep or not key:
        raise ValueError(f"invalid {kind} format: {item} (expected key=value)")
    return key, value
