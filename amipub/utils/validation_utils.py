"""Validation utility functions used as CLI callbacks."""

from pathlib import Path
from typing import Optional

import typer


def validate_local_file(local_path: Optional[str]) -> str:
    """
    Validate a local image path.

    Args:
        local_path: The local file path to validate

    Returns:
        str: The validated local file path

    Raises:
        typer.BadParameter: If the local file is invalid
    """
    if not local_path:
        raise typer.BadParameter("Image path is required")

    source_path = Path(local_path).expanduser().resolve()

    if not source_path.exists():
        raise typer.BadParameter(f"Local file not found: {source_path}")

    if not source_path.is_file():
        raise typer.BadParameter(f"Path is not a file: {source_path}")

    if source_path.stat().st_size == 0:
        raise typer.BadParameter(f"Local file is empty: {source_path}")
    return local_path


def validate_config_file(config_path: Optional[str]) -> str:
    """Validate that the configuration file exists."""
    if not config_path:
        raise typer.BadParameter("Config file is required")

    if not Path(config_path).expanduser().is_file():
        raise typer.BadParameter(f"Config file not found: {config_path}")
    return config_path
