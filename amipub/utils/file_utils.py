"""Local file helpers: disk format detection, size formatting and scratch directories."""

import shutil
import tempfile
from pathlib import Path

from amipub.common import SUPPORTED_FORMATS, FileFormat, LogLevel
from amipub.utils.logging_utils import log_message

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


def detect_file_format(filename: str) -> FileFormat:
    """Map the image file extension to a FileFormat; unknown extensions are RAW."""
    suffix = Path(filename).suffix.lower()
    for format_name, extensions in SUPPORTED_FORMATS.items():
        if suffix in extensions:
            return FileFormat(format_name)
    return FileFormat.RAW


def format_bytes(bytes_count: int) -> str:
    size = float(bytes_count)
    for unit in _SIZE_UNITS:
        if size < 1024.0:
            return f"{size:.1f} {unit}"
        size /= 1024.0
    return f"{size:.1f} PB"


def create_temp_directory() -> Path:
    """Scratch directory for a generated manifest file."""
    return Path(tempfile.mkdtemp(prefix="amipub_"))


def cleanup_temp_directory(temp_dir: Path) -> None:
    try:
        shutil.rmtree(temp_dir)
    except OSError as e:
        log_message(LogLevel.WARN, f"Failed to clean up temporary directory {temp_dir}: {e}")
