"""
Utils package for amipub.

- file_utils: File operations and format detection utilities
- logging_utils: Logging configuration and display utilities
- validation_utils: CLI input validation utilities
"""

from .file_utils import (
    cleanup_temp_directory,
    create_temp_directory,
    detect_file_format,
    format_bytes,
)
from .logging_utils import (
    display_summary,
    error_and_exit,
    get_logger,
    log_duration,
    log_message,
    log_section,
    setup_logging,
    wait_with_progress,
)
from .validation_utils import validate_config_file, validate_local_file

__all__ = [
    "cleanup_temp_directory",
    "create_temp_directory",
    "detect_file_format",
    "format_bytes",
    "display_summary",
    "error_and_exit",
    "get_logger",
    "log_duration",
    "log_message",
    "log_section",
    "setup_logging",
    "wait_with_progress",
    "validate_config_file",
    "validate_local_file",
]
