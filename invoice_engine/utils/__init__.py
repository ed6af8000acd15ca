"""
Utility Module for the Invoice Engine.

This module provides common utilities used across all other modules:
    - Logging configuration
    - Exception hierarchy for the outer surfaces
    - File and dictionary helpers
"""

from .logger import setup_logger, get_logger
from .helpers import ensure_directory, get_file_extension, generate_timestamp, merge_dicts

__all__ = [
    'setup_logger',
    'get_logger',
    'ensure_directory',
    'get_file_extension',
    'generate_timestamp',
    'merge_dicts'
]
