"""Shared utilities and infrastructure.

This module contains the exception hierarchy and logging setup.
"""

from __future__ import annotations

from bencanon.utils.exceptions import (
    BencanonError,
    BencodeEncodeError,
    BencodeError,
    ConfigurationError,
)
from bencanon.utils.logging_config import get_logger, setup_logging

__all__ = [
    "BencanonError",
    "BencodeEncodeError",
    "BencodeError",
    "ConfigurationError",
    "get_logger",
    "setup_logging",
]
