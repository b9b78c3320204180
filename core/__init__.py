"""
Core utilities and configuration for the KISS Elastic sync.

This package provides foundational components used throughout the pipeline:

Modules:
    config: Application configuration and environment variable management
    exceptions: Custom exception hierarchy for error handling
    logging: Logging configuration

Usage:
    from core.config import settings
    from core.exceptions import FetchError, SinkTransmissionError
    from core.logging import setup_logging

Example:
    # Initialize logging
    setup_logging()

    # Read a required setting
    engine = settings.require("ENTERPRISE_SEARCH_ENGINE")
"""

__all__ = [
    "config",
    "exceptions",
    "logging",
]
