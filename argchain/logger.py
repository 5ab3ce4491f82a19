# Argchain CLI Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""Global logger instance for Argchain."""
import logging

logger: logging.Logger = logging.getLogger("argchain")
