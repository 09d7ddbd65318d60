"""Shared utilities."""

from ._logging import LogFormatType, Rotation, build_logger, create_pool_logger, resolve_level

__all__ = ["LogFormatType", "Rotation", "build_logger", "create_pool_logger", "resolve_level"]
