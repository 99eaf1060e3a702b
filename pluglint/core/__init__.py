"""Core infrastructure: configuration, caching, logging and errors."""

from .cache import ConcurrentCache
from .config import Config, clear_config_cache, load_config
from .context import ResolutionContext, canonical_key, default_context, reset_default_context
from .descriptor import ApiVersion, ElementRole, Implementation, PluginDescriptor
from .exceptions import (
    ClassFileError,
    ExitCode,
    InvalidDescriptor,
    ProjectNotFound,
    exception_to_json,
    format_json_error,
)
from .logging import get_logger, get_plugin_logger, setup_logging

__all__ = [
    "ApiVersion",
    "ClassFileError",
    "ConcurrentCache",
    "Config",
    "ElementRole",
    "ExitCode",
    "Implementation",
    "InvalidDescriptor",
    "PluginDescriptor",
    "ProjectNotFound",
    "ResolutionContext",
    "canonical_key",
    "clear_config_cache",
    "default_context",
    "exception_to_json",
    "format_json_error",
    "get_logger",
    "get_plugin_logger",
    "load_config",
    "reset_default_context",
    "setup_logging",
]
