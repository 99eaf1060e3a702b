"""
Logging configuration for pluglint.

Provides centralized logging setup with verbosity levels:
- 0 (default): WARNING - findings summary problems only
- 1 (-v):      INFO - per-plugin progress and resolved roots
- 2 (-vv):     DEBUG - lookup locations, skipped archives, cache hits
- 3+ (-vvv):   TRACE - every probe the locator and registry make

PluginLoggerAdapter prefixes messages with the plugin being linted so that
output from parallel linting tasks stays readable.
"""

import logging
import sys
from dataclasses import dataclass
from typing import Optional

# Custom TRACE level (more verbose than DEBUG)
TRACE = 5
logging.addLevelName(TRACE, "TRACE")


def trace(self, message, *args, **kwargs):
    """Log at TRACE level."""
    if self.isEnabledFor(TRACE):
        self._log(TRACE, message, args, **kwargs)


logging.Logger.trace = trace


@dataclass
class PluginContext:
    """Which plugin a log line belongs to."""
    plugin_name: Optional[str] = None
    api_version: Optional[str] = None

    def format_prefix(self) -> str:
        """Format the context as a log prefix.

        Examples:
            [ping-pong]
            [ping-pong:v2]
        """
        if not self.plugin_name:
            return ""
        if self.api_version:
            return f"[{self.plugin_name}:{self.api_version}]"
        return f"[{self.plugin_name}]"


class PluginLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that includes the plugin context in messages.

    Usage:
        logger = get_plugin_logger("pluglint.lint", plugin_name="ping", api_version="v2")
        logger.info("Resolved 4 references")  # Logs: [ping:v2] Resolved 4 references
    """

    def __init__(self, logger: logging.Logger, context: PluginContext):
        super().__init__(logger, {})
        self.context = context

    def process(self, msg, kwargs):
        prefix = self.context.format_prefix()
        if prefix:
            return f"{prefix} {msg}", kwargs
        return msg, kwargs

    def trace(self, msg, *args, **kwargs):
        if self.isEnabledFor(TRACE):
            self.log(TRACE, msg, *args, **kwargs)


def setup_logging(verbosity: int = 0, quiet: bool = False) -> logging.Logger:
    """Configure logging based on verbosity level.

    Args:
        verbosity: Number of -v flags (0=WARNING, 1=INFO, 2=DEBUG, 3+=TRACE)
        quiet: If True, suppress all output except errors

    Returns:
        The configured root logger for pluglint
    """
    if quiet:
        level = logging.ERROR
    elif verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    elif verbosity == 2:
        level = logging.DEBUG
    else:
        level = TRACE

    logger = logging.getLogger("pluglint")
    logger.setLevel(level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    if verbosity >= 2:
        fmt = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
        formatter = logging.Formatter(fmt, datefmt="%H:%M:%S")
    elif verbosity == 1:
        formatter = logging.Formatter("[%(levelname)s] %(message)s")
    else:
        formatter = logging.Formatter("%(message)s")

    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger for a module.

    Args:
        name: Module name (e.g., "pluglint.resources.locator").
              If None, returns the root pluglint logger.
    """
    if name is None:
        return logging.getLogger("pluglint")
    return logging.getLogger(name)


def get_plugin_logger(
    name: str,
    plugin_name: Optional[str] = None,
    api_version: Optional[str] = None,
) -> PluginLoggerAdapter:
    """Get a logger whose messages are prefixed with the plugin name."""
    context = PluginContext(plugin_name=plugin_name, api_version=api_version)
    return PluginLoggerAdapter(get_logger(name), context)
