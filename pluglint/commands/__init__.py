"""Command implementations for pluglint CLI."""

from .check_type import check_type
from .lint import lint
from .locate import locate
from .xref import xref

__all__ = ["lint", "locate", "check_type", "xref"]
