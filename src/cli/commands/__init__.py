"""CLI command modules."""

from .disclaimers import disclaimer
from .pack import validate
from .query import query

__all__ = ["query", "validate", "disclaimer"]
