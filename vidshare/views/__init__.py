"""View building: declarative joins compiled into one query."""

from .builder import OWNER_FIELDS, Lookup, ViewBuilder

__all__ = ["OWNER_FIELDS", "Lookup", "ViewBuilder"]
