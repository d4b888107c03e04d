"""Edge relationships (likes, subscriptions) with toggle semantics."""

from .kinds import EdgeKind, spec_for
from .repository import count_edges, delete_edges_for_target
from .toggle import ToggleResult, toggle_edge

__all__ = [
    "EdgeKind",
    "ToggleResult",
    "count_edges",
    "delete_edges_for_target",
    "spec_for",
    "toggle_edge",
]
