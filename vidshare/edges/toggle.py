"""Toggle engine: flip presence of an edge in one logical step."""

import logging
from dataclasses import dataclass
from typing import Literal

from sqlalchemy.ext.asyncio import AsyncSession

from vidshare.edges.kinds import EdgeKind
from vidshare.edges.repository import delete_edge, insert_edge

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToggleResult:
    """Outcome of a toggle: the edge was either created or removed."""

    state: Literal["created", "removed"]
    edge_id: str | None = None
    # Edges now pointing at the target; filled in by callers that report it
    total: int | None = None

    @property
    def created(self) -> bool:
        return self.state == "created"


async def toggle_edge(
    db: AsyncSession, kind: EdgeKind | str, actor_id: str, target_id: str
) -> ToggleResult:
    """Create the (actor, target) edge if absent, remove it if present.

    The conditional delete doubles as the existence check, so there is no
    separate read. If nothing was deleted a new edge is inserted. Under a
    concurrent duplicate toggle the insert may be rejected by the unique
    constraint; that surfaces as WriteFailed and the caller must not assume the
    edge exists. Retrying the whole toggle is safe. Nothing is retried here.

    Raises:
        WriteFailed: If the delete or the insert fails or times out
    """
    kind = EdgeKind(kind)
    context = {"edge_kind": kind.value, "actor_id": actor_id, "target_id": target_id}

    if await delete_edge(db, kind, actor_id, target_id):
        logger.info(f"Edge removed: kind={kind.value} target={target_id}", extra=context)
        return ToggleResult(state="removed")

    edge = await insert_edge(db, kind, actor_id, target_id)
    logger.info(f"Edge created: kind={kind.value} target={target_id}", extra=context)
    return ToggleResult(state="created", edge_id=edge.id)
