"""Storage operations on edge records (likes and subscriptions)."""

from sqlalchemy import Select, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from vidshare.db.session import store_guard
from vidshare.edges.kinds import EdgeKind, spec_for
from vidshare.errors import ReadFailed, WriteFailed


def _edge_clauses(kind: EdgeKind, actor_id: str | None, target_id: str | Select | None):
    spec = spec_for(kind)
    target = getattr(spec.model, spec.target_field)
    clauses = [target.is_not(None)]
    if actor_id is not None:
        clauses.append(getattr(spec.model, spec.actor_field) == actor_id)
    if target_id is not None:
        if isinstance(target_id, Select):
            clauses.append(target.in_(target_id))
        else:
            clauses.append(target == target_id)
    return spec, clauses


async def delete_edge(
    db: AsyncSession, kind: EdgeKind, actor_id: str, target_id: str
) -> bool:
    """Delete the (actor, target) edge of ``kind`` if present.

    Returns:
        True if a record was deleted, False if none matched
    """
    spec, clauses = _edge_clauses(kind, actor_id, target_id)
    async with store_guard(db, WriteFailed, f"remove {kind.value} edge"):
        result = await db.execute(delete(spec.model).where(*clauses))
        await db.commit()
    return result.rowcount > 0


async def insert_edge(db: AsyncSession, kind: EdgeKind, actor_id: str, target_id: str):
    """Insert a new (actor, target) edge of ``kind``.

    A duplicate is rejected by the table's unique constraint and surfaces as
    WriteFailed.
    """
    spec = spec_for(kind)
    edge = spec.model(**{spec.actor_field: actor_id, spec.target_field: target_id})
    async with store_guard(db, WriteFailed, f"create {kind.value} edge"):
        db.add(edge)
        await db.commit()
        await db.refresh(edge)
    return edge


async def count_edges(
    db: AsyncSession,
    kind: EdgeKind,
    actor_id: str | None = None,
    target_id: str | None = None,
) -> int:
    """Count edges of ``kind``, optionally narrowed by actor and/or target."""
    spec, clauses = _edge_clauses(kind, actor_id, target_id)
    async with store_guard(db, ReadFailed, f"count {kind.value} edges"):
        result = await db.execute(
            select(func.count()).select_from(spec.model).where(*clauses)
        )
        return int(result.scalar_one())


async def delete_edges_for_target(
    db: AsyncSession, kind: EdgeKind, target_id: str | Select
) -> int:
    """Remove every edge of ``kind`` pointing at ``target_id``.

    ``target_id`` may also be a SELECT of ids, to clear the edges of many
    targets at once.

    Does not commit; callers delete the target in the same unit of work.
    """
    spec, clauses = _edge_clauses(kind, None, target_id)
    result = await db.execute(delete(spec.model).where(*clauses))
    return result.rowcount
