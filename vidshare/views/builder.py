"""Declarative view plans compiled to a single SELECT.

A view starts from one base table and adds, in order:

1. match clauses on the base table,
2. lookups (left-outer joins) against related tables,
3. computed fields derived from those lookups (sizes, membership flags,
   sums, first-element projections),
4. a projection of base columns,
5. an optional sort key,
6. an optional pagination window.

Everything is rendered into one statement and executed once, so counts and
flags always agree with the rows they were derived from.

Example:

    view = (
        ViewBuilder(Video)
        .match(id=video_id)
        .visible_to(actor_id)
        .lookup(User, "owner_id", "id", "owner")
        .lookup(Like, "id", "video_id", "likes")
        .first("owner", "owner", OWNER_FIELDS)
        .size("like_count", "likes")
        .contains("is_liked", "likes", "liked_by", actor_id)
        .project("id", "title")
    )
    record = await view.fetch_one(db)
"""

from dataclasses import dataclass
from typing import Any

from sqlalchemy import ColumnElement, Select, func, inspect, literal, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from vidshare.db.session import store_guard
from vidshare.errors import ReadFailed
from vidshare.pagination import Page, PageParams, make_page

# The only user fields a joined owner projection may expose
OWNER_FIELDS = ("id", "username", "full_name", "avatar_url")


@dataclass(frozen=True)
class Lookup:
    """Left-outer join specification.

    ``local_field`` names a base column, or ``"<alias>.<field>"`` to start from
    an earlier first-element lookup.
    """

    model: type
    local_field: str
    foreign_field: str
    alias: str


@dataclass(frozen=True)
class Size:
    name: str
    lookup: str


@dataclass(frozen=True)
class Contains:
    name: str
    lookup: str
    field: str
    value: Any


@dataclass(frozen=True)
class Total:
    name: str
    lookup: str
    field: str


@dataclass(frozen=True)
class First:
    name: str
    lookup: str
    fields: tuple[str, ...]


@dataclass(frozen=True)
class Expression:
    name: str
    expr: ColumnElement


@dataclass(frozen=True)
class Visibility:
    actor_id: str | None
    lookup: str | None
    owner_field: str
    published_field: str


class ViewBuilder:
    """Builds and runs one read-only view query over a base model."""

    def __init__(self, model: type):
        self.model = model
        self._where: list[ColumnElement] = []
        self._visibility: list[Visibility] = []
        self._lookups: dict[str, Lookup] = {}
        self._computed: list[Size | Contains | Total | First | Expression] = []
        self._project: tuple[str, ...] = ()
        self._sort: tuple[str, bool] | None = None

    # -- plan construction -------------------------------------------------

    def match(self, *clauses: ColumnElement, **equals: Any) -> "ViewBuilder":
        """Add base filters: raw clauses and/or ``column=value`` equalities."""
        for name, value in equals.items():
            self._where.append(self._base_column(name) == value)
        self._where.extend(clauses)
        return self

    def visible_to(
        self,
        actor_id: str | None,
        lookup: str | None = None,
        owner_field: str = "owner_id",
        published_field: str = "is_published",
    ) -> "ViewBuilder":
        """Hide unpublished rows unless ``actor_id`` owns them.

        Applies to the base table, or to a first-element lookup when
        ``lookup`` is given (rows whose related record is missing drop out).
        """
        if lookup is not None:
            self._require_lookup(lookup)
        self._visibility.append(
            Visibility(actor_id, lookup, owner_field, published_field)
        )
        return self

    def lookup(
        self, model: type, local_field: str, foreign_field: str, alias: str
    ) -> "ViewBuilder":
        if alias in self._lookups:
            raise ValueError(f"Duplicate lookup alias: {alias}")
        self._lookups[alias] = Lookup(model, local_field, foreign_field, alias)
        return self

    def size(self, name: str, lookup: str) -> "ViewBuilder":
        """Number of related rows in ``lookup``."""
        self._require_lookup(lookup)
        self._computed.append(Size(name, lookup))
        return self

    def contains(self, name: str, lookup: str, field: str, value: Any) -> "ViewBuilder":
        """True when some related row in ``lookup`` has ``field == value``.

        A ``None`` value (anonymous actor) always yields False.
        """
        self._require_lookup(lookup)
        self._computed.append(Contains(name, lookup, field, value))
        return self

    def total(self, name: str, lookup: str, field: str) -> "ViewBuilder":
        """Sum of ``field`` over related rows (0 when there are none)."""
        self._require_lookup(lookup)
        self._computed.append(Total(name, lookup, field))
        return self

    def first(self, name: str, lookup: str, fields: tuple[str, ...]) -> "ViewBuilder":
        """Nest the single related record of ``lookup`` under ``name``.

        The lookup must join on the related table's primary key.
        """
        lk = self._require_lookup(lookup)
        pk = _primary_key(lk.model)
        if lk.foreign_field != pk:
            raise ValueError(
                f"First-element lookup {lookup!r} must join on {lk.model.__name__}.{pk}"
            )
        self._computed.append(First(name, lookup, tuple(fields)))
        return self

    def expression(self, name: str, expr: ColumnElement) -> "ViewBuilder":
        """Attach a correlated scalar expression the other helpers can't express."""
        self._computed.append(Expression(name, expr))
        return self

    def project(self, *fields: str) -> "ViewBuilder":
        for field in fields:
            self._base_column(field)
        self._project = tuple(fields)
        return self

    def sort(self, key: str, descending: bool = True) -> "ViewBuilder":
        """Order by a base column or computed field; ties break on id."""
        self._sort = (key, descending)
        return self

    # -- compilation -------------------------------------------------------

    def build(self, window: PageParams | None = None) -> Select:
        """Compile the plan into one SELECT statement."""
        joined: dict[str, Any] = {}
        first_aliases = {c.lookup for c in self._computed if isinstance(c, First)}
        for vis in self._visibility:
            if vis.lookup is not None:
                first_aliases.add(vis.lookup)

        columns: list[ColumnElement] = [
            self._base_column(f).label(f) for f in self._projection()
        ]
        computed_labels: dict[str, ColumnElement] = {}
        joins: list[tuple[Any, ColumnElement]] = []

        # First-element lookups become outer joins, in declaration order
        for alias, lk in self._lookups.items():
            if alias not in first_aliases:
                continue
            entity = aliased(lk.model, name=alias)
            local = self._resolve_local(lk.local_field, joined)
            joins.append((entity, getattr(entity, lk.foreign_field) == local))
            joined[alias] = entity

        for comp in self._computed:
            if isinstance(comp, First):
                entity = joined[comp.lookup]
                pk = _primary_key(self._lookups[comp.lookup].model)
                columns.append(getattr(entity, pk).label(f"{comp.name}__pk"))
                for field in comp.fields:
                    columns.append(
                        getattr(entity, field).label(f"{comp.name}__{field}")
                    )
                continue

            if isinstance(comp, Expression):
                label = comp.expr.label(comp.name)
            else:
                label = self._aggregate(comp, joined).label(comp.name)
            columns.append(label)
            computed_labels[comp.name] = label

        stmt = select(*columns).select_from(self.model)
        for entity, onclause in joins:
            stmt = stmt.outerjoin(entity, onclause)

        clauses = list(self._where)
        for vis in self._visibility:
            target = self.model if vis.lookup is None else joined[vis.lookup]
            published = getattr(target, vis.published_field).is_(True)
            if vis.actor_id is None:
                clauses.append(published)
            else:
                owner = getattr(target, vis.owner_field) == vis.actor_id
                clauses.append(or_(published, owner))
        if clauses:
            stmt = stmt.where(*clauses)

        stmt = stmt.order_by(*self._ordering(computed_labels))

        if window is not None:
            # One extra row tells the caller whether another page exists
            stmt = stmt.offset(window.offset).limit(window.limit + 1)
        return stmt

    def _aggregate(self, comp: Size | Contains | Total, joined: dict[str, Any]):
        lk = self._lookups[comp.lookup]
        # Fresh alias per subquery so it never correlates with the outer joins
        related = aliased(lk.model)
        local = self._resolve_local(lk.local_field, joined)
        onclause = getattr(related, lk.foreign_field) == local

        if isinstance(comp, Size):
            return (
                select(func.count())
                .select_from(related)
                .where(onclause)
                .scalar_subquery()
            )
        if isinstance(comp, Total):
            return (
                select(func.coalesce(func.sum(getattr(related, comp.field)), 0))
                .where(onclause)
                .scalar_subquery()
            )
        if comp.value is None:
            return literal(False)
        return (
            select(getattr(related, _primary_key(lk.model)))
            .where(onclause, getattr(related, comp.field) == comp.value)
            .exists()
        )

    def _ordering(self, computed_labels: dict[str, ColumnElement]) -> list:
        id_column = self._base_column(_primary_key(self.model))
        if self._sort is None:
            return [id_column.asc()]

        key, descending = self._sort
        if key in computed_labels:
            expr = computed_labels[key]
        else:
            expr = self._base_column(key)
        if descending:
            return [expr.desc(), id_column.desc()]
        return [expr.asc(), id_column.asc()]

    def _projection(self) -> tuple[str, ...]:
        if self._project:
            return self._project
        return tuple(col.key for col in inspect(self.model).columns)

    def _resolve_local(self, ref: str, joined: dict[str, Any]):
        if "." not in ref:
            return self._base_column(ref)
        alias, field = ref.split(".", 1)
        if alias not in joined:
            raise ValueError(
                f"Lookup field {ref!r} must start from an earlier first-element lookup"
            )
        return getattr(joined[alias], field)

    def _base_column(self, name: str):
        column = getattr(self.model, name, None)
        if column is None:
            raise ValueError(f"{self.model.__name__} has no field {name!r}")
        return column

    def _require_lookup(self, alias: str) -> Lookup:
        try:
            return self._lookups[alias]
        except KeyError:
            raise ValueError(f"Unknown lookup alias: {alias}") from None

    # -- execution ---------------------------------------------------------

    def _shape(self, mapping) -> dict[str, Any]:
        record = {field: mapping[field] for field in self._projection()}
        for comp in self._computed:
            if isinstance(comp, First):
                if mapping[f"{comp.name}__pk"] is None:
                    record[comp.name] = None
                else:
                    record[comp.name] = {
                        field: mapping[f"{comp.name}__{field}"] for field in comp.fields
                    }
            elif isinstance(comp, Contains):
                record[comp.name] = bool(mapping[comp.name])
            elif isinstance(comp, Size):
                record[comp.name] = int(mapping[comp.name] or 0)
            else:
                record[comp.name] = mapping[comp.name]
        return record

    async def fetch(
        self, db: AsyncSession, window: PageParams | None = None
    ) -> list[dict[str, Any]]:
        """Run the view once and return the shaped records in order."""
        stmt = self.build(window)
        async with store_guard(db, ReadFailed, f"load {self.model.__tablename__}"):
            result = await db.execute(stmt)
            rows = result.all()
        return [self._shape(row._mapping) for row in rows]

    async def fetch_one(self, db: AsyncSession) -> dict[str, Any] | None:
        rows = await self.fetch(db, PageParams(page=1, limit=1))
        return rows[0] if rows else None

    async def paginate(self, db: AsyncSession, params: PageParams) -> Page:
        """Run the view with ``params`` as its final stage."""
        rows = await self.fetch(db, params)
        return make_page(rows, params)


def _primary_key(model: type) -> str:
    return inspect(model).primary_key[0].key
