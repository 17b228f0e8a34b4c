"""Entity store: the contract the lifecycle core requires from the database.

Every mutating call is one statement. Outside ``atomic()`` each statement
commits on its own; inside it, statements are flushed and committed together
when the outermost block exits. Change events are queued per statement and
published to the change bus only after a successful commit.
"""

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional, Sequence, Type, TypeVar

from sqlalchemy import UniqueConstraint, delete as sa_delete, func, update as sa_update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, SQLModel, col, select

from poolift.errors import ConstraintViolation, NotFound
from poolift.realtime import DELETE, INSERT, UPDATE, ChangeBus, ChangeEvent
from poolift.utils.dt import utcnow

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=SQLModel)


def _constraint_name(model: Type[SQLModel], exc: IntegrityError) -> str:
    """Name the constraint an IntegrityError came from.

    PostgreSQL reports the constraint name, SQLite only the qualified columns
    ("UNIQUE constraint failed: votes.proposal_id, votes.voter_name").
    """
    text = str(exc.orig)
    table = model.__table__
    candidates = []
    for constraint in table.constraints:
        if isinstance(constraint, UniqueConstraint):
            candidates.append((constraint.name, [c.name for c in constraint.columns]))
    for index in table.indexes:
        if index.unique:
            candidates.append((index.name, [c.name for c in index.columns]))
    candidates.sort(key=lambda c: len(c[1]), reverse=True)

    for name, columns in candidates:
        fallback = f"uq_{table.name}_{'_'.join(columns)}"
        if name and name in text:
            return name
        if ", ".join(f"{table.name}.{c}" for c in columns) in text:
            return name or fallback
    if "FOREIGN KEY" in text.upper():
        return "foreign_key"
    return "unknown"


class EntityStore:
    def __init__(self, session: Session, bus: Optional[ChangeBus] = None):
        self.session = session
        self.bus = bus
        self._depth = 0
        self._pending: list[ChangeEvent] = []

    # --- Transactions ---

    @contextmanager
    def atomic(self) -> Iterator["EntityStore"]:
        """Group statements into one transaction. Nested blocks join the outer one."""
        self._depth += 1
        try:
            yield self
        except BaseException:
            self._depth -= 1
            if self._depth == 0:
                self._rollback()
            raise
        self._depth -= 1
        if self._depth == 0:
            self._commit()

    def _commit(self) -> None:
        try:
            self.session.commit()
        except Exception:
            self._rollback()
            raise
        events, self._pending = self._pending, []
        if self.bus is not None and events:
            self.bus.publish(events)

    def _rollback(self) -> None:
        self.session.rollback()
        self._pending.clear()

    def _finish(self) -> None:
        if self._depth == 0:
            self._commit()
        else:
            self.session.flush()

    def _record(self, kind: str, obj: SQLModel) -> None:
        self._pending.append(
            ChangeEvent(obj.__tablename__, kind, obj.model_dump(mode="json"))
        )

    # --- Writes ---

    def insert(self, obj: M) -> M:
        return self.insert_many([obj])[0]

    def insert_many(self, objs: Sequence[M]) -> Sequence[M]:
        if not objs:
            return objs
        self.session.add_all(objs)
        try:
            self.session.flush()
        except IntegrityError as exc:
            self._rollback()
            name = _constraint_name(type(objs[0]), exc)
            logger.debug("Insert into %s rejected by %s", objs[0].__tablename__, name)
            raise ConstraintViolation(name) from exc
        for obj in objs:
            self._record(INSERT, obj)
        self._finish()
        return objs

    def update(self, model: Type[M], *where: Any, patch: dict[str, Any]) -> int:
        """Conditional update. Returns the number of rows the store actually changed."""
        values = dict(patch)
        if "updated_at" in model.model_fields:
            values.setdefault("updated_at", utcnow())

        ids = self.session.exec(select(model.id).where(*where)).all()
        try:
            result = self.session.execute(sa_update(model).where(*where).values(**values))
        except IntegrityError as exc:
            self._rollback()
            raise ConstraintViolation(_constraint_name(model, exc)) from exc
        affected = result.rowcount

        if affected and ids:
            rows = self.session.exec(
                select(model)
                .where(col(model.id).in_(ids))
                .execution_options(populate_existing=True)
            ).all()
            for row in rows:
                self._record(UPDATE, row)
        self._finish()
        return affected

    def delete(self, model: Type[M], *where: Any) -> int:
        doomed = [
            row.model_dump(mode="json")
            for row in self.session.exec(select(model).where(*where)).all()
        ]
        try:
            result = self.session.execute(sa_delete(model).where(*where))
        except IntegrityError as exc:
            self._rollback()
            raise ConstraintViolation(_constraint_name(model, exc)) from exc
        affected = result.rowcount

        if affected:
            for row in doomed:
                self._pending.append(ChangeEvent(model.__tablename__, DELETE, row))
        self._finish()
        return affected

    # --- Reads ---

    def select(self, model: Type[M], *where: Any, order_by: Any = None) -> list[M]:
        statement = select(model).where(*where)
        if order_by is not None:
            statement = statement.order_by(order_by)
        return list(self.session.exec(statement.execution_options(populate_existing=True)).all())

    def select_one(self, model: Type[M], *where: Any, entity: Optional[str] = None) -> M:
        row = self.session.exec(
            select(model).where(*where).execution_options(populate_existing=True)
        ).first()
        if row is None:
            raise NotFound(entity or model.__name__)
        return row

    def get(self, model: Type[M], row_id: Any, entity: Optional[str] = None) -> M:
        return self.select_one(model, model.id == row_id, entity=entity)

    def exists(self, model: Type[SQLModel], *where: Any) -> bool:
        return self.count(model, *where) > 0

    def count(self, model: Type[SQLModel], *where: Any) -> int:
        return self.session.exec(
            select(func.count()).select_from(model).where(*where)
        ).one()
