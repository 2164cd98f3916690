from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from typing import Any, Generic, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from app.platform.errors import ConflictError, InfrastructureError, NotFoundError
from app.platform.query import PageRequest, SortConfig, TenantQueryBuilder, in_ids


logger = logging.getLogger("app.repository")

ModelT = TypeVar("ModelT")


@contextmanager
def store_errors(session: Session, op: str, *, conflict_message: str | None = None) -> Iterator[None]:
    """Translate driver failures raised inside the block into domain errors.

    Domain errors raised inside the block pass through untouched. The session
    is rolled back before any translated error leaves the block.
    """

    try:
        yield
    except IntegrityError as exc:
        session.rollback()
        if conflict_message is not None:
            raise ConflictError(conflict_message, op=op) from exc
        logger.exception("store.integrity_error", extra={"op": op})
        raise InfrastructureError("database constraint violated", op=op, cause=exc) from exc
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("store.error", extra={"op": op})
        raise InfrastructureError("database operation failed", op=op, cause=exc) from exc


class TenantRepository(Generic[ModelT]):
    resource = ""
    not_found_message = "record not found"

    def __init__(self, model: type[ModelT], sort: SortConfig) -> None:
        self.model = model
        self.query = TenantQueryBuilder(model, sort)

    def find(self, session: Session, tenant_id: str, record_id: Any) -> ModelT | None:
        stmt = self.query.scoped(tenant_id).where(self.model.id == record_id)  # type: ignore[attr-defined]
        with store_errors(session, f"get {self.resource}"):
            return session.scalar(stmt)

    def get(self, session: Session, tenant_id: str, record_id: Any) -> ModelT:
        record = self.find(session, tenant_id, record_id)
        if record is None:
            raise NotFoundError(self.not_found_message)
        return record

    def get_many(self, session: Session, tenant_id: str, record_ids: Sequence[Any]) -> list[ModelT]:
        stmt = self.query.scoped(tenant_id).where(in_ids(self.model.id, record_ids))  # type: ignore[attr-defined]
        with store_errors(session, f"get {self.resource}"):
            return list(session.scalars(stmt).all())

    def list(
        self,
        session: Session,
        tenant_id: str,
        *,
        filters: Iterable[ColumnElement[bool]] = (),
        sort_by: str | None = None,
        sort_order: str | None = None,
        page: PageRequest | None = None,
    ) -> tuple[list[ModelT], int]:
        statements = self.query.build(
            tenant_id,
            filters=filters,
            sort_by=sort_by,
            sort_order=sort_order,
            page=page,
        )
        with store_errors(session, f"list {self.resource}"):
            total = session.scalar(statements.count) or 0
            items = list(session.scalars(statements.page).all())
        return items, int(total)

    def add(self, session: Session, record: ModelT, *, conflict_message: str | None = None) -> ModelT:
        with store_errors(session, f"create {self.resource}", conflict_message=conflict_message):
            session.add(record)
            session.flush()
        return record

    def delete(self, session: Session, record: ModelT, *, conflict_message: str | None = None) -> None:
        with store_errors(session, f"delete {self.resource}", conflict_message=conflict_message):
            session.delete(record)
            session.flush()
