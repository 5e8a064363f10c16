from __future__ import annotations

import itertools
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.regdesk.models import Registration


class StoreError(RuntimeError):
    pass


class RegistrationStore:
    """
    Persistence seam used by the services. Everything the services need
    from the database goes through these four calls.
    """

    def find_duplicate(self, *, email: str, phone: str, since: datetime) -> Registration | None:
        raise NotImplementedError

    def find(self, *, skip: int = 0, limit: int | None = None) -> list[Registration]:
        raise NotImplementedError

    def count(self) -> int:
        raise NotImplementedError

    def insert(self, registration: Registration) -> Registration:
        raise NotImplementedError


@dataclass(frozen=True)
class SqlRegistrationStore(RegistrationStore):
    session_factory: Callable[[], Session]

    def _query(self, stmt, what: str):
        s = self.session_factory()
        try:
            return s.execute(stmt)
        except SQLAlchemyError as e:
            s.rollback()
            raise StoreError(f"{what} failed: {e}") from e

    def find_duplicate(self, *, email: str, phone: str, since: datetime) -> Registration | None:
        stmt = (
            select(Registration)
            .where(or_(Registration.email == email, Registration.phone == phone))
            .where(Registration.created_at >= since)
            .limit(1)
        )
        return self._query(stmt, "duplicate lookup").scalars().first()

    def find(self, *, skip: int = 0, limit: int | None = None) -> list[Registration]:
        stmt = select(Registration).order_by(Registration.created_at.desc(), Registration.id.desc()).offset(skip)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self._query(stmt, "registration query").scalars().all())

    def count(self) -> int:
        return int(self._query(select(func.count(Registration.id)), "registration count").scalar_one())

    def insert(self, registration: Registration) -> Registration:
        s = self.session_factory()
        try:
            s.add(registration)
            s.commit()
        except SQLAlchemyError as e:
            s.rollback()
            raise StoreError(f"registration insert failed: {e}") from e
        return registration


@dataclass
class MemoryRegistrationStore(RegistrationStore):
    """In-process store for tests and local experiments. Not shared across processes."""

    rows: list[Registration] = field(default_factory=list)
    _ids: itertools.count = field(default_factory=lambda: itertools.count(1), repr=False)

    def find_duplicate(self, *, email: str, phone: str, since: datetime) -> Registration | None:
        for r in self.rows:
            if (r.email == email or r.phone == phone) and r.created_at >= since:
                return r
        return None

    def find(self, *, skip: int = 0, limit: int | None = None) -> list[Registration]:
        ordered = sorted(self.rows, key=lambda r: (r.created_at, r.id), reverse=True)
        end = None if limit is None else skip + limit
        return ordered[skip:end]

    def count(self) -> int:
        return len(self.rows)

    def insert(self, registration: Registration) -> Registration:
        registration.id = next(self._ids)
        self.rows.append(registration)
        return registration
