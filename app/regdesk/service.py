from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from app.regdesk.errors import DuplicateError, ValidationError
from app.regdesk.models import Registration, isoformat_utc, utcnow
from app.regdesk.store import RegistrationStore
from app.regdesk.validation import validate_registration

logger = logging.getLogger(__name__)

DUPLICATE_WINDOW = timedelta(days=30)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20

CSV_HEADER = "Name,Phone,Email,City,Address,Date"


def _clean(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def normalize_registration(payload: dict) -> dict[str, str]:
    """Trim every field and lowercase the email, as stored."""
    return {
        "name": _clean(payload.get("name")),
        "phone": _clean(payload.get("phone")),
        "email": _clean(payload.get("email")).lower(),
        "city": _clean(payload.get("city")),
        "address": _clean(payload.get("address")),
    }


def submit_registration(store: RegistrationStore, payload: dict, *, now: datetime | None = None) -> Registration:
    """
    Accept a public submission.

    Raises ValidationError on malformed input and DuplicateError when the same
    email or phone registered within DUPLICATE_WINDOW. The lookup and the
    insert are separate store calls; two concurrent submissions can both pass.
    """
    fields = normalize_registration(payload)
    # Re-check after trimming: "   " passes the raw rules but stores as "".
    errors = validate_registration(payload) or validate_registration(fields)
    if errors:
        raise ValidationError(", ".join(errors))

    now = now or utcnow()
    cutoff = now - DUPLICATE_WINDOW

    existing = store.find_duplicate(email=fields["email"], phone=fields["phone"], since=cutoff)
    if existing is not None:
        logger.info("Duplicate registration rejected (existing id=%s created_at=%s)", existing.id, existing.created_at)
        raise DuplicateError()

    registration = store.insert(Registration(created_at=now, **fields))
    logger.info("Registration saved id=%s", registration.id)
    return registration


def parse_positive_int(raw: Any, default: int) -> int:
    """Query-string integer >= 1; anything else falls back to `default`."""
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return default
    return value if value >= 1 else default


@dataclass(frozen=True)
class Page:
    data: list[Registration] = field(default_factory=list)
    total: int = 0
    page: int = DEFAULT_PAGE
    pages: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "data": [r.to_dict() for r in self.data],
            "total": self.total,
            "page": self.page,
            "pages": self.pages,
        }


def list_registrations(store: RegistrationStore, page: Any = None, limit: Any = None) -> Page:
    """
    Newest-first page of registrations. `limit` has no upper bound.
    Pages past the end come back empty and skip the `find` call entirely.
    """
    page = parse_positive_int(page, DEFAULT_PAGE)
    limit = parse_positive_int(limit, DEFAULT_LIMIT)
    skip = (page - 1) * limit

    total = store.count()
    pages = -(-total // limit)
    if skip >= total:
        return Page(data=[], total=total, page=page, pages=pages)

    data = store.find(skip=skip, limit=min(limit, total - skip))
    return Page(data=data, total=total, page=page, pages=pages)


def export_registrations_csv(store: RegistrationStore) -> str:
    """
    All registrations as CSV, newest first.
    Every cell is quoted; embedded quotes are doubled.
    """
    rows = store.find()

    out = io.StringIO()
    out.write(CSV_HEADER + "\n")
    w = csv.writer(out, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for r in rows:
        w.writerow(
            [
                r.name,
                r.phone,
                r.email,
                r.city or "",
                r.address or "",
                isoformat_utc(r.created_at),
            ]
        )
    logger.info("CSV export row_count=%s", len(rows))
    return out.getvalue()
