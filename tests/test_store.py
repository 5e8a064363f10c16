"""SqlRegistrationStore against a throwaway sqlite database."""
from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from app.regdesk.models import Base, Registration
from app.regdesk.service import submit_registration
from app.regdesk.store import SqlRegistrationStore, StoreError

T0 = datetime(2026, 5, 10, 9, 0, 0)


@pytest.fixture()
def session(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path/'store.db'}", future=True)
    Base.metadata.create_all(bind=engine)
    sm = sessionmaker(bind=engine, class_=Session, autoflush=False, expire_on_commit=False, future=True)
    s = sm()
    yield s
    s.close()
    engine.dispose()


@pytest.fixture()
def store(session):
    return SqlRegistrationStore(session_factory=lambda: session)


def _reg(email, phone, created_at, name="Jo"):
    return Registration(name=name, phone=phone, email=email, city="", address="", created_at=created_at)


def test_insert_assigns_identity_and_counts(store):
    r = store.insert(_reg("a@b.com", "1234567", T0))
    assert r.id is not None
    assert store.count() == 1


def test_find_duplicate_matches_email_or_phone_inside_window(store):
    store.insert(_reg("a@b.com", "1234567", T0))
    since = T0 - timedelta(days=1)

    assert store.find_duplicate(email="a@b.com", phone="0000000", since=since) is not None
    assert store.find_duplicate(email="x@y.com", phone="1234567", since=since) is not None
    assert store.find_duplicate(email="x@y.com", phone="0000000", since=since) is None
    # window starts after the record
    assert store.find_duplicate(email="a@b.com", phone="1234567", since=T0 + timedelta(seconds=1)) is None
    # inclusive at the cutoff
    assert store.find_duplicate(email="a@b.com", phone="1234567", since=T0) is not None


def test_find_orders_newest_first_with_id_tiebreak(store):
    store.insert(_reg("old@b.com", "1000001", T0))
    store.insert(_reg("tie1@b.com", "1000002", T0 + timedelta(hours=1)))
    store.insert(_reg("tie2@b.com", "1000003", T0 + timedelta(hours=1)))

    emails = [r.email for r in store.find()]
    assert emails == ["tie2@b.com", "tie1@b.com", "old@b.com"]

    assert [r.email for r in store.find(skip=1, limit=1)] == ["tie1@b.com"]
    assert store.find(skip=5, limit=10) == []


def test_service_round_trip_on_sql(store):
    submit_registration(store, {"name": "Jo", "phone": "1234567", "email": "A@B.com"}, now=T0)
    row = store.find()[0]
    assert row.email == "a@b.com"
    assert row.created_at == T0


def test_sqlalchemy_errors_become_store_errors(tmp_path):
    # no tables created
    engine = create_engine(f"sqlite:///{tmp_path/'empty.db'}", future=True)
    s = Session(bind=engine, future=True)
    bare = SqlRegistrationStore(session_factory=lambda: s)
    try:
        with pytest.raises(StoreError):
            bare.count()
        with pytest.raises(StoreError):
            bare.insert(_reg("a@b.com", "1234567", T0))
    finally:
        s.close()
        engine.dispose()
