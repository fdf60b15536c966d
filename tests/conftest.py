"""Pytest fixtures for the order service tests."""

import os

# must be set before productshop.data.database builds its engine
os.environ.setdefault("DATABASE_URL", "sqlite://")

import threading
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from productshop.data import models  # noqa: F401
from productshop.data.database import Base
from productshop.data.models import MemberModel, ProductModel, ProductOptionModel
from productshop.domain.schemas import LineIn
from productshop.services.lock_service import LockService
from productshop.services.order_service import OrderService

T0 = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


class InMemoryLockService(LockService):
    """LockService with a dict instead of Redis; keeps the NX semantics."""

    def __init__(self, max_wait: float = 0.05):
        self.ttl = 30
        self.max_wait = max_wait
        self.held: dict[str, str] = {}
        self.acquired: list[str] = []
        self._mutex = threading.Lock()

    def acquire(self, key, owner, ttl):
        with self._mutex:
            if key in self.held:
                return False
            self.held[key] = owner
            self.acquired.append(key)
            return True

    def release(self, key, owner):
        with self._mutex:
            if self.held.get(key) != owner:
                return False
            del self.held[key]
            return True


class RecordingNotifier:
    def __init__(self):
        self.sent = []

    def send_order_notification(self, member_id, order_id, status):
        self.sent.append((member_id, order_id, status))


class FrozenClock:
    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


def load_catalog(session):
    """Two members and a small catalog.

    product A: 10000, stock 5, no options
    product B: 5000, stock 10, options M (+0, stock 5) and XL (+1000, stock 3)
    product C: 40000, stock 1
    """
    session.add_all(
        [
            MemberModel(id=1, name="Kim Minji", zip_code="04524", address="Seoul", phone="010-1111-2222"),
            MemberModel(id=2, name="Lee Jun", zip_code="48058", address="Busan", phone="010-3333-4444"),
        ]
    )
    a = ProductModel(title="Keyboard", category="ELECTRONICS", price=10000, stock=5)
    b = ProductModel(title="T-Shirt", category="CLOTHING", price=5000, stock=10)
    b.options = [
        ProductOptionModel(name="M", price=0, stock=5),
        ProductOptionModel(name="XL", price=1000, stock=3),
    ]
    c = ProductModel(title="Monitor", category="ELECTRONICS", price=40000, stock=1)
    session.add_all([a, b, c])
    session.commit()

    return SimpleNamespace(
        member_id=1,
        other_member_id=2,
        a=a.id,
        b=b.id,
        b_m=b.options[0].id,
        b_xl=b.options[1].id,
        c=c.id,
    )


@pytest.fixture
def catalog(db):
    return load_catalog(db)


@pytest.fixture
def file_sessions(tmp_path):
    """Session factory over a SQLite file, for tests that need separate connections."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'orders.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    opened = []

    def _open():
        session = sessionmaker(bind=engine, autoflush=False)()
        opened.append(session)
        return session

    yield _open
    for session in opened:
        session.close()
    engine.dispose()


@pytest.fixture
def lock_service():
    return InMemoryLockService()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def service(db, lock_service, notifier, clock):
    return OrderService(
        db=db,
        lock_service=lock_service,
        notification_service=notifier,
        clock=clock,
        return_window=timedelta(days=1),
    )


@pytest.fixture
def stock_of(db):
    """Read the committed stock of a product or option."""

    def _stock_of(model, row_id):
        db.expire_all()
        return db.get(model, row_id).stock

    return _stock_of


def line(product_id, quantity, option_id=None):
    return LineIn(product_id=product_id, option_id=option_id, quantity=quantity)
