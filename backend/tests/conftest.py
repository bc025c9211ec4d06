"""Shared fixtures: in-memory SQLite for the sync store, Celery stubbed out."""
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from adminos import models  # noqa: F401  (registers tables)
from adminos.db.base import Base


@pytest.fixture
def engine():
    # StaticPool + check_same_thread=False: FastAPI runs sync handlers in a threadpool
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, expire_on_commit=False)()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def notify_delay():
    """Never reach a real broker; expose the mock for assertions."""
    with patch(
        "adminos.workers.notification_tasks.notify_workflow_update.delay",
        new=MagicMock(),
    ) as delay:
        yield delay
