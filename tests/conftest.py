"""Pytest configuration and fixtures."""

import json
from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from streamlog.database.client import session_context
from streamlog.database.schema import Base, StreamMeta, StreamRecord, create_all


def _add_record(session, record_id, created, meta=None, **columns):
    row = StreamRecord(
        ID=record_id,
        site_id=columns.pop("site_id", 1),
        blog_id=columns.pop("blog_id", 1),
        object_id=columns.pop("object_id", None),
        user_id=columns.pop("user_id", 0),
        user_role=columns.pop("user_role", ""),
        summary=columns.pop("summary", ""),
        created=created,
        connector=columns.pop("connector", "posts"),
        context=columns.pop("context", "post"),
        action=columns.pop("action", "updated"),
        ip=columns.pop("ip", None),
    )
    session.add(row)
    for key, value in meta or []:
        session.add(StreamMeta(record_id=record_id, meta_key=key, meta_value=value))
    return row


def seed_records(session) -> None:
    """Three records across two authors, two connectors and three days."""
    _add_record(
        session,
        1,
        datetime(2015, 1, 1, 10, 0, 0),
        user_id=1,
        user_role="administrator",
        summary="Post updated",
        connector="posts",
        context="post",
        action="updated",
        ip="10.0.0.1",
    )
    _add_record(
        session,
        2,
        datetime(2015, 1, 2, 12, 0, 0),
        meta=[
            ("author_meta", json.dumps({"user_login": "editor1", "user_email": "editor1@example.com"})),
            ("user_agent", "curl/8.0"),
            ("tag", "a"),
            ("tag", "b"),
        ],
        user_id=2,
        user_role="editor",
        summary="editor1 logged in",
        connector="users",
        context="sessions",
        action="login",
        ip="10.0.0.2",
    )
    _add_record(
        session,
        3,
        datetime(2015, 1, 3, 9, 0, 0),
        user_id=1,
        user_role="administrator",
        summary='Page "Hello" created',
        connector="posts",
        context="page",
        action="created",
        ip="10.0.0.3",
    )
    session.commit()


@pytest.fixture
def session():
    """Create a temporary in-memory database session for testing."""
    engine = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(engine)

    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()

    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def seeded_session(session):
    seed_records(session)
    return session


@pytest.fixture
def empty_db(tmp_path):
    """SQLite file with the Stream tables and no rows."""
    url = f"sqlite:///{tmp_path / 'stream.db'}"
    create_all(url)
    return url


@pytest.fixture
def stream_db(empty_db):
    """SQLite file with the Stream tables and three records."""
    with session_context(empty_db) as session:
        seed_records(session)
    return empty_db


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    """Keep a developer's streamlog.config.yaml out of the tests."""
    monkeypatch.chdir(tmp_path)
