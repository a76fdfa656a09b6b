from __future__ import annotations

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from models import Base, StudentProfile, University, User


@pytest.fixture()
def db():
    engine = create_engine("sqlite://")

    # pysqlite needs explicit BEGIN for SAVEPOINT support.
    @event.listens_for(engine, "connect")
    def _connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine, expire_on_commit=False)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture()
def make_student(db):
    def _make(email: str = "student@example.com", **profile_fields) -> User:
        user = User(role="student", email=email)
        db.add(user)
        db.flush()
        db.add(StudentProfile(user_id=user.id, **profile_fields))
        db.flush()
        return user

    return _make


@pytest.fixture()
def make_university(db):
    def _make(name: str, country: str = "United States", **fields) -> University:
        university = University(name=name, country=country, **fields)
        db.add(university)
        db.flush()
        return university

    return _make


@pytest.fixture(autouse=True)
def _clean_match_env(monkeypatch):
    for name in ("MATCH_MODEL_VERSION", "MATCH_DEADLINE_SECONDS", "MATCH_WEIGHTS"):
        monkeypatch.delenv(name, raising=False)
