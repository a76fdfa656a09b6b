import logging
import os
from contextlib import contextmanager
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

import streamlit as st
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

import config  # noqa: F401  loads .env
from models import Base

logger = logging.getLogger(__name__)

# Local dashboard runs without a configured server.
DEFAULT_DATABASE_URL = "sqlite:///university_matches.db"

LOCAL_HOSTS = {"localhost", "127.0.0.1", ""}


def normalize_database_url(database_url: str) -> str:
    """Pin PostgreSQL URLs to psycopg2 and require SSL for remote hosts.

    Heroku-style ``postgres://`` URLs are rewritten. Other schemes pass
    through untouched.
    """
    url = database_url.strip().strip("\"'")
    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            url = "postgresql+psycopg2://" + url[len(prefix):]
            break

    parsed = urlparse(url)
    if not parsed.scheme.startswith("postgresql") or (parsed.hostname or "").lower() in LOCAL_HOSTS:
        return url
    query = dict(parse_qsl(parsed.query, keep_blank_values=True))
    query.setdefault("sslmode", "require")
    return urlunparse(parsed._replace(query=urlencode(query)))


def resolve_database_url() -> str:
    configured = os.getenv("DATABASE_URL", "").strip()
    if configured:
        return normalize_database_url(configured)
    logger.warning("DATABASE_URL is not set; using %s", DEFAULT_DATABASE_URL)
    return DEFAULT_DATABASE_URL


def create_db_engine(database_url: str) -> Engine:
    if database_url.startswith("sqlite"):
        # Streamlit reruns scripts on worker threads.
        return create_engine(database_url, connect_args={"check_same_thread": False})
    return create_engine(database_url, pool_pre_ping=True)


@st.cache_resource
def get_engine() -> Engine:
    return create_db_engine(resolve_database_url())


@st.cache_resource
def get_session_factory() -> sessionmaker:
    # Match rows are rendered after the session closes.
    return sessionmaker(bind=get_engine(), autoflush=False, expire_on_commit=False)


@contextmanager
def db_session() -> Session:
    session: Session = get_session_factory()()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_schema() -> None:
    Base.metadata.create_all(bind=get_engine())
