# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from datetime import UTC, datetime, timedelta
from itertools import count

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-lumina")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.pop("ASSISTANT_API_KEY", None)
os.environ.pop("CONTENT_STORE_URL", None)

from lumina.core.security import create_access_token
from lumina.core.settings import GovernanceSettings
from lumina.db.session import Base
from lumina.db.session import get_db as app_get_session
from lumina.domain import Category, Post, PostStatus, User, UserRole, new_id
from lumina.main import app as fastapi_app
from lumina.repositories import MemoryContentStore, SqlContentStore
from lumina.services.workflow import PublicationWorkflow

TEST_DB_URL = "sqlite://"

_CLOCK_TICKS = count(1)
EPOCH = datetime(2025, 1, 1, tzinfo=UTC)


def build_article(words: int = 320, sentences: int = 12, heading: bool = True) -> str:
    """Return an HTML body with the given shape.

    ``words`` counts every whitespace-separated token, heading text included.
    """
    parts = ["<h2>Overview</h2>"] if heading else []
    remaining = words - (1 if heading else 0)
    per_sentence = max(1, remaining // sentences)
    body: list[str] = []
    for index in range(sentences):
        size = per_sentence if index < sentences - 1 else remaining - per_sentence * (sentences - 1)
        body.append(" ".join(["word"] * max(1, size)) + ".")
    parts.append("<p>" + " ".join(body) + "</p>")
    return "".join(parts)


@pytest.fixture(scope="session")
def article() -> Callable[..., str]:
    """Factory for manuscript bodies; the default passes the submission gate."""
    return build_article


@pytest.fixture()
def clock() -> Callable[[], datetime]:
    """Strictly increasing clock so ordering by timestamp is deterministic."""

    def _tick() -> datetime:
        return EPOCH + timedelta(seconds=next(_CLOCK_TICKS))

    return _tick


@pytest.fixture(scope="session")
def governance() -> GovernanceSettings:
    return GovernanceSettings()


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()

        # Stores commit on every save; wipe rows so each test starts clean.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def sql_store(db_session: Session) -> SqlContentStore:
    return SqlContentStore(db_session)


@pytest.fixture()
def memory_store() -> MemoryContentStore:
    return MemoryContentStore()


@pytest.fixture()
def workflow(
    memory_store: MemoryContentStore,
    governance: GovernanceSettings,
    clock: Callable[[], datetime],
) -> PublicationWorkflow:
    """Workflow engine over an in-memory store."""
    return PublicationWorkflow(memory_store, governance, clock=clock)


def _make_user(store, name: str, role: UserRole, **fields) -> User:
    user = User(
        id=new_id(),
        email=f"{name.lower().replace(' ', '.')}@lumina.test",
        name=name,
        role=role,
        **fields,
    )
    store.save_user(user)
    return user


@pytest.fixture()
def make_user() -> Callable[..., User]:
    """Persist a user in the given store: ``make_user(store, name, role, **fields)``."""
    return _make_user


@pytest.fixture()
def make_post(clock: Callable[[], datetime]) -> Callable[..., Post]:
    """Persist a post directly in a store, bypassing the workflow."""

    def _make_post(store, author: User, status: PostStatus = PostStatus.DRAFT, **fields) -> Post:
        now = clock()
        values = {
            "title": "A Study of Light",
            "slug": "a-study-of-light",
            "content": build_article(),
            "category": Category.ENGINEERING,
            "created_at": now,
            "updated_at": now,
        }
        values.update(fields)
        post = Post(
            id=new_id(),
            author_id=author.id,
            author_name=author.name,
            status=status,
            **values,
        )
        store.save_post(post)
        return post

    return _make_post


# Accounts persisted in the SQL store used by the API tests.


@pytest.fixture()
def admin_user(sql_store: SqlContentStore) -> User:
    return _make_user(sql_store, "Platform Overseer", UserRole.ADMIN, is_approved=True)


@pytest.fixture()
def author_user(sql_store: SqlContentStore) -> User:
    return _make_user(sql_store, "Ada Verified", UserRole.AUTHOR, is_approved=True)


@pytest.fixture()
def pending_author(sql_store: SqlContentStore) -> User:
    return _make_user(sql_store, "Nova Pending", UserRole.AUTHOR)


@pytest.fixture()
def reader_user(sql_store: SqlContentStore) -> User:
    return _make_user(sql_store, "Rhea Reader", UserRole.READER)


def _headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture()
def admin_headers(admin_user: User) -> dict[str, str]:
    """Return authorization headers for the administrator."""
    return _headers(admin_user)


@pytest.fixture()
def author_headers(author_user: User) -> dict[str, str]:
    """Return authorization headers for the verified author."""
    return _headers(author_user)


@pytest.fixture()
def pending_headers(pending_author: User) -> dict[str, str]:
    return _headers(pending_author)


@pytest.fixture()
def reader_headers(reader_user: User) -> dict[str, str]:
    return _headers(reader_user)
