# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from roastr.api.v1.dependencies import get_clock
from roastr.core.security import create_access_token
from roastr.db.session import Base, use_immediate_transactions
from roastr.db.session import get_db as app_get_session
from roastr.main import app as fastapi_app
from roastr.models import Post, Tag, UserProfile, UserRole
from roastr.services import user_service
from roastr.services.posts import PostService
from roastr.services.tags import TagService

TEST_DB_URL = "sqlite://"


class FakeClock:
    """Deterministic, manually advanced time source."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


def doc(*paragraphs: str) -> dict[str, Any]:
    """Build an editor document with one plain paragraph per argument."""
    return {
        "type": "doc",
        "content": [
            {"type": "paragraph", "content": [{"type": "text", "text": text}]} if text
            else {"type": "paragraph"}
            for text in paragraphs
        ],
    }


def auth_headers(user: UserProfile) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    use_immediate_transactions(engine)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    # Services commit through unit_of_work, so tests run against real
    # transactions and wipe every table afterwards.
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 3, 15, 12, 0, tzinfo=UTC))


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_dependencies(app: FastAPI, db_session: Session, clock: FakeClock) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_clock] = lambda: clock
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(get_clock, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., UserProfile]:
    def _make_user(username: str, role: UserRole = UserRole.USER) -> UserProfile:
        return user_service.create_user(db_session, username, role=role)

    return _make_user


@pytest.fixture()
def test_user(make_user: Callable[..., UserProfile]) -> UserProfile:
    """Create and return a persisted regular user."""
    return make_user("roaster")


@pytest.fixture()
def other_user(make_user: Callable[..., UserProfile]) -> UserProfile:
    """Create and return a second regular user."""
    return make_user("heckler")


@pytest.fixture()
def moderator(make_user: Callable[..., UserProfile]) -> UserProfile:
    return make_user("mod", UserRole.MODERATOR)


@pytest.fixture()
def admin(make_user: Callable[..., UserProfile]) -> UserProfile:
    return make_user("admin", UserRole.ADMIN)


@pytest.fixture()
def superadmin(make_user: Callable[..., UserProfile]) -> UserProfile:
    return make_user("root", UserRole.SUPERADMIN)


@pytest.fixture()
def auth_token(test_user: UserProfile) -> dict[str, str]:
    """Return authorization headers for the primary test user."""
    return auth_headers(test_user)


@pytest.fixture()
def other_auth_token(other_user: UserProfile) -> dict[str, str]:
    """Return authorization headers for the secondary test user."""
    return auth_headers(other_user)


@pytest.fixture()
def tags(db_session: Session) -> dict[str, Tag]:
    """Seed the default catalog and index it by name."""
    TagService(db_session).seed_defaults()
    return {tag.name: tag for tag in TagService(db_session).list_tags()}


@pytest.fixture()
def make_post(
    db_session: Session,
    clock: FakeClock,
    tags: dict[str, Tag],
) -> Callable[..., Post]:
    def _make_post(
        author: UserProfile | None,
        *,
        title: str = "A roast",
        body: str = "You are the human version of a typo.",
        tag_names: tuple[str, ...] = ("Roast",),
        is_anonymous: bool = False,
        client_address: str | None = None,
    ) -> Post:
        return PostService(db_session, clock).create_post(
            title=title,
            content=doc(body),
            tag_ids=[tags[name].id for name in tag_names],
            author=author,
            is_anonymous=is_anonymous,
            client_address=client_address,
        )

    return _make_post


@pytest.fixture()
def test_post(make_post: Callable[..., Post], test_user: UserProfile) -> Post:
    """Create a baseline attributed post for tests."""
    return make_post(test_user)
