"""Shared fixtures for tests: in-memory database, seeded rows and a TestClient bound to them."""

import unittest

from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from designfolio.core.config import Settings, get_settings
from designfolio.core.database import get_db
from designfolio.core.rate_limit import SlidingWindowRateLimiter, get_rate_limiter
from designfolio.core.security import TokenService, hash_password
from designfolio.main import app
from designfolio.models import Base, BlockMedia, Comment, Design, DesignBlock, DesignTag, Media, User

TEST_SECRET = "test-secret-key-for-designfolio-tests"
TEST_PASSWORD = "Str0ng!Pass"


def _enable_foreign_keys(dbapi_connection, _record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def make_session_factory() -> sessionmaker:
    """Fresh in-memory SQLite database with every table created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine, "connect", _enable_foreign_keys)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


def make_settings(**overrides: object) -> Settings:
    values = {
        "JWT_SECRET": TEST_SECRET,
        "DATABASE_URL": "sqlite://",
        "BCRYPT_ROUNDS": 4,
        "ADMIN_EMAILS": "",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def add_user(db: Session, username: str, email: str, role: str = "viewer", password: str = TEST_PASSWORD) -> User:
    user = User(username=username, email=email, password_hash=hash_password(password, 4), role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def add_design(db: Session, owner: User, title: str = "Poster") -> Design:
    design = Design(user_id=owner.id, title=title, class_year=2024)
    db.add(design)
    db.commit()
    db.refresh(design)
    return design


def add_content(db: Session, owner: User) -> dict[str, object]:
    """One row of every ownable kind, all owned by ``owner``."""
    design = add_design(db, owner)
    tag = DesignTag(design_id=design.id, name="Print", slug="print")
    block = DesignBlock(design_id=design.id, block_type="text", title="Intro", display_order=0)
    media = Media(user_id=owner.id, media_type="design_image", url="https://cdn.example.com/a.png")
    db.add_all([tag, block, media])
    db.commit()
    link = BlockMedia(design_block_id=block.id, media_id=media.id, display_order=0)
    comment = Comment(user_id=owner.id, design_id=design.id, comment_text="Nice")
    db.add_all([link, comment])
    db.commit()
    return {
        "design": design,
        "design_tag": tag,
        "design_block": block,
        "media": media,
        "block_media": link,
        "comment": comment,
    }


class ApiTestCase(unittest.TestCase):
    """TestClient over an isolated database, settings and rate limiter per test."""

    admin_emails = ""

    def setUp(self) -> None:
        self.Session = make_session_factory()
        self.db = self.Session()
        self.settings = make_settings(ADMIN_EMAILS=self.admin_emails)
        self.limiter = SlidingWindowRateLimiter()
        self.tokens = TokenService.from_settings(self.settings)

        def override_get_db():
            db = self.Session()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_settings] = lambda: self.settings
        app.dependency_overrides[get_rate_limiter] = lambda: self.limiter
        self.client = TestClient(app)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()
        self.db.close()

    def auth_header(self, user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.tokens.issue_access_token(user)}"}
