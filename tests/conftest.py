"""Root-level pytest fixtures for all tests.

Provides shared fixtures:
- Database fixtures (in-memory and file-based SQLite)
- Artifact store rooted in a temporary directory
- Factories for accounts, approved partners and catalog items
"""

import os
import tempfile
from collections.abc import Callable, Generator
from pathlib import Path

# Settings are cached on first import; point storage at a scratch directory first.
os.environ.setdefault("MEALPATH_DATA_DIR", tempfile.mkdtemp(prefix="mealpath-tests-"))
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from mealpath.db.connection import configure_sqlite
from mealpath.db.models import (
    Account,
    AccountRole,
    ApprovalStatus,
    Base,
    CatalogItem,
    PartnerProfile,
)
from mealpath.services.actors import Actor
from mealpath.services.artifact_store import LocalArtifactStore
from mealpath.services.credentials import hash_password

# Credential shared by every fixture account, hashed once per session.
PASSWORD = "s3cret-pass"
PASSWORD_HASH = hash_password(PASSWORD)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests that take a long time to run"
    )


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """In-memory SQLite session for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def file_engine(tmp_path: Path) -> Generator[Engine, None, None]:
    """File-backed SQLite engine with the production pragmas.

    Needed wherever separate connections must contend for the same rows.
    """
    engine = create_engine(
        f"sqlite:///{tmp_path / 'mealpath-test.db'}",
        connect_args={"check_same_thread": False},
    )
    event.listen(engine, "connect", configure_sqlite)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def artifact_store(tmp_path: Path) -> LocalArtifactStore:
    """Artifact store writing under a temporary uploads directory."""
    return LocalArtifactStore(tmp_path / "uploads", retry_delay=0)


@pytest.fixture
def make_account(db: Session) -> Callable[..., Account]:
    """Factory creating committed accounts with unique contact details."""
    counter = {"n": 0}

    def _make(role: str = AccountRole.client.value, **overrides) -> Account:
        counter["n"] += 1
        n = counter["n"]
        fields = {
            "name": f"User {n}",
            "email": f"user{n}@example.com",
            "phone": f"+23760000{n:04d}",
            "password_hash": PASSWORD_HASH,
            "role": role,
        }
        fields.update(overrides)
        account = Account(**fields)
        db.add(account)
        db.commit()
        db.refresh(account)
        return account

    return _make


@pytest.fixture
def make_partner(db: Session, make_account) -> Callable[..., PartnerProfile]:
    """Factory creating a partner account plus its profile."""

    def _make(
        business_name: str = "Chez Wou",
        approval: str = ApprovalStatus.approved.value,
    ) -> PartnerProfile:
        account = make_account(role=AccountRole.partner.value)
        profile = PartnerProfile(
            account_id=account.id,
            business_name=business_name,
            description="Local dishes",
            bank_account="CM21 0001",
            approval=approval,
        )
        profile.categories = ["Local Meals"]
        db.add(profile)
        db.commit()
        db.refresh(profile)
        return profile

    return _make


@pytest.fixture
def make_item(db: Session, make_partner) -> Callable[..., CatalogItem]:
    """Factory creating catalog items owned by one shared partner."""
    owner: dict[str, str] = {}

    def _make(name: str = "Ndole", price: int = 500, stock: int | None = 5) -> CatalogItem:
        if "id" not in owner:
            owner["id"] = make_partner().account_id
        item = CatalogItem(
            partner_account_id=owner["id"], name=name, price=price, stock=stock
        )
        db.add(item)
        db.commit()
        db.refresh(item)
        return item

    return _make


@pytest.fixture
def actor_of() -> Callable[[Account], Actor]:
    """Build the Actor acting as a given account."""

    def _actor(account: Account) -> Actor:
        return Actor(account_id=account.id, role=account.role)

    return _actor


@pytest.fixture
def admin(make_account, actor_of) -> Actor:
    """Actor for a freshly created admin account."""
    return actor_of(make_account(role=AccountRole.admin.value))
