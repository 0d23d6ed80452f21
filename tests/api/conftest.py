"""Pytest fixtures for API tests.

Provides a TestClient bound to the in-memory test database and a
temporary artifact store, plus bearer-token headers per account.
"""

from collections.abc import Callable, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from mealpath.api.main import app
from mealpath.api.routes.auth import get_artifact_store
from mealpath.db.connection import get_db
from mealpath.db.models import Account
from mealpath.services.artifact_store import LocalArtifactStore
from mealpath.services.credentials import issue_token


@pytest.fixture
def client(db: Session, artifact_store: LocalArtifactStore) -> Generator[TestClient, None, None]:
    """Create a TestClient with overridden database and storage dependencies.

    Args:
        db: Test database session fixture.
        artifact_store: Temporary artifact store fixture.

    Yields:
        TestClient configured for testing.
    """

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_artifact_store] = lambda: artifact_store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> Callable[[Account], dict[str, str]]:
    """Build Authorization headers carrying a token for the given account."""

    def _headers(account: Account) -> dict[str, str]:
        return {"Authorization": f"Bearer {issue_token(account.id, account.role)}"}

    return _headers
