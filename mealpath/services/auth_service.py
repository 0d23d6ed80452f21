"""Login and admin-account seeding."""

import logging

from sqlalchemy.orm import Session

from mealpath.config import get_settings
from mealpath.db.models import Account, AccountRole, AccountStatus
from mealpath.errors import ForbiddenError, InvalidInputError, UnauthorizedError
from mealpath.services.credentials import hash_password, issue_token, verify_password

logger = logging.getLogger(__name__)


class AuthService:
    """Credential checks against stored accounts."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def authenticate(self, email: str, password: str) -> tuple[Account, str]:
        """Verify credentials and issue an access token.

        Args:
            email: Account email (case-insensitive).
            password: Raw password.

        Returns:
            Tuple of (account, token).

        Raises:
            InvalidInputError: If either credential is missing.
            UnauthorizedError: If no account matches or the password is wrong.
            ForbiddenError: If the account is suspended.
        """
        if not email or not password:
            raise InvalidInputError("Email and password required")

        account = (
            self.db.query(Account)
            .filter(Account.email == email.strip().lower())
            .first()
        )
        if account is None or not verify_password(password, account.password_hash):
            raise UnauthorizedError("Invalid credentials")
        if account.status == AccountStatus.suspended.value:
            raise ForbiddenError("Account is suspended")

        return account, issue_token(account.id, account.role)


def seed_admin(db: Session) -> Account | None:
    """Create the configured admin account if it does not exist yet.

    Reads MEALPATH_ADMIN_EMAIL / MEALPATH_ADMIN_PASSWORD / MEALPATH_ADMIN_PHONE.
    Does nothing when email or password is unset.

    Returns:
        The existing or newly created admin account, or None.
    """
    settings = get_settings()
    if not settings.admin_email or not settings.admin_password:
        return None

    email = settings.admin_email.lower()
    existing = db.query(Account).filter(Account.email == email).first()
    if existing is not None:
        if existing.role != AccountRole.admin.value:
            logger.warning("Admin seed email %s belongs to a %s account", email, existing.role)
        return existing

    admin = Account(
        name="Administrator",
        email=email,
        phone=settings.admin_phone or "admin",
        password_hash=hash_password(settings.admin_password),
        role=AccountRole.admin.value,
        verified=True,
    )
    db.add(admin)
    db.commit()
    logger.info("Seeded admin account %s", email)
    return admin
