"""Self-service account profile reads and updates."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mealpath.db.models import Account
from mealpath.errors import DuplicateContactError, InvalidInputError, NotFoundError

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset({"name", "phone", "address"})


class AccountService:
    """Read and update the caller's own account."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get_account(self, account_id: str) -> Account:
        """Return the account or raise NotFoundError."""
        account = self.db.get(Account, account_id)
        if account is None:
            raise NotFoundError("Account", account_id)
        return account

    def update_profile(self, account_id: str, **fields) -> Account:
        """Update name, phone or address.

        Email, role, status and credentials are not editable here.

        Raises:
            InvalidInputError: Unknown field, or a blank name or phone.
            DuplicateContactError: The phone number belongs to another account.
        """
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise InvalidInputError(f"Unknown fields: {', '.join(sorted(unknown))}")

        account = self.get_account(account_id)
        for key in ("name", "phone"):
            if key in fields and (fields[key] is None or not fields[key].strip()):
                raise InvalidInputError(f"{key} cannot be blank", field=key)

        if "phone" in fields:
            phone = fields["phone"].strip()
            taken = (
                self.db.query(Account.id)
                .filter(Account.phone == phone, Account.id != account.id)
                .first()
            )
            if taken:
                raise DuplicateContactError("phone")
            account.phone = phone
        if "name" in fields:
            account.name = fields["name"].strip()
        if "address" in fields:
            address = (fields["address"] or "").strip()
            account.address = address or None

        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise DuplicateContactError("phone") from None
        self.db.refresh(account)
        logger.info("Updated profile for account %s (%s)", account.id, ", ".join(sorted(fields)))
        return account
