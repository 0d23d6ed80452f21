"""The authenticated caller a command runs on behalf of."""

from dataclasses import dataclass

from mealpath.db.models import AccountRole


@dataclass(frozen=True)
class Actor:
    """Account id and role resolved from an access token."""

    account_id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == AccountRole.admin.value

    @property
    def is_delivery_agent(self) -> bool:
        return self.role == AccountRole.delivery_agent.value

    @property
    def is_partner(self) -> bool:
        return self.role == AccountRole.partner.value
