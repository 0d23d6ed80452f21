"""Approval workflow for partner and delivery-agent profiles.

Only admins review profiles. Approval marks the owning account verified;
rejection records a reason and clears it. A profile can be reviewed again
at any time and the latest decision wins.
"""

import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from mealpath.db.models import (
    Account,
    AccountRole,
    ApprovalStatus,
    RoleProfile,
    utc_now_iso,
)
from mealpath.errors import ForbiddenError, InvalidInputError, NotFoundError
from mealpath.services.actors import Actor

logger = logging.getLogger(__name__)

DEFAULT_REJECTION_REASON = "No reason provided"

REVIEWABLE_ROLES = (AccountRole.partner.value, AccountRole.delivery_agent.value)


class ApprovalService:
    """Admin review of role profiles."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def approve(self, actor: Actor, profile_id: str) -> RoleProfile:
        """Approve a profile and verify its account."""
        profile = self._load_for_review(actor, profile_id)
        profile.approval = ApprovalStatus.approved.value
        profile.rejection_reason = None
        profile.reviewed_at = utc_now_iso()
        profile.account.verified = True
        self.db.commit()
        self.db.refresh(profile)
        logger.info("Profile %s approved by %s", profile_id, actor.account_id)
        return profile

    def reject(self, actor: Actor, profile_id: str, reason: str | None = None) -> RoleProfile:
        """Reject a profile, storing the reason and un-verifying its account."""
        profile = self._load_for_review(actor, profile_id)
        profile.approval = ApprovalStatus.rejected.value
        profile.rejection_reason = (reason or "").strip() or DEFAULT_REJECTION_REASON
        profile.reviewed_at = utc_now_iso()
        profile.account.verified = False
        self.db.commit()
        self.db.refresh(profile)
        logger.info("Profile %s rejected by %s: %s", profile_id, actor.account_id, profile.rejection_reason)
        return profile

    def list_pending(self, actor: Actor, role: str | None = None) -> list[RoleProfile]:
        """Profiles awaiting review, oldest first."""
        self._require_admin(actor)
        query = self.db.query(RoleProfile).filter(
            RoleProfile.approval == ApprovalStatus.pending.value
        )
        if role is not None:
            if role not in REVIEWABLE_ROLES:
                raise InvalidInputError(f"Unknown profile role: {role}", field="role")
            query = query.filter(RoleProfile.role == role)
        return query.order_by(RoleProfile.created_at).all()

    def registration_stats(self, actor: Actor) -> dict[str, dict[str, int]]:
        """Account totals per role plus pending-review counts.

        Returns:
            ``{role: {"total": n, "pending": m}}`` for every self-service role.
        """
        self._require_admin(actor)
        totals = dict(
            self.db.query(Account.role, func.count(Account.id)).group_by(Account.role).all()
        )
        pending = dict(
            self.db.query(RoleProfile.role, func.count(RoleProfile.id))
            .filter(RoleProfile.approval == ApprovalStatus.pending.value)
            .group_by(RoleProfile.role)
            .all()
        )
        roles = (AccountRole.client.value, *REVIEWABLE_ROLES)
        return {
            role: {"total": totals.get(role, 0), "pending": pending.get(role, 0)}
            for role in roles
        }

    def _require_admin(self, actor: Actor) -> None:
        if not actor.is_admin:
            raise ForbiddenError("Admin access required")

    def _load_for_review(self, actor: Actor, profile_id: str) -> RoleProfile:
        self._require_admin(actor)
        profile = self.db.get(RoleProfile, profile_id)
        if profile is None:
            raise NotFoundError("Profile", profile_id)
        return profile
