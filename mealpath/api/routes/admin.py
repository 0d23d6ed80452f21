"""API routes for the admin review workflow.

All endpoints require an admin bearer token and use the /api/v1/admin
prefix.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from mealpath.api.middleware.auth import get_current_actor
from mealpath.api.schemas import (
    PendingProfilesResponse,
    RejectRequest,
    RoleCounts,
    RoleProfileResponse,
)
from mealpath.db.connection import get_db
from mealpath.services.actors import Actor
from mealpath.services.approval_service import ApprovalService

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_service(db: Session = Depends(get_db)) -> ApprovalService:
    """Dependency injector for ApprovalService."""
    return ApprovalService(db)


@router.get("/profiles/pending", response_model=PendingProfilesResponse)
def list_pending_profiles(
    role: str | None = None,
    actor: Actor = Depends(get_current_actor),
    service: ApprovalService = Depends(_get_service),
) -> PendingProfilesResponse:
    """List partner and delivery-agent profiles awaiting review.

    Args:
        role: Optional filter (partner or delivery_agent).
    """
    profiles = service.list_pending(actor, role=role)
    return PendingProfilesResponse(
        profiles=[RoleProfileResponse.model_validate(p) for p in profiles],
        total=len(profiles),
    )


@router.get("/stats", response_model=dict[str, RoleCounts])
def registration_stats(
    actor: Actor = Depends(get_current_actor),
    service: ApprovalService = Depends(_get_service),
) -> dict[str, RoleCounts]:
    """Account totals and pending reviews per role."""
    stats = service.registration_stats(actor)
    return {role: RoleCounts(**counts) for role, counts in stats.items()}


@router.post("/profiles/{profile_id}/approve", response_model=RoleProfileResponse)
def approve_profile(
    profile_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ApprovalService = Depends(_get_service),
) -> RoleProfileResponse:
    """Approve a profile and mark its account verified."""
    return RoleProfileResponse.model_validate(service.approve(actor, profile_id))


@router.post("/profiles/{profile_id}/reject", response_model=RoleProfileResponse)
def reject_profile(
    profile_id: str,
    data: RejectRequest | None = None,
    actor: Actor = Depends(get_current_actor),
    service: ApprovalService = Depends(_get_service),
) -> RoleProfileResponse:
    """Reject a profile with an optional reason."""
    reason = data.reason if data is not None else None
    return RoleProfileResponse.model_validate(service.reject(actor, profile_id, reason))
