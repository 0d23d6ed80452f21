"""Account provisioning saga.

Creates an Account, an optional role profile and its uploaded artifacts as
one logical unit. All validation happens before the first write; the
writes themselves run as saga steps so that any failure unwinds the files
and rows already created, newest first.

Example:
    svc = RegistrationService(db, LocalArtifactStore(upload_dir))
    result = svc.register(RegistrationCommand(
        name="Ada", email="ada@example.com", phone="+237600000000",
        password="secret", role="client",
    ))
    result.token
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mealpath.config import get_settings
from mealpath.db.models import (
    Account,
    AccountRole,
    Artifact,
    ArtifactKind,
    DeliveryAgentProfile,
    PartnerProfile,
    RoleProfile,
)
from mealpath.errors import (
    ConflictError,
    DomainError,
    DuplicateContactError,
    ForbiddenError,
    InternalError,
    InvalidInputError,
    NotFoundError,
)
from mealpath.services.artifact_store import ArtifactMetadata, ArtifactStore
from mealpath.services.catalog_service import CatalogService
from mealpath.services.credentials import hash_password, issue_token
from mealpath.services.saga import Saga

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = frozenset({".jpeg", ".jpg", ".png", ".webp", ".pdf"})
ALLOWED_CONTENT_TYPES = frozenset(
    {"image/jpeg", "image/jpg", "image/png", "image/webp", "application/pdf"}
)
MIN_LICENSE_PHOTOS = 2
SELF_SERVICE_ROLES = frozenset(
    {AccountRole.client.value, AccountRole.partner.value, AccountRole.delivery_agent.value}
)


@dataclass
class UploadedFile:
    """An uploaded binary as received from the transport layer."""

    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class RegistrationCommand:
    """Everything needed to provision one account.

    Partner fields are only read for ``role="partner"``, delivery-agent
    fields only for ``role="delivery_agent"``.
    """

    name: str
    email: str
    phone: str
    password: str
    role: str = AccountRole.client.value
    address: str | None = None
    # Partner
    business_name: str | None = None
    description: str | None = None
    categories: list[str] = field(default_factory=list)
    bank_account: str | None = None
    offers_logistics: bool = False
    documents: list[UploadedFile] = field(default_factory=list)
    # Delivery agent
    vehicle_type: str | None = None
    vehicle_license: str | None = None
    partner_name: str | None = None
    profile_photos: list[UploadedFile] = field(default_factory=list)
    license_photos: list[UploadedFile] = field(default_factory=list)


@dataclass
class RegistrationResult:
    """Outcome of a successful registration."""

    account: Account
    role_profile: RoleProfile | None
    token: str


@dataclass
class _StagedArtifact:
    upload: UploadedFile
    kind: str
    path: str


def _blank(value: str | None) -> bool:
    return value is None or not str(value).strip()


class RegistrationService:
    """Runs the registration saga against one session and artifact store."""

    def __init__(
        self,
        db: Session,
        artifact_store: ArtifactStore,
        catalog: CatalogService | None = None,
    ) -> None:
        self.db = db
        self.artifact_store = artifact_store
        self.catalog = catalog or CatalogService(db)

    def register(self, cmd: RegistrationCommand) -> RegistrationResult:
        """Provision an account, its role profile and artifacts.

        Args:
            cmd: The registration command.

        Returns:
            RegistrationResult with the committed account, profile and token.

        Raises:
            InvalidInputError: Missing or malformed fields or artifacts.
            ForbiddenError: Attempt to self-register as admin.
            ConflictError: Email or phone already registered.
            NotFoundError: Named parent partner is not an approved partner.
            InternalError: Any unexpected failure, with the saga correlation id.
        """
        self._validate_common(cmd)
        self._check_unique(cmd.email.strip().lower(), cmd.phone.strip())
        self._validate_role_fields(cmd)

        saga = Saga("register")
        saga.add_step("stage_artifacts", self._stage_artifacts, self._remove_artifacts)
        saga.add_step("persist_account", self._persist_account, self._delete_account)
        saga.add_step("resolve_partner", self._resolve_partner)
        saga.add_step("persist_profile", self._persist_profile, self._delete_profile)
        saga.add_step("issue_token", self._issue_token)

        try:
            context = saga.execute({"command": cmd})
        except DomainError:
            raise
        except Exception as e:
            logger.exception("Registration saga %s failed unexpectedly", saga.saga_id)
            raise InternalError(correlation_id=saga.saga_id) from e

        account = context["persist_account"]
        logger.info(
            "Registered %s account %s (saga %s)", account.role, account.id, saga.saga_id
        )
        return RegistrationResult(
            account=account,
            role_profile=context["persist_profile"],
            token=context["issue_token"],
        )

    # --- validation (no writes) ---

    def _validate_common(self, cmd: RegistrationCommand) -> None:
        for name in ("name", "email", "phone", "password"):
            if _blank(getattr(cmd, name)):
                raise InvalidInputError(
                    "Name, email, password, phone are required", field=name
                )
        if "@" not in cmd.email:
            raise InvalidInputError("Invalid email address", field="email")
        if cmd.role == AccountRole.admin.value:
            raise ForbiddenError("Cannot register as admin")
        if cmd.role not in SELF_SERVICE_ROLES:
            raise InvalidInputError(f"Unknown role: {cmd.role}", field="role")

    def _check_unique(self, email: str, phone: str) -> None:
        if self.db.query(Account.id).filter(Account.email == email).first():
            raise DuplicateContactError("email")
        if self.db.query(Account.id).filter(Account.phone == phone).first():
            raise DuplicateContactError("phone")

    def _validate_role_fields(self, cmd: RegistrationCommand) -> None:
        if cmd.role == AccountRole.partner.value:
            for name in ("business_name", "bank_account", "description"):
                if _blank(getattr(cmd, name)):
                    raise InvalidInputError(f"{name} is required for partners", field=name)
            if not [c for c in cmd.categories if c and c.strip()]:
                raise InvalidInputError(
                    "At least one category is required for partners", field="categories"
                )
            self._validate_uploads(cmd.documents, "documents")

        elif cmd.role == AccountRole.delivery_agent.value:
            if _blank(cmd.vehicle_type):
                raise InvalidInputError(
                    "vehicle_type is required for delivery agents", field="vehicle_type"
                )
            if not cmd.profile_photos:
                raise InvalidInputError(
                    "A profile photo is required for delivery agents", field="profile_photos"
                )
            if len(cmd.license_photos) < MIN_LICENSE_PHOTOS:
                raise InvalidInputError(
                    f"Delivery agents must upload at least {MIN_LICENSE_PHOTOS} license photos",
                    field="license_photos",
                )
            self._validate_uploads(cmd.profile_photos, "profile_photos")
            self._validate_uploads(cmd.license_photos, "license_photos")

    def _validate_uploads(self, uploads: list[UploadedFile], field_name: str) -> None:
        max_bytes = get_settings().max_artifact_bytes
        for upload in uploads:
            if upload.size > max_bytes:
                raise InvalidInputError(
                    f"File '{upload.filename}' exceeds the {max_bytes} byte limit",
                    field=field_name,
                )
            ext = Path(upload.filename or "").suffix.lower()
            content_type = (upload.content_type or "").split(";")[0].strip().lower()
            if ext not in ALLOWED_EXTENSIONS or content_type not in ALLOWED_CONTENT_TYPES:
                raise InvalidInputError(
                    f"File '{upload.filename}' must be a jpeg, png, webp or pdf",
                    field=field_name,
                )

    # --- saga steps ---

    def _stage_artifacts(self, context: dict[str, Any]) -> list[_StagedArtifact]:
        cmd: RegistrationCommand = context["command"]
        pending: list[tuple[UploadedFile, str]] = []
        if cmd.role == AccountRole.partner.value:
            pending += [(u, ArtifactKind.partner_document.value) for u in cmd.documents]
        elif cmd.role == AccountRole.delivery_agent.value:
            pending += [(u, ArtifactKind.profile_photo.value) for u in cmd.profile_photos]
            pending += [(u, ArtifactKind.license_photo.value) for u in cmd.license_photos]

        staged: list[_StagedArtifact] = []
        try:
            for upload, kind in pending:
                path = self.artifact_store.store(
                    upload.data,
                    ArtifactMetadata(
                        kind=kind,
                        original_name=upload.filename,
                        content_type=upload.content_type,
                    ),
                )
                staged.append(_StagedArtifact(upload=upload, kind=kind, path=path))
        except Exception:
            # This step never completes, so its compensation will not run.
            self.artifact_store.remove([s.path for s in staged])
            raise
        return staged

    def _remove_artifacts(self, context: dict[str, Any], staged: list[_StagedArtifact]) -> None:
        self.artifact_store.remove([s.path for s in staged])

    def _persist_account(self, context: dict[str, Any]) -> Account:
        cmd: RegistrationCommand = context["command"]
        account = Account(
            name=cmd.name.strip(),
            email=cmd.email.strip().lower(),
            phone=cmd.phone.strip(),
            password_hash=hash_password(cmd.password),
            role=cmd.role,
            address=cmd.address,
        )
        self.db.add(account)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            detail = str(e.orig).lower()
            if "email" in detail:
                raise DuplicateContactError("email") from None
            if "phone" in detail:
                raise DuplicateContactError("phone") from None
            raise ConflictError("Email or phone number already in use") from None
        self.db.refresh(account)
        return account

    def _delete_account(self, context: dict[str, Any], account: Account) -> None:
        self.db.rollback()
        row = self.db.get(Account, account.id)
        if row is not None:
            self.db.delete(row)
            self.db.commit()

    def _resolve_partner(self, context: dict[str, Any]) -> str | None:
        cmd: RegistrationCommand = context["command"]
        if cmd.role != AccountRole.delivery_agent.value or _blank(cmd.partner_name):
            return None
        partner = self.catalog.find_approved_partner(cmd.partner_name)
        if partner is None:
            raise NotFoundError("Partner", cmd.partner_name.strip())
        return partner.id

    def _persist_profile(self, context: dict[str, Any]) -> RoleProfile | None:
        cmd: RegistrationCommand = context["command"]
        account: Account = context["persist_account"]

        if cmd.role == AccountRole.partner.value:
            profile: RoleProfile = PartnerProfile(
                account_id=account.id,
                business_name=cmd.business_name.strip(),
                description=cmd.description.strip(),
                bank_account=cmd.bank_account.strip(),
                offers_logistics=cmd.offers_logistics,
            )
            profile.categories = [c.strip() for c in cmd.categories if c and c.strip()]
        elif cmd.role == AccountRole.delivery_agent.value:
            profile = DeliveryAgentProfile(
                account_id=account.id,
                vehicle_type=cmd.vehicle_type.strip(),
                vehicle_license=cmd.vehicle_license,
                partner_profile_id=context["resolve_partner"],
            )
        else:
            return None

        for staged in context["stage_artifacts"]:
            profile.artifacts.append(
                Artifact(
                    kind=staged.kind,
                    path=staged.path,
                    size_bytes=staged.upload.size,
                    content_type=staged.upload.content_type,
                    original_name=staged.upload.filename,
                )
            )
        self.db.add(profile)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(profile)
        return profile

    def _delete_profile(self, context: dict[str, Any], profile: RoleProfile | None) -> None:
        if profile is None:
            return
        self.db.rollback()
        row = self.db.get(RoleProfile, profile.id)
        if row is not None:
            self.db.delete(row)
            self.db.commit()

    def _issue_token(self, context: dict[str, Any]) -> str:
        account: Account = context["persist_account"]
        return issue_token(account.id, account.role)
