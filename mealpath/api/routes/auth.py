"""API routes for registration, login and the caller's own profile.

Registration is a multipart form so partner documents and delivery-agent
photos travel with the account fields. All endpoints use the
/api/v1/auth prefix.
"""

import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from mealpath.api.middleware.auth import get_current_actor
from mealpath.api.schemas import (
    AccountResponse,
    AccountUpdate,
    LoginRequest,
    LoginResponse,
    ProfileResponse,
    RegistrationResponse,
    RoleProfileResponse,
)
from mealpath.config import get_settings
from mealpath.db.connection import get_db
from mealpath.errors import InvalidInputError
from mealpath.services.account_service import AccountService
from mealpath.services.actors import Actor
from mealpath.services.artifact_store import ArtifactStore, build_artifact_store
from mealpath.services.auth_service import AuthService
from mealpath.services.registration_service import (
    RegistrationCommand,
    RegistrationService,
    UploadedFile,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def get_artifact_store() -> ArtifactStore:
    """Dependency injector for the configured artifact store."""
    return build_artifact_store()


def _read_uploads(files: list[UploadFile] | None, field_name: str) -> list[UploadedFile]:
    """Read uploads without buffering more than the size limit plus one byte."""
    max_bytes = get_settings().max_artifact_bytes
    uploads: list[UploadedFile] = []
    for f in files or []:
        if not f.filename:
            continue
        data = f.file.read(max_bytes + 1)
        if len(data) > max_bytes:
            raise InvalidInputError(
                f"File '{f.filename}' exceeds the {max_bytes} byte limit",
                field=field_name,
            )
        uploads.append(
            UploadedFile(
                filename=f.filename,
                content_type=f.content_type or "",
                data=data,
            )
        )
    return uploads


def _split_categories(values: list[str] | None) -> list[str]:
    """Accept repeated fields and comma-separated values alike."""
    categories: list[str] = []
    for value in values or []:
        categories.extend(part.strip() for part in value.split(",") if part.strip())
    return categories


@router.post("/register", response_model=RegistrationResponse, status_code=201)
def register(
    name: str = Form(""),
    email: str = Form(""),
    phone: str = Form(""),
    password: str = Form(""),
    role: str = Form("client"),
    address: str | None = Form(None),
    business_name: str | None = Form(None),
    description: str | None = Form(None),
    categories: list[str] | None = Form(None),
    bank_account: str | None = Form(None),
    offers_logistics: bool = Form(False),
    vehicle_type: str | None = Form(None),
    vehicle_license: str | None = Form(None),
    partner_name: str | None = Form(None),
    documents: list[UploadFile] | None = File(None),
    profile_photos: list[UploadFile] | None = File(None),
    license_photos: list[UploadFile] | None = File(None),
    db: Session = Depends(get_db),
    store: ArtifactStore = Depends(get_artifact_store),
) -> RegistrationResponse:
    """Register a client, partner or delivery agent.

    Returns:
        The new account, its role profile (if any) and an access token.
    """
    cmd = RegistrationCommand(
        name=name,
        email=email,
        phone=phone,
        password=password,
        role=role,
        address=address,
        business_name=business_name,
        description=description,
        categories=_split_categories(categories),
        bank_account=bank_account,
        offers_logistics=offers_logistics,
        documents=_read_uploads(documents, "documents"),
        vehicle_type=vehicle_type,
        vehicle_license=vehicle_license,
        partner_name=partner_name,
        profile_photos=_read_uploads(profile_photos, "profile_photos"),
        license_photos=_read_uploads(license_photos, "license_photos"),
    )
    result = RegistrationService(db, store).register(cmd)
    return RegistrationResponse(
        account=AccountResponse.model_validate(result.account),
        role_profile=RoleProfileResponse.model_validate(result.role_profile)
        if result.role_profile is not None
        else None,
        token=result.token,
    )


@router.post("/login", response_model=LoginResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)) -> LoginResponse:
    """Exchange email and password for an access token."""
    account, token = AuthService(db).authenticate(data.email, data.password)
    return LoginResponse(account=AccountResponse.model_validate(account), token=token)


def _profile_response(account) -> ProfileResponse:
    return ProfileResponse(
        account=AccountResponse.model_validate(account),
        role_profile=RoleProfileResponse.model_validate(account.role_profile)
        if account.role_profile is not None
        else None,
    )


@router.get("/profile", response_model=ProfileResponse)
def get_profile(
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
) -> ProfileResponse:
    """Return the authenticated account and its role profile."""
    return _profile_response(AccountService(db).get_account(actor.account_id))


@router.patch("/profile", response_model=ProfileResponse)
def update_profile(
    data: AccountUpdate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
) -> ProfileResponse:
    """Update the caller's name, phone or address."""
    account = AccountService(db).update_profile(
        actor.account_id, **data.model_dump(exclude_unset=True)
    )
    return _profile_response(account)
