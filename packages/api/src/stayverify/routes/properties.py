# This project was developed with assistance from AI tools.
"""Property registration, document-group uploads, edits, and listing."""

import logging

from db import get_db
from db.enums import DocumentKind, SubjectType, UserRole
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import CurrentUser, require_partner, require_roles
from ..schemas.verification import (
    ListingUpdate,
    PropertyCreate,
    PropertyUpdate,
    PropertyVerificationResponse,
)
from ..services.listing import edit_property, set_listing
from ..services.notifications import NotificationHub, get_notification_hub
from ..services.storage import StorageService, get_storage_service
from ..services.submission import submit_documents
from ..services.subjects import load_property, register_property
from ._uploads import read_upload_form

logger = logging.getLogger(__name__)

router = APIRouter()

_VIEW_ROLES = (UserRole.PARTNER, *UserRole.operator_roles())
_NULLABLE_FIELDS = ("description", "address")


@router.post(
    "",
    response_model=PropertyVerificationResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_partner)],
)
async def create_property(
    body: PropertyCreate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> PropertyVerificationResponse:
    """Register a property. The partner's identity must already be verified."""
    prop, subject = await register_property(
        session,
        user,
        property_name=body.property_name,
        property_type=body.property_type,
        description=body.description,
        address=body.address,
    )
    return PropertyVerificationResponse.build(prop, subject)


@router.get(
    "/{property_id}/verification",
    response_model=PropertyVerificationResponse,
    dependencies=[Depends(require_roles(*_VIEW_ROLES))],
)
async def get_property_verification(
    property_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> PropertyVerificationResponse:
    """Full property subject (groups, overall status, listing gate)."""
    prop, subject = await load_property(session, user, property_id)
    return PropertyVerificationResponse.build(prop, subject)


@router.post(
    "/{property_id}/documents/{kind}",
    response_model=PropertyVerificationResponse,
    dependencies=[Depends(require_partner)],
)
async def upload_property_documents(
    property_id: int,
    kind: DocumentKind,
    request: Request,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
    hub: NotificationHub = Depends(get_notification_hub),
) -> PropertyVerificationResponse:
    """Submit or resubmit one document group.

    Replacing documents of a verified property needs
    ``confirm_reverification=true``; without it the response is 409 with
    the warning text to show the host.
    """
    files, details, confirm = await read_upload_form(request)
    outcome = await submit_documents(
        session,
        user,
        subject_type=SubjectType.PROPERTY,
        subject_id=property_id,
        kind=kind,
        files=files,
        details=details,
        confirm_reverification=confirm,
        storage=storage,
        hub=hub,
    )
    return PropertyVerificationResponse.build(outcome.row, outcome.subject, outcome.warning)


@router.patch(
    "/{property_id}",
    response_model=PropertyVerificationResponse,
    dependencies=[Depends(require_partner)],
)
async def update_property(
    property_id: int,
    body: PropertyUpdate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
    hub: NotificationHub = Depends(get_notification_hub),
) -> PropertyVerificationResponse:
    """Edit core fields. Reviewed fields of a verified property need confirmation."""
    changes = {
        field: value
        for field, value in body.model_dump(exclude_unset=True, exclude={"confirm_reverification"}).items()
        if value is not None or field in _NULLABLE_FIELDS
    }
    outcome = await edit_property(
        session,
        user,
        property_id=property_id,
        changes=changes,
        confirm_reverification=body.confirm_reverification,
        hub=hub,
    )
    return PropertyVerificationResponse.build(outcome.row, outcome.subject, outcome.warning)


@router.patch(
    "/{property_id}/listing",
    response_model=PropertyVerificationResponse,
    dependencies=[Depends(require_partner)],
)
async def update_listing(
    property_id: int,
    body: ListingUpdate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> PropertyVerificationResponse:
    outcome = await set_listing(session, user, property_id=property_id, is_listed=body.is_listed)
    return PropertyVerificationResponse.build(outcome.row, outcome.subject)
