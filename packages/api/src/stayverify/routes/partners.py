# This project was developed with assistance from AI tools.
"""Partner self-service: registration, identity upload, verification status."""

import logging

from db import get_db
from db.enums import DocumentKind, SubjectType
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import CurrentUser, require_partner
from ..schemas.verification import (
    PartnerCreate,
    PartnerStatusResponse,
    PartnerVerificationResponse,
)
from ..services.notifications import NotificationHub, get_notification_hub
from ..services.storage import StorageService, get_storage_service
from ..services.submission import submit_documents
from ..services.subjects import load_partner, register_partner
from ._uploads import read_upload_form

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=PartnerVerificationResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_partner)],
)
async def create_partner(
    body: PartnerCreate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> PartnerVerificationResponse:
    """Register the caller as a partner. Idempotent per user."""
    partner, subject = await register_partner(
        session, user, full_name=body.full_name, email=body.email,
    )
    return PartnerVerificationResponse.build(partner, subject)


@router.get(
    "/me/verification",
    response_model=PartnerVerificationResponse,
    dependencies=[Depends(require_partner)],
)
async def get_my_verification(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> PartnerVerificationResponse:
    """Full partner subject. Clients refetch this after every notification."""
    partner, subject = await load_partner(session, user)
    return PartnerVerificationResponse.build(partner, subject)


@router.get(
    "/me/verification-status",
    response_model=PartnerStatusResponse,
    dependencies=[Depends(require_partner)],
)
async def get_my_verification_status(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> PartnerStatusResponse:
    _, subject = await load_partner(session, user)
    return PartnerStatusResponse.build(subject)


@router.post(
    "/me/identity",
    response_model=PartnerVerificationResponse,
    dependencies=[Depends(require_partner)],
)
async def upload_identity(
    request: Request,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
    hub: NotificationHub = Depends(get_notification_hub),
) -> PartnerVerificationResponse:
    """Upload identity documents (``front``, ``back``, ``profile``) and submit for review.

    The first submission needs all three; after a rejection any subset may
    be replaced.
    """
    files, details, _ = await read_upload_form(request)
    outcome = await submit_documents(
        session,
        user,
        subject_type=SubjectType.PARTNER,
        subject_id=None,
        kind=DocumentKind.IDENTITY,
        files=files,
        details=details,
        storage=storage,
        hub=hub,
    )
    return PartnerVerificationResponse.build(outcome.row, outcome.subject, outcome.warning)
