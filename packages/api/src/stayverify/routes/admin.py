# This project was developed with assistance from AI tools.
"""Operator console endpoints: review queue, decisions, overrides, audit."""

import logging

from db import Partner, get_db
from db.enums import DocumentKind, SubjectType, UserRole
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import CurrentUser, require_roles
from ..schemas import Pagination
from ..schemas.verification import (
    ArtifactUrlResponse,
    AuditChainResponse,
    AuditEntryResponse,
    AuditHistoryResponse,
    GroupDecisionRequest,
    OverallStatusRequest,
    PartnerActiveRequest,
    PartnerVerificationResponse,
    PropertyVerificationResponse,
    QueueItem,
    QueueResponse,
)
from ..services import approval
from ..services.audit import get_subject_history, verify_audit_chain
from ..services.notifications import NotificationHub, get_notification_hub
from ..services.storage import StorageService, get_storage_service
from ..services.subjects import VerificationOutcome, load_subject

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_roles(*UserRole.operator_roles()))])

_URL_TTL_SECONDS = 900


def _subject_response(
    outcome: VerificationOutcome,
) -> PartnerVerificationResponse | PropertyVerificationResponse:
    if isinstance(outcome.row, Partner):
        return PartnerVerificationResponse.build(outcome.row, outcome.subject, outcome.warning)
    return PropertyVerificationResponse.build(outcome.row, outcome.subject, outcome.warning)


@router.get("/verification-queue", response_model=QueueResponse)
async def verification_queue(
    session: AsyncSession = Depends(get_db),
    kind: DocumentKind | None = None,
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
) -> QueueResponse:
    """Groups waiting for a decision (pending or manual review), oldest first."""
    items, total = await approval.list_verification_queue(
        session, kind=kind, limit=limit, offset=offset,
    )
    return QueueResponse(
        data=[QueueItem(**item) for item in items],
        pagination=Pagination(
            total=total, offset=offset, limit=limit, has_more=offset + len(items) < total,
        ),
    )


@router.patch("/partners/{partner_id}/verify", response_model=PartnerVerificationResponse)
async def verify_partner(
    partner_id: int,
    body: GroupDecisionRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
    hub: NotificationHub = Depends(get_notification_hub),
) -> PartnerVerificationResponse:
    """Approve or reject a partner's identity documents."""
    outcome = await approval.decide_group(
        session,
        user,
        subject_type=SubjectType.PARTNER,
        subject_id=partner_id,
        kind=DocumentKind.IDENTITY,
        status=body.status,
        reason=body.reason,
        hub=hub,
    )
    return _subject_response(outcome)


@router.patch("/partners/{partner_id}/active", response_model=PartnerVerificationResponse)
async def set_partner_active(
    partner_id: int,
    body: PartnerActiveRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> PartnerVerificationResponse:
    """Deactivate (reason required) or reactivate a partner account."""
    outcome = await approval.set_partner_active(
        session, user, partner_id=partner_id, is_active=body.is_active, reason=body.reason,
    )
    return _subject_response(outcome)


@router.patch("/properties/{property_id}/document-status", response_model=PropertyVerificationResponse)
async def set_document_status(
    property_id: int,
    body: GroupDecisionRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
    hub: NotificationHub = Depends(get_notification_hub),
) -> PropertyVerificationResponse:
    """Approve or reject one property document group."""
    if body.kind is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="kind is required (ownership, tax, or banking)",
        )
    outcome = await approval.decide_group(
        session,
        user,
        subject_type=SubjectType.PROPERTY,
        subject_id=property_id,
        kind=body.kind,
        status=body.status,
        reason=body.reason,
        hub=hub,
    )
    return _subject_response(outcome)


@router.post(
    "/{subject_type}/{subject_id}/groups/{kind}/manual-review",
    response_model=PartnerVerificationResponse | PropertyVerificationResponse,
)
async def flag_for_manual_review(
    subject_type: SubjectType,
    subject_id: int,
    kind: DocumentKind,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
    hub: NotificationHub = Depends(get_notification_hub),
) -> PartnerVerificationResponse | PropertyVerificationResponse:
    outcome = await approval.flag_group(
        session, user, subject_type=subject_type, subject_id=subject_id, kind=kind, hub=hub,
    )
    return _subject_response(outcome)


@router.patch("/properties/{property_id}/verify", response_model=PropertyVerificationResponse)
async def set_property_status(
    property_id: int,
    body: OverallStatusRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
    hub: NotificationHub = Depends(get_notification_hub),
) -> PropertyVerificationResponse:
    """Holistic verify/reject/suspend; sticks until the host's next fresh submission."""
    outcome = await approval.set_property_status(
        session, user, property_id=property_id, status=body.status, reason=body.reason, hub=hub,
    )
    return _subject_response(outcome)


@router.get(
    "/{subject_type}/{subject_id}/groups/{kind}/artifacts/{slot}",
    response_model=ArtifactUrlResponse,
)
async def get_artifact_url(
    subject_type: SubjectType,
    subject_id: int,
    kind: DocumentKind,
    slot: str,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
) -> ArtifactUrlResponse:
    """Short-lived download URL for one uploaded document."""
    _, subject = await load_subject(session, user, subject_type, subject_id)
    object_key = subject.group(kind).artifacts.get(slot)
    if not object_key:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No document uploaded in slot '{slot}'",
        )
    url = await storage.get_download_url(object_key, expires_in=_URL_TTL_SECONDS)
    return ArtifactUrlResponse(slot=slot, url=url, expires_in=_URL_TTL_SECONDS)


@router.get("/{subject_type}/{subject_id}/history", response_model=AuditHistoryResponse)
async def subject_history(
    subject_type: SubjectType,
    subject_id: int,
    session: AsyncSession = Depends(get_db),
) -> AuditHistoryResponse:
    """Every submission and decision recorded for one subject."""
    events = await get_subject_history(session, subject_type, subject_id)
    items = [
        AuditEntryResponse(
            id=e.id,
            timestamp=e.timestamp,
            event_type=e.event_type,
            user_id=e.user_id,
            user_role=e.user_role,
            event_data=e.event_data,
        )
        for e in events
    ]
    return AuditHistoryResponse(data=items, count=len(items))


@router.get(
    "/audit/verify",
    response_model=AuditChainResponse,
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)
async def verify_audit(
    session: AsyncSession = Depends(get_db),
) -> AuditChainResponse:
    """Recompute the audit hash chain and report the first break, if any."""
    return AuditChainResponse(**await verify_audit_chain(session))
