# This project was developed with assistance from AI tools.
"""Derive overall partner/property status from document groups.

Pure functions. Callers re-run them after every mutation; the DB column
``overall_status`` is only a cache of the last result.
"""

from collections.abc import Iterable

from db.enums import GroupStatus, PartnerStatus, PropertyStatus

from .groups import DocumentGroup

_PARTNER_STATUS = {
    GroupStatus.NOT_SUBMITTED: PartnerStatus.NOT_SUBMITTED,
    GroupStatus.PENDING: PartnerStatus.PENDING,
    GroupStatus.MANUAL_REVIEW: PartnerStatus.MANUAL_REVIEW,
    GroupStatus.APPROVED: PartnerStatus.VERIFIED,
    GroupStatus.REJECTED: PartnerStatus.REJECTED,
}


def resolve_property_status(
    groups: Iterable[DocumentGroup],
    override: PropertyStatus | None = None,
) -> PropertyStatus:
    """Operator override wins, then rejection dominates, then anything unfinished.

    A property with no groups at all is pending, never verified.
    """
    if override is not None:
        return override

    statuses = {g.status for g in groups}
    if GroupStatus.REJECTED in statuses:
        return PropertyStatus.REJECTED
    if not statuses or statuses != {GroupStatus.APPROVED}:
        return PropertyStatus.PENDING
    return PropertyStatus.VERIFIED


def resolve_partner_status(identity: DocumentGroup | None) -> PartnerStatus:
    if identity is None:
        return PartnerStatus.NOT_SUBMITTED
    return _PARTNER_STATUS[identity.status]
