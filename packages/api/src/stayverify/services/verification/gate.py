# This project was developed with assistance from AI tools.
"""Submitter-side permissions derived from current verification state."""

from db.enums import DocumentKind, GroupStatus, PartnerStatus, PropertyStatus

from .errors import ListingNotAllowed, SubmissionBlocked
from .groups import DocumentGroup
from .subject import VerificationSubject

# Core property fields whose edit invalidates the review of a document group.
CORE_FIELD_GROUPS: dict[str, DocumentKind] = {
    "property_name": DocumentKind.OWNERSHIP,
    "property_type": DocumentKind.OWNERSHIP,
    "address": DocumentKind.OWNERSHIP,
    "gst_number": DocumentKind.TAX,
    "pan_number": DocumentKind.TAX,
    "account_holder_name": DocumentKind.BANKING,
    "account_number": DocumentKind.BANKING,
    "ifsc_code": DocumentKind.BANKING,
    "upi_id": DocumentKind.BANKING,
}


def can_edit(group: DocumentGroup) -> bool:
    """Evidence is read-only while under review or once accepted."""
    return group.status in GroupStatus.editable()


def can_toggle_listing(subject: VerificationSubject) -> bool:
    """Listing is independent of verification; only onboarding gates it."""
    return subject.is_property and subject.onboarding_completed


def ensure_can_toggle_listing(subject: VerificationSubject) -> None:
    if not can_toggle_listing(subject):
        raise ListingNotAllowed(
            "Finish onboarding (submit every document group) before listing this property."
        )


def reviewed_group_for(edited_field: str) -> DocumentKind | None:
    """Map an edited field (group kind or core field) onto the group it invalidates."""
    try:
        return DocumentKind(edited_field)
    except ValueError:
        return CORE_FIELD_GROUPS.get(edited_field)


def requires_reverification(subject: VerificationSubject, edited_field: str) -> bool:
    """True when editing ``edited_field`` would send a verified property back to pending."""
    if not subject.is_property or reviewed_group_for(edited_field) is None:
        return False
    return subject.overall_status == PropertyStatus.VERIFIED


def can_submit(subject: VerificationSubject) -> bool:
    if not subject.is_active:
        return False
    return subject.override_status != PropertyStatus.SUSPENDED


def ensure_can_submit(subject: VerificationSubject) -> None:
    if not subject.is_active:
        raise SubmissionBlocked(
            "Your account has been deactivated. Contact support to restore access."
        )
    if subject.override_status == PropertyStatus.SUSPENDED:
        reason = f" Reason: {subject.override_reason}" if subject.override_reason else ""
        raise SubmissionBlocked(
            "This property is suspended and cannot accept new submissions." + reason
        )


def can_add_property(partner: VerificationSubject) -> bool:
    return partner.is_active and partner.overall_status == PartnerStatus.VERIFIED


def reverification_warning(
    before: VerificationSubject, after: VerificationSubject,
) -> str | None:
    """User-visible warning when a verified property drops back to pending."""
    if before.overall_status != PropertyStatus.VERIFIED:
        return None
    if after.overall_status != PropertyStatus.PENDING:
        return None
    warning = "This property needs re-verification. Its verified badge is hidden until an operator approves the changes."
    if after.is_listed:
        warning += " It stays listed in the meantime."
    return warning
