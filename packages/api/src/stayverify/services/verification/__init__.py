# This project was developed with assistance from AI tools.
"""Pure verification core: document groups, transitions, aggregation, decisions.

Nothing in this package touches the database or the network. The async
services one level up load a ``VerificationSubject``, run one of these
operations, persist the result, and publish the returned events.
"""

from .aggregate import resolve_partner_status, resolve_property_status
from .engine import (
    DomainEvent,
    EngineResult,
    GroupApproved,
    GroupFlagged,
    GroupRejected,
    GroupSubmitted,
    OverallStatusSet,
    ReverificationRequested,
    approve_group,
    flag_for_manual_review,
    reject_group,
    set_overall_status,
)
from .errors import (
    ChannelUnavailable,
    InvalidTransition,
    ListingNotAllowed,
    MissingReason,
    ReverificationRequired,
    StaleWrite,
    SubjectNotFound,
    SubmissionBlocked,
    UnrecognizedStatus,
    UploadRejected,
    VerificationError,
)
from .gate import (
    can_add_property,
    can_edit,
    can_submit,
    can_toggle_listing,
    requires_reverification,
    reverification_warning,
)
from .groups import ARTIFACT_SLOTS, DETAIL_FIELDS, REQUIRED_KINDS, DocumentGroup, parse_enum
from .resubmission import edit_property_fields, resubmit
from .state_machine import apply_event, transition
from .subject import VerificationSubject

__all__ = [
    "ARTIFACT_SLOTS",
    "DETAIL_FIELDS",
    "REQUIRED_KINDS",
    "ChannelUnavailable",
    "DocumentGroup",
    "DomainEvent",
    "EngineResult",
    "GroupApproved",
    "GroupFlagged",
    "GroupRejected",
    "GroupSubmitted",
    "InvalidTransition",
    "ListingNotAllowed",
    "MissingReason",
    "OverallStatusSet",
    "ReverificationRequested",
    "ReverificationRequired",
    "StaleWrite",
    "SubjectNotFound",
    "SubmissionBlocked",
    "UnrecognizedStatus",
    "UploadRejected",
    "VerificationError",
    "VerificationSubject",
    "apply_event",
    "approve_group",
    "can_add_property",
    "can_edit",
    "can_submit",
    "can_toggle_listing",
    "edit_property_fields",
    "flag_for_manual_review",
    "parse_enum",
    "reject_group",
    "requires_reverification",
    "resolve_partner_status",
    "resolve_property_status",
    "resubmit",
    "reverification_warning",
    "set_overall_status",
    "transition",
]
