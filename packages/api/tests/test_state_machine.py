# This project was developed with assistance from AI tools.
"""Tests for the document group value type and its transition function."""

import pytest
from db.enums import DocumentKind, GroupEvent, GroupStatus, PropertyStatus

from stayverify.services.verification import (
    DocumentGroup,
    InvalidTransition,
    MissingReason,
    UnrecognizedStatus,
    UploadRejected,
    apply_event,
    parse_enum,
    transition,
)

from .factories import full_artifacts, make_group

# ---------------------------------------------------------------------------
# transition()
# ---------------------------------------------------------------------------

LEGAL = [
    (GroupStatus.NOT_SUBMITTED, GroupEvent.SUBMIT, GroupStatus.PENDING),
    (GroupStatus.REJECTED, GroupEvent.SUBMIT, GroupStatus.PENDING),
    (GroupStatus.PENDING, GroupEvent.APPROVE, GroupStatus.APPROVED),
    (GroupStatus.MANUAL_REVIEW, GroupEvent.APPROVE, GroupStatus.APPROVED),
    (GroupStatus.PENDING, GroupEvent.REJECT, GroupStatus.REJECTED),
    (GroupStatus.MANUAL_REVIEW, GroupEvent.REJECT, GroupStatus.REJECTED),
    (GroupStatus.PENDING, GroupEvent.FLAG_FOR_MANUAL_REVIEW, GroupStatus.MANUAL_REVIEW),
    (GroupStatus.APPROVED, GroupEvent.REOPEN, GroupStatus.PENDING),
]


@pytest.mark.parametrize("current,event,expected", LEGAL)
def test_legal_transitions(current, event, expected):
    assert transition(current, event, reason="Photo blurry") == expected


ILLEGAL = [
    (GroupStatus.NOT_SUBMITTED, GroupEvent.APPROVE),
    (GroupStatus.APPROVED, GroupEvent.APPROVE),
    (GroupStatus.REJECTED, GroupEvent.APPROVE),
    (GroupStatus.PENDING, GroupEvent.SUBMIT),
    (GroupStatus.MANUAL_REVIEW, GroupEvent.SUBMIT),
    (GroupStatus.APPROVED, GroupEvent.SUBMIT),
    (GroupStatus.MANUAL_REVIEW, GroupEvent.FLAG_FOR_MANUAL_REVIEW),
    (GroupStatus.APPROVED, GroupEvent.REJECT),
    (GroupStatus.PENDING, GroupEvent.REOPEN),
    (GroupStatus.REJECTED, GroupEvent.REOPEN),
]


@pytest.mark.parametrize("current,event", ILLEGAL)
def test_illegal_transitions_name_current_status(current, event):
    with pytest.raises(InvalidTransition) as exc_info:
        transition(current, event, reason="some reason")
    assert exc_info.value.current == current
    assert exc_info.value.event == event
    assert current.value in str(exc_info.value)


@pytest.mark.parametrize("reason", [None, "", "   "])
def test_reject_without_reason_is_missing_reason(reason):
    with pytest.raises(MissingReason):
        transition(GroupStatus.PENDING, GroupEvent.REJECT, reason)


def test_missing_reason_checked_before_legality():
    """A reasonless reject is a contract violation whatever the state."""
    with pytest.raises(MissingReason):
        transition(GroupStatus.APPROVED, GroupEvent.REJECT)


# ---------------------------------------------------------------------------
# apply_event()
# ---------------------------------------------------------------------------


def test_reject_stores_reason_verbatim():
    group = make_group(DocumentKind.IDENTITY, GroupStatus.PENDING)
    rejected = apply_event(group, GroupEvent.REJECT, "Photo blurry ")
    assert rejected.status == GroupStatus.REJECTED
    assert rejected.rejection_reason == "Photo blurry "
    assert rejected.artifacts == group.artifacts


def test_resubmit_after_reject_clears_reason_and_keeps_other_slots():
    group = make_group(DocumentKind.IDENTITY, GroupStatus.REJECTED, reason="Photo blurry")
    resubmitted = apply_event(group, GroupEvent.SUBMIT, artifacts={"front": "s3/new-front.jpg"})

    assert resubmitted.status == GroupStatus.PENDING
    assert resubmitted.rejection_reason is None
    assert resubmitted.artifacts["front"] == "s3/new-front.jpg"
    assert resubmitted.artifacts["back"] == group.artifacts["back"]
    assert resubmitted.artifacts["profile"] == group.artifacts["profile"]


def test_approve_after_reject_resubmit_has_no_reason():
    group = make_group(DocumentKind.TAX, GroupStatus.REJECTED, reason="GST mismatch")
    group = apply_event(group, GroupEvent.SUBMIT, artifacts={"gst_certificate": "s3/gst.pdf"})
    group = apply_event(group, GroupEvent.APPROVE)
    assert group.status == GroupStatus.APPROVED
    assert group.rejection_reason is None


def test_artifacts_only_accompany_submit():
    group = make_group(DocumentKind.TAX, GroupStatus.PENDING)
    with pytest.raises(ValueError, match="only accompany submit"):
        apply_event(group, GroupEvent.APPROVE, artifacts={"pan_card": "s3/pan.pdf"})


def test_apply_event_does_not_mutate_input():
    group = make_group(DocumentKind.BANKING, GroupStatus.PENDING)
    apply_event(group, GroupEvent.APPROVE)
    assert group.status == GroupStatus.PENDING


# ---------------------------------------------------------------------------
# DocumentGroup invariants
# ---------------------------------------------------------------------------


def test_rejected_group_requires_reason():
    with pytest.raises(ValueError, match="rejection_reason"):
        DocumentGroup(kind=DocumentKind.IDENTITY, status=GroupStatus.REJECTED)


@pytest.mark.parametrize(
    "status",
    [s for s in GroupStatus if s != GroupStatus.REJECTED],
)
def test_reason_forbidden_outside_rejected(status):
    with pytest.raises(ValueError, match="rejection_reason"):
        DocumentGroup(kind=DocumentKind.IDENTITY, status=status, rejection_reason="stale")


def test_unknown_slot_rejected():
    group = make_group(DocumentKind.OWNERSHIP)
    with pytest.raises(UploadRejected, match="selfie"):
        group.with_artifacts({"selfie": "s3/selfie.jpg"})


def test_unknown_detail_field_rejected():
    group = make_group(DocumentKind.BANKING)
    with pytest.raises(UploadRejected, match="swift_code"):
        group.with_artifacts({"bank_proof": "s3/bank.pdf"}, {"swift_code": "ABCD"})


def test_missing_slots_and_completeness():
    group = make_group(DocumentKind.IDENTITY, artifacts={"front": "s3/front.jpg"})
    assert group.missing_slots() == ["back", "profile"]
    assert not group.is_complete()

    complete = group.with_artifacts(full_artifacts(DocumentKind.IDENTITY))
    assert complete.is_complete()


# ---------------------------------------------------------------------------
# parse_enum()
# ---------------------------------------------------------------------------


def test_parse_enum_accepts_wire_values():
    assert parse_enum(GroupStatus, "manual_review", "status") == GroupStatus.MANUAL_REVIEW
    assert parse_enum(PropertyStatus, PropertyStatus.SUSPENDED, "status") == PropertyStatus.SUSPENDED


@pytest.mark.parametrize("value", ["Approved", "verified", "", None, 3])
def test_parse_enum_unknown_value_is_hard_error(value):
    with pytest.raises(UnrecognizedStatus) as exc_info:
        parse_enum(GroupStatus, value, "status")
    assert exc_info.value.field == "status"
