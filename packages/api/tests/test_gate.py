# This project was developed with assistance from AI tools.
"""Tests for submitter-side permission gates."""

import pytest
from db.enums import DocumentKind, GroupStatus, PropertyStatus

from stayverify.services.verification import (
    ListingNotAllowed,
    SubmissionBlocked,
    can_add_property,
    can_edit,
    can_submit,
    can_toggle_listing,
    requires_reverification,
    reverification_warning,
)
from stayverify.services.verification.gate import (
    ensure_can_submit,
    ensure_can_toggle_listing,
    reviewed_group_for,
)

from .factories import make_group, make_partner_subject, make_property_subject

VERIFIED = (GroupStatus.APPROVED, GroupStatus.APPROVED, GroupStatus.APPROVED)


@pytest.mark.parametrize(
    "status,editable",
    [
        (GroupStatus.NOT_SUBMITTED, True),
        (GroupStatus.PENDING, False),
        (GroupStatus.MANUAL_REVIEW, False),
        (GroupStatus.APPROVED, False),
        (GroupStatus.REJECTED, True),
    ],
)
def test_can_edit(status, editable):
    reason = "Photo blurry" if status == GroupStatus.REJECTED else None
    assert can_edit(make_group(DocumentKind.IDENTITY, status, reason)) is editable


def test_listing_gated_by_onboarding_only():
    unfinished = make_property_subject(GroupStatus.PENDING, GroupStatus.NOT_SUBMITTED, GroupStatus.NOT_SUBMITTED)
    assert not can_toggle_listing(unfinished)
    with pytest.raises(ListingNotAllowed):
        ensure_can_toggle_listing(unfinished)

    # Rejected but onboarded: listing is still the host's call.
    rejected = make_property_subject(
        GroupStatus.REJECTED, GroupStatus.PENDING, GroupStatus.PENDING,
        reasons={DocumentKind.OWNERSHIP: "Deed expired"},
    )
    assert can_toggle_listing(rejected)


def test_partners_never_toggle_listing():
    assert not can_toggle_listing(make_partner_subject(GroupStatus.APPROVED))


@pytest.mark.parametrize(
    "edited,expected",
    [
        ("ownership", DocumentKind.OWNERSHIP),
        ("tax", DocumentKind.TAX),
        ("property_name", DocumentKind.OWNERSHIP),
        ("address", DocumentKind.OWNERSHIP),
        ("ifsc_code", DocumentKind.BANKING),
        ("description", None),
        ("amenities", None),
    ],
)
def test_reviewed_group_for(edited, expected):
    assert reviewed_group_for(edited) == expected


def test_requires_reverification_only_when_verified():
    verified = make_property_subject(*VERIFIED)
    pending = make_property_subject(GroupStatus.APPROVED, GroupStatus.APPROVED, GroupStatus.PENDING)

    assert requires_reverification(verified, "ownership")
    assert requires_reverification(verified, "property_name")
    assert not requires_reverification(verified, "description")
    assert not requires_reverification(pending, "ownership")


def test_requires_reverification_with_verified_override():
    subject = make_property_subject(
        GroupStatus.APPROVED, GroupStatus.PENDING, GroupStatus.PENDING, override=PropertyStatus.VERIFIED,
    )
    assert requires_reverification(subject, "tax")


def test_deactivated_partner_cannot_submit():
    subject = make_partner_subject(GroupStatus.REJECTED, "Photo blurry", is_active=False)
    assert not can_submit(subject)
    with pytest.raises(SubmissionBlocked, match="deactivated"):
        ensure_can_submit(subject)


def test_suspended_property_cannot_submit():
    subject = make_property_subject(
        *VERIFIED, override=PropertyStatus.SUSPENDED, override_reason="Guest complaint",
    )
    assert not can_submit(subject)
    with pytest.raises(SubmissionBlocked, match="Guest complaint"):
        ensure_can_submit(subject)


def test_rejected_override_still_allows_submission():
    subject = make_property_subject(*VERIFIED, override=PropertyStatus.REJECTED, override_reason="Bad photos")
    assert can_submit(subject)


def test_can_add_property_requires_verified_active_partner():
    assert can_add_property(make_partner_subject(GroupStatus.APPROVED))
    assert not can_add_property(make_partner_subject(GroupStatus.PENDING))
    assert not can_add_property(make_partner_subject(GroupStatus.APPROVED, is_active=False))


def test_reverification_warning_mentions_listing():
    before = make_property_subject(*VERIFIED, is_listed=True)
    after = make_property_subject(GroupStatus.PENDING, GroupStatus.APPROVED, GroupStatus.APPROVED, is_listed=True)
    warning = reverification_warning(before, after)
    assert "re-verification" in warning
    assert "stays listed" in warning


def test_reverification_warning_unlisted():
    before = make_property_subject(*VERIFIED)
    after = make_property_subject(GroupStatus.PENDING, GroupStatus.APPROVED, GroupStatus.APPROVED)
    assert "stays listed" not in reverification_warning(before, after)


def test_no_warning_unless_verified_drops_to_pending():
    pending = make_property_subject(GroupStatus.PENDING, GroupStatus.APPROVED, GroupStatus.APPROVED)
    assert reverification_warning(pending, pending) is None
    verified = make_property_subject(*VERIFIED)
    assert reverification_warning(verified, verified) is None
