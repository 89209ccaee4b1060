# This project was developed with assistance from AI tools.
"""
Domain enums for the host and property verification workflow.

Shared domain types used by both SQLAlchemy models (db package)
and Pydantic schemas (api package).
"""

import enum


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    OPERATOR = "operator"
    PARTNER = "partner"
    GUEST = "guest"

    @classmethod
    def operator_roles(cls) -> frozenset["UserRole"]:
        """Roles allowed to review submissions."""
        return frozenset({cls.ADMIN, cls.OPERATOR})


class SubjectType(str, enum.Enum):
    PARTNER = "partner"
    PROPERTY = "property"


class DocumentKind(str, enum.Enum):
    IDENTITY = "identity"
    OWNERSHIP = "ownership"
    TAX = "tax"
    BANKING = "banking"


class GroupStatus(str, enum.Enum):
    NOT_SUBMITTED = "not_submitted"
    PENDING = "pending"
    MANUAL_REVIEW = "manual_review"
    APPROVED = "approved"
    REJECTED = "rejected"

    @classmethod
    def editable(cls) -> frozenset["GroupStatus"]:
        """Statuses in which the submitter may upload into the group."""
        return frozenset({cls.NOT_SUBMITTED, cls.REJECTED})

    @classmethod
    def under_review(cls) -> frozenset["GroupStatus"]:
        """Statuses an operator can decide on."""
        return frozenset({cls.PENDING, cls.MANUAL_REVIEW})


class GroupEvent(str, enum.Enum):
    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"
    FLAG_FOR_MANUAL_REVIEW = "flag_for_manual_review"
    REOPEN = "reopen"

    @classmethod
    def valid_transitions(cls) -> dict["GroupEvent", dict[GroupStatus, GroupStatus]]:
        """Allowed (current status -> next status) pairs per event."""
        return {
            cls.SUBMIT: {
                GroupStatus.NOT_SUBMITTED: GroupStatus.PENDING,
                GroupStatus.REJECTED: GroupStatus.PENDING,
            },
            cls.APPROVE: {
                GroupStatus.PENDING: GroupStatus.APPROVED,
                GroupStatus.MANUAL_REVIEW: GroupStatus.APPROVED,
            },
            cls.REJECT: {
                GroupStatus.PENDING: GroupStatus.REJECTED,
                GroupStatus.MANUAL_REVIEW: GroupStatus.REJECTED,
            },
            cls.FLAG_FOR_MANUAL_REVIEW: {
                GroupStatus.PENDING: GroupStatus.MANUAL_REVIEW,
            },
            # Reverification of a verified property only.
            cls.REOPEN: {
                GroupStatus.APPROVED: GroupStatus.PENDING,
            },
        }


class PropertyStatus(str, enum.Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"
    SUSPENDED = "suspended"

    @classmethod
    def override_statuses(cls) -> frozenset["PropertyStatus"]:
        """Statuses an operator may set holistically on a property."""
        return frozenset({cls.VERIFIED, cls.REJECTED, cls.SUSPENDED})


class PartnerStatus(str, enum.Enum):
    NOT_SUBMITTED = "not_submitted"
    PENDING = "pending"
    MANUAL_REVIEW = "manual_review"
    VERIFIED = "verified"
    REJECTED = "rejected"


class PropertyType(str, enum.Enum):
    HOTEL = "hotel"
    HOMESTAY = "homestay"
    APARTMENT = "apartment"
    RESORT = "resort"
    VILLA = "villa"
