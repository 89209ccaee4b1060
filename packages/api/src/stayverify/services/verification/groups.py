# This project was developed with assistance from AI tools.
"""DocumentGroup value type and per-kind slot tables."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TypeVar

from db.enums import DocumentKind, GroupStatus, SubjectType

from .errors import UnrecognizedStatus, UploadRejected

# Named artifact slots each group accepts (file uploads).
ARTIFACT_SLOTS: dict[DocumentKind, tuple[str, ...]] = {
    DocumentKind.IDENTITY: ("front", "back", "profile"),
    DocumentKind.OWNERSHIP: ("ownership_proof", "owner_kyc"),
    DocumentKind.TAX: ("gst_certificate", "pan_card"),
    DocumentKind.BANKING: ("bank_proof",),
}

# Reviewed non-file fields submitted alongside the artifacts.
DETAIL_FIELDS: dict[DocumentKind, tuple[str, ...]] = {
    DocumentKind.IDENTITY: ("id_number", "date_of_birth"),
    DocumentKind.OWNERSHIP: (),
    DocumentKind.TAX: ("gst_number", "pan_number"),
    DocumentKind.BANKING: ("account_holder_name", "account_number", "ifsc_code", "upi_id"),
}

REQUIRED_KINDS: dict[SubjectType, tuple[DocumentKind, ...]] = {
    SubjectType.PARTNER: (DocumentKind.IDENTITY,),
    SubjectType.PROPERTY: (DocumentKind.OWNERSHIP, DocumentKind.TAX, DocumentKind.BANKING),
}

_E = TypeVar("_E", bound=Enum)


def parse_enum(enum_cls: type[_E], value: object, field_name: str) -> _E:
    """Parse a free-form wire value into a closed enum. Unknown values are hard errors."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError as exc:
        raise UnrecognizedStatus(field_name, value) from exc


@dataclass(frozen=True)
class DocumentGroup:
    """One reviewable bundle of evidence.

    ``rejection_reason`` is present if and only if ``status`` is REJECTED;
    construction fails otherwise.
    """

    kind: DocumentKind
    status: GroupStatus = GroupStatus.NOT_SUBMITTED
    rejection_reason: str | None = None
    artifacts: dict[str, str] = field(default_factory=dict)
    details: dict[str, str] = field(default_factory=dict)
    version: int = 0

    def __post_init__(self):
        has_reason = bool(self.rejection_reason)
        if has_reason != (self.status == GroupStatus.REJECTED):
            raise ValueError(
                f"rejection_reason must be set iff status is rejected "
                f"(status={self.status.value}, reason={self.rejection_reason!r})"
            )

    @property
    def slots(self) -> tuple[str, ...]:
        return ARTIFACT_SLOTS[self.kind]

    def missing_slots(self) -> list[str]:
        return [slot for slot in self.slots if not self.artifacts.get(slot)]

    def is_complete(self) -> bool:
        return not self.missing_slots()

    def with_artifacts(
        self,
        artifacts: dict[str, str],
        details: dict[str, str] | None = None,
    ) -> "DocumentGroup":
        """Replace the named slots (and detail fields); everything else is kept."""
        unknown = sorted(set(artifacts) - set(self.slots))
        if unknown:
            raise UploadRejected(
                f"Unknown upload slot(s) for {self.kind.value}: {', '.join(unknown)}. "
                f"Allowed: {', '.join(self.slots)}"
            )
        details = details or {}
        unknown_details = sorted(set(details) - set(DETAIL_FIELDS[self.kind]))
        if unknown_details:
            raise UploadRejected(
                f"Unknown field(s) for {self.kind.value}: {', '.join(unknown_details)}"
            )
        return replace(
            self,
            artifacts={**self.artifacts, **artifacts},
            details={**self.details, **details},
        )

    @classmethod
    def empty(cls, kind: DocumentKind) -> "DocumentGroup":
        return cls(kind=kind)
