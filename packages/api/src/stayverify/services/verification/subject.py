# This project was developed with assistance from AI tools.
"""In-memory snapshot of a partner or property under verification."""

from dataclasses import dataclass, field, replace

from db.enums import DocumentKind, GroupStatus, PartnerStatus, PropertyStatus, SubjectType

from .aggregate import resolve_partner_status, resolve_property_status
from .errors import SubjectNotFound
from .groups import REQUIRED_KINDS, DocumentGroup


@dataclass(frozen=True)
class VerificationSubject:
    """A partner (identity group) or property (ownership/tax/banking groups).

    ``sequence`` is the last event sequence number assigned to this subject.
    ``override_status``/``override_reason`` only apply to properties.
    """

    subject_type: SubjectType
    subject_id: int
    groups: dict[DocumentKind, DocumentGroup] = field(default_factory=dict)
    override_status: PropertyStatus | None = None
    override_reason: str | None = None
    onboarding_completed: bool = False
    is_listed: bool = False
    is_active: bool = True
    sequence: int = 0

    @classmethod
    def new(cls, subject_type: SubjectType, subject_id: int) -> "VerificationSubject":
        """Freshly registered subject: every required group empty."""
        groups = {kind: DocumentGroup.empty(kind) for kind in REQUIRED_KINDS[subject_type]}
        return cls(subject_type=subject_type, subject_id=subject_id, groups=groups)

    @property
    def is_property(self) -> bool:
        return self.subject_type == SubjectType.PROPERTY

    def group(self, kind: DocumentKind) -> DocumentGroup:
        try:
            return self.groups[kind]
        except KeyError:
            raise SubjectNotFound(
                f"{self.subject_type.value} {self.subject_id} has no {kind.value} documents"
            ) from None

    def with_group(self, group: DocumentGroup, **changes) -> "VerificationSubject":
        return replace(self, groups={**self.groups, group.kind: group}, **changes)

    @property
    def overall_status(self) -> PropertyStatus | PartnerStatus:
        """Derived status, recomputed on every read."""
        if self.is_property:
            return resolve_property_status(self.groups.values(), self.override_status)
        return resolve_partner_status(self.groups.get(DocumentKind.IDENTITY))

    def all_submitted(self) -> bool:
        return all(g.status != GroupStatus.NOT_SUBMITTED for g in self.groups.values())
