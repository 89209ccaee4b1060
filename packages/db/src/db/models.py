# This project was developed with assistance from AI tools.
"""
StayVerify -- domain models

Partners, properties, their reviewable document groups, and the audit trail.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from .database import Base
from .enums import (
    DocumentKind,
    GroupStatus,
    PartnerStatus,
    PropertyStatus,
    PropertyType,
)


class Partner(Base):
    """Host account linked to Keycloak identity."""

    __tablename__ = "partners"

    id = Column(Integer, primary_key=True, autoincrement=True)
    keycloak_user_id = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    deactivation_reason = Column(Text, nullable=True)
    overall_status = Column(
        Enum(PartnerStatus, name="partner_status", native_enum=False),
        nullable=False,
        default=PartnerStatus.NOT_SUBMITTED,
    )
    event_sequence = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    properties = relationship("Property", back_populates="partner")
    groups = relationship(
        "DocumentGroup", back_populates="partner", cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Partner(id={self.id}, status='{self.overall_status}')>"


class Property(Base):
    """Listing registered by a partner."""

    __tablename__ = "properties"

    id = Column(Integer, primary_key=True, autoincrement=True)
    partner_id = Column(
        Integer, ForeignKey("partners.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    property_name = Column(String(255), nullable=False)
    property_type = Column(
        Enum(PropertyType, name="property_type", native_enum=False),
        nullable=False,
    )
    description = Column(Text, nullable=True)
    address = Column(JSON, nullable=True)
    onboarding_completed = Column(Boolean, nullable=False, default=False)
    is_listed = Column(Boolean, nullable=False, default=False)
    override_status = Column(
        Enum(PropertyStatus, name="property_override_status", native_enum=False),
        nullable=True,
    )
    override_reason = Column(Text, nullable=True)
    overall_status = Column(
        Enum(PropertyStatus, name="property_status", native_enum=False),
        nullable=False,
        default=PropertyStatus.PENDING,
    )
    event_sequence = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    partner = relationship("Partner", back_populates="properties")
    groups = relationship(
        "DocumentGroup", back_populates="property", cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Property(id={self.id}, status='{self.overall_status}')>"


class DocumentGroup(Base):
    """One reviewable bundle of evidence with its own status."""

    __tablename__ = "document_groups"
    __table_args__ = (
        UniqueConstraint("partner_id", "kind", name="uq_document_groups_partner_kind"),
        UniqueConstraint("property_id", "kind", name="uq_document_groups_property_kind"),
        CheckConstraint(
            "(partner_id IS NULL) <> (property_id IS NULL)",
            name="ck_document_groups_one_owner",
        ),
        CheckConstraint(
            "(status = 'REJECTED') = (rejection_reason IS NOT NULL)",
            name="ck_document_groups_rejection_reason",
        ),
        Index("ix_document_groups_status_updated", "status", "updated_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    partner_id = Column(
        Integer, ForeignKey("partners.id", ondelete="CASCADE"), nullable=True, index=True,
    )
    property_id = Column(
        Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=True, index=True,
    )
    kind = Column(
        Enum(DocumentKind, name="document_kind", native_enum=False),
        nullable=False,
    )
    status = Column(
        Enum(GroupStatus, name="group_status", native_enum=False),
        nullable=False,
        default=GroupStatus.NOT_SUBMITTED,
    )
    rejection_reason = Column(Text, nullable=True)
    artifacts = Column(JSON, nullable=False, default=dict)
    details = Column(JSON, nullable=False, default=dict)
    # Compare-and-swap guard for concurrent operator decisions.
    version = Column(Integer, nullable=False, default=0)
    submitted_by = Column(String(255), nullable=True)
    reviewed_by = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    partner = relationship("Partner", back_populates="groups")
    property = relationship("Property", back_populates="groups")

    def __repr__(self):
        return f"<DocumentGroup(id={self.id}, kind='{self.kind}', status='{self.status}')>"


class AuditEvent(Base):
    """Append-only audit trail. INSERT + SELECT only -- no UPDATE or DELETE."""

    __tablename__ = "audit_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    prev_hash = Column(String(64), nullable=True)
    user_id = Column(String(255), nullable=True)
    user_role = Column(String(50), nullable=True)
    event_type = Column(String(100), nullable=False, index=True)
    subject_type = Column(String(20), nullable=True, index=True)
    subject_id = Column(Integer, nullable=True, index=True)
    event_data = Column(JSON, nullable=True)
    session_id = Column(String(255), nullable=True, index=True)

    def __repr__(self):
        return f"<AuditEvent(id={self.id}, type='{self.event_type}')>"
