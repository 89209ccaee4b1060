# This project was developed with assistance from AI tools.
__version__ = "0.1.0"

from .database import Base, DatabaseService, get_db, get_db_service
from .enums import (
    DocumentKind,
    GroupEvent,
    GroupStatus,
    PartnerStatus,
    PropertyStatus,
    PropertyType,
    SubjectType,
    UserRole,
)
from .models import (
    AuditEvent,
    DocumentGroup,
    Partner,
    Property,
)

__all__ = [
    "Base",
    "DatabaseService",
    "get_db",
    "get_db_service",
    "__version__",
    # Enums
    "UserRole",
    "SubjectType",
    "DocumentKind",
    "GroupStatus",
    "GroupEvent",
    "PartnerStatus",
    "PropertyStatus",
    "PropertyType",
    # Models
    "AuditEvent",
    "DocumentGroup",
    "Partner",
    "Property",
]
