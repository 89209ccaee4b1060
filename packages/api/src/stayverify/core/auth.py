# This project was developed with assistance from AI tools.
"""Pure auth utility functions with no FastAPI or HTTP dependencies.

Shared by the HTTP middleware and the WebSocket notification route, which
authenticates from a query parameter instead of a header.
"""

from db.enums import UserRole

from ..schemas.auth import DataScope


def build_data_scope(role: UserRole, user_id: str) -> DataScope:
    """Build data scope rules based on the user's role."""
    if role == UserRole.PARTNER:
        return DataScope(own_data_only=True, user_id=user_id)
    if role in UserRole.operator_roles():
        return DataScope(all_subjects=True)
    # guest or unknown -- minimal access
    return DataScope()
