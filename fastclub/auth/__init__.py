"""
Auth Module - sessione e permessi per richiesta
"""
from .session import SessionContext, resolve_club_owner_id
from .dependencies import get_session, require_admin, require_section

__all__ = [
    "SessionContext",
    "resolve_club_owner_id",
    "get_session",
    "require_admin",
    "require_section",
]
