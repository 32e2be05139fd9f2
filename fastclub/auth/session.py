"""
Session Context

Identità dell'utente corrente passata esplicitamente a servizi e router.
Ciclo di vita: init (inizio richiesta) / refresh (cambio profilo) / teardown (fine richiesta).
"""

from typing import Optional, Set

from loguru import logger

from ..database import TableName, first_row
from ..exceptions import TenantNotFoundError
from ..club.models import AppSection, Profile
from ..club.permissions import PermissionResolver


def resolve_club_owner_id(supabase, user_id: str, profile: Optional[Profile]) -> Optional[str]:
    """
    Proprietario del club per l'utente.

    L'admin è proprietario di sé stesso; un membro viene risolto tramite
    club_members. None se il membro non appartiene ad alcun club.
    """
    if profile is not None and profile.is_admin:
        return user_id

    row = first_row(
        supabase.table(TableName.club_members.value)
        .select("club_owner_id")
        .eq("user_id", user_id)
        .maybe_single(),
        "risoluzione proprietario club"
    )
    if not row:
        return None
    return row.get("club_owner_id")


class SessionContext:
    """Contesto di sessione di una richiesta"""

    def __init__(self, user_id: str, supabase):
        self.user_id = user_id
        self.supabase = supabase
        self.profile: Optional[Profile] = None
        self.club_owner_id: Optional[str] = None
        self.permissions = PermissionResolver(user_id, False, supabase)
        self._active = False

    @classmethod
    async def init(cls, user_id: str, supabase) -> "SessionContext":
        session = cls(user_id, supabase)
        await session.refresh()
        return session

    async def refresh(self) -> None:
        """Ricarica profilo, proprietario del club e permessi"""
        row = first_row(
            self.supabase.table(TableName.profiles.value)
            .select("*")
            .eq("user_id", self.user_id)
            .maybe_single(),
            "caricamento profilo"
        )
        self.profile = Profile(**row) if row else None
        if self.profile is None:
            logger.warning(f"Profilo mancante per l'utente {self.user_id}")

        self.club_owner_id = resolve_club_owner_id(self.supabase, self.user_id, self.profile)
        self.permissions = PermissionResolver(self.user_id, self.is_admin, self.supabase)
        await self.permissions.refresh()
        self._active = True

    def teardown(self) -> None:
        self.profile = None
        self.club_owner_id = None
        self.permissions = PermissionResolver(self.user_id, False, self.supabase)
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    @property
    def is_admin(self) -> bool:
        return self.profile is not None and self.profile.is_admin

    def require_tenant(self) -> str:
        """Id del proprietario del club, oppure TenantNotFoundError"""
        if not self.club_owner_id:
            raise TenantNotFoundError(self.user_id)
        return self.club_owner_id

    def has_permission(self, section: AppSection) -> bool:
        return self.permissions.has_permission(section)

    def accessible_sections(self) -> Set[AppSection]:
        return self.permissions.accessible_sections()
