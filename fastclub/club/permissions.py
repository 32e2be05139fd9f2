"""
Permessi di sezione

- PermissionResolver: sezioni visibili all'utente (admin = tutte)
- ResponsibilityLookup: responsabile di una sezione per il club
- MemberPermissionsManager: l'admin assegna sezioni e responsabilità ai membri
"""

from typing import Any, Dict, Iterable, List, Optional, Set

from loguru import logger

from ..database import TableName, execute, first_row
from ..exceptions import BackendError, ValidationError
from .models import ALL_SECTIONS, AppSection, SectionResponsible


class PermissionResolver:
    """
    Risolve le sezioni accessibili per un utente.

    Nessuna cache oltre la sessione corrente: una modifica fatta da un altro
    utente si vede solo al successivo refresh().
    """

    def __init__(self, user_id: str, is_admin: bool, supabase):
        self.user_id = user_id
        self.is_admin = is_admin
        self.supabase = supabase
        self._sections: Set[AppSection] = set()

    async def refresh(self) -> Set[AppSection]:
        """Ricarica i permessi dal database"""
        if self.is_admin:
            # l'admin vede tutto, nessuna lettura
            self._sections = set(ALL_SECTIONS)
            return self.accessible_sections()

        try:
            rows = execute(
                self.supabase.table(TableName.member_permissions.value)
                .select("section")
                .eq("user_id", self.user_id),
                "caricamento permessi"
            )
        except BackendError:
            self._sections = set()
            return self.accessible_sections()

        sections = set()
        for row in rows:
            try:
                sections.add(AppSection(row["section"]))
            except (KeyError, ValueError):
                logger.warning(f"Sezione sconosciuta nei permessi di {self.user_id}: {row}")
        self._sections = sections
        return self.accessible_sections()

    def has_permission(self, section: AppSection) -> bool:
        if self.is_admin:
            return True
        return section in self._sections

    def accessible_sections(self) -> Set[AppSection]:
        if self.is_admin:
            return set(ALL_SECTIONS)
        return set(self._sections)


class ResponsibilityLookup:
    """Responsabile di sezione per il club dell'utente"""

    def __init__(self, user_id: str, supabase):
        self.user_id = user_id
        self.supabase = supabase

    def resolve_tenant(self) -> str:
        """Proprietario del club via RPC get_club_owner_id (fallback: l'utente stesso)"""
        response = self.supabase.rpc(
            "get_club_owner_id", {"user_uuid": self.user_id}
        ).execute()
        return response.data or self.user_id

    async def responsible_for(self, section: AppSection) -> Optional[SectionResponsible]:
        """
        Responsabile della sezione, oppure None.

        Ogni errore viene registrato e trattato come "nessun responsabile".
        Se più membri hanno il flag (nessun vincolo di unicità), vince la
        prima riga restituita.
        """
        try:
            club_owner_id = self.resolve_tenant()

            rows = execute(
                self.supabase.table(TableName.member_permissions.value)
                .select("user_id")
                .eq("club_owner_id", club_owner_id)
                .eq("section", section.value)
                .eq("is_responsible", True),
                "ricerca responsabile"
            )
            if not rows:
                return None
            if len(rows) > 1:
                logger.warning(
                    f"Più responsabili per {section.value} nel club {club_owner_id}: "
                    f"uso {rows[0]['user_id']}"
                )

            responsible_id = rows[0]["user_id"]
            profile = first_row(
                self.supabase.table(TableName.profiles.value)
                .select("full_name")
                .eq("user_id", responsible_id)
                .maybe_single(),
                "profilo responsabile"
            )
            if not profile:
                return None

            email = self.supabase.rpc(
                "get_user_email", {"user_uuid": responsible_id}
            ).execute().data

            return SectionResponsible(
                full_name=profile.get("full_name") or "Nome non disponibile",
                email=email or "Email non disponibile"
            )
        except Exception as e:
            logger.error(f"Errore nel caricamento del responsabile ({section.value}): {e}")
            return None

    async def is_responsible(self, club_owner_id: str, section: AppSection) -> bool:
        """L'utente corrente ha il flag di responsabile per la sezione?"""
        row = first_row(
            self.supabase.table(TableName.member_permissions.value)
            .select("is_responsible")
            .eq("user_id", self.user_id)
            .eq("club_owner_id", club_owner_id)
            .eq("section", section.value)
            .eq("is_responsible", True)
            .limit(1),
            "verifica responsabile"
        )
        return row is not None


class MemberPermissionsManager:
    """Gestione dei permessi dei membri (solo admin)"""

    def __init__(self, club_owner_id: str, supabase):
        self.club_owner_id = club_owner_id
        self.supabase = supabase

    async def get_member_permissions(self, member_user_id: str) -> List[Dict[str, Any]]:
        return execute(
            self.supabase.table(TableName.member_permissions.value)
            .select("*")
            .eq("user_id", member_user_id)
            .eq("club_owner_id", self.club_owner_id),
            "caricamento permessi membro"
        )

    async def set_member_permissions(
        self,
        member_user_id: str,
        sections: Iterable[AppSection],
        responsible_sections: Iterable[AppSection] = ()
    ) -> List[Dict[str, Any]]:
        """
        Sostituisce tutte le concessioni del membro.

        Cancella e reinserisce senza transazione; anche il controllo sul
        responsabile unico è solo un avviso: due salvataggi concorrenti
        possono lasciare due responsabili per la stessa sezione.
        """
        sections = list(dict.fromkeys(sections))
        responsible = set(responsible_sections)
        extra = responsible - set(sections)
        if extra:
            raise ValidationError(
                "responsible_sections",
                "Il responsabile deve avere accesso alla sezione: "
                + ", ".join(sorted(s.value for s in extra))
            )

        for section in responsible:
            holders = await self._responsible_holders(section)
            others = [uid for uid in holders if uid != member_user_id]
            if others:
                logger.warning(
                    f"Sezione {section.value} ha già un responsabile ({others[0]}); "
                    f"{member_user_id} verrà aggiunto comunque"
                )

        execute(
            self.supabase.table(TableName.member_permissions.value)
            .delete()
            .eq("user_id", member_user_id)
            .eq("club_owner_id", self.club_owner_id),
            "rimozione permessi membro"
        )

        if not sections:
            return []

        rows = [
            {
                "user_id": member_user_id,
                "club_owner_id": self.club_owner_id,
                "section": section.value,
                "is_responsible": section in responsible,
            }
            for section in sections
        ]
        return execute(
            self.supabase.table(TableName.member_permissions.value).insert(rows),
            "salvataggio permessi membro"
        )

    async def _responsible_holders(self, section: AppSection) -> List[str]:
        rows = execute(
            self.supabase.table(TableName.member_permissions.value)
            .select("user_id")
            .eq("club_owner_id", self.club_owner_id)
            .eq("section", section.value)
            .eq("is_responsible", True),
            "verifica responsabili esistenti"
        )
        return [row["user_id"] for row in rows]
