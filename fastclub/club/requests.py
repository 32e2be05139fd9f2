"""
Richieste e commenti di sezione

Thread a due livelli (richiesta + risposte) per sezione e per club.
"""

from typing import Any, Dict, Iterable, List, Optional

from loguru import logger

from ..auth.session import SessionContext
from ..database import TableName, execute, first_row
from ..exceptions import (
    PermissionDeniedError,
    RecordNotFoundError,
    ValidationError,
)
from .models import (
    SECTION_LABELS,
    AppSection,
    ReplyMessage,
    RequestStatus,
    TopLevelMessage,
    message_from_row,
)
from .permissions import ResponsibilityLookup


def _require_content(content: Optional[str]) -> str:
    """Il contenuto vuoto viene rifiutato prima di qualsiasi scrittura"""
    if content is None or not content.strip():
        raise ValidationError("content", "Il contenuto non può essere vuoto")
    return content


class SectionRequestStore:
    """Archivio delle richieste di sezione"""

    def __init__(self, session: SessionContext):
        self.session = session
        self.supabase = session.supabase
        self.responsibility = ResponsibilityLookup(session.user_id, session.supabase)

    # =============================================
    # Controlli
    # =============================================

    def _check_section(self, section: AppSection) -> None:
        if not self.session.has_permission(section):
            raise PermissionDeniedError(
                f"Accesso negato alla sezione {SECTION_LABELS[section]}"
            )

    async def can_moderate(self, section: AppSection) -> bool:
        """Risposta e archiviazione: solo responsabile della sezione o admin"""
        if self.session.is_admin:
            return True
        club_owner_id = self.session.club_owner_id
        if not club_owner_id:
            return False
        return await self.responsibility.is_responsible(club_owner_id, section)

    def _load(self, request_id: str, club_owner_id: str) -> Dict[str, Any]:
        row = first_row(
            self.supabase.table(TableName.section_requests.value)
            .select("*")
            .eq("id", request_id)
            .eq("club_owner_id", club_owner_id)
            .maybe_single(),
            "caricamento richiesta"
        )
        if not row:
            raise RecordNotFoundError(TableName.section_requests.value, request_id)
        return row

    # =============================================
    # Scrittura
    # =============================================

    async def submit(self, section: AppSection, content: str) -> TopLevelMessage:
        """Nuova richiesta attiva di primo livello"""
        content = _require_content(content)
        self._check_section(section)
        club_owner_id = self.session.require_tenant()

        rows = execute(
            self.supabase.table(TableName.section_requests.value).insert({
                "user_id": self.session.user_id,
                "club_owner_id": club_owner_id,
                "section": section.value,
                "content": content,
                "status": RequestStatus.active.value,
            }),
            "invio richiesta"
        )
        logger.info(f"Richiesta inviata in {section.value} da {self.session.user_id}")
        return message_from_row(rows[0], self._own_name())

    async def reply(self, parent_id: str, content: str) -> ReplyMessage:
        """Risposta a una richiesta di primo livello"""
        content = _require_content(content)
        club_owner_id = self.session.require_tenant()
        parent = self._load(parent_id, club_owner_id)

        if parent.get("parent_id"):
            raise ValidationError("parent_id", "Non è possibile rispondere a una risposta")

        section = AppSection(parent["section"])
        self._check_section(section)
        if not await self.can_moderate(section):
            raise PermissionDeniedError(
                "Solo il responsabile della sezione può rispondere"
            )

        rows = execute(
            self.supabase.table(TableName.section_requests.value).insert({
                "user_id": self.session.user_id,
                "club_owner_id": club_owner_id,
                "section": section.value,
                "content": content,
                "parent_id": parent_id,
                "status": RequestStatus.active.value,
            }),
            "invio risposta"
        )
        return message_from_row(rows[0], self._own_name())

    async def archive(self, request_id: str) -> TopLevelMessage:
        """Archivia una richiesta (nessun ripristino per gli utenti ordinari)"""
        club_owner_id = self.session.require_tenant()
        row = self._load(request_id, club_owner_id)

        section = AppSection(row["section"])
        self._check_section(section)
        if not await self.can_moderate(section):
            raise PermissionDeniedError(
                "Solo il responsabile della sezione può archiviare"
            )
        if row.get("parent_id"):
            raise ValidationError("id", "Si possono archiviare solo le richieste principali")

        rows = execute(
            self.supabase.table(TableName.section_requests.value)
            .update({"status": RequestStatus.archived.value})
            .eq("id", request_id),
            "archiviazione richiesta"
        )
        updated = rows[0] if rows else {**row, "status": RequestStatus.archived.value}
        return message_from_row(updated)

    # =============================================
    # Lettura
    # =============================================

    async def list(
        self,
        section: AppSection,
        status: RequestStatus = RequestStatus.active
    ) -> List[TopLevelMessage]:
        """
        Thread della sezione con lo stato richiesto.

        Tre query in tutto: richieste principali, risposte di quelle
        richieste, nomi degli autori. Richieste dalla più recente, risposte
        in ordine cronologico.
        """
        self._check_section(section)
        club_owner_id = self.session.club_owner_id
        if not club_owner_id:
            return []

        top_rows = execute(
            self.supabase.table(TableName.section_requests.value)
            .select("*")
            .eq("club_owner_id", club_owner_id)
            .eq("section", section.value)
            .eq("status", status.value)
            .is_("parent_id", "null")
            .order("created_at", desc=True),
            "caricamento richieste"
        )
        top_rows = [row for row in top_rows if not row.get("parent_id")]
        if not top_rows:
            return []

        ids = [row["id"] for row in top_rows]
        reply_rows = execute(
            self.supabase.table(TableName.section_requests.value)
            .select("*")
            .in_("parent_id", ids)
            .order("created_at"),
            "caricamento risposte"
        )

        names = self._author_names(
            [row["user_id"] for row in top_rows] + [row["user_id"] for row in reply_rows]
        )

        replies_by_parent: Dict[str, List[ReplyMessage]] = {}
        for row in reply_rows:
            reply = message_from_row(row, names.get(row["user_id"]))
            replies_by_parent.setdefault(reply.parent_id, []).append(reply)

        threads = []
        for row in top_rows:
            thread = message_from_row(row, names.get(row["user_id"]))
            thread.replies = sorted(
                replies_by_parent.get(thread.id, []),
                key=lambda r: r.created_at
            )
            threads.append(thread)

        threads.sort(key=lambda t: t.created_at, reverse=True)
        return threads

    def _author_names(self, user_ids: Iterable[str]) -> Dict[str, str]:
        unique_ids = sorted(set(user_ids))
        if not unique_ids:
            return {}
        rows = execute(
            self.supabase.table(TableName.profiles.value)
            .select("user_id, full_name")
            .in_("user_id", unique_ids),
            "caricamento autori"
        )
        return {row["user_id"]: row.get("full_name") for row in rows}

    def _own_name(self) -> Optional[str]:
        profile = self.session.profile
        return profile.full_name if profile else None
