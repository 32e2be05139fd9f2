"""
Inviti e soci del club

Gestiti dal proprietario del club (admin). L'invito viene salvato prima
dell'invio dell'email: se l'email fallisce l'invito resta valido.
"""

import secrets
from typing import Any, Dict, List, Optional

from loguru import logger

from ..auth.session import SessionContext
from ..database import TableName, execute, first_row
from ..exceptions import BackendError, PermissionDeniedError, RecordNotFoundError
from ..integrations import FunctionsGateway
from .models import ClubPricing, InviteCreate, InviteResponse

DEFAULT_MEMBER_COUNT = 1
DEFAULT_MONTHLY_PRICE = 15.0


class ClubInviteService:
    """Inviti, elenco soci e prezzo dell'abbonamento"""

    def __init__(self, session: SessionContext, functions: Optional[FunctionsGateway] = None):
        if not session.is_admin:
            raise PermissionDeniedError("Solo il proprietario del club può gestire gli inviti")
        self.session = session
        self.supabase = session.supabase
        self.club_owner_id = session.user_id
        self.functions = functions or FunctionsGateway(session.supabase)

    async def create_invite(self, invite: InviteCreate) -> InviteResponse:
        payload = {
            "user_id": self.club_owner_id,
            "email": invite.email,
            "first_name": invite.first_name.strip(),
            "last_name": invite.last_name.strip(),
            "role": invite.role,
            "permissions": [section.value for section in invite.permissions],
            "invite_token": secrets.token_urlsafe(32),
        }
        rows = execute(
            self.supabase.table(TableName.club_invites.value).insert(payload),
            "creazione invito"
        )
        if not rows or not rows[0].get("id"):
            raise BackendError("Impossibile recuperare l'ID dell'invito creato")
        saved = rows[0]
        logger.info(f"Invito creato per {invite.email} (club {self.club_owner_id})")

        try:
            self.functions.send_club_invite(saved["id"])
        except BackendError as e:
            logger.warning(f"Invito {saved['id']} salvato ma email non inviata: {e}")
            return InviteResponse(
                invite=saved,
                email_sent=False,
                warning=f"L'invito è stato creato ma c'è stato un errore nell'invio dell'email: {e}"
            )
        return InviteResponse(invite=saved, email_sent=True)

    async def list_invites(self) -> List[Dict[str, Any]]:
        return execute(
            self.supabase.table(TableName.club_invites.value)
            .select("*")
            .eq("user_id", self.club_owner_id)
            .order("created_at", desc=True),
            "caricamento inviti"
        )

    async def delete_invite(self, invite_id: str) -> None:
        rows = execute(
            self.supabase.table(TableName.club_invites.value)
            .delete()
            .eq("id", invite_id)
            .eq("user_id", self.club_owner_id),
            "eliminazione invito"
        )
        if not rows:
            raise RecordNotFoundError(TableName.club_invites.value, invite_id)
        logger.info(f"Invito {invite_id} eliminato")

    async def list_members(self) -> List[Dict[str, Any]]:
        """Soci registrati del club con il nome dal profilo"""
        members = execute(
            self.supabase.table(TableName.club_members.value)
            .select("id, user_id, role, status, joined_at")
            .eq("club_owner_id", self.club_owner_id)
            .order("joined_at", desc=True),
            "caricamento soci del club"
        )
        user_ids = sorted({m["user_id"] for m in members})
        names: Dict[str, str] = {}
        if user_ids:
            rows = execute(
                self.supabase.table(TableName.profiles.value)
                .select("user_id, full_name")
                .in_("user_id", user_ids),
                "caricamento profili soci"
            )
            names = {row["user_id"]: row.get("full_name") for row in rows}
        return [
            {**member, "full_name": names.get(member["user_id"]) or "Nome non disponibile"}
            for member in members
        ]

    async def pricing(self) -> ClubPricing:
        count = first_row(
            self.supabase.rpc("get_club_member_count", {"club_owner_uuid": self.club_owner_id}),
            "conteggio soci"
        )
        member_count = _scalar(count) or DEFAULT_MEMBER_COUNT
        price = first_row(
            self.supabase.rpc("calculate_club_price", {"member_count": member_count}),
            "calcolo prezzo"
        )
        return ClubPricing(
            member_count=int(member_count),
            price=float(_scalar(price) or DEFAULT_MONTHLY_PRICE)
        )


def _scalar(value: Any) -> Any:
    """Le RPC scalari possono tornare il valore o {nome_funzione: valore}"""
    if isinstance(value, dict):
        return next(iter(value.values()), None)
    return value
