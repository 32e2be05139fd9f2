"""
Pagina pubblica del club e lista d'attesa (nessuna autenticazione)
"""

from datetime import date
from typing import Any, Dict, Optional

from loguru import logger

from ..config import get_settings
from ..database import TableName, execute, first_row
from ..exceptions import BackendError, RecordNotFoundError, ValidationError
from .models import PublicClubPage, PublicMember, WaitingListEntry

UPCOMING_EVENTS_LIMIT = 5

# codice Postgres di violazione di vincolo unique
UNIQUE_VIOLATION = "23505"


def public_url(profile: Dict[str, Any]) -> Optional[str]:
    slug = profile.get("club_slug")
    if not slug:
        return None
    return f"{get_settings().public_site_url.rstrip('/')}/club/{slug}"


class PublicPageService:
    def __init__(self, supabase):
        self.supabase = supabase

    async def get_public_page(self, slug: str, today: Optional[date] = None) -> PublicClubPage:
        profile = first_row(
            self.supabase.table(TableName.profiles.value)
            .select("*")
            .eq("club_slug", slug)
            .maybe_single(),
            "caricamento club"
        )
        if not profile:
            raise RecordNotFoundError(TableName.profiles.value, slug)

        owner_id = profile["user_id"]
        members = execute(
            self.supabase.table(TableName.club_members.value)
            .select("id, user_id, role, joined_at")
            .eq("club_owner_id", owner_id)
            .eq("status", "active"),
            "caricamento soci pubblici"
        )
        user_ids = sorted({m["user_id"] for m in members})
        profiles: Dict[str, Dict[str, Any]] = {}
        if user_ids:
            rows = execute(
                self.supabase.table(TableName.profiles.value)
                .select("user_id, full_name, role")
                .in_("user_id", user_ids),
                "caricamento profili soci"
            )
            profiles = {row["user_id"]: row for row in rows}

        today = today or date.today()
        events = execute(
            self.supabase.table(TableName.prefecture_events.value)
            .select("*")
            .eq("user_id", owner_id)
            .gte("event_date", today.isoformat())
            .order("event_date")
            .limit(UPCOMING_EVENTS_LIMIT),
            "caricamento prossimi eventi"
        )

        public_members = []
        for member in members:
            member_profile = profiles.get(member["user_id"], {})
            public_members.append(PublicMember(
                user_id=member["user_id"],
                full_name=member_profile.get("full_name") or "Nome non disponibile",
                role=member.get("role") or member_profile.get("role") or "member",
                joined_at=member.get("joined_at")
            ))

        return PublicClubPage(
            club_name=profile.get("club_name") or profile.get("full_name") or slug,
            club_slug=slug,
            bio=profile.get("bio"),
            phone=profile.get("phone"),
            address=profile.get("address"),
            default_location=profile.get("default_location"),
            default_logo_url=profile.get("default_logo_url"),
            president_name=profile.get("president_name"),
            secretary_name=profile.get("secretary_name"),
            members=public_members,
            upcoming_events=events,
            public_url=public_url(profile)
        )


class WaitingListService:
    """Iscrizione alla lista d'attesa dalla home pubblica"""

    def __init__(self, supabase):
        self.supabase = supabase

    async def join(self, entry: WaitingListEntry) -> Dict[str, Any]:
        payload = entry.model_dump(mode="json")
        for field_name, value in payload.items():
            if not str(value).strip():
                raise ValidationError(field_name, "Tutti i campi sono obbligatori")
        payload = {k: str(v).strip() for k, v in payload.items()}

        try:
            rows = execute(
                self.supabase.table(TableName.waiting_list.value).insert(payload),
                "iscrizione lista d'attesa"
            )
        except BackendError as e:
            if getattr(e.original_error, "code", None) == UNIQUE_VIOLATION:
                raise ValidationError("email", "Questa email è già registrata nella waiting list")
            raise

        logger.info(f"Nuova iscrizione alla lista d'attesa: {payload['club_name']} ({payload['city']})")
        return rows[0] if rows else payload
