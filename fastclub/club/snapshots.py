"""
Log attività admin e ripristino dai backup

Il ripristino sovrascrive l'intera riga di destinazione con il contenuto del
backup. La tabella è validata contro l'insieme chiuso TableName e i dati
contro il modello di riga della tabella.
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Type

from loguru import logger
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..auth.session import SessionContext
from ..config import get_settings
from ..database import TableName, execute, first_row
from ..exceptions import (
    PermissionDeniedError,
    RecordNotFoundError,
    ValidationError,
)
from .models import (
    ActivityLogEntry,
    CommissionRow,
    DataSnapshot,
    EventRow,
    GoalRow,
    MemberRow,
    ProjectRow,
    RestoreResponse,
    TransactionRow,
    VipGuestRow,
)

# Tabelle ripristinabili e relativo modello di riga
RESTORABLE_TABLES: Dict[TableName, Type[BaseModel]] = {
    TableName.members: MemberRow,
    TableName.transactions: TransactionRow,
    TableName.commissions: CommissionRow,
    TableName.prefecture_events: EventRow,
    TableName.presidency_projects: ProjectRow,
    TableName.goals: GoalRow,
    TableName.vip_guests: VipGuestRow,
}

TABLE_LABELS: Dict[TableName, str] = {
    TableName.members: "Soci",
    TableName.transactions: "Transazioni",
    TableName.commissions: "Commissioni",
    TableName.prefecture_events: "Eventi Prefettura",
    TableName.presidency_projects: "Progetti",
    TableName.goals: "Obiettivi",
    TableName.vip_guests: "Ospiti VIP",
}


def parse_restorable_table(name: str) -> TableName:
    """Nome di tabella del backup -> TableName ripristinabile"""
    try:
        table = TableName(name)
    except ValueError:
        raise ValidationError("table_name", f"Tabella sconosciuta: {name}")
    if table not in RESTORABLE_TABLES:
        raise ValidationError("table_name", f"La tabella {name} non è ripristinabile")
    return table


class AdminActivityService:
    """Log attività e backup del club (solo admin)"""

    def __init__(self, session: SessionContext):
        if not session.is_admin:
            raise PermissionDeniedError("Permessi di amministratore richiesti")
        self.session = session
        self.supabase = session.supabase
        self.club_owner_id = session.user_id
        self.settings = get_settings()

    async def list_activities(self) -> List[ActivityLogEntry]:
        rows = execute(
            self.supabase.table(TableName.admin_activity_log.value)
            .select("*")
            .eq("club_owner_id", self.club_owner_id)
            .order("created_at", desc=True)
            .limit(self.settings.activity_log_limit),
            "caricamento log attività"
        )
        return [ActivityLogEntry(**row) for row in rows]

    async def list_snapshots(self) -> List[DataSnapshot]:
        since = datetime.now(timezone.utc) - timedelta(hours=self.settings.snapshot_window_hours)
        rows = execute(
            self.supabase.table(TableName.data_snapshots.value)
            .select("*")
            .eq("club_owner_id", self.club_owner_id)
            .gte("created_at", since.isoformat())
            .order("created_at", desc=True),
            "caricamento backup"
        )
        return [DataSnapshot(**row) for row in rows]

    async def restore(self, snapshot_id: str) -> RestoreResponse:
        """Sovrascrive la riga record_id con snapshot_data"""
        row = first_row(
            self.supabase.table(TableName.data_snapshots.value)
            .select("*")
            .eq("id", snapshot_id)
            .eq("club_owner_id", self.club_owner_id)
            .maybe_single(),
            "caricamento backup"
        )
        if not row:
            raise RecordNotFoundError(TableName.data_snapshots.value, snapshot_id)

        snapshot = DataSnapshot(**row)
        table = parse_restorable_table(snapshot.table_name)
        row_model = RESTORABLE_TABLES[table]

        try:
            typed_row = row_model(**snapshot.snapshot_data)
        except PydanticValidationError as e:
            raise ValidationError("snapshot_data", f"Backup non valido per {table.value}: {e}")

        if typed_row.id != snapshot.record_id:
            raise ValidationError("snapshot_data", "L'id del backup non corrisponde al record")
        if typed_row.user_id != self.club_owner_id:
            raise ValidationError("snapshot_data", "Il backup appartiene a un altro club")

        data = typed_row.model_dump(mode="json", exclude_unset=True)
        rows = execute(
            self.supabase.table(table.value)
            .update(data)
            .eq("id", snapshot.record_id)
            .eq("user_id", self.club_owner_id),
            f"ripristino {table.value}"
        )
        if not rows:
            raise RecordNotFoundError(table.value, snapshot.record_id)

        label = TABLE_LABELS[table]
        logger.info(
            f"Ripristinato {label} {snapshot.record_id} dal backup {snapshot.id} "
            f"({snapshot.created_at.isoformat()})"
        )
        return RestoreResponse(
            table_name=table.value,
            table_label=label,
            record_id=snapshot.record_id,
            restored_fields=sorted(data.keys())
        )

    async def cleanup_old_snapshots(self) -> None:
        """Elimina i backup scaduti (RPC lato database)"""
        execute(self.supabase.rpc("cleanup_old_snapshots", {}), "pulizia backup")
        logger.info(f"Pulizia backup eseguita per il club {self.club_owner_id}")
