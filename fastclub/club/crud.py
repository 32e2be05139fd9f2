"""
Gestori CRUD delle entità del club

Stessa forma per ogni tabella: elenco filtrato per club, creazione con
validazione dei campi obbligatori prima della scrittura, aggiornamento dei
soli campi forniti, eliminazione definitiva. Nessuna transazione tra entità:
ogni salvataggio è una scrittura indipendente.
"""

from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from loguru import logger

from ..auth.session import SessionContext
from ..database import TableName, execute, first_row
from ..exceptions import RecordNotFoundError, ValidationError
from .models import (
    CeremonyType,
    EventType,
    EventStatus,
    FeeGenerationResult,
    FeeStatus,
    MemberFeeStats,
    MemberStats,
    MemberStatus,
    NoteStatus,
    TransactionSummary,
    TransactionType,
)


class TenantCrudService:
    """CRUD generico su una tabella con colonna user_id = proprietario del club"""

    table: TableName
    label: str = "record"
    required_fields: Tuple[str, ...] = ()
    order_by: str = "created_at"
    order_desc: bool = True
    # filtri sempre applicati (es. event_type='meeting')
    fixed_filters: Dict[str, Any] = {}

    def __init__(self, session: SessionContext):
        self.session = session
        self.supabase = session.supabase
        self.club_owner_id = session.require_tenant()

    # =============================================
    # Validazione
    # =============================================

    def validate(self, data: Dict[str, Any], partial: bool = False) -> None:
        """Campi obbligatori presenti e non vuoti (partial: solo quelli forniti)"""
        for field_name in self.required_fields:
            if partial and field_name not in data:
                continue
            value = data.get(field_name)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise ValidationError(field_name, f"Il campo {field_name} è obbligatorio")

    def prepare(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Hook per normalizzare i dati prima della scrittura"""
        return data

    # =============================================
    # Operazioni
    # =============================================

    def _scoped(self, query):
        query = query.eq("user_id", self.club_owner_id)
        for column, value in self.fixed_filters.items():
            query = query.eq(column, value)
        return query

    async def list(self, status: Optional[str] = None, **filters: Any) -> List[Dict[str, Any]]:
        query = self._scoped(self.supabase.table(self.table.value).select("*"))
        if status:
            query = query.eq("status", status)
        for column, value in filters.items():
            if value is not None:
                query = query.eq(column, value)
        query = query.order(self.order_by, desc=self.order_desc)
        return execute(query, f"caricamento {self.label}")

    async def get(self, record_id: str) -> Dict[str, Any]:
        row = first_row(
            self._scoped(
                self.supabase.table(self.table.value).select("*").eq("id", record_id)
            ).maybe_single(),
            f"caricamento {self.label}"
        )
        if not row:
            raise RecordNotFoundError(self.table.value, record_id)
        return row

    async def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        self.validate(data)
        payload = {**self.prepare(dict(data)), **self.fixed_filters, "user_id": self.club_owner_id}
        rows = execute(
            self.supabase.table(self.table.value).insert(payload),
            f"creazione {self.label}"
        )
        logger.info(f"Creato {self.label} per il club {self.club_owner_id}")
        return rows[0] if rows else payload

    async def update(self, record_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        changes = {k: v for k, v in changes.items() if k not in ("id", "user_id")}
        self.validate(changes, partial=True)
        changes = self.prepare(changes)
        if not changes:
            return await self.get(record_id)

        rows = execute(
            self._scoped(
                self.supabase.table(self.table.value)
                .update(changes)
                .eq("id", record_id)
            ),
            f"aggiornamento {self.label}"
        )
        if not rows:
            raise RecordNotFoundError(self.table.value, record_id)
        return rows[0]

    async def delete(self, record_id: str) -> None:
        """Eliminazione definitiva (nessun annullamento)"""
        rows = execute(
            self._scoped(
                self.supabase.table(self.table.value).delete().eq("id", record_id)
            ),
            f"eliminazione {self.label}"
        )
        if not rows:
            raise RecordNotFoundError(self.table.value, record_id)
        logger.info(f"Eliminato {self.label} {record_id}")


# =============================================
# Soci
# =============================================

class MemberService(TenantCrudService):
    table = TableName.members
    label = "socio"
    required_fields = ("first_name", "last_name", "email")

    def prepare(self, data: Dict[str, Any]) -> Dict[str, Any]:
        # membership_start_date è NOT NULL: mai scrivere null
        if "membership_start_date" in data and data["membership_start_date"] is None:
            del data["membership_start_date"]
        return data

    async def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        if not data.get("membership_start_date"):
            data = {**data, "membership_start_date": date.today().isoformat()}
        return await super().create(data)

    async def stats(self) -> MemberStats:
        members = await self.list()

        def count(status: MemberStatus) -> int:
            return sum(1 for m in members if m.get("status") == status.value)

        return MemberStats(
            total=len(members),
            active=count(MemberStatus.active),
            honorary=count(MemberStatus.honorary),
            emeritus=count(MemberStatus.emeritus),
            guest=count(MemberStatus.guest)
        )


# =============================================
# Eventi e riunioni
# =============================================

class EventService(TenantCrudService):
    table = TableName.prefecture_events
    label = "evento"
    required_fields = ("title", "event_date", "event_type")
    order_by = "event_date"
    order_desc = False


class MeetingService(TenantCrudService):
    """Riunioni del direttivo: eventi con event_type='meeting'"""

    table = TableName.prefecture_events
    label = "riunione"
    required_fields = ("title", "event_date")
    order_by = "event_date"
    order_desc = False
    fixed_filters = {"event_type": EventType.meeting.value}

    def prepare(self, data: Dict[str, Any]) -> Dict[str, Any]:
        # meeting_type non è una colonna della tabella
        data.pop("meeting_type", None)
        return data

    async def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        data = {
            **data,
            "ceremony_type": CeremonyType.board_meeting.value,
            "status": EventStatus.planned.value,
        }
        return await super().create(data)


# =============================================
# Commissioni e progetti
# =============================================

class CommissionService(TenantCrudService):
    table = TableName.commissions
    label = "commissione"
    required_fields = ("name", "responsible_person")
    order_by = "name"
    order_desc = False


class ProjectService(TenantCrudService):
    """
    Progetti della presidenza.

    Un progetto può riferire una commissione: si assume che esista già,
    nessun rollback in caso di errore.
    """

    table = TableName.presidency_projects
    label = "progetto"
    required_fields = ("title",)


# =============================================
# Tesoreria
# =============================================

class TransactionService(TenantCrudService):
    table = TableName.transactions
    label = "transazione"
    required_fields = ("type", "amount", "description", "category", "transaction_date")
    order_by = "transaction_date"

    def prepare(self, data: Dict[str, Any]) -> Dict[str, Any]:
        if "amount" in data and data["amount"] is not None:
            data["amount"] = float(data["amount"])
        # stringhe vuote del form diventano null
        for optional in ("payment_method", "reference_number", "notes", "member_id"):
            if data.get(optional) == "":
                data[optional] = None
        return data

    async def summary(self) -> TransactionSummary:
        rows = await self.list()
        income = sum(float(r.get("amount") or 0) for r in rows if r.get("type") == TransactionType.income.value)
        expense = sum(float(r.get("amount") or 0) for r in rows if r.get("type") == TransactionType.expense.value)
        return TransactionSummary(
            income=income,
            expense=expense,
            balance=income - expense,
            count=len(rows)
        )


# =============================================
# Obiettivi e milestone
# =============================================

GOAL_ACTIVE = "active"


class GoalService(TenantCrudService):
    table = TableName.goals
    label = "obiettivo"
    required_fields = ("title",)

    async def list(self, status: Optional[str] = None, **filters: Any) -> List[Dict[str, Any]]:
        """Senza filtro esplicito solo gli obiettivi attivi"""
        return await super().list(status=status or GOAL_ACTIVE, **filters)

    async def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return await super().create({"status": GOAL_ACTIVE, **data})

    def prepare(self, data: Dict[str, Any]) -> Dict[str, Any]:
        if data.get("progress") is not None:
            data["progress"] = max(0, min(100, int(data["progress"])))
        return data


class MilestoneService(TenantCrudService):
    table = TableName.milestones
    label = "milestone"
    required_fields = ("title",)

    async def toggle(self, record_id: str) -> Dict[str, Any]:
        """Completa / riapre la milestone"""
        milestone = await self.get(record_id)
        completed = not milestone.get("completed", False)
        return await self.update(record_id, {
            "completed": completed,
            "completed_at": datetime.now(timezone.utc).isoformat() if completed else None,
        })


# =============================================
# Appunti della presidenza
# =============================================

class NoteService(TenantCrudService):
    table = TableName.presidency_notes
    label = "appunto"
    required_fields = ("content",)

    async def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        content = data.get("content")
        if isinstance(content, str):
            data = {**data, "content": content.strip()}
        return await super().create({
            **data,
            "created_by_user_id": self.session.user_id,
            "status": NoteStatus.active.value,
        })

    async def list_with_authors(self, status: NoteStatus = NoteStatus.active) -> List[Dict[str, Any]]:
        notes = await self.list(status=status.value)
        author_ids = sorted({n["created_by_user_id"] for n in notes if n.get("created_by_user_id")})
        names: Dict[str, str] = {}
        if author_ids:
            rows = execute(
                self.supabase.table(TableName.profiles.value)
                .select("user_id, full_name")
                .in_("user_id", author_ids),
                "caricamento autori appunti"
            )
            names = {row["user_id"]: row.get("full_name") for row in rows}
        return [
            {**note, "author_name": names.get(note.get("created_by_user_id")) or "Utente sconosciuto"}
            for note in notes
        ]

    async def archive(self, record_id: str) -> Dict[str, Any]:
        return await self.update(record_id, {"status": NoteStatus.archived.value})

    async def restore(self, record_id: str) -> Dict[str, Any]:
        return await self.update(record_id, {"status": NoteStatus.active.value})


# =============================================
# Ospiti VIP
# =============================================

class VipGuestService(TenantCrudService):
    table = TableName.vip_guests
    label = "ospite VIP"
    required_fields = ("name",)
    order_by = "name"
    order_desc = False

    def prepare(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return {k: (None if v == "" else v) for k, v in data.items()}


# =============================================
# Quote associative
# =============================================

ANNUAL_FEE_TYPE = "annual"
ANNUAL_FEE_AMOUNT = 50.0


def anniversary(start: date, year: int) -> date:
    """Anniversario di start nell'anno indicato (29/2 -> 28/2)"""
    try:
        return start.replace(year=year)
    except ValueError:
        return start.replace(year=year, day=28)


def annual_due_date(membership_start: date, today: date) -> date:
    """Prossimo anniversario di ingresso, oggi compreso"""
    due = anniversary(membership_start, today.year)
    if due < today:
        due = anniversary(membership_start, today.year + 1)
    return due


class MemberFeeService(TenantCrudService):
    table = TableName.member_fees
    label = "quota"
    required_fields = ("member_id", "fee_type", "amount", "due_date")
    order_by = "due_date"

    def prepare(self, data: Dict[str, Any]) -> Dict[str, Any]:
        if data.get("amount") is not None:
            data["amount"] = float(data["amount"])
        return data

    async def stats(self) -> MemberFeeStats:
        fees = await self.list()

        def count(status: FeeStatus) -> int:
            return sum(1 for fee in fees if fee.get("status") == status.value)

        return MemberFeeStats(
            total=len(fees),
            pending=count(FeeStatus.pending),
            overdue=count(FeeStatus.overdue),
            paid=count(FeeStatus.paid)
        )

    async def mark_paid(
        self,
        record_id: str,
        payment_method: str = "Contanti",
        today: Optional[date] = None
    ) -> Dict[str, Any]:
        today = today or date.today()
        return await self.update(record_id, {
            "status": FeeStatus.paid.value,
            "paid_date": today.isoformat(),
            "payment_method": payment_method,
        })

    async def generate_annual_fees(
        self,
        amount: float = ANNUAL_FEE_AMOUNT,
        today: Optional[date] = None
    ) -> FeeGenerationResult:
        """
        Crea la quota annuale dei soci attivi che non ce l'hanno.

        La scadenza è il prossimo anniversario di ingresso; un socio ha al
        massimo una quota annuale per anno di scadenza.
        """
        today = today or date.today()
        members = execute(
            self.supabase.table(TableName.members.value)
            .select("id, first_name, membership_start_date")
            .eq("user_id", self.club_owner_id)
            .eq("status", MemberStatus.active.value)
            .order("first_name"),
            "caricamento soci attivi"
        )
        existing = {
            (fee["member_id"], str(fee["due_date"])[:4])
            for fee in await self.list(fee_type=ANNUAL_FEE_TYPE)
        }

        to_create = []
        for member in members:
            start = member.get("membership_start_date")
            if not start:
                logger.warning(f"Socio {member['id']} senza data di ingresso: quota non generata")
                continue
            due = annual_due_date(date.fromisoformat(str(start)[:10]), today)
            if (member["id"], str(due.year)) in existing:
                continue
            to_create.append({
                "user_id": self.club_owner_id,
                "member_id": member["id"],
                "fee_type": ANNUAL_FEE_TYPE,
                "amount": float(amount),
                "due_date": due.isoformat(),
                "status": FeeStatus.pending.value,
                "notes": f"Quota annuale {due.year} - Generata automaticamente",
            })

        if not to_create:
            return FeeGenerationResult(created=0)

        rows = execute(
            self.supabase.table(self.table.value).insert(to_create),
            "generazione quote annuali"
        )
        logger.info(f"Generate {len(rows)} quote annuali per il club {self.club_owner_id}")
        return FeeGenerationResult(created=len(rows), fees=rows)


# =============================================
# Cronologia cariche
# =============================================

class PositionHistoryService(TenantCrudService):
    table = TableName.position_history
    label = "carica"
    required_fields = ("member_id", "position", "start_date")
    order_by = "start_date"

    def prepare(self, data: Dict[str, Any]) -> Dict[str, Any]:
        if isinstance(data.get("position"), str):
            data["position"] = data["position"].strip()
        if "notes" in data:
            data["notes"] = (data["notes"] or "").strip() or None
        return data

    async def for_member(self, member_id: str) -> List[Dict[str, Any]]:
        """Cariche del socio, dalla più recente"""
        return await self.list(member_id=member_id)

    async def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Nuova carica; senza data di fine diventa la carica attuale del socio"""
        self.validate(data)
        await MemberService(self.session).get(data["member_id"])

        position = await super().create(data)
        if not position.get("end_date"):
            execute(
                self.supabase.table(TableName.members.value)
                .update({"current_position": position["position"]})
                .eq("id", position["member_id"])
                .eq("user_id", self.club_owner_id),
                "aggiornamento carica attuale"
            )
        return position


# =============================================
# Eventi distrettuali
# =============================================

class DistrictEventService(TenantCrudService):
    table = TableName.district_events
    label = "evento distrettuale"
    required_fields = ("nome",)
    order_by = "nome"
    order_desc = False

    def prepare(self, data: Dict[str, Any]) -> Dict[str, Any]:
        for optional in ("luogo", "descrizione"):
            if data.get(optional) == "":
                data[optional] = None
        return data
