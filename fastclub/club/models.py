"""
Club Management Models

Modelli Pydantic ed enumerazioni del portale
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union
from enum import Enum
from pydantic import BaseModel, ConfigDict, EmailStr, Field


# =============================================
# Enums
# =============================================

class AppSection(str, Enum):
    """Aree funzionali dell'applicazione (unità di concessione dei permessi)"""
    dashboard = "dashboard"
    segreteria = "segreteria"
    tesoreria = "tesoreria"
    presidenza = "presidenza"
    prefettura = "prefettura"
    direttivo = "direttivo"
    comunicazione = "comunicazione"
    soci = "soci"
    commissioni = "commissioni"
    organigramma = "organigramma"


SECTION_LABELS: Dict[AppSection, str] = {
    AppSection.dashboard: "Dashboard",
    AppSection.segreteria: "Segreteria",
    AppSection.tesoreria: "Tesoreria",
    AppSection.presidenza: "Presidenza",
    AppSection.prefettura: "Prefettura",
    AppSection.direttivo: "Direttivo",
    AppSection.comunicazione: "Comunicazione",
    AppSection.soci: "Soci",
    AppSection.commissioni: "Commissioni",
    AppSection.organigramma: "Organigramma",
}

ALL_SECTIONS = frozenset(AppSection)


class ProfileRole(str, Enum):
    """Ruolo del profilo"""
    admin = "admin"     # proprietario del club
    member = "member"


class RequestStatus(str, Enum):
    """Stato di una richiesta di sezione"""
    active = "active"
    archived = "archived"


class EventStatus(str, Enum):
    """Stato di evento/cerimonia"""
    planned = "planned"           # Da Programmare
    in_progress = "in_progress"   # Programmate
    completed = "completed"       # Eseguite
    cancelled = "cancelled"       # Annullate (non è una colonna del Kanban)


class EventType(str, Enum):
    """Tipo di evento della prefettura"""
    ceremony = "ceremony"
    meeting = "meeting"
    event = "event"


class CeremonyType(str, Enum):
    """Sottotipo di cerimonia"""
    insediamento = "insediamento"
    premiazione = "premiazione"
    ammissione = "ammissione"
    board_meeting = "board_meeting"
    altro = "altro"


class ProjectStatus(str, Enum):
    """Stato di un progetto di commissione"""
    ideas = "ideas"
    to_organize = "to_organize"
    organized = "organized"
    completed = "completed"


class MemberStatus(str, Enum):
    """Stato del socio"""
    active = "active"
    honorary = "honorary"
    emeritus = "emeritus"
    guest = "guest"
    inactive = "inactive"


class TransactionType(str, Enum):
    """Entrata / uscita"""
    income = "income"
    expense = "expense"


class NoteStatus(str, Enum):
    active = "active"
    archived = "archived"


class FeeStatus(str, Enum):
    """Stato della quota associativa"""
    pending = "pending"
    overdue = "overdue"
    paid = "paid"


class VipStatus(str, Enum):
    active = "active"
    inactive = "inactive"


class MeetingType(str, Enum):
    board = "board"
    general = "general"
    extraordinary = "extraordinary"


class ActionType(str, Enum):
    """Tipo di azione registrata nel log admin"""
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


# =============================================
# Sessione / permessi
# =============================================

class Profile(BaseModel):
    """Profilo utente (tabella profiles)"""
    model_config = ConfigDict(extra="ignore")

    user_id: str
    full_name: str = ""
    role: Optional[str] = None
    club_name: Optional[str] = None
    club_slug: Optional[str] = None
    president_name: Optional[str] = None
    secretary_name: Optional[str] = None
    trial_start_date: Optional[datetime] = None
    account_status: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ProfileRole.admin.value


class SectionResponsible(BaseModel):
    """Responsabile di una sezione"""
    full_name: str
    email: str


class PermissionsResponse(BaseModel):
    """Sezioni accessibili all'utente corrente"""
    user_id: str
    is_admin: bool
    sections: List[AppSection]


class MemberPermissionsUpdate(BaseModel):
    """Sostituzione dei permessi di un membro"""
    sections: List[AppSection] = []
    responsible_sections: List[AppSection] = []


# =============================================
# Richieste e commenti
# =============================================

class RequestCreate(BaseModel):
    """Nuova richiesta o risposta"""
    content: str


class SectionMessage(BaseModel):
    """Campi comuni di un messaggio"""
    id: str
    user_id: str
    user_name: Optional[str] = None
    section: AppSection
    content: str
    status: RequestStatus
    created_at: datetime


class ReplyMessage(SectionMessage):
    """Risposta (un solo livello)"""
    parent_id: str


class TopLevelMessage(SectionMessage):
    """Richiesta principale con le sue risposte in ordine cronologico"""
    parent_id: None = None
    replies: List[ReplyMessage] = []


Message = Union[TopLevelMessage, ReplyMessage]


def message_from_row(row: Dict[str, Any], user_name: Optional[str] = None) -> Message:
    """Costruisce il messaggio giusto a seconda di parent_id"""
    fields = {k: v for k, v in row.items() if k in ReplyMessage.model_fields}
    fields["user_name"] = user_name
    if row.get("parent_id"):
        return ReplyMessage(**fields)
    fields.pop("parent_id", None)
    return TopLevelMessage(**fields)


# =============================================
# Kanban
# =============================================

class DragLocation(BaseModel):
    """Posizione di una card (colonna + indice)"""
    column: str
    index: int = Field(ge=0)


class DragResult(BaseModel):
    """Esito di un drag-and-drop"""
    card_id: str
    source: DragLocation
    destination: Optional[DragLocation] = None


class KanbanColumnResponse(BaseModel):
    id: str
    title: str
    status: str
    cards: List[Dict[str, Any]]


class KanbanBoardResponse(BaseModel):
    columns: List[KanbanColumnResponse]
    moved: bool = False


class CeremonyStats(BaseModel):
    """Statistiche cerimonie"""
    total: int = 0
    insediamenti: int = 0
    premiazioni: int = 0
    ammissioni: int = 0
    by_status: Dict[str, int] = {}


# =============================================
# Soci
# =============================================

class MemberCreate(BaseModel):
    first_name: str
    last_name: str
    email: EmailStr
    membership_start_date: date = Field(default_factory=date.today)
    current_position: Optional[str] = None
    status: MemberStatus = MemberStatus.active
    notes: Optional[str] = None


class MemberUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None
    membership_start_date: Optional[date] = None
    current_position: Optional[str] = None
    status: Optional[MemberStatus] = None
    notes: Optional[str] = None


class MemberStats(BaseModel):
    total: int = 0
    active: int = 0
    honorary: int = 0
    emeritus: int = 0
    guest: int = 0


# =============================================
# Eventi / cerimonie / riunioni
# =============================================

class EventCreate(BaseModel):
    title: str
    event_date: date
    event_type: EventType = EventType.ceremony
    ceremony_type: Optional[CeremonyType] = None
    event_time: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    participants: int = Field(default=0, ge=0)
    status: EventStatus = EventStatus.planned
    notes: Optional[str] = None


class EventUpdate(BaseModel):
    title: Optional[str] = None
    event_date: Optional[date] = None
    event_type: Optional[EventType] = None
    ceremony_type: Optional[CeremonyType] = None
    event_time: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    participants: Optional[int] = Field(default=None, ge=0)
    status: Optional[EventStatus] = None
    notes: Optional[str] = None


class MeetingCreate(BaseModel):
    """Riunione del direttivo"""
    title: str
    event_date: date
    event_time: str = "19:00"
    location: Optional[str] = None
    description: Optional[str] = None
    meeting_type: MeetingType = MeetingType.board


class MeetingUpdate(BaseModel):
    title: Optional[str] = None
    event_date: Optional[date] = None
    event_time: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    participants: Optional[int] = Field(default=None, ge=0)
    status: Optional[EventStatus] = None


# =============================================
# Commissioni / progetti
# =============================================

class CommissionCreate(BaseModel):
    name: str
    responsible_person: str
    description: Optional[str] = None


class CommissionUpdate(BaseModel):
    name: Optional[str] = None
    responsible_person: Optional[str] = None
    description: Optional[str] = None


class ProjectCreate(BaseModel):
    title: str
    commission_id: Optional[str] = None
    description: Optional[str] = None
    assigned_to: Optional[str] = None
    budget: Optional[float] = None
    deadline: Optional[date] = None
    priority: Optional[str] = None
    progress: int = Field(default=0, ge=0, le=100)
    status: ProjectStatus = ProjectStatus.ideas
    notes: Optional[str] = None


class ProjectUpdate(BaseModel):
    title: Optional[str] = None
    commission_id: Optional[str] = None
    description: Optional[str] = None
    assigned_to: Optional[str] = None
    budget: Optional[float] = None
    deadline: Optional[date] = None
    priority: Optional[str] = None
    progress: Optional[int] = Field(default=None, ge=0, le=100)
    status: Optional[ProjectStatus] = None
    notes: Optional[str] = None


# =============================================
# Tesoreria
# =============================================

class TransactionCreate(BaseModel):
    type: TransactionType
    amount: float = Field(gt=0)
    description: str
    category: str
    transaction_date: date
    payment_method: Optional[str] = None
    reference_number: Optional[str] = None
    notes: Optional[str] = None
    member_id: Optional[str] = None


class TransactionUpdate(BaseModel):
    type: Optional[TransactionType] = None
    amount: Optional[float] = Field(default=None, gt=0)
    description: Optional[str] = None
    category: Optional[str] = None
    transaction_date: Optional[date] = None
    payment_method: Optional[str] = None
    reference_number: Optional[str] = None
    notes: Optional[str] = None
    member_id: Optional[str] = None


class TransactionSummary(BaseModel):
    income: float = 0.0
    expense: float = 0.0
    balance: float = 0.0
    count: int = 0


# =============================================
# Obiettivi / milestone
# =============================================

class GoalCreate(BaseModel):
    title: str
    description: Optional[str] = None
    target_date: Optional[date] = None
    progress: int = 0
    status: str = "active"


class GoalUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    target_date: Optional[date] = None
    progress: Optional[int] = None
    status: Optional[str] = None


class MilestoneCreate(BaseModel):
    title: str
    description: Optional[str] = None
    due_date: Optional[date] = None
    goal_id: Optional[str] = None


class MilestoneUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[date] = None
    goal_id: Optional[str] = None


# =============================================
# Appunti presidenza / ospiti VIP
# =============================================

class NoteCreate(BaseModel):
    content: str


class NoteUpdate(BaseModel):
    content: Optional[str] = None


class VipGuestCreate(BaseModel):
    name: str
    title: Optional[str] = None
    organization: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    special_requirements: Optional[str] = None
    protocol_notes: Optional[str] = None
    status: VipStatus = VipStatus.active


class VipGuestUpdate(BaseModel):
    name: Optional[str] = None
    title: Optional[str] = None
    organization: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    special_requirements: Optional[str] = None
    protocol_notes: Optional[str] = None
    status: Optional[VipStatus] = None


# =============================================
# Quote / cronologia cariche
# =============================================

class MemberFeeCreate(BaseModel):
    member_id: str
    fee_type: str = "annual"
    amount: float = Field(gt=0)
    due_date: date
    status: FeeStatus = FeeStatus.pending
    paid_date: Optional[date] = None
    payment_method: Optional[str] = None
    transaction_id: Optional[str] = None
    notes: Optional[str] = None


class MemberFeeUpdate(BaseModel):
    fee_type: Optional[str] = None
    amount: Optional[float] = Field(default=None, gt=0)
    due_date: Optional[date] = None
    status: Optional[FeeStatus] = None
    paid_date: Optional[date] = None
    payment_method: Optional[str] = None
    transaction_id: Optional[str] = None
    notes: Optional[str] = None


class MemberFeeStats(BaseModel):
    total: int = 0
    pending: int = 0
    overdue: int = 0
    paid: int = 0


class FeeGenerationResult(BaseModel):
    created: int
    fees: List[Dict[str, Any]] = []


class PositionCreate(BaseModel):
    member_id: str
    position: str
    start_date: date = Field(default_factory=date.today)
    end_date: Optional[date] = None
    notes: Optional[str] = None


class PositionUpdate(BaseModel):
    position: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    notes: Optional[str] = None


# =============================================
# Eventi distrettuali / lista d'attesa
# =============================================

class DistrictEventCreate(BaseModel):
    nome: str
    luogo: Optional[str] = None
    descrizione: Optional[str] = None
    giorno: Optional[int] = Field(default=None, ge=1, le=31)
    mese: Optional[int] = Field(default=None, ge=1, le=12)
    giorni_consecutivi: Optional[int] = Field(default=None, ge=1)


class DistrictEventUpdate(BaseModel):
    nome: Optional[str] = None
    luogo: Optional[str] = None
    descrizione: Optional[str] = None
    giorno: Optional[int] = Field(default=None, ge=1, le=31)
    mese: Optional[int] = Field(default=None, ge=1, le=12)
    giorni_consecutivi: Optional[int] = Field(default=None, ge=1)


class WaitingListEntry(BaseModel):
    """Iscrizione pubblica alla lista d'attesa"""
    first_name: str
    last_name: str
    club_name: str
    city: str
    email: EmailStr


# =============================================
# Inviti
# =============================================

class InviteCreate(BaseModel):
    email: EmailStr
    first_name: str
    last_name: str
    role: str = "member"
    permissions: List[AppSection] = []


class InviteResponse(BaseModel):
    invite: Dict[str, Any]
    email_sent: bool
    warning: Optional[str] = None


class ClubPricing(BaseModel):
    member_count: int
    price: float


# =============================================
# Pagina pubblica
# =============================================

class PublicMember(BaseModel):
    user_id: str
    full_name: str
    role: str = "member"
    joined_at: Optional[datetime] = None


class PublicClubPage(BaseModel):
    club_name: str
    club_slug: str
    bio: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    default_location: Optional[str] = None
    default_logo_url: Optional[str] = None
    president_name: Optional[str] = None
    secretary_name: Optional[str] = None
    members: List[PublicMember] = []
    upcoming_events: List[Dict[str, Any]] = []
    public_url: Optional[str] = None


# =============================================
# Log attività / backup
# =============================================

class ActivityLogEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    admin_id: Optional[str] = None
    action_type: ActionType
    table_name: str
    record_id: Optional[str] = None
    old_data: Optional[Dict[str, Any]] = None
    new_data: Optional[Dict[str, Any]] = None
    created_at: datetime


class DataSnapshot(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    table_name: str
    record_id: str
    snapshot_data: Dict[str, Any]
    created_at: datetime


# =============================================
# Righe ripristinabili (tipizzate per tabella)
# =============================================

class _SnapshotRow(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    user_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MemberRow(_SnapshotRow):
    first_name: str
    last_name: str
    email: str
    membership_start_date: Optional[date] = None
    current_position: Optional[str] = None
    status: str
    notes: Optional[str] = None


class EventRow(_SnapshotRow):
    title: str
    description: Optional[str] = None
    event_type: str
    ceremony_type: Optional[str] = None
    event_date: date
    event_time: Optional[str] = None
    location: Optional[str] = None
    participants: Optional[int] = None
    status: str
    notes: Optional[str] = None
    protocol_document_url: Optional[str] = None


class CommissionRow(_SnapshotRow):
    name: str
    description: Optional[str] = None
    responsible_person: str


class ProjectRow(_SnapshotRow):
    title: str
    commission_id: Optional[str] = None
    description: Optional[str] = None
    assigned_to: Optional[str] = None
    budget: Optional[float] = None
    deadline: Optional[date] = None
    priority: Optional[str] = None
    progress: Optional[int] = None
    status: str
    notes: Optional[str] = None


class TransactionRow(_SnapshotRow):
    type: str
    amount: float
    description: str
    category: str
    transaction_date: date
    payment_method: Optional[str] = None
    reference_number: Optional[str] = None
    notes: Optional[str] = None
    member_id: Optional[str] = None


class GoalRow(_SnapshotRow):
    title: str
    description: Optional[str] = None
    target_date: Optional[date] = None
    progress: int = 0
    status: str


class VipGuestRow(_SnapshotRow):
    name: str
    title: Optional[str] = None
    organization: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    special_requirements: Optional[str] = None
    protocol_notes: Optional[str] = None
    status: str


class RestoreResponse(BaseModel):
    table_name: str
    table_label: str
    record_id: str
    restored_fields: List[str]
