"""
Kanban degli stati

Raggruppa i record per stato; il drag-and-drop aggiorna lo stato sul
database e solo dopo la risposta positiva sposta la card nel tabellone locale.
La posizione dentro una colonna non viene salvata.
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from loguru import logger

from ..auth.session import SessionContext
from ..database import TableName, execute
from ..exceptions import RecordNotFoundError, ValidationError
from .models import (
    CeremonyStats,
    CeremonyType,
    DragResult,
    EventStatus,
    EventType,
    KanbanBoardResponse,
    KanbanColumnResponse,
    ProjectStatus,
)

# (id colonna = stato, titolo)
CEREMONY_COLUMNS: Tuple[Tuple[str, str], ...] = (
    (EventStatus.planned.value, "Da Programmare"),
    (EventStatus.in_progress.value, "Programmate"),
    (EventStatus.completed.value, "Eseguite"),
)

PROJECT_COLUMNS: Tuple[Tuple[str, str], ...] = (
    (ProjectStatus.ideas.value, "Idee"),
    (ProjectStatus.to_organize.value, "Da Organizzare"),
    (ProjectStatus.organized.value, "Organizzati"),
    (ProjectStatus.completed.value, "Completati"),
)


@dataclass
class KanbanColumn:
    """Colonna del tabellone"""
    id: str
    title: str
    status: str
    cards: List[Dict[str, Any]] = field(default_factory=list)


class KanbanBoard:
    """Tabellone in memoria"""

    def __init__(self, columns: List[KanbanColumn]):
        self.columns = columns

    @classmethod
    def from_rows(
        cls,
        definitions: Sequence[Tuple[str, str]],
        rows: Sequence[Dict[str, Any]]
    ) -> "KanbanBoard":
        """Raggruppa le righe per stato; gli stati senza colonna restano fuori"""
        columns = [KanbanColumn(id=status, title=title, status=status) for status, title in definitions]
        by_status = {column.status: column for column in columns}
        for row in rows:
            column = by_status.get(row.get("status"))
            if column is not None:
                column.cards.append(dict(row))
        return cls(columns)

    def column(self, column_id: str) -> KanbanColumn:
        for column in self.columns:
            if column.id == column_id:
                return column
        raise ValidationError("column", f"Colonna sconosciuta: {column_id}")

    async def move(
        self,
        drag: DragResult,
        persist: Callable[[str, str], Awaitable[None]]
    ) -> bool:
        """
        Applica un drag-and-drop.

        Restituisce False se non c'è nulla da fare (rilascio fuori dal
        tabellone o nella stessa posizione): in quel caso nessuna scrittura.
        """
        destination = drag.destination
        if destination is None:
            return False
        if destination.column == drag.source.column and destination.index == drag.source.index:
            return False

        source_column = self.column(drag.source.column)
        dest_column = self.column(destination.column)

        position = self._find(source_column, drag.card_id, drag.source.index)

        # prima il database, poi lo stato locale
        await persist(drag.card_id, dest_column.status)

        card = source_column.cards.pop(position)
        card["status"] = dest_column.status
        index = min(destination.index, len(dest_column.cards))
        dest_column.cards.insert(index, card)
        return True

    @staticmethod
    def _find(column: KanbanColumn, card_id: str, hint: int) -> int:
        if hint < len(column.cards) and column.cards[hint].get("id") == card_id:
            return hint
        for position, card in enumerate(column.cards):
            if card.get("id") == card_id:
                return position
        raise ValidationError("card_id", f"Card {card_id} non presente nella colonna {column.id}")

    def to_response(self, moved: bool = False) -> KanbanBoardResponse:
        return KanbanBoardResponse(
            columns=[
                KanbanColumnResponse(
                    id=column.id,
                    title=column.title,
                    status=column.status,
                    cards=column.cards
                )
                for column in self.columns
            ],
            moved=moved
        )


class _StatusBoardService:
    """Base per i tabelloni legati a una tabella"""

    table: TableName
    definitions: Sequence[Tuple[str, str]] = ()

    def __init__(self, session: SessionContext):
        self.session = session
        self.supabase = session.supabase
        self.club_owner_id = session.require_tenant()

    def _query(self):
        raise NotImplementedError

    async def load(self) -> KanbanBoard:
        rows = execute(self._query(), f"caricamento {self.table.value}")
        return KanbanBoard.from_rows(self.definitions, rows)

    async def persist_status(self, card_id: str, status: str) -> None:
        rows = execute(
            self.supabase.table(self.table.value)
            .update({"status": status})
            .eq("id", card_id)
            .eq("user_id", self.club_owner_id),
            "aggiornamento stato"
        )
        if not rows:
            raise RecordNotFoundError(self.table.value, card_id)
        logger.info(f"{self.table.value} {card_id} -> {status}")

    async def move(self, drag: DragResult) -> KanbanBoardResponse:
        board = await self.load()
        moved = await board.move(drag, self.persist_status)
        return board.to_response(moved=moved)


class CeremonyBoardService(_StatusBoardService):
    """Tabellone delle cerimonie (prefecture_events)"""

    table = TableName.prefecture_events
    definitions = CEREMONY_COLUMNS

    def _query(self):
        return (
            self.supabase.table(self.table.value)
            .select("*")
            .eq("user_id", self.club_owner_id)
            .order("event_date")
        )

    async def stats(self) -> CeremonyStats:
        rows = execute(
            self.supabase.table(self.table.value)
            .select("id, ceremony_type, status")
            .eq("user_id", self.club_owner_id)
            .eq("event_type", EventType.ceremony.value),
            "statistiche cerimonie"
        )
        by_status: Dict[str, int] = {}
        for row in rows:
            by_status[row.get("status")] = by_status.get(row.get("status"), 0) + 1

        def count(kind: CeremonyType) -> int:
            return sum(1 for row in rows if row.get("ceremony_type") == kind.value)

        return CeremonyStats(
            total=len(rows),
            insediamenti=count(CeremonyType.insediamento),
            premiazioni=count(CeremonyType.premiazione),
            ammissioni=count(CeremonyType.ammissione),
            by_status=by_status
        )


class ProjectBoardService(_StatusBoardService):
    """Tabellone dei progetti di una commissione (presidency_projects)"""

    table = TableName.presidency_projects
    definitions = PROJECT_COLUMNS

    def __init__(self, session: SessionContext, commission_id: Optional[str]):
        super().__init__(session)
        self.commission_id = commission_id

    def _query(self):
        query = (
            self.supabase.table(self.table.value)
            .select("*")
            .eq("user_id", self.club_owner_id)
        )
        if self.commission_id:
            query = query.eq("commission_id", self.commission_id)
        return query.order("created_at", desc=True)
