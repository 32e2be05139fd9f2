"""
Entity CRUD Router

Endpoint CRUD delle entità del club, ognuno protetto dalla sezione che
lo gestisce. Le eliminazioni richiedono ?confirm=true.
"""

from typing import Any, Dict, List, Optional, Type

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel

from ..auth import SessionContext, require_section
from .crud import (
    ANNUAL_FEE_AMOUNT,
    CommissionService,
    DistrictEventService,
    EventService,
    GoalService,
    MeetingService,
    MemberFeeService,
    MemberService,
    MilestoneService,
    NoteService,
    PositionHistoryService,
    ProjectService,
    TenantCrudService,
    TransactionService,
    VipGuestService,
)
from .models import (
    AppSection,
    CommissionCreate,
    CommissionUpdate,
    DistrictEventCreate,
    DistrictEventUpdate,
    EventCreate,
    EventUpdate,
    FeeGenerationResult,
    GoalCreate,
    GoalUpdate,
    MeetingCreate,
    MeetingUpdate,
    MemberCreate,
    MemberFeeCreate,
    MemberFeeStats,
    MemberFeeUpdate,
    MemberStats,
    MemberUpdate,
    MilestoneCreate,
    MilestoneUpdate,
    NoteCreate,
    NoteStatus,
    NoteUpdate,
    PositionCreate,
    PositionUpdate,
    ProjectCreate,
    ProjectUpdate,
    TransactionCreate,
    TransactionSummary,
    TransactionUpdate,
    VipGuestCreate,
    VipGuestUpdate,
)

entities_router = APIRouter(tags=["Club Entities"])


def require_confirm(confirm: bool = Query(False, description="Conferma l'operazione irreversibile")) -> None:
    if not confirm:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Operazione irreversibile: aggiungere confirm=true"
        )


def register_crud(
    path: str,
    service_cls: Type[TenantCrudService],
    section: AppSection,
    create_model: Type[BaseModel],
    update_model: Type[BaseModel],
) -> None:
    """Registra elenco / dettaglio / creazione / modifica / eliminazione"""
    guard = require_section(section)
    label = service_cls.label

    async def list_records(
        status_filter: Optional[str] = Query(None, alias="status"),
        session: SessionContext = Depends(guard)
    ) -> List[Dict[str, Any]]:
        return await service_cls(session).list(status=status_filter)

    async def get_record(
        record_id: str,
        session: SessionContext = Depends(guard)
    ) -> Dict[str, Any]:
        return await service_cls(session).get(record_id)

    async def create_record(
        data: create_model,
        session: SessionContext = Depends(guard)
    ) -> Dict[str, Any]:
        return await service_cls(session).create(data.model_dump(mode="json"))

    async def update_record(
        record_id: str,
        changes: update_model,
        session: SessionContext = Depends(guard)
    ) -> Dict[str, Any]:
        return await service_cls(session).update(
            record_id, changes.model_dump(mode="json", exclude_unset=True)
        )

    async def delete_record(
        record_id: str,
        _: None = Depends(require_confirm),
        session: SessionContext = Depends(guard)
    ) -> Dict[str, Any]:
        await service_cls(session).delete(record_id)
        return {"success": True, "message": f"{label.capitalize()} eliminato"}

    entities_router.add_api_route(path, list_records, methods=["GET"], summary=f"Elenco {label}")
    entities_router.add_api_route(f"{path}/{{record_id}}", get_record, methods=["GET"], summary=f"Dettaglio {label}")
    entities_router.add_api_route(path, create_record, methods=["POST"], status_code=201, summary=f"Crea {label}")
    entities_router.add_api_route(f"{path}/{{record_id}}", update_record, methods=["PATCH"], summary=f"Modifica {label}")
    entities_router.add_api_route(f"{path}/{{record_id}}", delete_record, methods=["DELETE"], summary=f"Elimina {label}")


# =============================================
# Endpoint specifici (registrati prima di /{record_id})
# =============================================

@entities_router.get("/members/stats", response_model=MemberStats)
async def member_stats(session: SessionContext = Depends(require_section(AppSection.soci))):
    return await MemberService(session).stats()


@entities_router.get("/transactions/summary", response_model=TransactionSummary)
async def transaction_summary(session: SessionContext = Depends(require_section(AppSection.tesoreria))):
    """Entrate, uscite e saldo"""
    return await TransactionService(session).summary()


@entities_router.post("/milestones/{record_id}/toggle")
async def toggle_milestone(
    record_id: str,
    session: SessionContext = Depends(require_section(AppSection.presidenza))
):
    return await MilestoneService(session).toggle(record_id)


@entities_router.get("/notes/with-authors")
async def list_notes(
    note_status: NoteStatus = Query(NoteStatus.active, alias="status"),
    session: SessionContext = Depends(require_section(AppSection.presidenza))
):
    """Appunti con il nome dell'autore"""
    return await NoteService(session).list_with_authors(note_status)


@entities_router.post("/notes/{record_id}/archive")
async def archive_note(
    record_id: str,
    session: SessionContext = Depends(require_section(AppSection.presidenza))
):
    return await NoteService(session).archive(record_id)


@entities_router.post("/notes/{record_id}/restore")
async def restore_note(
    record_id: str,
    session: SessionContext = Depends(require_section(AppSection.presidenza))
):
    return await NoteService(session).restore(record_id)


@entities_router.get("/member-fees/stats", response_model=MemberFeeStats)
async def member_fee_stats(session: SessionContext = Depends(require_section(AppSection.tesoreria))):
    return await MemberFeeService(session).stats()


@entities_router.post("/member-fees/generate", response_model=FeeGenerationResult)
async def generate_annual_fees(
    amount: float = Query(ANNUAL_FEE_AMOUNT, gt=0),
    session: SessionContext = Depends(require_section(AppSection.tesoreria))
):
    """Quote annuali per i soci attivi che non le hanno ancora"""
    return await MemberFeeService(session).generate_annual_fees(amount)


@entities_router.post("/member-fees/{record_id}/pay")
async def pay_member_fee(
    record_id: str,
    payment_method: str = Query("Contanti"),
    session: SessionContext = Depends(require_section(AppSection.tesoreria))
):
    return await MemberFeeService(session).mark_paid(record_id, payment_method)


@entities_router.get("/members/{member_id}/positions")
async def member_positions(
    member_id: str,
    session: SessionContext = Depends(require_section(AppSection.soci))
):
    """Cronologia delle cariche del socio"""
    return await PositionHistoryService(session).for_member(member_id)


register_crud("/members", MemberService, AppSection.soci, MemberCreate, MemberUpdate)
register_crud("/events", EventService, AppSection.prefettura, EventCreate, EventUpdate)
register_crud("/meetings", MeetingService, AppSection.direttivo, MeetingCreate, MeetingUpdate)
register_crud("/commissions", CommissionService, AppSection.commissioni, CommissionCreate, CommissionUpdate)
register_crud("/projects", ProjectService, AppSection.commissioni, ProjectCreate, ProjectUpdate)
register_crud("/transactions", TransactionService, AppSection.tesoreria, TransactionCreate, TransactionUpdate)
register_crud("/goals", GoalService, AppSection.presidenza, GoalCreate, GoalUpdate)
register_crud("/milestones", MilestoneService, AppSection.presidenza, MilestoneCreate, MilestoneUpdate)
register_crud("/notes", NoteService, AppSection.presidenza, NoteCreate, NoteUpdate)
register_crud("/vip-guests", VipGuestService, AppSection.prefettura, VipGuestCreate, VipGuestUpdate)
register_crud("/member-fees", MemberFeeService, AppSection.tesoreria, MemberFeeCreate, MemberFeeUpdate)
register_crud("/positions", PositionHistoryService, AppSection.soci, PositionCreate, PositionUpdate)
register_crud("/district-events", DistrictEventService, AppSection.prefettura, DistrictEventCreate, DistrictEventUpdate)
