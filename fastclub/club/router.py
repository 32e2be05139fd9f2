"""
Club Management Router

Portale del club:
- permessi e responsabili di sezione
- richieste e commenti per sezione
- tabelloni Kanban (cerimonie, progetti delle commissioni)
- amministrazione (permessi membri, log attività, backup, inviti)
- pagina pubblica e strumenti AI
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel

from ..auth import SessionContext, get_session, require_admin, require_section
from ..config import TEMPLATES_DIR
from ..database import get_supabase_client
from ..integrations import DocumentType, FlyerFormat, FlyerStyle, FunctionsGateway
from .entities import entities_router, require_confirm
from .invites import ClubInviteService
from .kanban import CeremonyBoardService, ProjectBoardService
from .models import (
    ActivityLogEntry,
    AppSection,
    CeremonyStats,
    ClubPricing,
    DataSnapshot,
    DragResult,
    InviteCreate,
    InviteResponse,
    KanbanBoardResponse,
    MemberPermissionsUpdate,
    PermissionsResponse,
    PublicClubPage,
    ReplyMessage,
    RequestCreate,
    RequestStatus,
    RestoreResponse,
    SectionResponsible,
    TopLevelMessage,
    WaitingListEntry,
)
from .permissions import MemberPermissionsManager, ResponsibilityLookup
from .public_page import PublicPageService, WaitingListService
from .requests import SectionRequestStore
from .snapshots import AdminActivityService

router = APIRouter(prefix="/club", tags=["Club Management"])

# CRUD delle entità
router.include_router(entities_router)

# Template setup
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


class DocumentRequest(BaseModel):
    type: DocumentType
    current_content: Dict[str, Any] = {}
    additional_context: Optional[str] = None


class FlyerRequest(BaseModel):
    title: str
    description: Optional[str] = None
    format: FlyerFormat = FlyerFormat.square
    style: FlyerStyle = FlyerStyle.club
    location: Optional[str] = None
    date: Optional[str] = None
    logo_descriptions: List[str] = []


# =============================================
# Permessi
# =============================================

@router.get("/permissions/me", response_model=PermissionsResponse)
async def my_permissions(session: SessionContext = Depends(get_session)):
    """Sezioni accessibili all'utente corrente"""
    return PermissionsResponse(
        user_id=session.user_id,
        is_admin=session.is_admin,
        sections=sorted(session.accessible_sections(), key=lambda s: s.value)
    )


@router.get("/sections/{section}/responsible", response_model=Optional[SectionResponsible])
async def section_responsible(section: AppSection, session: SessionContext = Depends(get_session)):
    """Responsabile della sezione (null se non assegnato)"""
    return await ResponsibilityLookup(session.user_id, session.supabase).responsible_for(section)


# =============================================
# Richieste di sezione
# =============================================

@router.get("/sections/{section}/requests", response_model=List[TopLevelMessage])
async def list_requests(
    section: AppSection,
    request_status: RequestStatus = Query(RequestStatus.active, alias="status"),
    session: SessionContext = Depends(get_session)
):
    return await SectionRequestStore(session).list(section, request_status)


@router.post("/sections/{section}/requests", response_model=TopLevelMessage, status_code=201)
async def submit_request(
    section: AppSection,
    body: RequestCreate,
    session: SessionContext = Depends(get_session)
):
    return await SectionRequestStore(session).submit(section, body.content)


@router.post("/requests/{request_id}/replies", response_model=ReplyMessage, status_code=201)
async def reply_to_request(
    request_id: str,
    body: RequestCreate,
    session: SessionContext = Depends(get_session)
):
    """Risposta del responsabile di sezione (o dell'admin)"""
    return await SectionRequestStore(session).reply(request_id, body.content)


@router.post("/requests/{request_id}/archive", response_model=TopLevelMessage)
async def archive_request(request_id: str, session: SessionContext = Depends(get_session)):
    return await SectionRequestStore(session).archive(request_id)


# =============================================
# Kanban
# =============================================

@router.get("/ceremonies/board", response_model=KanbanBoardResponse)
async def ceremony_board(session: SessionContext = Depends(require_section(AppSection.prefettura))):
    board = await CeremonyBoardService(session).load()
    return board.to_response()


@router.post("/ceremonies/board/move", response_model=KanbanBoardResponse)
async def move_ceremony(
    drag: DragResult,
    session: SessionContext = Depends(require_section(AppSection.prefettura))
):
    """Drag-and-drop: aggiorna lo stato e restituisce il tabellone"""
    return await CeremonyBoardService(session).move(drag)


@router.get("/ceremonies/stats", response_model=CeremonyStats)
async def ceremony_stats(session: SessionContext = Depends(require_section(AppSection.prefettura))):
    return await CeremonyBoardService(session).stats()


@router.get("/commissions/{commission_id}/board", response_model=KanbanBoardResponse)
async def project_board(
    commission_id: str,
    session: SessionContext = Depends(require_section(AppSection.commissioni))
):
    board = await ProjectBoardService(session, commission_id).load()
    return board.to_response()


@router.post("/commissions/{commission_id}/board/move", response_model=KanbanBoardResponse)
async def move_project(
    commission_id: str,
    drag: DragResult,
    session: SessionContext = Depends(require_section(AppSection.commissioni))
):
    return await ProjectBoardService(session, commission_id).move(drag)


# =============================================
# Amministrazione
# =============================================

@router.get("/admin/permissions/{member_user_id}")
async def get_member_permissions(member_user_id: str, session: SessionContext = Depends(require_admin)):
    return await MemberPermissionsManager(session.user_id, session.supabase).get_member_permissions(member_user_id)


@router.put("/admin/permissions/{member_user_id}")
async def set_member_permissions(
    member_user_id: str,
    update: MemberPermissionsUpdate,
    session: SessionContext = Depends(require_admin)
):
    """Sostituisce sezioni e responsabilità del membro"""
    return await MemberPermissionsManager(session.user_id, session.supabase).set_member_permissions(
        member_user_id, update.sections, update.responsible_sections
    )


@router.get("/admin/activities", response_model=List[ActivityLogEntry])
async def list_activities(session: SessionContext = Depends(require_admin)):
    return await AdminActivityService(session).list_activities()


@router.get("/admin/snapshots", response_model=List[DataSnapshot])
async def list_snapshots(session: SessionContext = Depends(require_admin)):
    """Backup delle ultime 24 ore"""
    return await AdminActivityService(session).list_snapshots()


@router.post("/admin/snapshots/cleanup")
async def cleanup_snapshots(
    _: None = Depends(require_confirm),
    session: SessionContext = Depends(require_admin)
):
    await AdminActivityService(session).cleanup_old_snapshots()
    return {"success": True, "message": "Backup scaduti eliminati"}


@router.post("/admin/snapshots/{snapshot_id}/restore", response_model=RestoreResponse)
async def restore_snapshot(
    snapshot_id: str,
    _: None = Depends(require_confirm),
    session: SessionContext = Depends(require_admin)
):
    """Sovrascrive il record con il contenuto del backup"""
    return await AdminActivityService(session).restore(snapshot_id)


@router.get("/admin/invites")
async def list_invites(session: SessionContext = Depends(require_admin)):
    return await ClubInviteService(session).list_invites()


@router.post("/admin/invites", response_model=InviteResponse, status_code=201)
async def create_invite(invite: InviteCreate, session: SessionContext = Depends(require_admin)):
    return await ClubInviteService(session).create_invite(invite)


@router.delete("/admin/invites/{invite_id}")
async def delete_invite(
    invite_id: str,
    _: None = Depends(require_confirm),
    session: SessionContext = Depends(require_admin)
):
    await ClubInviteService(session).delete_invite(invite_id)
    return {"success": True, "message": "Invito eliminato"}


@router.get("/admin/club-members")
async def list_club_members(session: SessionContext = Depends(require_admin)):
    return await ClubInviteService(session).list_members()


@router.get("/admin/pricing", response_model=ClubPricing)
async def club_pricing(session: SessionContext = Depends(require_admin)):
    return await ClubInviteService(session).pricing()


# =============================================
# Strumenti AI
# =============================================

@router.post("/ai/document")
async def generate_document(
    body: DocumentRequest,
    session: SessionContext = Depends(require_section(AppSection.segreteria))
):
    """Completa un verbale / programma / comunicazione / circolare"""
    club_name = session.profile.club_name if session.profile else None
    return FunctionsGateway(session.supabase).generate_document(
        body.type, body.current_content, club_name, body.additional_context
    )


@router.post("/ai/flyer")
async def generate_flyer(
    body: FlyerRequest,
    session: SessionContext = Depends(require_section(AppSection.comunicazione))
):
    return FunctionsGateway(session.supabase).generate_flyer(
        body.title,
        body.description,
        flyer_format=body.format,
        style=body.style,
        location=body.location,
        date=body.date,
        logo_descriptions=body.logo_descriptions
    )


# =============================================
# Pagina pubblica (nessuna autenticazione)
# =============================================

@router.get("/public/{slug}", response_model=PublicClubPage)
async def public_club(slug: str):
    return await PublicPageService(get_supabase_client()).get_public_page(slug)


@router.get("/public/{slug}/page", response_class=HTMLResponse)
async def public_club_page(request: Request, slug: str):
    """
    Pagina pubblica del club (HTML)
    """
    page = await PublicPageService(get_supabase_client()).get_public_page(slug)
    return templates.TemplateResponse(
        request,
        "club/public_page.html",
        {"page": page, "title": page.club_name}
    )


@router.post("/public/waiting-list", status_code=201)
async def join_waiting_list(entry: WaitingListEntry):
    """Iscrizione alla lista d'attesa (nessuna autenticazione)"""
    return await WaitingListService(get_supabase_client()).join(entry)
