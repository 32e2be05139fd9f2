"""
Dipendenze di autenticazione e permessi
"""

from typing import AsyncIterator, Optional

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError, jwt
from loguru import logger

from ..config import get_settings
from ..database import get_supabase_client
from ..exceptions import BackendError
from ..club.models import SECTION_LABELS, AppSection
from .session import SessionContext

# Utente fisso in modalità test (CLUB_TEST_MODE=1)
TEST_USER_ID = "00000000-0000-0000-0000-000000000001"


def _bearer_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1]
    return request.cookies.get("access_token")


def decode_access_token(token: str) -> Optional[str]:
    """
    Verifica localmente un access token Supabase e restituisce l'id utente.

    Usato solo se SUPABASE_JWT_SECRET è configurato.
    """
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.supabase_jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience
        )
    except JWTError as e:
        logger.warning(f"Token non valido: {e}")
        return None
    return payload.get("sub")


async def authenticate(request: Request) -> str:
    """Id dell'utente autenticato (401 se assente o non valido)"""
    settings = get_settings()
    if settings.club_test_mode:
        return TEST_USER_ID

    token = _bearer_token(request)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Autenticazione richiesta"
        )

    if settings.supabase_jwt_secret:
        user_id = decode_access_token(token)
    else:
        try:
            user_response = get_supabase_client().auth.get_user(token)
            user_id = user_response.user.id if user_response and user_response.user else None
        except Exception as e:
            logger.warning(f"Verifica token fallita: {e}")
            user_id = None

    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token non valido"
        )
    return user_id


async def get_session(request: Request) -> AsyncIterator[SessionContext]:
    """Crea la sessione all'inizio della richiesta e la chiude alla fine"""
    user_id = await authenticate(request)
    try:
        session = await SessionContext.init(user_id, get_supabase_client())
    except BackendError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Impossibile caricare la sessione: {e}"
        )

    if session.profile is None:
        session.teardown()
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Profilo non trovato"
        )

    try:
        yield session
    finally:
        session.teardown()


def require_admin(session: SessionContext = Depends(get_session)) -> SessionContext:
    """Solo amministratore del club"""
    if not session.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Permessi di amministratore richiesti"
        )
    return session


def require_section(section: AppSection):
    """Richiede l'accesso alla sezione indicata"""
    def _check(session: SessionContext = Depends(get_session)) -> SessionContext:
        if not session.has_permission(section):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Accesso negato alla sezione {SECTION_LABELS[section]}"
            )
        return session
    return _check
