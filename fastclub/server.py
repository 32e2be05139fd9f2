"""
FastClub - FastAPI web server

Portale di gestione del club: permessi di sezione, richieste, Kanban,
anagrafiche, amministrazione e pagina pubblica.

Data source: Supabase
"""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger

from . import __version__
from .club.router import router as club_router
from .exceptions import BackendError, FastClubError, ValidationError

# FastAPI app
app = FastAPI(
    title="FastClub",
    description="Portale di gestione per club Rotary",
    version=__version__
)

# Club router
app.include_router(club_router)


@app.exception_handler(FastClubError)
async def fastclub_error_handler(request: Request, exc: FastClubError):
    """Errori applicativi -> risposta JSON con messaggio in italiano"""
    if isinstance(exc, ValidationError):
        content = {"detail": exc.message, "field": exc.field}
    else:
        content = {"detail": str(exc)}

    if isinstance(exc, BackendError):
        # già registrato in execute(); qui solo il contesto della richiesta
        logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}")
    return JSONResponse(status_code=exc.status_code, content=content)


@app.get("/health")
async def health():
    return {"status": "ok", "version": __version__}
