"""
FastClub - entry point
"""
import argparse

import uvicorn
from loguru import logger

from fastclub.config import get_settings
from fastclub.database import get_supabase_client
from fastclub.logging_setup import configure_logging


def check_connection() -> bool:
    """Verifica la configurazione Supabase con una lettura minima"""
    try:
        get_supabase_client().table("profiles").select("user_id").limit(1).execute()
    except Exception as e:
        logger.error(f"Connessione a Supabase fallita: {e}")
        return False
    logger.info("Connessione a Supabase riuscita")
    return True


def main():
    parser = argparse.ArgumentParser(description="FastClub - portale di gestione del club")
    parser.add_argument(
        "--mode",
        choices=["serve", "check"],
        default="serve",
        help="Modalità di esecuzione"
    )
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--reload", action="store_true", help="Ricarica automatica (sviluppo)")
    args = parser.parse_args()

    configure_logging()

    if args.mode == "check":
        raise SystemExit(0 if check_connection() else 1)

    settings = get_settings()
    if settings.club_test_mode:
        logger.warning("CLUB_TEST_MODE attivo: autenticazione disabilitata")

    logger.info(f"Avvio server su {args.host}:{args.port}")
    uvicorn.run("fastclub.server:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
