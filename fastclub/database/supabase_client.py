"""
Client Supabase condiviso
"""
from typing import Any, Dict, List, Optional

from loguru import logger
from supabase import Client, create_client

from ..config import get_settings
from ..exceptions import BackendError


# Istanza singleton
_supabase_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """
    Restituisce il client Supabase (singleton)

    Usa la service key quando configurata, altrimenti la anon key.
    """
    global _supabase_client
    if _supabase_client is None:
        settings = get_settings()
        key = settings.supabase_service_key or settings.supabase_key
        if not settings.supabase_url or not key:
            raise ValueError("Impostare le variabili d'ambiente SUPABASE_URL e SUPABASE_KEY")
        _supabase_client = create_client(settings.supabase_url, key)
    return _supabase_client


def reset_supabase_client() -> None:
    global _supabase_client
    _supabase_client = None


def execute(query, action: str) -> List[Dict[str, Any]]:
    """
    Esegue una query e restituisce le righe.

    Qualsiasi errore viene registrato una volta e rilanciato come BackendError:
    nessun nuovo tentativo.
    """
    try:
        response = query.execute()
    except Exception as e:
        logger.error(f"Errore Supabase ({action}): {e}")
        raise BackendError(f"Errore durante {action}", e) from e

    if response is None or response.data is None:
        return []
    # maybe_single() e le RPC scalari non restituiscono una lista
    if not isinstance(response.data, list):
        return [response.data]
    return response.data


def first_row(query, action: str) -> Optional[Dict[str, Any]]:
    """Prima riga del risultato, oppure None"""
    rows = execute(query, action)
    return rows[0] if rows else None
