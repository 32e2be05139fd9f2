"""
Accesso a Supabase
"""
from .supabase_client import get_supabase_client, reset_supabase_client, execute, first_row
from .tables import TableName

__all__ = [
    "get_supabase_client",
    "reset_supabase_client",
    "execute",
    "first_row",
    "TableName",
]
