"""Database modules"""

from legal_contract_ai.db.supabase import SupabaseBackend, contract_title, get_backend

__all__ = [
    "SupabaseBackend",
    "contract_title",
    "get_backend",
]
