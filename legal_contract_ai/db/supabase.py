"""Supabase backend: api_keys and contracts tables"""

import logging
from datetime import date
from typing import Optional

from legal_contract_ai.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)

# Lazy imports so the supabase package is only needed when configured
_supabase_client = None
_service_client = None


def _get_supabase_client():
    """Get or create the singleton Supabase client (anon key)."""
    global _supabase_client
    if _supabase_client is None:
        from supabase import ClientOptions, create_client

        settings = get_settings()
        if not settings.supabase_url or not settings.supabase_key:
            raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set to use the backend")
        _supabase_client = create_client(
            settings.supabase_url,
            settings.supabase_key,
            options=ClientOptions(postgrest_client_timeout=10),
        )
    return _supabase_client


def _get_service_client():
    """Get or create the singleton Supabase service-role client (bypasses RLS)."""
    global _service_client
    if _service_client is None:
        from supabase import ClientOptions, create_client

        settings = get_settings()
        key = settings.supabase_service_key or settings.supabase_key
        if not settings.supabase_url or not key:
            raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_KEY must be set for write operations")
        _service_client = create_client(
            settings.supabase_url,
            key,
            options=ClientOptions(postgrest_client_timeout=10),
        )
    return _service_client


def contract_title(contract_type: str, on: Optional[date] = None) -> str:
    """``nda Contract - 10/9/2026``"""
    on = on or date.today()
    return f"{contract_type} Contract - {on.month}/{on.day}/{on.year}"


class SupabaseBackend:
    """Credential lookup and contract persistence for the backend function."""

    def __init__(self):
        self._read = _get_supabase_client
        self._write = _get_service_client

    def get_api_key(self, user_id: str) -> Optional[str]:
        """Stored LLM API key for a user, if any."""
        client = self._read()
        result = (
            client.table("api_keys")
            .select("openai_key")
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        return result.data[0]["openai_key"] if result.data else None

    def save_api_key(self, user_id: str, api_key: str) -> None:
        client = self._write()
        client.table("api_keys").upsert(
            {"user_id": user_id, "openai_key": api_key},
            on_conflict="user_id",
        ).execute()

    def delete_api_key(self, user_id: str) -> None:
        client = self._write()
        client.table("api_keys").delete().eq("user_id", user_id).execute()

    def save_contract(
        self,
        user_id: Optional[str],
        contract_type: str,
        content: str,
        form_data: dict,
    ) -> Optional[str]:
        """Insert a generated contract. Returns its ID."""
        client = self._write()
        result = (
            client.table("contracts")
            .insert({
                "user_id": user_id,
                "contract_type": contract_type,
                "title": contract_title(contract_type),
                "content": content,
                "form_data": form_data,
            })
            .execute()
        )
        return result.data[0]["id"] if result.data else None


def get_backend(settings: Optional[Settings] = None) -> Optional[SupabaseBackend]:
    """Factory: a SupabaseBackend when Supabase is configured, else None."""
    settings = settings or get_settings()
    if not settings.supabase_configured:
        return None
    return SupabaseBackend()
