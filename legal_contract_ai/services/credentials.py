"""API key storage with an explicit set/get/clear lifecycle"""

import json
import logging
from pathlib import Path
from typing import Optional

from legal_contract_ai.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)


class CredentialStore:
    """Holds the long-lived LLM API key.

    The key lives in memory, is persisted to ``credential_path`` so it
    survives restarts, and is mirrored to the backend ``api_keys`` table when
    ``mirror_credential`` is on. When nothing was stored the key from the
    environment (OPENAI_API_KEY / ANTHROPIC_API_KEY) is used.
    """

    def __init__(
        self,
        path: Optional[str | Path] = None,
        settings: Optional[Settings] = None,
        backend=None,
    ):
        self.settings = settings or get_settings()
        self.path = Path(path or self.settings.credential_path)
        self._backend = backend
        self._api_key: Optional[str] = None
        self._loaded = False

    def set(self, api_key: str) -> None:
        """Store a new key, replacing any previous one."""
        api_key = (api_key or "").strip()
        if not api_key:
            raise ValueError("API key must not be empty")

        self._api_key = api_key
        self._loaded = True
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({"api_key": api_key}), encoding="utf-8")
        logger.info("API key stored")

        if self._mirror_enabled():
            try:
                self._backend.save_api_key(self.settings.user_id, api_key)
            except Exception as e:
                logger.warning(f"Could not mirror API key to backend: {e}")

    def get(self) -> Optional[str]:
        """Stored key, falling back to the environment."""
        if not self._loaded:
            self._api_key = self._read_file()
            self._loaded = True
        return self._api_key or self._environment_key()

    def clear(self) -> None:
        """Forget the stored key (the environment key, if any, remains)."""
        self._api_key = None
        self._loaded = True
        if self.path.exists():
            self.path.unlink()
        logger.info("API key cleared")

        if self._mirror_enabled():
            try:
                self._backend.delete_api_key(self.settings.user_id)
            except Exception as e:
                logger.warning(f"Could not remove API key from backend: {e}")

    @property
    def is_set(self) -> bool:
        return bool(self.get())

    @property
    def source(self) -> Optional[str]:
        """Where the active key comes from: 'stored', 'environment' or None."""
        if self.get() is None:
            return None
        return "stored" if self._api_key else "environment"

    def _read_file(self) -> Optional[str]:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable credential file {self.path}: {e}")
            return None
        if not isinstance(data, dict):
            return None
        return data.get("api_key") or None

    def _environment_key(self) -> Optional[str]:
        if self.settings.llm_provider == "anthropic":
            return self.settings.anthropic_api_key
        return self.settings.openai_api_key

    def _mirror_enabled(self) -> bool:
        return bool(
            self.settings.mirror_credential
            and self.settings.user_id
            and self._backend is not None
        )


_store: Optional[CredentialStore] = None


def get_credential_store() -> CredentialStore:
    """Get or create the process-wide CredentialStore."""
    global _store
    if _store is None:
        settings = get_settings()
        backend = None
        if settings.mirror_credential:
            from legal_contract_ai.db.supabase import get_backend
            backend = get_backend(settings)
        _store = CredentialStore(settings=settings, backend=backend)
    return _store
