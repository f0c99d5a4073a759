"""Configuration management using pydantic-settings"""

import logging
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # API keys - OpenAI-compatible endpoint or Anthropic
    openai_api_key: Optional[str] = Field(default=None, description="Key for the chat-completion endpoint")
    anthropic_api_key: Optional[str] = Field(default=None, description="Anthropic API key for Claude")

    # LLM provider: 'openai' or 'anthropic'
    llm_provider: str = Field(default="openai", description="LLM provider to use")
    llm_base_url: str = Field(default="https://api.openai.com/v1", description="Chat-completion base URL")

    log_level: str = Field(default="INFO", description="Logging level")

    # LLM settings
    llm_model: str = Field(default="gpt-4o", description="LLM model to use")
    anthropic_model: str = Field(default="claude-sonnet-4-20250514", description="Model used when llm_provider=anthropic")
    generate_temperature: float = Field(default=0.7, description="Temperature for drafting and revision")
    review_temperature: float = Field(default=0.3, description="Temperature for contract review")
    llm_max_tokens: int = Field(default=4000, description="Max tokens in response")

    # Timeouts (seconds)
    generate_timeout: float = Field(default=120.0, description="Timeout for contract generation")
    revise_timeout: float = Field(default=60.0, description="Timeout for chat-driven revision")
    review_timeout: float = Field(default=60.0, description="Timeout for contract review")

    # Size guards (characters)
    max_template_length: int = Field(default=15000, description="Max template length before truncation")
    max_document_length: int = Field(default=25000, description="Max document length embedded in prompts")

    # Backend indirection: route generation through the generate-contract function
    use_backend_function: bool = Field(default=False, description="Generate via backend function")
    backend_url: str = Field(default="http://localhost:54321", description="Base URL of the backend functions")
    user_id: Optional[str] = Field(default=None, description="User ID sent to the backend function")

    # Supabase settings
    supabase_url: Optional[str] = Field(default=None, description="Supabase project URL")
    supabase_key: Optional[str] = Field(default=None, description="Supabase anon key")
    supabase_service_key: Optional[str] = Field(default=None, description="Supabase service role key")

    # Credential storage
    credential_path: str = Field(default="./data/credentials.json", description="Where the API key is kept")
    mirror_credential: bool = Field(default=False, description="Mirror the API key to the Supabase api_keys table")

    # API session store
    session_ttl_minutes: int = Field(default=30, description="Idle minutes before a session expires")
    max_sessions: int = Field(default=1000, description="Max sessions held in memory")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)


def get_settings() -> Settings:
    """Get application settings"""
    return Settings()


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Set the root log level from LOG_LEVEL"""
    settings = settings or get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
