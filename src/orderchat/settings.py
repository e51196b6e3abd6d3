from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration."""

    host: str = "0.0.0.0"
    port: int = 8080
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_dir: Path = Path("logs")

    model: str = "gpt-4o-mini"
    temperature: float = 0.0
    openai_api_key: str | None = None
    openai_base_url: str | None = "https://api.openai.com/v1"
    model_request_timeout_seconds: float | None = None

    tool_provider_url: str = "http://localhost:8081"
    tool_catalog_path: str = "/mcp/tools"
    tool_backend_url: str | None = None
    tool_request_timeout_seconds: float | None = None

    cors_origins: str = "*"

    agent_system_prompt: str = (
        "You are a customer support assistant for an online store. "
        "You help customers with questions about their orders.\n\n"
        "IMPORTANT RULES:\n"
        "1. Before calling a function, collect the values of ALL parameters it "
        "requires from the user.\n"
        "2. If the user has not given a required parameter, NEVER guess it. "
        "Ask the user for it explicitly.\n"
        "3. If there are several candidates (for example several orders), ALWAYS "
        "ask the user which one they mean.\n"
        "4. When a request is ambiguous (for example \"cancel my order\" without "
        "saying which order), first list the relevant information (for example "
        "all orders), then ask the user to pick one.\n\n"
        "Always be polite and helpful to the customer."
    )

    apology_message: str = "Sorry, something went wrong. Please try again later."
    no_response_message: str = "Sorry, I could not get a response."
    function_done_message: str = "The function was executed successfully."

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="",
        extra="ignore",
    )

    @property
    def resolved_tool_backend_url(self) -> str:
        """Base URL tool calls are dispatched to (defaults to the tool provider)."""
        return self.tool_backend_url or self.tool_provider_url


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the application settings singleton (loaded from env / .env)."""
    return Settings()
