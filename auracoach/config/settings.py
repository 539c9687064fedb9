from typing import Literal

from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CRISIS_KEYWORDS: list[str] = [
    "suicide",
    "suicidal",
    "kill myself",
    "end my life",
    "want to die",
    "better off dead",
    "no reason to live",
    "self-harm",
    "self harm",
    "hurt myself",
    "cut myself",
    "overdose",
    "end it all",
]


class Settings(BaseSettings):
    openai_api_key: str = Field(default="", validation_alias="OPENAI_API_KEY")
    llm_provider: str = Field(default="openai", validation_alias="LLM_PROVIDER")
    guardrail_model: str = Field(default="gpt-4o-mini", validation_alias="GUARDRAIL_MODEL")
    diagnostic_model: str = Field(default="gpt-4o-mini", validation_alias="DIAGNOSTIC_MODEL")
    intervention_model: str = Field(default="gpt-4o", validation_alias="INTERVENTION_MODEL")
    llm_timeout_seconds: float = Field(
        default=20.0,
        validation_alias="LLM_TIMEOUT_SECONDS",
        description="Upper bound for a single generative backend call",
    )
    kv_backend: Literal["redis", "memory"] = Field(default="redis", validation_alias="KV_BACKEND")
    redis_url: str = Field(default="redis://localhost:6379/0", validation_alias="REDIS_URL")
    auth_secret_key: str = Field(default="", validation_alias="AUTH_SECRET_KEY")
    auth_algorithm: str = Field(default="HS256", validation_alias="AUTH_ALGORITHM")
    crisis_keywords: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CRISIS_KEYWORDS),
        validation_alias="CRISIS_KEYWORDS",
        description="Lowercase phrases that always route a message to the risk classifier",
    )
    coaching_rate_limit: int = Field(default=10, validation_alias="COACHING_RATE_LIMIT")
    coaching_rate_window_seconds: int = Field(default=60, validation_alias="COACHING_RATE_WINDOW_SECONDS")
    default_rate_limit: int = Field(default=500, validation_alias="DEFAULT_RATE_LIMIT")
    default_rate_window_seconds: int = Field(default=900, validation_alias="DEFAULT_RATE_WINDOW_SECONDS")
    require_entitlement: bool = Field(
        default=True,
        validation_alias="REQUIRE_ENTITLEMENT",
        description="Check the entitlement predicate for paid session types",
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: str | None = Field(default=None, validation_alias="LOG_FILE")
    log_json: bool = Field(default=False, validation_alias="LOG_JSON", description="Serialize console logs as JSON")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate that log level is one of the standard logging levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            logger.warning(f"Invalid LOG_LEVEL '{value}'. Valid levels are: {', '.join(valid_levels)}. Defaulting to INFO.")
            return "INFO"
        return upper_value

    @field_validator("crisis_keywords")
    @classmethod
    def normalize_keywords(cls, value: list[str]) -> list[str]:
        """Lowercase and de-duplicate crisis keywords, keeping their order."""
        seen: dict[str, None] = {}
        for keyword in value:
            cleaned = keyword.strip().lower()
            if cleaned:
                seen.setdefault(cleaned, None)
        return list(seen)

    @field_validator("auth_secret_key")
    @classmethod
    def validate_secret(cls, value: str) -> str:
        """Warn when tokens cannot be verified."""
        if not value:
            logger.warning(
                "⚠️ AUTH_SECRET_KEY is not set. "
                "Authenticated endpoints will reject every request until it is configured."
            )
        return value


settings = Settings()
