from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Cerebras (OpenAI-compatible chat completions)
    cerebras_api_keys: str = ""  # comma-separated, e.g. "csk-aaa,csk-bbb"
    cerebras_api_url: str = "https://api.cerebras.ai/v1/chat/completions"
    cerebras_timeout_seconds: float = 60.0

    # Key rotation
    key_failure_threshold: int = 3  # consecutive failures before a key is quarantined
    key_quarantine_seconds: float = 300.0  # after this, a quarantined key may be probed again

    # App
    app_env: str = "development"
    app_debug: bool = True

    # CORS
    allowed_origins: str = "*"  # comma-separated, e.g. "https://app.example.com,https://admin.example.com"

    # Logging
    log_level: str = "INFO"
    log_json: bool = False  # set True in production for structured JSON logs

    # Sentry
    sentry_dsn: str = ""  # leave empty to disable

    @property
    def api_key_list(self) -> list[str]:
        return [k.strip() for k in self.cerebras_api_keys.split(",") if k.strip()]


settings = Settings()


def validate_settings_for_production() -> None:
    """Validate critical settings. Called on startup in non-test environments."""
    errors: list[str] = []

    if not settings.api_key_list:
        errors.append("CEREBRAS_API_KEYS must contain at least one API key")

    if settings.key_failure_threshold < 1:
        errors.append("KEY_FAILURE_THRESHOLD must be >= 1")

    if settings.cerebras_timeout_seconds <= 0:
        errors.append("CEREBRAS_TIMEOUT_SECONDS must be positive")

    if settings.app_env == "production":
        if settings.allowed_origins == "*":
            errors.append("ALLOWED_ORIGINS must not be '*' in production")
        if settings.app_debug:
            errors.append("APP_DEBUG must be false in production")

    if errors:
        raise SystemExit("Configuration errors:\n  - " + "\n  - ".join(errors))
