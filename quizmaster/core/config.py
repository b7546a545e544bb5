import tempfile
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Google Gemini (topics + quiz). Comma-separated, rotated round-robin.
    gemini_api_keys: str = ""
    gemini_api_url: str = "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.0-flash:generateContent"

    # OpenRouter (weak-area analysis)
    openrouter_api_key: str = ""
    openrouter_api_url: str = "https://openrouter.ai/api/v1/chat/completions"
    openrouter_model: str = "anthropic/claude-3.5-sonnet"
    openrouter_referer: str = "http://localhost:3000"
    openrouter_title: str = "QuizMaster"

    # Outbound HTTP
    request_timeout_seconds: float = 60.0

    # Uploads
    upload_dir: str = ""  # empty = <system temp>/quizmaster_uploads
    max_upload_bytes: int = 20 * 1024 * 1024
    upload_rate_limit: str = "10/minute"
    rate_limit_enabled: bool = True

    # App
    app_env: str = "development"
    app_debug: bool = True
    app_host: str = "0.0.0.0"
    app_port: int = 8080

    # CORS
    allowed_origins: str = "*"  # comma-separated

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # Sentry
    sentry_dsn: str = ""  # leave empty to disable

    @property
    def gemini_key_list(self) -> list[str]:
        return [k.strip() for k in self.gemini_api_keys.split(",") if k.strip()]

    @property
    def upload_path(self) -> Path:
        if self.upload_dir:
            return Path(self.upload_dir)
        return Path(tempfile.gettempdir()) / "quizmaster_uploads"

    @property
    def origin_list(self) -> list[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]


settings = Settings()


def collect_settings_errors(cfg: Settings) -> list[str]:
    """Return every configuration problem, empty when the settings are usable."""
    errors: list[str] = []

    if not cfg.gemini_key_list:
        errors.append("GEMINI_API_KEYS must contain at least one key")
    if not cfg.gemini_api_url:
        errors.append("GEMINI_API_URL must be set")
    if not cfg.openrouter_api_key:
        errors.append("OPENROUTER_API_KEY must be set")
    if not cfg.openrouter_api_url:
        errors.append("OPENROUTER_API_URL must be set")
    if not cfg.openrouter_model:
        errors.append("OPENROUTER_MODEL must be set")
    if cfg.request_timeout_seconds <= 0:
        errors.append("REQUEST_TIMEOUT_SECONDS must be positive")

    if cfg.app_env == "production":
        if cfg.allowed_origins == "*":
            errors.append("ALLOWED_ORIGINS must not be '*' in production")
        if cfg.app_debug:
            errors.append("APP_DEBUG must be false in production")

    return errors


def validate_settings(cfg: Settings | None = None) -> None:
    """Validate critical settings. Called on startup."""
    errors = collect_settings_errors(cfg or settings)
    if errors:
        raise SystemExit("Configuration errors:\n  - " + "\n  - ".join(errors))
