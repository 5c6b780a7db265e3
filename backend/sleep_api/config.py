from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    openai_api_key: str = ""
    openai_model: str = "gpt-4-turbo"
    openai_max_tokens: int = 1500
    openai_temperature: float = 1.0
    openai_api_url: str = "https://api.openai.com/v1/chat/completions"
    openai_models_url: str = "https://api.openai.com/v1/models"
    # Outbound LLM call is bounded; no retries
    openai_request_timeout_seconds: float = 30.0

    # Fixed window per client address; GET / is exempt
    rate_limit_max_requests: int = 30
    rate_limit_window_minutes: int = 15

    cors_origins: str = "https://minicube87.github.io,http://localhost:8000,http://127.0.0.1:8000"
    enable_hsts: bool = False  # Set True in production behind HTTPS

    # Max length for any free-text field after sanitization
    max_string_length: int = 500

    app_env: str = "development"  # "production" hides error details from responses

    @property
    def rate_limit(self) -> str:
        """slowapi/limits notation, e.g. "30/15 minutes"."""
        return f"{self.rate_limit_max_requests}/{self.rate_limit_window_minutes} minutes"

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


settings = Settings()
