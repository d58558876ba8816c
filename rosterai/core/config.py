from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str

    # Optimizer
    OPTIMIZER_BACKEND: str = "gateway"  # gateway | heuristic | cpsat
    AI_GATEWAY_URL: str = "https://ai.gateway.lovable.dev/v1/chat/completions"
    AI_GATEWAY_API_KEY: str = ""
    AI_MODEL: str = "google/gemini-2.5-flash"
    AI_TEMPERATURE: float = 0.2
    AI_MAX_TOKENS: int = 8000
    AI_TIMEOUT_SECONDS: float = 60.0
    CPSAT_TIME_LIMIT_SECONDS: float = 10.0

    # Runs
    DEFAULT_CONFIDENCE_SCORE: float = 0.8
    STUCK_RUN_MINUTES: int = 30
    RUN_HISTORY_LIMIT: int = 20

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )


settings = Settings()
