from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables or .env file."""

    database_url: str = ""
    llm_provider: str = "ollama"
    llm_model: str = "llava"
    ollama_base_url: str = "http://localhost:11434"
    openai_api_key: str = ""
    storage_base_url: str = "http://localhost:8000/storage"
    log_level: str = "INFO"
    default_meals_per_day: int = 3
    default_split_days: int = 5

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
