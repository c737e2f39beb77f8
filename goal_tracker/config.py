from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    sheets_api_url: str = ""
    sheets_api_key: str = ""
    sheets_timeout_sec: float = 30.0
    sync_enabled: bool = True
    sync_debounce_ms: int = 800
    timezone: str = "UTC"
    sqlite_path: str = "data/goal_tracker.db"
    log_path: str = "logs/goal_tracker.log"
    log_level: str = "INFO"
    backend_host: str = "0.0.0.0"
    backend_port: int = 8000


settings = Settings()
