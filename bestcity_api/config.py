from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="BESTCITY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database (any SQLAlchemy async URL, e.g. postgresql+asyncpg://...)
    database_url: str | None = None
    db_echo: bool = False

    # App
    app_host: str = "0.0.0.0"
    app_port: int = 4000
    api_prefix: str = "/api/v1"
    environment: str = "development"
    service_name: str = "bestcity-api"

    # Logging
    log_level: str = "INFO"
    log_dir: str = "logs"
    disable_file_logging: bool = False
    log_max_bytes: int = 20 * 1024 * 1024
    log_backup_days: int = 14

    # Metrics
    metrics_prefix: str = "bestcity"

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


settings = Settings()
