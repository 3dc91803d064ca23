from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "tracker"

    # ---------------------------------------------------------------------
    # API contract / OpenAPI
    # ---------------------------------------------------------------------

    api_version: str = "1.0.0"
    api_description: str = (
        "Deliverable Tracker API.\n\n"
        "Write endpoints are headers-first only. Required headers: "
        "X-Role, X-Actor-User-Id.\n\n"
        "Milestone status and progress are derived from child deliverables on every read."
    )

    env: str = "local"
    debug: bool = True

    # ---------------------------------------------------------------------
    # Logging
    # ---------------------------------------------------------------------

    log_level: str = "INFO"
    log_format: str = "text"  # text | json

    # ---------------------------------------------------------------------
    # Database
    # ---------------------------------------------------------------------

    db_host: str = "127.0.0.1"
    db_port: int = 5432
    db_name: str = "tracker"
    db_user: str = "tracker"
    db_password: str = "tracker"

    # e.g. sqlite:///./tracker.db for local runs without PostgreSQL
    database_url_override: str | None = None

    @property
    def database_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql+psycopg://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )


settings = Settings()
