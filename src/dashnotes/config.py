from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str | None = None  # mongodb://... or memory://; unset runs every session in demo mode
    host: str = "127.0.0.1"
    port: int = 3100
    debug: bool = False
    json_logs: bool | None = None  # Defaults to JSON unless debug
    cors_origins: list[str] = []
    demo_storage_path: str | None = None  # Directory for demo note slots; in-memory when unset
    notifications_limit: int = 20  # Most recent notifications fetched for display
    auto_migrate: bool = True  # Apply pending store migrations on startup
    bootstrap_password: str | None = None  # When set, creates "ceo" and "cto" accounts for roles nobody holds

    model_config = {
        "env_file": [".env"],
        "env_prefix": "DASHNOTES_",
        "extra": "ignore",
    }

    @property
    def is_demo_only(self) -> bool:
        """True when no authoritative store is configured."""
        return not self.database_url
