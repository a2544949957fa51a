from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()

class Settings:

    db_user: str = os.getenv("DB_USER", "postgres")
    db_password: str = os.getenv("DB_PASSWORD", "")
    db_host: str = os.getenv("DB_HOST", "localhost")
    db_port: int = int(os.getenv("DB_PORT", "5432"))
    db_name: str = os.getenv("DB_NAME", "leads")

    # URL completa tem prioridade sobre as variaveis DB_*
    database_url_override: str | None = os.getenv("DATABASE_URL")

    cors_origins: str = os.getenv("CORS_ORIGINS", "*")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Leads incompletos sem atualizacao ha mais tempo que isso sao "abandonados"
    lead_abandon_hours: int = int(os.getenv("LEAD_ABANDON_HOURS", "24"))

    # Prefixo do session_id gerado para leads vindos do chat
    chat_session_prefix: str = os.getenv("CHAT_SESSION_PREFIX", "chat-")

    @property
    def database_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override
        return f"postgresql+psycopg2://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

settings = Settings()
