from __future__ import annotations

from typing import Generator

from sqlalchemy import JSON, create_engine
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from app.utils.settings import settings


Base = declarative_base()

# JSONB no Postgres, JSON generico nos demais bancos (ex.: SQLite nos testes)
JSONType = JSON().with_variant(JSONB(), "postgresql")

# Engine e SessionLocal são inicializados lazy
_engine = None
_SessionLocal = None


def _get_engine():
    global _engine
    if _engine is None:
        _engine = create_engine(settings.database_url, pool_pre_ping=True)
    return _engine


def _get_session_local():
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_get_engine())
    return _SessionLocal


def SessionLocal() -> Session:
    """Retorna uma nova sessão do banco de dados."""
    return _get_session_local()()


def get_db() -> Generator[Session, None, None]:
    """Dependency do FastAPI para injeção de sessão do banco."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables() -> None:
    """
    Cria as tabelas das entities registradas.

    Executado uma vez no deploy (scripts/init_db.py), nunca por request.
    """
    import app.entities  # noqa: F401  registra as entities no metadata

    Base.metadata.create_all(bind=_get_engine())
