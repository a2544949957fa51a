from __future__ import annotations

from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.utils.db import Base, JSONType


class LeadClassification(str, Enum):
    QUENTE = "QUENTE"
    MORNO = "MORNO"
    FRIO = "FRIO"
    DESQUALIFICADO = "DESQUALIFICADO"


class LeadStatus(str, Enum):
    NOVO = "novo"
    CONTATADO = "contatado"
    QUALIFICADO = "qualificado"
    CONVERTIDO = "convertido"
    DESCARTADO = "descartado"


class LeadSource(str, Enum):
    FORM = "form"
    CHAT = "chat"


class CompletionStatus(str, Enum):
    COMPLETO = "completo"
    EM_PROGRESSO = "em_progresso"
    ABANDONADO = "abandonado"


class GhlSyncStatus(str, Enum):
    PENDING = "pending"
    SYNCED = "synced"
    FAILED = "failed"


class FormLead(Base):
    """
    Lead acumulado pelo formulario de qualificacao (web ou chat).

    Perguntas conhecidas tem coluna propria; perguntas criadas pelo admin
    ficam em custom_answers.
    """

    __tablename__ = "form_leads"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Identidade
    session_id: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    conversation_id: Mapped[str | None] = mapped_column(String(128), unique=True, nullable=True)

    # Respostas
    nome: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    email: Mapped[str | None] = mapped_column(String(255), index=True, nullable=True)
    telefone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    cidade_estado: Mapped[str | None] = mapped_column(String(255), nullable=True)
    tipo_negocio: Mapped[str | None] = mapped_column(String(255), nullable=True)
    tipo_negocio_outro: Mapped[str | None] = mapped_column(String(255), nullable=True)
    tempo_negocio: Mapped[str | None] = mapped_column(String(255), nullable=True)
    experiencia_marketing: Mapped[str | None] = mapped_column(String(255), nullable=True)
    orcamento_anuncios: Mapped[str | None] = mapped_column(String(255), nullable=True)
    principal_desafio: Mapped[str | None] = mapped_column(Text, nullable=True)
    disponibilidade: Mapped[str | None] = mapped_column(String(255), nullable=True)
    expectativa_resultado: Mapped[str | None] = mapped_column(String(255), nullable=True)
    custom_answers: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)

    # Score
    score_total: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    score_tipo_negocio: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    score_tempo_negocio: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    score_experiencia: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    score_orcamento: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    score_desafio: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    score_disponibilidade: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    score_expectativa: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    score_breakdown: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    classificacao: Mapped[str | None] = mapped_column(String(32), nullable=True)

    # Progresso
    ultima_pergunta_respondida: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    form_completo: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    tempo_total_segundos: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Origem
    source: Mapped[str] = mapped_column(String(16), nullable=False, default=LeadSource.FORM.value)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)
    url_origem: Mapped[str | None] = mapped_column(Text, nullable=True)
    utm_source: Mapped[str | None] = mapped_column(String(255), nullable=True)
    utm_medium: Mapped[str | None] = mapped_column(String(255), nullable=True)
    utm_campaign: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Gestao pelo admin
    status: Mapped[str] = mapped_column(String(32), nullable=False, default=LeadStatus.NOVO.value)
    observacoes: Mapped[str | None] = mapped_column(Text, nullable=True)
    notificacao_enviada: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Sincronizacao com o CRM
    ghl_contact_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    ghl_sync_status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=GhlSyncStatus.PENDING.value
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
