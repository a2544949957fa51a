from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.entities.form_lead_entity import GhlSyncStatus, LeadClassification, LeadStatus


class FormLeadProgress(BaseModel):
    """
    Snapshot parcial enviado a cada pergunta respondida.

    Aceita chaves camelCase (formulario web) ou snake_case. Campos opcionais
    malformados são ignorados em vez de rejeitar o envio.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    session_id: str = Field(min_length=1)
    question_number: int = 1

    nome: str | None = None
    email: str | None = None
    telefone: str | None = None
    cidade_estado: str | None = None
    tipo_negocio: str | None = None
    tipo_negocio_outro: str | None = None
    tempo_negocio: str | None = None
    experiencia_marketing: str | None = None
    orcamento_anuncios: str | None = None
    principal_desafio: str | None = None
    disponibilidade: str | None = None
    expectativa_resultado: str | None = None
    custom_answers: dict[str, Any] | None = None

    form_completo: bool | None = None
    classificacao: LeadClassification | None = None
    tempo_total_segundos: int | None = None
    started_at: str | None = None

    url_origem: str | None = None
    utm_source: str | None = None
    utm_medium: str | None = None
    utm_campaign: str | None = None

    @field_validator(
        "nome",
        "email",
        "telefone",
        "cidade_estado",
        "tipo_negocio",
        "tipo_negocio_outro",
        "tempo_negocio",
        "experiencia_marketing",
        "orcamento_anuncios",
        "principal_desafio",
        "disponibilidade",
        "expectativa_resultado",
        "started_at",
        "url_origem",
        "utm_source",
        "utm_medium",
        "utm_campaign",
        mode="before",
    )
    @classmethod
    def coerce_text_answer(cls, value: Any) -> str | None:
        # Listas/objetos viram None; números e booleanos viram texto
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, (bool, int, float)):
            return str(value)
        return None

    @field_validator("question_number", mode="before")
    @classmethod
    def coerce_question_number(cls, value: Any) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return 1

    @field_validator("classificacao", mode="before")
    @classmethod
    def drop_unknown_classification(cls, value: Any) -> Any:
        valid = {c.value for c in LeadClassification}
        return value if isinstance(value, str) and value in valid else None

    @field_validator("tempo_total_segundos", mode="before")
    @classmethod
    def drop_invalid_duration(cls, value: Any) -> int | None:
        try:
            return int(value) if value is not None else None
        except (TypeError, ValueError):
            return None

    @field_validator("custom_answers", mode="before")
    @classmethod
    def drop_invalid_custom_answers(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else None

    @field_validator("form_completo", mode="before")
    @classmethod
    def coerce_form_completo(cls, value: Any) -> bool | None:
        if value is None or isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.strip().lower() in {"true", "1", "sim", "yes"}
        return None


class FormLeadResponse(BaseModel):
    id: int
    session_id: str
    conversation_id: str | None

    nome: str
    email: str | None
    telefone: str | None
    cidade_estado: str | None
    tipo_negocio: str | None
    tipo_negocio_outro: str | None
    tempo_negocio: str | None
    experiencia_marketing: str | None
    orcamento_anuncios: str | None
    principal_desafio: str | None
    disponibilidade: str | None
    expectativa_resultado: str | None
    custom_answers: dict[str, str]

    score_total: int
    score_tipo_negocio: int
    score_tempo_negocio: int
    score_experiencia: int
    score_orcamento: int
    score_desafio: int
    score_disponibilidade: int
    score_expectativa: int
    score_breakdown: dict[str, int]
    classificacao: LeadClassification | None

    ultima_pergunta_respondida: int
    form_completo: bool
    tempo_total_segundos: int | None

    source: str
    user_agent: str | None
    url_origem: str | None
    utm_source: str | None
    utm_medium: str | None
    utm_campaign: str | None

    status: LeadStatus
    observacoes: str | None
    notificacao_enviada: bool
    ghl_contact_id: str | None
    ghl_sync_status: str

    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class FormLeadUpdate(BaseModel):
    status: LeadStatus | None = None
    observacoes: str | None = None
    notificacao_enviada: bool | None = None
    ghl_contact_id: str | None = None
    ghl_sync_status: GhlSyncStatus | None = None


class FormLeadsListResponse(BaseModel):
    items: list[FormLeadResponse]
    total: int
    page: int
    per_page: int
    pages: int


class FormLeadMetricsResponse(BaseModel):
    total: int
    by_classification: dict[str, int]
    by_status: dict[str, int]
    by_completion: dict[str, int]
    completion_rate: float


class ChatToolRequest(BaseModel):
    conversation_id: str = Field(min_length=1)
    session_id: str | None = None
    user_agent: str | None = None
    arguments: dict[str, Any] = Field(default_factory=dict)


class ChatToolResponse(BaseModel):
    tool: str
    result: dict[str, Any]
