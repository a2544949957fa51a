"""
Serviço de progresso do formulário de qualificação.

Cada envio (formulário web ou ferramenta do chat) é um snapshot parcial das
respostas. O envio é mesclado no lead persistido:

- respostas novas vencem apenas quando não vazias
- ultima_pergunta_respondida nunca diminui
- form_completo nunca volta a False
- score é recalculado do zero sobre as respostas mescladas a cada envio
- classificacao só é calculada quando o formulário está completo
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.orm import Session

from app.dao import form_lead_dao
from app.dao.form_lead_dao import LeadConflictError
from app.entities.form_lead_entity import FormLead, GhlSyncStatus, LeadSource, LeadStatus
from app.schemas.form_config_schemas import FormConfig
from app.schemas.form_lead_schemas import FormLeadProgress
from app.services import form_config_service
from app.services.form_scoring_service import (
    ANSWER_FIELD_MAPPING,
    SCORE_FIELD_MAPPING,
    calculate_form_scores_with_config,
    classify_lead,
    get_total_questions,
)
from app.utils.settings import settings


logger = logging.getLogger(__name__)

# Campos escalares mesclados com a mesma regra das respostas
METADATA_FIELDS = ("url_origem", "utm_source", "utm_medium", "utm_campaign")


class FormLeadValidationError(ValueError):
    """Envio de progresso rejeitado (ex.: sessão nova sem nome)."""
    pass


@dataclass
class ProgressMetadata:
    """Dados do chamador que não fazem parte das respostas."""
    user_agent: str | None = None
    conversation_id: str | None = None
    source: str | None = None


def _has_text(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


def _pick(new: Any, old: Any) -> Any:
    """Valor novo vence se preenchido; caso contrário mantém o existente."""
    if isinstance(new, str):
        return new if new.strip() else old
    return new if new is not None else old


def _parse_started_at(value: str | None, fallback: datetime) -> datetime:
    if not value:
        return fallback
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return fallback
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _merge_custom_answers(existing: dict | None, incoming: dict | None) -> dict[str, str]:
    merged = {**(existing or {}), **(incoming or {})}
    return {key: value for key, value in merged.items() if _has_text(value)}


def _find_existing(
    db: Session,
    session_id: str,
    conversation_id: str | None,
) -> FormLead | None:
    existing = None
    if conversation_id:
        existing = form_lead_dao.get_by_conversation_id(db, conversation_id)
    if existing is None:
        existing = form_lead_dao.get_by_session(db, session_id)
    return existing


def _build_merged_fields(
    progress: FormLeadProgress,
    metadata: ProgressMetadata,
    existing: FormLead | None,
    config: FormConfig,
    now: datetime,
) -> dict[str, Any]:
    """Monta o payload completo do lead mesclando o envio com o registro existente."""
    fields: dict[str, Any] = {"session_id": progress.session_id}

    for column in ANSWER_FIELD_MAPPING.values():
        fields[column] = _pick(getattr(progress, column), getattr(existing, column, None))
    fields["nome"] = fields["nome"] or ""

    custom_answers = _merge_custom_answers(
        existing.custom_answers if existing else None,
        progress.custom_answers,
    )
    fields["custom_answers"] = custom_answers

    answers_for_scoring = {
        **custom_answers,
        **{question_id: fields[column] for question_id, column in ANSWER_FIELD_MAPPING.items()},
    }
    score = calculate_form_scores_with_config(answers_for_scoring, config)
    fields["score_total"] = score.total
    fields["score_breakdown"] = dict(score.breakdown)
    for column in SCORE_FIELD_MAPPING.values():
        # Pergunta fora da config ativa mantém o score já gravado
        fields[column] = score.breakdown.get(column, getattr(existing, column, None) or 0)

    total_questions = get_total_questions(config)
    safe_question_number = max(1, min(progress.question_number, total_questions))
    previous_question = existing.ultima_pergunta_respondida if existing else 0
    fields["ultima_pergunta_respondida"] = max(safe_question_number, previous_question or 0)

    is_complete = (
        safe_question_number >= total_questions
        or bool(progress.form_completo)
        or bool(existing and existing.form_completo)
    )
    fields["form_completo"] = is_complete

    if is_complete:
        fields["classificacao"] = classify_lead(score.total, config.thresholds).value
    else:
        provided = progress.classificacao.value if progress.classificacao else None
        fields["classificacao"] = (existing.classificacao if existing else None) or provided

    fields["tempo_total_segundos"] = _pick(
        progress.tempo_total_segundos,
        existing.tempo_total_segundos if existing else None,
    )
    for column in METADATA_FIELDS:
        fields[column] = _pick(getattr(progress, column), getattr(existing, column, None))

    fields["user_agent"] = _pick(metadata.user_agent, existing.user_agent if existing else None)
    fields["source"] = _pick(metadata.source, existing.source if existing else None) or LeadSource.FORM.value
    fields["conversation_id"] = _pick(
        metadata.conversation_id,
        existing.conversation_id if existing else None,
    )

    fields["status"] = existing.status if existing and existing.status else LeadStatus.NOVO.value
    fields["updated_at"] = now
    return fields


def upsert_form_lead_progress(
    db: Session,
    progress: FormLeadProgress,
    metadata: ProgressMetadata | None = None,
    form_config: FormConfig | None = None,
) -> FormLead:
    """
    Mescla um envio de progresso no lead da sessão/conversa.

    Args:
        db: Sessão do banco
        progress: Respostas parciais + session_id e número da pergunta
        metadata: user_agent, conversation_id e source do chamador
        form_config: Config ativa (se None, usa a salva ou a padrão)

    Returns:
        Lead persistido, já mesclado e com score atualizado

    Raises:
        FormLeadValidationError: Sessão nova sem nome
    """
    metadata = metadata or ProgressMetadata()

    existing = _find_existing(db, progress.session_id, metadata.conversation_id)
    if existing is None and not _has_text(progress.nome):
        raise FormLeadValidationError("Nome completo é obrigatório para iniciar o formulário")

    config = form_config or form_config_service.get_active_form_config(db)
    now = datetime.now(timezone.utc)
    fields = _build_merged_fields(progress, metadata, existing, config, now)

    if existing is not None:
        lead = form_lead_dao.update_lead(db, existing, fields)
        logger.info(
            f"Progresso do lead {lead.id} atualizado: pergunta {lead.ultima_pergunta_respondida}, "
            f"score {lead.score_total}"
        )
        return lead

    fields["created_at"] = _parse_started_at(progress.started_at, now)
    fields["ghl_sync_status"] = GhlSyncStatus.PENDING.value
    try:
        lead = form_lead_dao.create_lead(db, fields)
        logger.info(f"Lead {lead.id} criado para sessão {progress.session_id} (source={lead.source})")
        return lead
    except LeadConflictError:
        # Outro request criou o lead entre a busca e o insert
        logger.warning(f"Conflito ao criar lead da sessão {progress.session_id}, mesclando no existente")
        winner = _find_existing(db, progress.session_id, metadata.conversation_id)
        if winner is None:
            raise
        fields = _build_merged_fields(progress, metadata, winner, config, now)
        return form_lead_dao.update_lead(db, winner, fields)


def get_progress(
    db: Session,
    session_id: str | None = None,
    conversation_id: str | None = None,
) -> FormLead | None:
    """Lead atual da sessão ou conversa, se existir."""
    if not session_id and not conversation_id:
        return None
    if conversation_id:
        lead = form_lead_dao.get_by_conversation_id(db, conversation_id)
        if lead is not None or not session_id:
            return lead
    return form_lead_dao.get_by_session(db, session_id)


def get_form_lead(db: Session, lead_id: int) -> FormLead | None:
    return form_lead_dao.get_by_id(db, lead_id)


def get_form_lead_by_email(db: Session, email: str) -> FormLead | None:
    return form_lead_dao.get_by_email(db, email)


def list_form_leads(
    db: Session,
    page: int = 1,
    per_page: int = 20,
    status: str | None = None,
    classificacao: str | None = None,
    form_completo: bool | None = None,
    completion_status: str | None = None,
    search: str | None = None,
) -> tuple[list[FormLead], int]:
    return form_lead_dao.get_all_paginated(
        db,
        page=page,
        per_page=per_page,
        status=status,
        classificacao=classificacao,
        form_completo=form_completo,
        completion_status=completion_status,
        search=search,
        abandon_hours=settings.lead_abandon_hours,
    )


def update_form_lead(db: Session, lead_id: int, **updates: Any) -> FormLead | None:
    """Atualiza campos de gestão do admin (status, observações, CRM)."""
    lead = form_lead_dao.get_by_id(db, lead_id)
    if not lead:
        return None
    updates["updated_at"] = datetime.now(timezone.utc)
    lead = form_lead_dao.update_lead(db, lead, updates)
    logger.info(f"Lead {lead_id} atualizado pelo admin: {sorted(k for k in updates if k != 'updated_at')}")
    return lead


def delete_form_lead(db: Session, lead_id: int) -> bool:
    deleted = form_lead_dao.delete_lead(db, lead_id)
    if deleted:
        logger.info(f"Lead {lead_id} removido")
    return deleted


def get_metrics(db: Session) -> dict:
    return form_lead_dao.get_metrics(db, abandon_hours=settings.lead_abandon_hours)
