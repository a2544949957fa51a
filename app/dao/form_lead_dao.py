from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.entities.form_lead_entity import (
    CompletionStatus,
    FormLead,
    LeadClassification,
    LeadStatus,
)


# SQLSTATE do Postgres para unique_violation
UNIQUE_VIOLATION = "23505"


class LeadConflictError(RuntimeError):
    """Insert violou constraint unica (session_id ou conversation_id já existe)."""
    pass


def _is_unique_violation(exc: IntegrityError) -> bool:
    orig = exc.orig
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code:
        return code == UNIQUE_VIOLATION
    # SQLite não expõe SQLSTATE
    return "UNIQUE constraint failed" in str(orig)


def get_by_id(db: Session, lead_id: int) -> FormLead | None:
    return db.query(FormLead).filter(FormLead.id == lead_id).one_or_none()


def get_by_session(db: Session, session_id: str) -> FormLead | None:
    """Retorna o lead de uma sessão do visitante."""
    return db.query(FormLead).filter(FormLead.session_id == session_id).one_or_none()


def get_by_conversation_id(db: Session, conversation_id: str) -> FormLead | None:
    """Retorna o lead criado a partir de uma conversa do chat."""
    return (
        db.query(FormLead)
        .filter(FormLead.conversation_id == conversation_id)
        .one_or_none()
    )


def get_by_email(db: Session, email: str) -> FormLead | None:
    """Retorna o lead mais recente com o email informado."""
    return (
        db.query(FormLead)
        .filter(func.lower(FormLead.email) == email.lower())
        .order_by(FormLead.created_at.desc())
        .first()
    )


def create_lead(db: Session, fields: dict[str, Any]) -> FormLead:
    """
    Insere um novo lead.

    Raises:
        LeadConflictError: Se session_id/conversation_id já existir
    """
    lead = FormLead(**fields)
    db.add(lead)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        if _is_unique_violation(e):
            raise LeadConflictError(str(e.orig)) from e
        raise
    db.refresh(lead)
    return lead


def update_lead(db: Session, lead: FormLead, fields: dict[str, Any]) -> FormLead:
    """Aplica os campos no lead e persiste."""
    for key, value in fields.items():
        setattr(lead, key, value)
    db.commit()
    db.refresh(lead)
    return lead


def _apply_completion_filter(query, completion_status: str, now: datetime, abandon_hours: int):
    cutoff = now - timedelta(hours=abandon_hours)
    if completion_status == CompletionStatus.COMPLETO:
        return query.filter(FormLead.form_completo.is_(True))
    if completion_status == CompletionStatus.EM_PROGRESSO:
        return query.filter(FormLead.form_completo.is_(False), FormLead.updated_at >= cutoff)
    if completion_status == CompletionStatus.ABANDONADO:
        return query.filter(FormLead.form_completo.is_(False), FormLead.updated_at < cutoff)
    return query


def get_all_paginated(
    db: Session,
    page: int = 1,
    per_page: int = 20,
    status: str | None = None,
    classificacao: str | None = None,
    form_completo: bool | None = None,
    completion_status: str | None = None,
    search: str | None = None,
    abandon_hours: int = 24,
) -> tuple[list[FormLead], int]:
    """
    Retorna leads paginados com filtros opcionais.

    Args:
        db: Sessão do banco
        page: Número da página (1-indexed)
        per_page: Itens por página
        status: Filtrar por status (novo, contatado, qualificado, convertido, descartado)
        classificacao: Filtrar por classificação (QUENTE, MORNO, FRIO, DESQUALIFICADO)
        form_completo: Filtro legado por formulário completo
        completion_status: completo, em_progresso ou abandonado (tem prioridade sobre form_completo)
        search: Busca em nome, email e telefone
        abandon_hours: Horas sem atualização para considerar abandonado

    Returns:
        Tupla com (lista de leads, total de registros)
    """
    query = db.query(FormLead)

    if status:
        query = query.filter(FormLead.status == status)
    if classificacao:
        query = query.filter(FormLead.classificacao == classificacao)

    if completion_status:
        query = _apply_completion_filter(
            query, completion_status, datetime.now(timezone.utc), abandon_hours
        )
    elif form_completo is not None:
        query = query.filter(FormLead.form_completo.is_(form_completo))

    if search:
        like_value = f"%{search.lower()}%"
        query = query.filter(
            or_(
                func.lower(FormLead.nome).like(like_value),
                func.lower(FormLead.email).like(like_value),
                func.lower(FormLead.telefone).like(like_value),
            )
        )

    total = query.count()
    leads = (
        query
        .order_by(FormLead.created_at.desc(), FormLead.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )

    return leads, total


def delete_lead(db: Session, lead_id: int) -> bool:
    """Remove um lead definitivamente (ação explícita do admin)."""
    lead = get_by_id(db, lead_id)
    if not lead:
        return False

    db.delete(lead)
    db.commit()
    return True


def get_metrics(db: Session, abandon_hours: int = 24) -> dict:
    """
    Retorna métricas agregadas dos leads.

    Returns:
        Dict com total, contagem por classificação, status e conclusão
    """
    base_query = db.query(FormLead)
    now = datetime.now(timezone.utc)

    total = base_query.count()

    by_classification = {
        c.value: base_query.filter(FormLead.classificacao == c.value).count()
        for c in LeadClassification
    }
    by_status = {
        s.value: base_query.filter(FormLead.status == s.value).count()
        for s in LeadStatus
    }
    by_completion = {
        c.value: _apply_completion_filter(base_query, c, now, abandon_hours).count()
        for c in CompletionStatus
    }

    completion_rate = (by_completion["completo"] / total * 100) if total > 0 else 0.0

    return {
        "total": total,
        "by_classification": by_classification,
        "by_status": by_status,
        "by_completion": by_completion,
        "completion_rate": round(completion_rate, 2),
    }
