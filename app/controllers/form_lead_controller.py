from __future__ import annotations

import math

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from sqlalchemy.orm import Session

from app.entities.form_lead_entity import CompletionStatus, LeadClassification, LeadStatus
from app.schemas.form_lead_schemas import (
    FormLeadMetricsResponse,
    FormLeadProgress,
    FormLeadResponse,
    FormLeadsListResponse,
    FormLeadUpdate,
)
from app.services import form_lead_service
from app.services.form_lead_service import FormLeadValidationError, ProgressMetadata
from app.services.websocket_manager import LeadEvent, ws_manager
from app.utils.db import get_db


router = APIRouter(prefix="/api/form-leads", tags=["Form Leads"])


@router.post("/progress", response_model=FormLeadResponse)
async def submit_progress(
    request: FormLeadProgress,
    user_agent: str | None = Header(default=None),
    db: Session = Depends(get_db),
):
    """
    Salva o progresso do formulário de qualificação.

    Cada envio traz as respostas novas e o número da pergunta respondida.
    Respostas anteriores são mantidas, o score é recalculado e a
    classificação é definida quando o formulário termina.

    Uma sessão nova precisa trazer o nome (`nome`).
    """
    try:
        lead = form_lead_service.upsert_form_lead_progress(
            db,
            request,
            ProgressMetadata(user_agent=user_agent),
        )
    except FormLeadValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    await ws_manager.broadcast(LeadEvent.FORM_LEAD_UPDATED, {"lead_id": lead.id})
    return FormLeadResponse.model_validate(lead)


@router.get("/progress/{session_id}", response_model=FormLeadResponse)
def get_progress(
    session_id: str,
    db: Session = Depends(get_db),
):
    """Retorna o progresso atual de uma sessão."""
    lead = form_lead_service.get_progress(db, session_id=session_id)
    if not lead:
        raise HTTPException(status_code=404, detail="Progresso não encontrado")
    return FormLeadResponse.model_validate(lead)


@router.get("/", response_model=FormLeadsListResponse)
def list_form_leads(
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=20, ge=1, le=100),
    status: LeadStatus | None = Query(default=None),
    classificacao: LeadClassification | None = Query(default=None),
    form_completo: bool | None = Query(default=None, description="Filtro legado; prefira completion_status"),
    completion_status: CompletionStatus | None = Query(default=None),
    search: str | None = Query(default=None, description="Busca em nome, email e telefone"),
    db: Session = Depends(get_db),
):
    """
    Lista os leads do formulário com paginação e filtros.

    - completion_status: completo | em_progresso (atualizado nas últimas horas) | abandonado
    """
    leads, total = form_lead_service.list_form_leads(
        db,
        page=page,
        per_page=per_page,
        status=status.value if status else None,
        classificacao=classificacao.value if classificacao else None,
        form_completo=form_completo,
        completion_status=completion_status.value if completion_status else None,
        search=search,
    )

    return FormLeadsListResponse(
        items=[FormLeadResponse.model_validate(lead) for lead in leads],
        total=total,
        page=page,
        per_page=per_page,
        pages=math.ceil(total / per_page) if total > 0 else 0,
    )


@router.get("/metrics", response_model=FormLeadMetricsResponse)
def get_form_lead_metrics(db: Session = Depends(get_db)):
    """Totais por classificação, status e conclusão do formulário."""
    return FormLeadMetricsResponse(**form_lead_service.get_metrics(db))


@router.get("/by-email", response_model=FormLeadResponse)
def get_form_lead_by_email(
    email: str = Query(min_length=1),
    db: Session = Depends(get_db),
):
    """Lead mais recente com o email informado (sem diferenciar maiúsculas)."""
    lead = form_lead_service.get_form_lead_by_email(db, email)
    if not lead:
        raise HTTPException(status_code=404, detail="Lead não encontrado")
    return FormLeadResponse.model_validate(lead)


@router.get("/{lead_id}", response_model=FormLeadResponse)
def get_form_lead(
    lead_id: int,
    db: Session = Depends(get_db),
):
    lead = form_lead_service.get_form_lead(db, lead_id)
    if not lead:
        raise HTTPException(status_code=404, detail="Lead não encontrado")
    return FormLeadResponse.model_validate(lead)


@router.patch("/{lead_id}", response_model=FormLeadResponse)
async def update_form_lead(
    lead_id: int,
    request: FormLeadUpdate,
    db: Session = Depends(get_db),
):
    """
    Atualiza campos de gestão do lead.

    Campos atualizáveis: status, observacoes, notificacao_enviada,
    ghl_contact_id, ghl_sync_status. Respostas e score só mudam pelo
    envio de progresso.
    """
    update_data = request.model_dump(exclude_none=True, mode="json")

    if not update_data:
        raise HTTPException(status_code=400, detail="Nenhum campo para atualizar")

    lead = form_lead_service.update_form_lead(db, lead_id, **update_data)
    if not lead:
        raise HTTPException(status_code=404, detail="Lead não encontrado")

    await ws_manager.broadcast(LeadEvent.FORM_LEAD_UPDATED, {"lead_id": lead_id})
    return FormLeadResponse.model_validate(lead)


@router.delete("/{lead_id}")
async def delete_form_lead(
    lead_id: int,
    db: Session = Depends(get_db),
):
    success = form_lead_service.delete_form_lead(db, lead_id)
    if not success:
        raise HTTPException(status_code=404, detail="Lead não encontrado")

    await ws_manager.broadcast(LeadEvent.FORM_LEAD_DELETED, {"lead_id": lead_id})

    return {"status": "ok", "message": "Lead removido"}
