from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.schemas.form_config_schemas import FormConfig, FormConfigSummary
from app.services import form_config_service
from app.services.websocket_manager import LeadEvent, ws_manager
from app.utils.db import get_db


router = APIRouter(prefix="/api/form-config", tags=["Form Config"])


@router.get("/", response_model=FormConfig)
def get_form_config(db: Session = Depends(get_db)):
    """Retorna a config ativa do formulário (salva ou padrão)."""
    return form_config_service.get_active_form_config(db)


@router.get("/summary", response_model=FormConfigSummary)
def get_form_config_summary(db: Session = Depends(get_db)):
    config = form_config_service.get_active_form_config(db)
    return form_config_service.get_form_config_summary(config)


@router.put("/", response_model=FormConfig)
async def update_form_config(
    request: FormConfig,
    db: Session = Depends(get_db),
):
    """
    Substitui a config do formulário por inteiro.

    IDs de perguntas (incluindo campos condicionais) devem ser únicos e os
    thresholds devem respeitar hot > warm > cold.
    """
    config = form_config_service.update_form_config(db, request)
    await ws_manager.broadcast(LeadEvent.FORM_CONFIG_UPDATED)
    return config


@router.delete("/", response_model=FormConfig)
async def reset_form_config(db: Session = Depends(get_db)):
    """Volta para o formulário padrão."""
    config = form_config_service.reset_form_config(db)
    await ws_manager.broadcast(LeadEvent.FORM_CONFIG_UPDATED)
    return config
