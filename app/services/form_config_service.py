from __future__ import annotations

import logging

from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.dao import company_settings_dao
from app.schemas.form_config_schemas import FormConfig, FormConfigSummary
from app.services.form_scoring_service import (
    DEFAULT_FORM_CONFIG,
    calculate_max_score,
    get_sorted_questions,
    get_total_questions,
)

logger = logging.getLogger(__name__)

def get_active_form_config(db: Session) -> FormConfig:
    """Config salva pelo admin ou o formulario padrao."""
    document = company_settings_dao.get_form_config_document(db)
    if not document:
        return DEFAULT_FORM_CONFIG
    try:
        return FormConfig.model_validate(document)
    except ValidationError as e:
        logger.warning(f"Form config salva é inválida, usando padrão: {e}")
        return DEFAULT_FORM_CONFIG

def update_form_config(db: Session, config: FormConfig) -> FormConfig:
    company_settings_dao.update_form_config_document(db, config.to_document())
    logger.info(
        f"Form config atualizada: {len(config.questions)} perguntas, "
        f"thresholds={config.thresholds.model_dump()}"
    )
    return config

def reset_form_config(db: Session) -> FormConfig:
    company_settings_dao.update_form_config_document(db, None)
    logger.info("Form config resetada para o padrão")
    return DEFAULT_FORM_CONFIG

def get_form_config_summary(config: FormConfig) -> FormConfigSummary:
    return FormConfigSummary(
        total_questions=get_total_questions(config),
        max_score=config.max_score,
        calculated_max_score=calculate_max_score(config),
        thresholds=config.thresholds,
        question_ids=[q.id for q in get_sorted_questions(config)],
    )
