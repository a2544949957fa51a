"""
Ferramentas do assistente de chat para o formulário de qualificação.

O modelo de linguagem chama estas ferramentas (function calling) com as
respostas indexadas pelo id da pergunta. Elas usam o mesmo serviço de
progresso do formulário web, com source="chat".
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from sqlalchemy.orm import Session

from app.entities.form_lead_entity import FormLead, LeadSource
from app.schemas.form_config_schemas import FormConfig
from app.schemas.form_lead_schemas import FormLeadProgress
from app.services import form_config_service, form_lead_service
from app.services.form_lead_service import FormLeadValidationError, ProgressMetadata
from app.services.form_scoring_service import (
    ANSWER_FIELD_MAPPING,
    get_sorted_questions,
    get_total_questions,
)
from app.utils.settings import settings


logger = logging.getLogger(__name__)

SAVE_FORM_PROGRESS = "save_form_progress"
GET_FORM_PROGRESS = "get_form_progress"
GET_FORM_CONFIG = "get_form_config"


class ChatToolError(LookupError):
    """Ferramenta desconhecida."""
    pass


@dataclass
class ChatToolContext:
    """Contexto da conversa que está chamando a ferramenta."""
    conversation_id: str
    session_id: str | None = None
    user_agent: str | None = None

    @property
    def resolved_session_id(self) -> str:
        return self.session_id or f"{settings.chat_session_prefix}{self.conversation_id}"


def _answer_properties(config: FormConfig) -> dict[str, dict]:
    properties: dict[str, dict] = {}
    for question in get_sorted_questions(config):
        prop: dict[str, Any] = {"type": "string", "description": question.title}
        if question.type == "select" and question.options:
            prop["enum"] = [option.value for option in question.options]
        properties[question.id] = prop
        if question.conditional_field:
            conditional = question.conditional_field
            properties[conditional.id] = {
                "type": "string",
                "description": f"{conditional.title} (somente se {question.id} = {conditional.show_when})",
            }
    return properties


def build_tool_definitions(config: FormConfig) -> list[dict]:
    """Definições das ferramentas no formato de function calling."""
    return [
        {
            "type": "function",
            "function": {
                "name": SAVE_FORM_PROGRESS,
                "description": (
                    "Salva as respostas coletadas até agora no formulário de qualificação. "
                    "Envie somente as respostas novas; as anteriores são mantidas."
                ),
                "parameters": {
                    "type": "object",
                    "properties": {
                        "answers": {
                            "type": "object",
                            "properties": _answer_properties(config),
                        },
                        "question_number": {
                            "type": "integer",
                            "description": f"Ordem da última pergunta respondida (1 a {get_total_questions(config)})",
                        },
                        "form_completo": {"type": "boolean"},
                    },
                    "required": ["answers", "question_number"],
                },
            },
        },
        {
            "type": "function",
            "function": {
                "name": GET_FORM_PROGRESS,
                "description": "Retorna as respostas já salvas e o score atual do lead desta conversa.",
                "parameters": {"type": "object", "properties": {}},
            },
        },
        {
            "type": "function",
            "function": {
                "name": GET_FORM_CONFIG,
                "description": "Retorna as perguntas do formulário em ordem, com as opções de cada uma.",
                "parameters": {"type": "object", "properties": {}},
            },
        },
    ]


def answers_to_progress(
    answers: dict[str, Any],
    session_id: str,
    question_number: Any,
    form_completo: Any = None,
) -> FormLeadProgress:
    """Separa respostas por id de pergunta entre colunas conhecidas e custom_answers."""
    known: dict[str, Any] = {}
    custom: dict[str, Any] = {}
    if not isinstance(answers, dict):
        answers = {}
    for question_id, value in answers.items():
        if question_id in ANSWER_FIELD_MAPPING:
            known[ANSWER_FIELD_MAPPING[question_id]] = value
        else:
            custom[question_id] = value
    return FormLeadProgress.model_validate(
        {
            **known,
            "session_id": session_id,
            "question_number": question_number,
            "form_completo": form_completo,
            "custom_answers": custom,
        }
    )


def _lead_snapshot(lead: FormLead) -> dict[str, Any]:
    answers = {
        question_id: getattr(lead, column)
        for question_id, column in ANSWER_FIELD_MAPPING.items()
        if getattr(lead, column)
    }
    answers.update(lead.custom_answers or {})
    return {
        "lead_id": lead.id,
        "answers": answers,
        "ultima_pergunta_respondida": lead.ultima_pergunta_respondida,
        "form_completo": lead.form_completo,
        "score_total": lead.score_total,
        "classificacao": lead.classificacao,
    }


def _save_form_progress(db: Session, arguments: dict[str, Any], context: ChatToolContext) -> dict:
    progress = answers_to_progress(
        arguments.get("answers") or {},
        session_id=context.resolved_session_id,
        question_number=arguments.get("question_number", 1),
        form_completo=arguments.get("form_completo"),
    )
    metadata = ProgressMetadata(
        user_agent=context.user_agent,
        conversation_id=context.conversation_id,
        source=LeadSource.CHAT.value,
    )
    try:
        lead = form_lead_service.upsert_form_lead_progress(db, progress, metadata)
    except FormLeadValidationError as e:
        # O assistente precisa pedir o nome antes de continuar
        return {"success": False, "error": str(e)}
    return {"success": True, **_lead_snapshot(lead)}


def _get_form_progress(db: Session, arguments: dict[str, Any], context: ChatToolContext) -> dict:
    lead = form_lead_service.get_progress(
        db,
        session_id=context.resolved_session_id,
        conversation_id=context.conversation_id,
    )
    if lead is None:
        return {"found": False}
    return {"found": True, **_lead_snapshot(lead)}


def _get_form_config(db: Session, arguments: dict[str, Any], context: ChatToolContext) -> dict:
    config = form_config_service.get_active_form_config(db)
    return {
        "total_questions": get_total_questions(config),
        "questions": [q.model_dump(by_alias=True, exclude_none=True) for q in get_sorted_questions(config)],
    }


TOOL_HANDLERS: dict[str, Callable[[Session, dict[str, Any], ChatToolContext], dict]] = {
    SAVE_FORM_PROGRESS: _save_form_progress,
    GET_FORM_PROGRESS: _get_form_progress,
    GET_FORM_CONFIG: _get_form_config,
}


def execute_tool(
    db: Session,
    name: str,
    arguments: dict[str, Any] | None,
    context: ChatToolContext,
) -> dict:
    """
    Executa uma ferramenta chamada pelo assistente.

    Raises:
        ChatToolError: Se a ferramenta não existir
    """
    handler = TOOL_HANDLERS.get(name)
    if handler is None:
        raise ChatToolError(f"Ferramenta desconhecida: {name}")
    logger.info(f"Ferramenta {name} chamada pela conversa {context.conversation_id}")
    return handler(db, arguments or {}, context)
