"""
Scoring de leads do formulario de qualificacao.

Funcoes puras: nao acessam banco nem estado global alem do
DEFAULT_FORM_CONFIG. Podem ser chamadas com respostas parciais
(lead em andamento), perguntas sem resposta valem 0.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from app.entities.form_lead_entity import LeadClassification
from app.schemas.form_config_schemas import FormConfig, FormOption, FormQuestion, FormThresholds


# Formulario padrao (white-label) usado quando nao ha config salva
DEFAULT_FORM_CONFIG = FormConfig.model_validate(
    {
        "questions": [
            {
                "id": "cidadeEstado",
                "order": 1,
                "title": "What is your zip code?",
                "type": "text",
                "required": True,
                "placeholder": "e.g. 33101",
            },
            {
                "id": "nome",
                "order": 2,
                "title": "What is your full name?",
                "type": "text",
                "required": True,
                "placeholder": "Enter your full name",
            },
            {
                "id": "email",
                "order": 3,
                "title": "What is your email address?",
                "type": "email",
                "required": True,
                "placeholder": "you@example.com",
            },
            {
                "id": "telefone",
                "order": 4,
                "title": "What is your phone number?",
                "type": "tel",
                "required": True,
                "placeholder": "(555) 123-4567",
            },
            {
                "id": "tipoNegocio",
                "order": 5,
                "title": "What type of project are you looking for?",
                "type": "select",
                "required": True,
                "options": [
                    {"value": "Kitchen Remodel", "label": "Kitchen Remodel", "points": 10},
                    {"value": "Bathroom Remodel", "label": "Bathroom Remodel", "points": 10},
                    {"value": "Full Renovation", "label": "Full Home Renovation", "points": 10},
                    {"value": "Custom Carpentry", "label": "Custom Carpentry & Finishes", "points": 8},
                    {"value": "Outdoor Project", "label": "Outdoor / Exterior Project", "points": 8},
                    {"value": "Other", "label": "Other (please specify)", "points": 5},
                ],
                "conditionalField": {
                    "showWhen": "Other",
                    "id": "tipoNegocioOutro",
                    "title": "Please describe your project",
                    "placeholder": "e.g. Garage conversion, Painting, etc.",
                },
            },
            {
                "id": "expectativaResultado",
                "order": 6,
                "title": "When are you looking to start?",
                "type": "select",
                "required": True,
                "options": [
                    {"value": "ASAP", "label": "As soon as possible", "points": 10},
                    {"value": "Within 1 month", "label": "Within 1 month", "points": 8},
                    {"value": "1 to 3 months", "label": "1 to 3 months", "points": 5},
                    {"value": "Just exploring", "label": "Just exploring options", "points": 3},
                ],
            },
        ],
        "maxScore": 20,
        "thresholds": {"hot": 18, "warm": 13, "cold": 8},
    }
)

# ID da pergunta -> coluna de resposta em form_leads
ANSWER_FIELD_MAPPING: dict[str, str] = {
    "nome": "nome",
    "email": "email",
    "telefone": "telefone",
    "cidadeEstado": "cidade_estado",
    "tipoNegocio": "tipo_negocio",
    "tipoNegocioOutro": "tipo_negocio_outro",
    "tempoNegocio": "tempo_negocio",
    "experienciaMarketing": "experiencia_marketing",
    "orcamentoAnuncios": "orcamento_anuncios",
    "principalDesafio": "principal_desafio",
    "disponibilidade": "disponibilidade",
    "expectativaResultado": "expectativa_resultado",
}

# ID da pergunta -> coluna de score em form_leads
SCORE_FIELD_MAPPING: dict[str, str] = {
    "tipoNegocio": "score_tipo_negocio",
    "tempoNegocio": "score_tempo_negocio",
    "experienciaMarketing": "score_experiencia",
    "orcamentoAnuncios": "score_orcamento",
    "principalDesafio": "score_desafio",
    "disponibilidade": "score_disponibilidade",
    "expectativaResultado": "score_expectativa",
}


@dataclass
class FormScoreResult:
    """Score total e contribuicao de cada pergunta."""
    total: int = 0
    breakdown: dict[str, int] = field(default_factory=dict)


def score_key_for(question_id: str) -> str:
    return SCORE_FIELD_MAPPING.get(question_id, f"score_{question_id}")


def _resolve_points(options: list[FormOption] | None, answer: str | None) -> int:
    if not answer or not options:
        return 0
    # Alguns chamadores enviam o label em vez do value
    for option in options:
        if option.value == answer or option.label == answer:
            return option.points
    return 0


def _conditional_fallback_points(
    question: FormQuestion,
    answers: Mapping[str, str | None],
    answer: str | None,
    points: int,
) -> int:
    conditional = question.conditional_field
    if not conditional or answer != conditional.show_when:
        return points
    if points != 0 or not answers.get(conditional.id):
        return points
    trigger = next((o for o in question.options or [] if o.value == conditional.show_when), None)
    return trigger.points if trigger else 0


def calculate_form_scores_with_config(
    answers: Mapping[str, str | None],
    config: FormConfig,
) -> FormScoreResult:
    """
    Calcula o score do lead a partir das respostas e da config ativa.

    Args:
        answers: Respostas indexadas pelo id da pergunta (pode ser parcial)
        config: FormConfig ativa

    Returns:
        FormScoreResult com total e breakdown por pergunta de selecao
    """
    result = FormScoreResult()

    for question in config.questions:
        if question.type != "select" or not question.options:
            continue

        answer = answers.get(question.id)
        points = _resolve_points(question.options, answer)
        points = _conditional_fallback_points(question, answers, answer, points)

        result.breakdown[score_key_for(question.id)] = points
        result.total += points

    return result


def calculate_form_scores(answers: Mapping[str, str | None]) -> FormScoreResult:
    """Scoring com o formulario padrao, com todas as colunas de score preenchidas."""
    result = calculate_form_scores_with_config(answers, DEFAULT_FORM_CONFIG)
    breakdown = {column: 0 for column in SCORE_FIELD_MAPPING.values()}
    breakdown.update(result.breakdown)
    return FormScoreResult(total=result.total, breakdown=breakdown)


def classify_lead(score: int, thresholds: FormThresholds | None = None) -> LeadClassification:
    t = thresholds or DEFAULT_FORM_CONFIG.thresholds
    if score >= t.hot:
        return LeadClassification.QUENTE
    if score >= t.warm:
        return LeadClassification.MORNO
    if score >= t.cold:
        return LeadClassification.FRIO
    return LeadClassification.DESQUALIFICADO


def calculate_max_score(config: FormConfig) -> int:
    return sum(
        max(option.points for option in question.options)
        for question in config.questions
        if question.type == "select" and question.options
    )


def get_sorted_questions(config: FormConfig) -> list[FormQuestion]:
    return sorted(config.questions, key=lambda q: q.order)


def get_total_questions(config: FormConfig | None) -> int:
    """Numero de perguntas da config, caindo no padrao se estiver vazia."""
    if config and config.questions:
        return len(config.questions)
    return len(DEFAULT_FORM_CONFIG.questions)
