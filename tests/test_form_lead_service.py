"""Tests for progress merging, scoring on merge and the insert race."""
from datetime import datetime

import pytest

from app.dao import form_lead_dao
from app.entities.form_lead_entity import FormLead
from app.schemas.form_config_schemas import FormConfig
from app.schemas.form_lead_schemas import FormLeadProgress
from app.services import form_config_service, form_lead_service
from app.services.form_lead_service import FormLeadValidationError, ProgressMetadata


def submit(db, config, metadata=None, **fields):
    progress = FormLeadProgress(**fields)
    return form_lead_service.upsert_form_lead_progress(db, progress, metadata, config)


def test_new_session_without_name_is_rejected(db, nine_question_config):
    with pytest.raises(FormLeadValidationError):
        submit(db, nine_question_config, session_id="s-1", email="ana@example.com", question_number=2)
    assert db.query(FormLead).count() == 0


def test_blank_name_counts_as_missing(db, nine_question_config):
    with pytest.raises(FormLeadValidationError):
        submit(db, nine_question_config, session_id="s-1", nome="   ", question_number=1)


def test_existing_session_accepts_submission_without_name(db, nine_question_config):
    submit(db, nine_question_config, session_id="s-1", nome="Ana", question_number=1)
    lead = submit(db, nine_question_config, session_id="s-1", email="ana@example.com", question_number=2)
    assert lead.nome == "Ana"
    assert lead.email == "ana@example.com"


def test_resubmission_is_idempotent(db, nine_question_config):
    fields = dict(session_id="s-1", nome="Ana", tipo_negocio="Clinica", question_number=4)
    first = submit(db, nine_question_config, **fields)
    first_snapshot = (first.score_total, first.classificacao, first.ultima_pergunta_respondida)

    second = submit(db, nine_question_config, **fields)

    assert (second.score_total, second.classificacao, second.ultima_pergunta_respondida) == first_snapshot
    assert db.query(FormLead).count() == 1


def test_last_answered_question_never_decreases(db, nine_question_config):
    submit(db, nine_question_config, session_id="s-1", nome="Ana", question_number=5)
    lead = submit(db, nine_question_config, session_id="s-1", question_number=3)
    assert lead.ultima_pergunta_respondida == 5


def test_question_number_is_clamped_to_config_range(db, nine_question_config):
    lead = submit(db, nine_question_config, session_id="s-1", nome="Ana", question_number=0)
    assert lead.ultima_pergunta_respondida == 1

    lead = submit(db, nine_question_config, session_id="s-1", question_number=99)
    assert lead.ultima_pergunta_respondida == 9
    assert lead.form_completo is True


def test_completed_form_never_reverts(db, nine_question_config):
    submit(db, nine_question_config, session_id="s-1", nome="Ana", question_number=9)
    lead = submit(db, nine_question_config, session_id="s-1", question_number=2, form_completo=False)
    assert lead.form_completo is True


def test_score_is_recomputed_from_all_merged_answers(db, nine_question_config):
    submit(db, nine_question_config, session_id="s-1", nome="Ana", tipo_negocio="Clinica", question_number=4)
    lead = submit(db, nine_question_config, session_id="s-1", tempo_negocio="1 a 5 anos", question_number=5)

    assert lead.score_tipo_negocio == 10
    assert lead.score_tempo_negocio == 10
    assert lead.score_total == 20
    assert lead.score_breakdown["score_tipo_negocio"] == 10


def test_classification_waits_for_completion(db, nine_question_config):
    steps = [
        {"nome": "Ana"},
        {"email": "ana@example.com"},
        {"telefone": "11999990000"},
        {"tipo_negocio": "Clinica"},
        {"tempo_negocio": "Mais de 5 anos"},
        {"experiencia_marketing": "Sim"},
        {"orcamento_anuncios": "Acima de 5 mil"},
        {"disponibilidade": "Imediata"},
    ]
    for number, answer in enumerate(steps, start=1):
        lead = submit(db, nine_question_config, session_id="s-1", question_number=number, **answer)
        assert lead.classificacao is None
        assert lead.form_completo is False

    lead = submit(db, nine_question_config, session_id="s-1", question_number=9, expectativa_resultado="Curto prazo")

    assert lead.form_completo is True
    assert lead.score_total == 70
    assert lead.classificacao == "QUENTE"


def test_caller_classification_is_kept_until_completion(db, nine_question_config):
    lead = submit(db, nine_question_config, session_id="s-1", nome="Ana", question_number=1, classificacao="MORNO")
    assert lead.classificacao == "MORNO"

    lead = submit(db, nine_question_config, session_id="s-1", question_number=2, classificacao="FRIO")
    assert lead.classificacao == "MORNO"

    lead = submit(db, nine_question_config, session_id="s-1", question_number=9)
    assert lead.classificacao == "DESQUALIFICADO"


def test_unknown_classification_is_ignored(db, nine_question_config):
    lead = submit(db, nine_question_config, session_id="s-1", nome="Ana", question_number=1, classificacao="MUITO_QUENTE")
    assert lead.classificacao is None


def test_conditional_other_answer_scores_trigger_points(db, nine_question_config):
    lead = submit(
        db,
        nine_question_config,
        session_id="s-1",
        nome="Ana",
        tipo_negocio="Other",
        tipo_negocio_outro="Pest Control",
        question_number=4,
    )
    assert lead.score_tipo_negocio == 5


def test_blank_answers_do_not_overwrite_stored_values(db, nine_question_config):
    submit(db, nine_question_config, session_id="s-1", nome="Ana", email="ana@example.com", question_number=2)
    lead = submit(db, nine_question_config, session_id="s-1", nome="", email="  ", question_number=3)
    assert lead.nome == "Ana"
    assert lead.email == "ana@example.com"


def test_custom_answers_are_merged_and_filtered(db, nine_question_config):
    submit(
        db,
        nine_question_config,
        session_id="s-1",
        nome="Ana",
        question_number=1,
        custom_answers={"site": "ana.com", "vazio": "  ", "numero": 5},
    )
    lead = submit(db, nine_question_config, session_id="s-1", question_number=2, custom_answers={"instagram": "@ana"})
    assert lead.custom_answers == {"site": "ana.com", "instagram": "@ana"}


def test_custom_select_question_contributes_to_score(db):
    config = FormConfig.model_validate(
        {
            "questions": [
                {"id": "nome", "order": 1, "title": "Nome", "type": "text"},
                {
                    "id": "porteEmpresa",
                    "order": 2,
                    "title": "Porte",
                    "type": "select",
                    "options": [{"value": "Grande", "label": "Grande", "points": 12}],
                },
            ],
            "thresholds": {"hot": 10, "warm": 5, "cold": 1},
        }
    )
    lead = submit(db, config, session_id="s-1", nome="Ana", question_number=2, custom_answers={"porteEmpresa": "Grande"})
    assert lead.score_total == 12
    assert lead.score_breakdown == {"score_porteEmpresa": 12}
    assert lead.classificacao == "QUENTE"


def test_created_at_comes_from_started_at_and_never_changes(db, nine_question_config):
    lead = submit(
        db, nine_question_config, session_id="s-1", nome="Ana", question_number=1, started_at="2024-03-05T10:00:00Z"
    )
    assert (lead.created_at.year, lead.created_at.month, lead.created_at.day) == (2024, 3, 5)

    lead = submit(db, nine_question_config, session_id="s-1", question_number=2, started_at="2025-01-01T00:00:00Z")
    assert lead.created_at.year == 2024


def test_invalid_started_at_falls_back_to_now(db, nine_question_config):
    lead = submit(db, nine_question_config, session_id="s-1", nome="Ana", question_number=1, started_at="ontem")
    assert lead.created_at.year == datetime.now().year


def test_progress_keeps_admin_status(db, nine_question_config):
    lead = submit(db, nine_question_config, session_id="s-1", nome="Ana", question_number=1)
    assert lead.status == "novo"
    form_lead_service.update_form_lead(db, lead.id, status="contatado")

    lead = submit(db, nine_question_config, session_id="s-1", question_number=2)
    assert lead.status == "contatado"


def test_chat_lead_is_found_by_conversation_id(db, nine_question_config):
    metadata = ProgressMetadata(conversation_id="conv-1", source="chat")
    submit(db, nine_question_config, metadata, session_id="chat-conv-1", nome="Ana", question_number=1)

    lead = submit(db, nine_question_config, metadata, session_id="outra-sessao", email="ana@example.com", question_number=2)

    assert db.query(FormLead).count() == 1
    assert lead.email == "ana@example.com"
    assert lead.source == "chat"
    assert lead.conversation_id == "conv-1"


def test_source_and_conversation_are_retained_without_new_values(db, nine_question_config):
    metadata = ProgressMetadata(conversation_id="conv-1", source="chat", user_agent="bot/1.0")
    submit(db, nine_question_config, metadata, session_id="s-1", nome="Ana", question_number=1)

    lead = submit(db, nine_question_config, session_id="s-1", question_number=2)

    assert lead.source == "chat"
    assert lead.conversation_id == "conv-1"
    assert lead.user_agent == "bot/1.0"


def test_form_source_is_default(db, nine_question_config):
    lead = submit(db, nine_question_config, session_id="s-1", nome="Ana", question_number=1)
    assert lead.source == "form"
    assert lead.ghl_sync_status == "pending"


def test_active_config_is_used_when_none_given(db, nine_question_config):
    progress = FormLeadProgress(session_id="s-1", nome="Ana", question_number=6)
    lead = form_lead_service.upsert_form_lead_progress(db, progress)
    assert lead.form_completo is True

    form_config_service.update_form_config(db, nine_question_config)
    progress = FormLeadProgress(session_id="s-2", nome="Bia", question_number=6)
    lead = form_lead_service.upsert_form_lead_progress(db, progress)
    assert lead.form_completo is False


def test_concurrent_first_insert_merges_into_existing_row(db, nine_question_config, monkeypatch):
    submit(db, nine_question_config, session_id="s-race", nome="Ana", telefone="11999990000", question_number=3)

    real_lookup = form_lead_dao.get_by_session
    calls = {"count": 0}

    def stale_lookup(session, session_id):
        # Primeira busca não enxerga o registro criado pelo outro request
        calls["count"] += 1
        if calls["count"] == 1:
            return None
        return real_lookup(session, session_id)

    monkeypatch.setattr(form_lead_dao, "get_by_session", stale_lookup)

    lead = submit(
        db,
        nine_question_config,
        session_id="s-race",
        nome="Ana Souza",
        email="ana@example.com",
        tipo_negocio="Clinica",
        question_number=4,
    )

    assert db.query(FormLead).count() == 1
    assert lead.nome == "Ana Souza"
    assert lead.email == "ana@example.com"
    assert lead.telefone == "11999990000"
    assert lead.score_total == 10
    assert lead.ultima_pergunta_respondida == 4


def test_lookup_by_email_is_case_insensitive(db, nine_question_config):
    submit(db, nine_question_config, session_id="s-1", nome="Ana", email="Ana@Example.com", question_number=2)

    lead = form_lead_service.get_form_lead_by_email(db, "ana@example.COM")

    assert lead is not None
    assert lead.session_id == "s-1"
    assert form_lead_service.get_form_lead_by_email(db, "outra@example.com") is None
