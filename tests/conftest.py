"""Fixtures compartilhadas: SQLite em memória e TestClient com get_db sobrescrito."""
import copy

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import app.entities  # noqa: F401
from app.schemas.form_config_schemas import FormConfig
from app.utils.db import Base, get_db
from main import app as fastapi_app


NINE_QUESTION_DOCUMENT = {
    "questions": [
        {"id": "nome", "order": 1, "title": "Nome completo", "type": "text", "required": True},
        {"id": "email", "order": 2, "title": "Email", "type": "email", "required": True},
        {"id": "telefone", "order": 3, "title": "Telefone", "type": "tel", "required": True},
        {
            "id": "tipoNegocio",
            "order": 4,
            "title": "Tipo de negócio",
            "type": "select",
            "required": True,
            "options": [
                {"value": "Clinica", "label": "Clínica", "points": 10},
                {"value": "Restaurante", "label": "Restaurante", "points": 8},
                {"value": "Other", "label": "Outro", "points": 5},
            ],
            "conditionalField": {"showWhen": "Other", "id": "tipoNegocioOutro", "title": "Qual?"},
        },
        {
            "id": "tempoNegocio",
            "order": 5,
            "title": "Tempo de negócio",
            "type": "select",
            "required": True,
            "options": [
                {"value": "Mais de 5 anos", "label": "Mais de 5 anos", "points": 15},
                {"value": "1 a 5 anos", "label": "De 1 a 5 anos", "points": 10},
                {"value": "Menos de 1 ano", "label": "Menos de 1 ano", "points": 5},
            ],
        },
        {
            "id": "experienciaMarketing",
            "order": 6,
            "title": "Já investiu em marketing?",
            "type": "select",
            "required": True,
            "options": [
                {"value": "Sim", "label": "Sim", "points": 10},
                {"value": "Nao", "label": "Não", "points": 3},
            ],
        },
        {
            "id": "orcamentoAnuncios",
            "order": 7,
            "title": "Orçamento mensal",
            "type": "select",
            "required": True,
            "options": [
                {"value": "Acima de 5 mil", "label": "Acima de R$ 5 mil", "points": 15},
                {"value": "1 a 5 mil", "label": "R$ 1 a 5 mil", "points": 10},
                {"value": "Ate 1 mil", "label": "Até R$ 1 mil", "points": 3},
            ],
        },
        {
            "id": "disponibilidade",
            "order": 8,
            "title": "Disponibilidade",
            "type": "select",
            "required": True,
            "options": [
                {"value": "Imediata", "label": "Imediata", "points": 10},
                {"value": "Proximo mes", "label": "Próximo mês", "points": 5},
            ],
        },
        {
            "id": "expectativaResultado",
            "order": 9,
            "title": "Expectativa",
            "type": "select",
            "required": True,
            "options": [
                {"value": "Curto prazo", "label": "Curto prazo", "points": 10},
                {"value": "Longo prazo", "label": "Longo prazo", "points": 5},
            ],
        },
    ],
    "maxScore": 70,
    "thresholds": {"hot": 58, "warm": 40, "cold": 25},
}


@pytest.fixture
def nine_question_document():
    return copy.deepcopy(NINE_QUESTION_DOCUMENT)


@pytest.fixture
def nine_question_config(nine_question_document):
    return FormConfig.model_validate(nine_question_document)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    fastapi_app.dependency_overrides[get_db] = override_get_db
    with TestClient(fastapi_app) as test_client:
        yield test_client
    fastapi_app.dependency_overrides.clear()
