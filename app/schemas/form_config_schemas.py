from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


QuestionType = Literal["text", "email", "tel", "select"]


class FormDocumentModel(BaseModel):
    """Base dos modelos do documento de formulario (chaves camelCase no JSON)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FormOption(FormDocumentModel):
    value: str
    label: str
    points: int = 0


class ConditionalField(FormDocumentModel):
    show_when: str
    id: str
    title: str
    placeholder: str | None = None


class FormQuestion(FormDocumentModel):
    id: str = Field(min_length=1)
    order: int
    title: str
    type: QuestionType
    required: bool = False
    placeholder: str | None = None
    options: list[FormOption] | None = None
    conditional_field: ConditionalField | None = None


class FormThresholds(FormDocumentModel):
    hot: int
    warm: int
    cold: int

    @model_validator(mode="after")
    def check_ascending(self) -> FormThresholds:
        if not (self.hot > self.warm > self.cold):
            raise ValueError("Thresholds devem respeitar hot > warm > cold")
        return self


class FormConfig(FormDocumentModel):
    """
    Schema do formulario de qualificacao editavel pelo admin.

    As perguntas podem estar fora de ordem no documento; use
    get_sorted_questions() sempre que a ordem importar.
    """

    questions: list[FormQuestion]
    max_score: int = 0
    thresholds: FormThresholds

    @model_validator(mode="after")
    def check_unique_ids(self) -> FormConfig:
        seen: set[str] = set()
        for question in self.questions:
            ids = [question.id]
            if question.conditional_field:
                ids.append(question.conditional_field.id)
            for field_id in ids:
                if field_id in seen:
                    raise ValueError(f"ID de pergunta duplicado: {field_id}")
                seen.add(field_id)
        return self

    def to_document(self) -> dict:
        """Documento JSON no formato armazenado em company_settings."""
        return self.model_dump(by_alias=True, exclude_none=True)


class FormConfigSummary(BaseModel):
    total_questions: int
    max_score: int
    calculated_max_score: int
    thresholds: FormThresholds
    question_ids: list[str]
