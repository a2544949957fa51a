from app.schemas.form_config_schemas import (
    ConditionalField,
    FormConfig,
    FormConfigSummary,
    FormOption,
    FormQuestion,
    FormThresholds,
)
from app.schemas.form_lead_schemas import (
    ChatToolRequest,
    ChatToolResponse,
    FormLeadMetricsResponse,
    FormLeadProgress,
    FormLeadResponse,
    FormLeadsListResponse,
    FormLeadUpdate,
)

__all__ = [
    "ChatToolRequest",
    "ChatToolResponse",
    "ConditionalField",
    "FormConfig",
    "FormConfigSummary",
    "FormLeadMetricsResponse",
    "FormLeadProgress",
    "FormLeadResponse",
    "FormLeadsListResponse",
    "FormLeadUpdate",
    "FormOption",
    "FormQuestion",
    "FormThresholds",
]
