from app.entities.company_settings_entity import CompanySettings
from app.entities.form_lead_entity import FormLead

__all__ = ["CompanySettings", "FormLead"]
