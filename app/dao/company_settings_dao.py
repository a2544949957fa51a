from __future__ import annotations

from sqlalchemy.orm import Session

from app.entities.company_settings_entity import CompanySettings

def get_settings(db: Session) -> CompanySettings:
    settings_row = db.query(CompanySettings).order_by(CompanySettings.id).first()
    if settings_row:
        return settings_row
    settings_row = CompanySettings(form_config=None)
    db.add(settings_row)
    db.commit()
    db.refresh(settings_row)
    return settings_row

def get_form_config_document(db: Session) -> dict | None:
    return get_settings(db).form_config

def update_form_config_document(db: Session, document: dict | None) -> CompanySettings:
    settings_row = get_settings(db)
    settings_row.form_config = document
    db.commit()
    db.refresh(settings_row)
    return settings_row
