"""Remove a config salva do formulário; o formulário padrão volta a valer."""
from __future__ import annotations

import logging

from app.services import form_config_service
from app.utils.db import SessionLocal


logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")


def main() -> None:
    db = SessionLocal()
    try:
        form_config_service.reset_form_config(db)
    finally:
        db.close()


if __name__ == "__main__":
    main()
