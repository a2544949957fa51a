"""Cria as tabelas do banco. Rodar uma vez no deploy."""
from __future__ import annotations

import logging

from app.utils.db import create_tables


logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


if __name__ == "__main__":
    create_tables()
    logger.info("Tabelas criadas")
