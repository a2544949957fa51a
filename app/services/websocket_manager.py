"""
WebSocket Manager — eventos em tempo real para o painel de leads.

O painel admin escuta /ws para atualizar a lista quando um visitante
avança no formulário, quando o admin edita/remove um lead ou troca a
config do formulário.
"""
from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class LeadEvent(str, Enum):
    FORM_LEAD_UPDATED = "form_lead_updated"
    FORM_LEAD_DELETED = "form_lead_deleted"
    FORM_CONFIG_UPDATED = "form_config_updated"


class ConnectionManager:
    """Mantém as conexões do painel e distribui os eventos."""

    def __init__(self) -> None:
        self.active_connections: list[WebSocket] = []

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self.active_connections.append(websocket)
        logger.info(f"Painel conectado via WebSocket. Total: {len(self.active_connections)}")

    def disconnect(self, websocket: WebSocket) -> None:
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)
        logger.info(f"Painel desconectado. Total: {len(self.active_connections)}")

    async def broadcast(self, event: LeadEvent, data: dict[str, Any] | None = None) -> None:
        if not self.active_connections:
            return
        message = json.dumps({"event": event.value, "data": data or {}}, default=str)
        stale: list[WebSocket] = []

        for connection in self.active_connections:
            try:
                await connection.send_text(message)
            except Exception as e:
                logger.warning(f"Falha ao enviar evento {event.value}: {e}")
                stale.append(connection)

        for conn in stale:
            self.disconnect(conn)


# Instância singleton
ws_manager = ConnectionManager()
