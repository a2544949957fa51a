from __future__ import annotations

import logging

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from app.controllers.chat_tools_controller import router as chat_tools_router
from app.controllers.form_config_controller import router as form_config_router
from app.controllers.form_lead_controller import router as form_lead_router
from app.services.websocket_manager import ws_manager
from app.utils.settings import settings


logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

app = FastAPI(
    title="Lead Qualification API",
    description="Formulário de qualificação de leads com score e classificação (web e chat)",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(form_lead_router)
app.include_router(form_config_router)
app.include_router(chat_tools_router)


@app.get("/health", tags=["Health"])
def health():
    return {"status": "ok"}


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    await ws_manager.connect(websocket)
    try:
        while True:
            data = await websocket.receive_text()
            if data == "ping":
                await websocket.send_text('{"event":"pong"}')
    except WebSocketDisconnect:
        ws_manager.disconnect(websocket)
