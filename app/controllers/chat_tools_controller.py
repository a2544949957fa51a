from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.schemas.form_lead_schemas import ChatToolRequest, ChatToolResponse
from app.services import chat_tools_service, form_config_service
from app.services.chat_tools_service import ChatToolContext, ChatToolError
from app.services.websocket_manager import LeadEvent, ws_manager
from app.utils.db import get_db


router = APIRouter(prefix="/api/chat/tools", tags=["Chat Tools"])


@router.get("/")
def list_tools(db: Session = Depends(get_db)):
    """Definições das ferramentas para o modelo, geradas a partir da config ativa."""
    config = form_config_service.get_active_form_config(db)
    return chat_tools_service.build_tool_definitions(config)


@router.post("/{tool_name}", response_model=ChatToolResponse)
async def execute_tool(
    tool_name: str,
    request: ChatToolRequest,
    db: Session = Depends(get_db),
):
    """Executa a chamada de ferramenta feita pelo assistente na conversa."""
    context = ChatToolContext(
        conversation_id=request.conversation_id,
        session_id=request.session_id,
        user_agent=request.user_agent,
    )
    try:
        result = chat_tools_service.execute_tool(db, tool_name, request.arguments, context)
    except ChatToolError as e:
        raise HTTPException(status_code=404, detail=str(e))

    if tool_name == chat_tools_service.SAVE_FORM_PROGRESS and result.get("success"):
        await ws_manager.broadcast(LeadEvent.FORM_LEAD_UPDATED, {"lead_id": result["lead_id"]})

    return ChatToolResponse(tool=tool_name, result=result)
