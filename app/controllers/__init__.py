from app.controllers.chat_tools_controller import router as chat_tools_router
from app.controllers.form_config_controller import router as form_config_router
from app.controllers.form_lead_controller import router as form_lead_router

__all__ = [
    "chat_tools_router",
    "form_config_router",
    "form_lead_router",
]
