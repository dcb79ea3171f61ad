"""
Assistant routes.

Chat endpoints of Panorama AI. Answers are generated from the current
active inventory; failures come back as assistant messages rather than
HTTP errors.
"""

from fastapi import APIRouter, Depends

from panorama.core.security import get_current_user
from panorama.schemas.assistant import AskRequest, AssistantMessage
from panorama.services import assistant_service
from panorama.services.config_service import get_config

router = APIRouter()


@router.get("/greeting", response_model=AssistantMessage, dependencies=[Depends(get_current_user)])
async def read_greeting():
    return {"role": "ai", "text": assistant_service.greeting(await get_config()), "is_report": False}


@router.post("/ask", response_model=AssistantMessage, dependencies=[Depends(get_current_user)])
async def ask_route(request: AskRequest):
    """
    Ask a question about the inventory.

    Example:
        >>> POST /assistant/ask
        {"question": "Quels actifs ont été acquis en 2025 ?"}
    """

    return await assistant_service.ask(request.question.strip())
