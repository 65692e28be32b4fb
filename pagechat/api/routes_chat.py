from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from pagechat.services.chat_service import ChatBusyError
from pagechat.services.model_service import NO_MODELS_MESSAGE, get_selection
from pagechat.services.page_service import get_registry

router = APIRouter(prefix="/chat", tags=["chat"])

class ChatRequest(BaseModel):
    tab_id: int
    question: str

@router.post("")
async def chat(req: ChatRequest):
    question = (req.question or "").strip()
    if not question:
        raise HTTPException(status_code=400, detail="question is required")

    view = get_registry().current(req.tab_id)
    if view is None:
        raise HTTPException(status_code=404, detail="No page view for this tab")
    if not view.chat_enabled:
        raise HTTPException(status_code=409, detail=view.message or "Chat is not available for this page yet")

    model_id = get_selection().get()
    if not model_id:
        raise HTTPException(status_code=409, detail=NO_MODELS_MESSAGE)

    try:
        turn = await view.chat.ask(question, model_id)
    except ChatBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"answer": turn.answer, "turns": [t.model_dump() for t in view.chat.turns]}

@router.get("/{tab_id}")
async def transcript(tab_id: int):
    view = get_registry().current(tab_id)
    if view is None:
        raise HTTPException(status_code=404, detail="No page view for this tab")
    turns = view.chat.turns if view.chat else []
    return {"tab_id": tab_id, "chat_enabled": view.chat_enabled, "turns": [t.model_dump() for t in turns]}
