from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from pagechat.services.llm_factory import get_gateway
from pagechat.services.model_service import get_selection

router = APIRouter(prefix="/models", tags=["models"])

class SelectModelRequest(BaseModel):
    model: str

@router.get("")
async def list_models():
    models = await get_gateway().list_models()
    selection = get_selection()
    return {"models": models, "selected": selection.get(), "available": bool(models)}

@router.put("/selected")
async def select_model(req: SelectModelRequest):
    model = (req.model or "").strip()
    if not model:
        raise HTTPException(status_code=400, detail="model is required")
    selection = get_selection()
    await selection.set(model)
    return {"selected": selection.get()}
