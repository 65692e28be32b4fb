from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from pagechat.services.llm_factory import get_gateway
from pagechat.services.model_service import get_selection
from pagechat.services.page_service import get_registry, run_page_view

router = APIRouter(prefix="/summary", tags=["summary"])

class SummaryRequest(BaseModel):
    tab_id: int
    url: str | None = None
    title: str | None = None
    # Extracted page text. When omitted the URL is fetched server-side.
    text: str | None = None

@router.post("")
async def create_summary(req: SummaryRequest):
    if req.text is None and not (req.url or "").strip():
        raise HTTPException(status_code=400, detail="url or text is required")

    registry = get_registry()
    view = registry.open(req.tab_id, req.url)
    await run_page_view(registry, view, get_selection(), gateway=get_gateway(), text=req.text, title=req.title)
    return view.to_dict()

@router.get("/{tab_id}")
async def get_summary(tab_id: int):
    view = get_registry().current(tab_id)
    if view is None:
        raise HTTPException(status_code=404, detail="No page view for this tab")
    return view.to_dict()
