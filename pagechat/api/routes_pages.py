from fastapi import APIRouter
from pydantic import BaseModel

from pagechat.services.page_service import get_registry

router = APIRouter(prefix="/pages", tags=["pages"])

class NavigateRequest(BaseModel):
    tab_id: int
    url: str

@router.post("/navigate")
async def navigate(req: NavigateRequest):
    # The panel reloads (and re-summarizes) only when this says so.
    reload = get_registry().navigate(req.tab_id, req.url)
    return {"tab_id": req.tab_id, "url": req.url, "reload": reload}
