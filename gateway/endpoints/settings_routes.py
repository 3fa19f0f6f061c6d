"""
Raw settings document endpoints used by the dashboard editor.
"""
from typing import Any, Dict
from fastapi import APIRouter, Body, Request

from settings import API_PREFIX
from ..models import SettingsUpdateResponse

router = APIRouter(prefix=API_PREFIX)


@router.get("/settings")
async def get_settings(request: Request):
    """Current settings document"""
    return request.app.state.broker.store.load()


@router.put("/settings", response_model=SettingsUpdateResponse)
async def update_settings(request: Request, partial: Dict[str, Any] = Body(...)):
    """Merge a partial document into the stored one (top-level keys replace)"""
    document = request.app.state.broker.store.update(partial)
    return SettingsUpdateResponse(settings=document)
