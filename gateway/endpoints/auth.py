"""
OAuth flow, status and credential endpoints, one set per provider.
"""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse

from settings import API_PREFIX
from oauth import AuthBroker, OAuthManager, UnknownProviderError, render_callback_page
from ..models import ApiKeyRequest, AuthStatusResponse, OkResponse, StartFlowResponse

router = APIRouter(prefix=API_PREFIX + "/auth")


def get_broker(request: Request) -> AuthBroker:
    return request.app.state.broker


def get_manager(provider: str, broker: AuthBroker = Depends(get_broker)) -> OAuthManager:
    """Resolve the {provider} path segment, 404 if unknown"""
    try:
        return broker.get(provider)
    except UnknownProviderError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/{provider}/start", response_model=StartFlowResponse)
async def start_flow(manager: OAuthManager = Depends(get_manager)):
    """Begin a PKCE login and return the provider redirect target"""
    flow = manager.start_flow()
    return StartFlowResponse(url=flow.url)


@router.get("/{provider}/callback", response_class=HTMLResponse)
async def oauth_callback(
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    error_description: Optional[str] = None,
    manager: OAuthManager = Depends(get_manager),
):
    """Landing page the provider redirects the operator's browser to"""
    outcome = await manager.handle_callback(
        code=code,
        state=state,
        error=error,
        error_description=error_description,
    )
    return HTMLResponse(content=render_callback_page(outcome), status_code=outcome.status_code)


@router.get("/{provider}/status", response_model=AuthStatusResponse)
async def auth_status(manager: OAuthManager = Depends(get_manager)):
    """Connection status without exposing secrets"""
    return manager.get_status().to_dict()


@router.delete("/{provider}/disconnect", response_model=OkResponse)
async def disconnect(manager: OAuthManager = Depends(get_manager)):
    """Remove every stored credential for the provider"""
    manager.disconnect()
    return OkResponse()


@router.put("/{provider}/api-key", response_model=OkResponse)
async def save_api_key(body: ApiKeyRequest, manager: OAuthManager = Depends(get_manager)):
    """Store a static API key, bypassing the OAuth flow"""
    try:
        manager.save_api_key(body.api_key)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return OkResponse()
